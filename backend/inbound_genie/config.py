import os
import pathlib
import logging
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent

DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8080",
    "http://127.0.0.1:3000",
]


def load_environment() -> None:
    """Load .env from the project root first, then the current directory."""
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded .env from: {env_path}")
    else:
        load_dotenv()


def env(name: str, default: str = "") -> str:
    # Strip whitespace and stray CRs that break URLs and keys
    return (os.getenv(name, default) or "").strip().replace("\r", "")


def supabase_credentials() -> Optional[tuple]:
    url = env("SUPABASE_URL")
    key = env("SUPABASE_SERVICE_ROLE_KEY")
    if url and key:
        return url, key
    return None


def allowed_origins() -> List[str]:
    origins = list(DEV_ORIGINS)
    frontend = env("FRONTEND_URL")
    if frontend:
        origins.insert(0, frontend)
    return origins


def is_development() -> bool:
    return env("ENVIRONMENT", "production").lower() == "development"


@dataclass
class SmtpSettings:
    host: str
    port: int
    user: str
    password: str
    from_email: str
    from_name: str

    @property
    def use_ssl(self) -> bool:
        return self.port == 465


def system_smtp_settings() -> Optional[SmtpSettings]:
    """Server-side SMTP settings used for verification and system email."""
    host = env("SMTP_HOST")
    user = env("SMTP_USER")
    password = env("SMTP_PASSWORD")
    if not (host and user and password):
        return None
    try:
        port = int(env("SMTP_PORT", "465") or "465")
    except ValueError:
        port = 465
    return SmtpSettings(
        host=host,
        port=port,
        user=user,
        password=password,
        from_email=env("SMTP_FROM_EMAIL") or user,
        from_name=env("SMTP_FROM_NAME") or "Inbound Genie",
    )
