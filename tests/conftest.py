import pytest
from fastapi.testclient import TestClient

from inbound_genie import db as db_module
from inbound_genie.db import InMemoryDB
from inbound_genie.services import auth_client
from inbound_genie.services.auth_client import InMemoryAuth

PROVIDER_ENV = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "SUPABASE_WEBHOOK_SECRET",
    "OPENAI_API_KEY",
    "RETELL_API_KEY",
    "SMTP_HOST",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SMTP_PORT",
    "SMTP_FROM_EMAIL",
    "SMTP_FROM_NAME",
    "ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def offline_env(monkeypatch):
    """Every test runs against the in-memory store with no provider credentials."""
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db(monkeypatch):
    store = InMemoryDB()
    monkeypatch.setattr(db_module, "_db_instance", store)
    return store


@pytest.fixture
def auth(monkeypatch):
    backend = InMemoryAuth()
    monkeypatch.setattr(auth_client, "_auth_instance", backend)
    return backend


@pytest.fixture
def client(db, auth):
    from inbound_genie.main import app
    return TestClient(app)


@pytest.fixture
def profile(db):
    return db.upsert_profile({
        "user_id": "user-1",
        "email": "owner@example.com",
        "full_name": "Sam Owner",
        "Remaning_credits": 10,
    })
