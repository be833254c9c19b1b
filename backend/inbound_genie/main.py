from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from .config import allowed_origins, env, is_development, load_environment
from .api.routes import api_router
from .api.mail import root_router as email_root_router
import logging

# Load environment variables from .env (if present)
load_environment()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)

logger = logging.getLogger(__name__)

for name, hint in (
    ("OPENAI_API_KEY", "OpenAI features will not work"),
    ("SUPABASE_URL", "using the in-memory store"),
    ("RETELL_API_KEY", "test call features will not work"),
):
    if not env(name):
        logger.warning(f"{name} is not configured, {hint}")

app = FastAPI(title="Inbound Genie")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_origin_regex=".*" if is_development() else None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    body = {"success": False}
    if isinstance(exc.detail, dict):
        body.update(exc.detail)
    else:
        body["error"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={
        "success": False,
        "error": f"{location}: {message}" if location else message,
    })


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc) or "Internal server error"})


app.include_router(api_router, prefix="/api")
app.include_router(email_root_router)


@app.get("/")
async def root():
    return {"status": "ok"}
