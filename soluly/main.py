import logging
import os
from os import getenv
from pathlib import Path

# Load .env file BEFORE any other imports that might use environment variables
# (functions client, invite expiry, utils.logging's DEBUG flag)
ENV_FILE_PATHS = [
    Path("/opt/soluly/.env"),
    Path(__file__).parent.parent / ".env",
    Path(__file__).parent.parent.parent / ".env",
]

def load_env_file_fallback():
    """Load .env file directly if environment variables aren't set."""
    # Use basic print for logging since logger might not be configured yet
    for env_file in ENV_FILE_PATHS:
        if env_file.exists() and env_file.is_file():
            try:
                loaded_count = 0
                with open(env_file, "r") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#"):
                            continue
                        if "=" in line:
                            key, value = line.split("=", 1)
                            key = key.strip()
                            value = value.strip()
                            if value.startswith('"') and value.endswith('"'):
                                value = value[1:-1]
                            elif value.startswith("'") and value.endswith("'"):
                                value = value[1:-1]
                            # Only set if not already in environment
                            if key and value and key not in os.environ:
                                os.environ[key] = value
                                loaded_count += 1
                if loaded_count > 0:
                    print(f"[Soluly] Loaded {loaded_count} environment variables from {env_file}")
                return True
            except OSError as e:
                print(f"[Soluly] Warning: Could not load .env file from {env_file}: {e}")
    return False

if not getenv("FUNCTIONS_BASE_URL"):
    print("[Soluly] FUNCTIONS_BASE_URL not in environment, loading from .env file...")
    load_env_file_fallback()

from litestar import Litestar, Request
from litestar.config.cors import CORSConfig
from litestar.di import Provide
from litestar.exceptions import HTTPException, ValidationException
from litestar.plugins.sqlalchemy import AsyncSessionConfig, SQLAlchemyAsyncConfig, SQLAlchemyInitPlugin
from litestar.response import Response
from litestar.status_codes import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR, HTTP_502_BAD_GATEWAY

from soluly.api.deps import provide_organization
from soluly.integrations.functions import FunctionCallError
from soluly.models import Base  # Import models Base for table creation
from soluly.routes import ROUTES
from soluly.utils.logging import log_request_error

DEBUG = getenv("APP_DEBUG", "false").lower() == "true"
# Default DATABASE_URL is for local dev only (Docker Compose)
DATABASE_URL = getenv(
    "DATABASE_URL",
    "postgresql+asyncpg://postgres:postgres@db:5432/soluly"
)
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger("Soluly")

logger.info(f"Starting app in {'DEBUG' if DEBUG else 'PRODUCTION'} mode")
logger.info(f"Database URL: {DATABASE_URL}")

if getenv("FUNCTIONS_BASE_URL"):
    logger.info("✓ Functions endpoint configured")
else:
    logger.warning("⚠ FUNCTIONS_BASE_URL not set: email categorization and invite emails will fail with 502")

# --- SQLAlchemy config
config = SQLAlchemyAsyncConfig(
    connection_string=DATABASE_URL,
    session_dependency_key="session",
    metadata=Base.metadata,
    create_all=DEBUG,  # Auto-create tables on startup (dev only)
    session_config=AsyncSessionConfig(expire_on_commit=False),
)
plugin = SQLAlchemyInitPlugin(config)


# --- Exception handlers
def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        log_request_error(request, exc)
    return Response(
        content={"status_code": exc.status_code, "detail": exc.detail},
        status_code=exc.status_code,
        media_type="application/json"
    )


def handle_validation_exception(request: Request, exc: ValidationException) -> Response:
    """Turn body validation failures on writes into a required-fields message."""
    detail = exc.detail
    if request.method in ("POST", "PUT", "PATCH") and detail.startswith("Validation failed"):
        keys = [
            item.get("key") for item in (exc.extra or [])
            if isinstance(item, dict) and item.get("key")
        ]
        if keys:
            detail = f"Please fill in required fields: {', '.join(keys)}"
    logger.debug(f"Validation error on {request.method} {request.url.path}: {detail}")
    return Response(
        content={"status_code": HTTP_400_BAD_REQUEST, "detail": detail, "extra": exc.extra},
        status_code=HTTP_400_BAD_REQUEST,
        media_type="application/json"
    )


def handle_function_error(request: Request, exc: FunctionCallError) -> Response:
    log_request_error(request, exc, message=f"Function '{exc.function}' failed")
    return Response(
        content={"status_code": HTTP_502_BAD_GATEWAY, "detail": exc.message},
        status_code=HTTP_502_BAD_GATEWAY,
        media_type="application/json"
    )


def log_exceptions(request: Request, exc: Exception) -> Response:
    log_request_error(request, exc, message="Unhandled exception occurred")
    return Response(
        content={"detail": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json"
    )


# --- App init
app = Litestar(
    route_handlers=ROUTES,
    debug=DEBUG,
    plugins=[plugin],
    cors_config=CORSConfig(allow_origins=CORS_ALLOW_ORIGINS),
    dependencies={"organization": Provide(provide_organization)},
    exception_handlers={
        HTTPException: handle_http_exception,
        ValidationException: handle_validation_exception,
        FunctionCallError: handle_function_error,
        Exception: log_exceptions,
    }
)
