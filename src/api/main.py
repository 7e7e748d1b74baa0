import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.adapters.http_remote import HttpContentRemote
from src.api.deps import get_remote, get_rules, get_settings
from src.app_shell.config import ConfigurationError, validate_ops_rules
from src.components.lifecycle import InvariantViolationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules and validate on startup (fail-fast)
    try:
        rules = get_rules()
        validate_ops_rules(rules, settings.remote_backend)
        logger.info("Rules loaded from %s", settings.rules_path)
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    yield

    remote = get_remote()
    if isinstance(remote, HttpContentRemote):
        await remote.aclose()


app = FastAPI(
    title="Content Lifecycle Admin API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import admin_circulars, admin_popups  # noqa: E402

app.include_router(admin_popups.router, prefix="/api/admin/popups", tags=["Admin Popups"])
app.include_router(
    admin_circulars.router, prefix="/api/admin/circulars", tags=["Admin Circulars"]
)


@app.exception_handler(InvariantViolationError)
async def invariant_violation_handler(
    request: Request, exc: InvariantViolationError
) -> JSONResponse:
    logger.error("Refused write on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "errors": [
                    {"code": "invariant_violation", "message": str(exc), "field": None}
                ]
            }
        },
    )


# CORS (Allow Frontend)
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "content-admin"}
