"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.api import api_router, oauth_router
from app.db.database import check_connection, close_db, init_db
from app.db.redis_cache import get_redis_cache
from app.exceptions import AppError, ValidationError
from app.models.schemas import HealthResponse, ServerInfoResponse
from app.services.filesystem import filesystem_service
from app.settings import settings
from app.utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    filesystem_service.initialize()
    init_db()
    logger.info(f"One Cre API started: environment={settings.environment}")
    yield
    close_db()
    get_redis_cache().close()


app = FastAPI(
    title="One Cre Workspace API",
    description="Workspaces, goals, milestones and tasks with attachments and assignment notifications",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.error}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.status_code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    error = ValidationError("Invalid request", debug=[
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()
    ])
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error", "error": "InternalError"},
    )


# Include routers
app.include_router(api_router, prefix="/api")
app.include_router(oauth_router, prefix="/auth")

# Uploaded attachments; the directory is created on startup
app.mount("/uploads", StaticFiles(directory=filesystem_service.root, check_dir=False), name="uploads")


@app.get("/")
async def root():
    """Service banner."""
    return {
        "status": "ok",
        "service": "One Cre Workspace API",
        "version": "0.1.0",
    }


@app.get("/health", response_model=HealthResponse)
def health():
    """Health check endpoint."""
    database_ok = check_connection()
    redis_ok = get_redis_cache().ping()
    return HealthResponse(status="healthy" if database_ok and redis_ok else "degraded", database=database_ok, redis=redis_ok)


@app.get("/api/server-info", response_model=ServerInfoResponse)
def server_info(request: Request):
    """Public base URLs as seen by the caller (honours X-Forwarded-Proto)."""
    protocol = "https" if request.headers.get("x-forwarded-proto") == "https" else request.url.scheme
    host = request.headers.get("host") or f"localhost:{settings.port}"
    return ServerInfoResponse(
        serverUrl=f"{protocol}://{host}",
        frontendUrl=settings.frontend_url.rstrip("/"),
        port=settings.port,
        host=host,
        protocol=protocol,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
