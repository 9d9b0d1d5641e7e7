from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from typing import Any, Dict, Optional
import time
import uuid
import logging
from contextlib import asynccontextmanager

from tripboard.core.config import settings
from tripboard.core.database import engine
from tripboard.core.database import Base
from tripboard.core.errors import TripBoardError
from tripboard.api import health, metrics, auth, trips, admin
from tripboard.auth.jwt_manager import jwt_manager
from tripboard.services.storage import get_storage

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Trip Board API ({settings.environment})")
    Base.metadata.create_all(bind=engine)

    removed = jwt_manager.cleanup_expired_sessions()
    if removed:
        logger.info(f"Removed {removed} expired admin sessions")

    yield

    logger.info("Shutting down Trip Board API")


app = FastAPI(
    title="Trip Board API",
    description="Trip and internship listings with an admin back office",
    version="1.0.0",
    lifespan=lifespan
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag the request with an ID, time it and add the security headers."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start_time = time.time()

    response = await call_next(request)

    duration_ms = round((time.time() - start_time) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    response.headers.update(SECURITY_HEADERS)

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "request_id": request_id,
            "client_ip": request.client.host if request.client else "unknown",
            "duration_ms": duration_ms
        }
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.environment == "production":
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)


def _error_response(
    request: Request,
    status_code: int,
    message: Any,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Error body shared by every handler: ``{"error", "status_code", "request_id"}``."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "status_code": status_code,
            "request_id": getattr(request.state, "request_id", "unknown")
        },
        headers=headers
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, exc.detail, getattr(exc, "headers", None))


@app.exception_handler(TripBoardError)
async def trip_board_exception_handler(request: Request, exc: TripBoardError):
    """Domain errors carry their own HTTP status."""
    if exc.status_code >= 500:
        logger.error(
            f"Trip operation failed: {exc.message}",
            extra={"request_id": getattr(request.state, "request_id", "unknown")}
        )
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "exception_type": type(exc).__name__
        },
        exc_info=True
    )
    return _error_response(request, 500, "Internal server error")


app.include_router(health.router, tags=["health"])
app.include_router(metrics.router, tags=["metrics"])
app.include_router(auth.router, tags=["auth"])
app.include_router(trips.router, tags=["trips"])
app.include_router(admin.router, tags=["admin"])

# Serve the local bucket at <storage_public_url>/<bucket>/<key>
_storage = get_storage()
app.mount(
    f"/storage/{_storage.bucket}",
    StaticFiles(directory=str(_storage.bucket_dir)),
    name="storage"
)


@app.get("/")
async def root():
    return {
        "message": "Trip Board API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/healthz"
    }
