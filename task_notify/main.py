"""FastAPI application entry point."""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .exceptions import NotifyError
from .routers import media_router, notify_router
from .services.push_client import FirebasePushClient

# Configure logging to show errors
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup: a missing Firebase credential is fatal, not per-request
    owns_client = False
    if getattr(app.state, "push_client", None) is None:
        logger.info("Initializing Firebase push client...")
        app.state.push_client = FirebasePushClient.from_settings(settings)
        owns_client = True
        logger.info("Firebase push client ready")

    yield

    # Shutdown
    if owns_client:
        logger.info("Releasing Firebase push client...")
        app.state.push_client.close()
        app.state.push_client = None


# Create FastAPI application
app = FastAPI(
    title="Task Notify API",
    description="Push notifications for warehouse task lifecycle events",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS Middleware - the mobile/web client calls these endpoints directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotifyError)
async def notify_error_handler(request: Request, exc: NotifyError):
    """Render pipeline errors as {ok: false, error, kind}."""
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} error on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message, "kind": exc.kind},
    )


# Global exception handler to log errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url}:")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"ok": False, "error": str(exc) or "Internal server error"},
    )


# Include API routers
app.include_router(notify_router)
app.include_router(media_router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "status": "healthy",
        "service": "Task Notify API",
        "version": "1.0.0",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "push": {
            "configured": settings.push_configured,
            "ready": getattr(app.state, "push_client", None) is not None,
        },
        "media": {
            "configured": settings.media_configured,
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("task_notify.main:app", host=settings.host, port=settings.port)
