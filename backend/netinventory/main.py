from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .core.config import settings
from .core.errors import (
    ConfigurationError,
    DeviceNotFoundError,
    InvalidAddressError,
    NetworkNotFoundError,
    NoLocalNetworkError,
    RegistryError
)
from .core.logging import configure_logging
from .db.database import init_db
from .api.routes import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging(settings.DEBUG)
    logger.info("🚀 Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    
    # Initialize database
    await init_db()
    logger.info("✅ Database initialized")
    
    yield
    
    logger.info("🛑 Shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Network device discovery and inventory sync",
    lifespan=lifespan
)

# Domain errors -> HTTP status
ERROR_STATUS = [
    (NetworkNotFoundError, 404),
    (DeviceNotFoundError, 404),
    (InvalidAddressError, 422),
    (ConfigurationError, 400),
    (NoLocalNetworkError, 503),
    (RegistryError, 500),
]


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        if status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler


for error_class, status_code in ERROR_STATUS:
    app.add_exception_handler(error_class, _error_handler(status_code))

# Include routers
app.include_router(api_router, prefix="/api", tags=["API"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
