"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import time

from hemis import __version__
from hemis.container import container
from hemis.core.config import settings
from hemis.core.database import engine, Base
from hemis.core.logging_config import setup_logging
from hemis.core.health import get_health_status
from hemis.core.rate_limit import limiter

# Import models so their tables are registered on Base.metadata
from hemis import models  # noqa: F401

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Versioned distributed translation cache for HEMIS",
    version=__version__,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _cache():
    return container.cache if container.initialized else None


@app.on_event("startup")
async def startup():
    """Initialize database, cache and translations on startup"""
    logger.info(f"Starting {settings.APP_NAME} (server: {settings.SERVER_ID})...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Create tables if they don't exist
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Database tables created/verified")
    except Exception as e:
        logger.error(f"❌ Error creating database tables: {e}")

    container.init()
    container.languages.load_from_database()
    container.i18n_service.warmup_cache()
    container.listener.start()

    # Check health on startup
    health = await get_health_status(_cache())
    if health["status"] == "healthy":
        logger.info("All systems healthy")
    else:
        logger.warning(f"Health check issues: {health}")


@app.on_event("shutdown")
async def shutdown():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.APP_NAME}...")
    container.shutdown()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health():
    """
    Health check endpoint.
    Returns status of all components.
    """
    return await get_health_status(_cache())


@app.get("/health/ready")
async def readiness():
    """
    Readiness probe for Kubernetes.
    Returns 200 if ready to accept traffic.
    """
    health_status = await get_health_status(_cache())

    if health_status["status"] == "healthy":
        return JSONResponse(
            content=health_status,
            status_code=status.HTTP_200_OK
        )
    else:
        return JSONResponse(
            content=health_status,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


@app.get("/health/live")
async def liveness():
    """
    Liveness probe for Kubernetes.
    Returns 200 if application is alive.
    """
    return {"status": "alive"}


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests"""
    start_time = time.time()

    logger.info(f"{request.method} {request.url.path} - {request.client.host if request.client else 'unknown'}")

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.3f}s"
        )

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"{request.method} {request.url.path} - "
            f"Error: {str(e)} - "
            f"Time: {process_time:.3f}s",
            exc_info=True
        )
        raise


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Include routers
from hemis.api.v1 import i18n  # noqa: E402

app.include_router(i18n.router, prefix="/api/v1/web/i18n", tags=["i18n"])

# Admin router
from hemis.api.v1 import admin  # noqa: E402
app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])
