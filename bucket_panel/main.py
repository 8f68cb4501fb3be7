"""FastAPI application for the bucket panel"""

import time
from typing import Any, Dict, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bucket_panel import __version__
from bucket_panel.config import settings
from bucket_panel.database import database
from bucket_panel.errors import PanelError
from bucket_panel.handlers import activity, auth, files, onboarding, users
from bucket_panel.handlers import settings as settings_handler
from bucket_panel.services.credential_service import credential_service
from bucket_panel.services.onboarding_service import OnboardingStatusCache
from bucket_panel.utils.logger import get_logger, log_storage_config

logger = get_logger(__name__)

# Global application instance
app = FastAPI(
    title="Bucket Panel",
    description="Upload, browse and govern files stored in an S3 bucket",
    version=__version__,
)

app.state.onboarding_cache = OnboardingStatusCache()

app.include_router(auth.router)
app.include_router(files.router)
app.include_router(users.router)
app.include_router(activity.router)
app.include_router(settings_handler.router)
app.include_router(onboarding.router)

# Track application start time for uptime calculation
_app_start_time: Optional[float] = None


@app.exception_handler(PanelError)
async def panel_error_handler(request: Request, exc: PanelError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=422, content={"message": "Dados inválidos."})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"message": "Ocorreu um erro inesperado."})


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global _app_start_time
    _app_start_time = time.time()
    logger.debug(f"Starting Bucket Panel v{__version__}")

    database.initialize()
    await app.state.onboarding_cache.invalidate()

    log_storage_config(logger, await credential_service.get_storage_credentials())


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.debug("Shutting down Bucket Panel")
    database.close()


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint"""
    current_time = time.time()
    database_ok = await database.health_check()

    return {
        "status": "ok" if database_ok else "degraded",
        "timestamp": current_time,
        "uptime": (current_time - _app_start_time) if _app_start_time else 0,
        "environment": settings.environment,
        "checks": {"database": "ok" if database_ok else "error"},
    }


@app.get("/stats")
async def stats() -> Dict[str, Any]:
    """Statistics endpoint"""
    stats_data: Dict[str, Any] = {
        "timestamp": time.time(),
        "version": __version__,
        "environment": settings.environment,
    }
    stats_data.update(await database.get_stats())
    return stats_data


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": "Bucket Panel",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "stats": "/stats",
            "auth": "/api/auth",
            "files": "/api/files",
            "users": "/api/users",
            "activity": "/api/activity",
            "settings": "/api/settings",
            "onboarding": "/api/onboarding",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
