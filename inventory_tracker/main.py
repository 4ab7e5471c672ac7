"""
Main application entry point.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging

from inventory_tracker.core.config import settings, print_config_info
from inventory_tracker.core.exceptions import InventoryTrackerError
from inventory_tracker.db.mongodb import ensure_indexes, mongodb

# Import API routers
from inventory_tracker.api.auth.router import router as auth_router
from inventory_tracker.api.inventory.router import router as inventory_router
from inventory_tracker.api.requests.router import router as requests_router
from inventory_tracker.api.admin.router import router as admin_router
from inventory_tracker.api.notifications.router import router as notifications_router

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Setup CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InventoryTrackerError)
async def domain_exception_handler(request: Request, exc: InventoryTrackerError):
    """Render domain errors with the status they carry."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"}
    )


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Event triggered on application startup."""
    print_config_info()

    mongodb.connect_to_mongodb()
    await ensure_indexes(mongodb.get_database())

    logger.info("Application started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Event triggered on application shutdown."""
    await mongodb.close_mongodb_connection()

    logger.info("Application shutdown")


# Include API routers
app.include_router(auth_router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"])
app.include_router(inventory_router, prefix=f"{settings.API_V1_STR}/inventory", tags=["inventory"])
app.include_router(requests_router, prefix=f"{settings.API_V1_STR}/requests", tags=["requests"])
app.include_router(admin_router, prefix=f"{settings.API_V1_STR}/admin", tags=["admin"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}
