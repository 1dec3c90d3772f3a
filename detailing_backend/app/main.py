"""
FastAPI Application Entry Point.

This is the main application file for the Detailing Marketplace Backend.
"""

import logging
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from detailing_backend.app.core.config import settings
from detailing_backend.app.api.v1.router import router as api_router
from detailing_backend.app.api.pages import router as pages_router
from detailing_backend.app.core.idempotency import ping_redis
from detailing_backend.app.core.observability import ObservabilityMiddleware
from detailing_backend.app.core.route_guard import RouteGuardMiddleware
from detailing_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from detailing_backend.app.models.profile import Profile
from detailing_backend.app.models.organization import Organization, OrganizationMember, Team
from detailing_backend.app.models.detailer import Detailer
from detailing_backend.app.models.catalog import Service, Car
from detailing_backend.app.models.booking import Booking
from detailing_backend.app.models.platform_setting import PlatformSetting

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

# Initialize FastAPI application
# The schema is owned by the data platform, so no tables are created here.
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Access and booking coordination backend for the mobile detailing marketplace",
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Middleware: the last added runs first, so requests are logged before the guard decides
app.add_middleware(RouteGuardMiddleware)
app.add_middleware(ObservabilityMiddleware)
if settings.allowed_origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# JSON API
app.include_router(api_router, prefix="/api")

# Page routes (guarded by RouteGuardMiddleware)
app.include_router(pages_router)
