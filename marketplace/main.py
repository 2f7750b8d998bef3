"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from marketplace.config import settings
from marketplace.database import test_database_connection, create_tables, close_db_connection
from marketplace.routers import (
    auth_router,
    users_router,
    properties_router,
    images_router,
    inquiries_router,
    contact_router,
    seller_properties_router,
    seller_inquiries_router,
    seller_analytics_router,
    analytics_router
)
from marketplace.utils.exceptions import APIException
from marketplace.services.error_handler import ErrorHandlerService
from marketplace.middleware import RequestContextMiddleware

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    if await test_database_connection():
        if not settings.is_production:
            # Production schemas are managed outside the application
            await create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Real-estate marketplace API.

    ## Features

    * **Listings**: create, search, update, archive, soft delete, restore and permanently delete
    * **Images**: validated multi-file upload with a primary image per listing
    * **Inquiries**: public submission and a seller response workflow with bulk actions
    * **Seller portal**: scope-checked routes over the caller's own listings and inquiries
    * **Analytics**: market trends, price predictions, behavior, performance and demand

    ## Authentication

    Use `/api/v1/auth/login` to obtain a JWT and send it as `Authorization: Bearer <token>`.
    Seller and agent accounts must be verified by an administrator before the seller portal
    accepts their requests.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and token management"},
        {"name": "Users", "description": "Administrator account management"},
        {"name": "Properties", "description": "Listing lifecycle, search and favorites"},
        {"name": "Images", "description": "Listing image upload and management"},
        {"name": "Inquiries", "description": "Buyer inquiry submission"},
        {"name": "Seller Portal", "description": "Routes scoped to the caller's own listings"},
        {"name": "Analytics", "description": "Advisory market analytics"},
        {"name": "Health", "description": "Service information and health"}
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time", "Retry-After"],
)

app.add_middleware(
    RequestContextMiddleware,
    max_request_size=settings.max_request_size,
    enable_request_logging=not settings.is_testing,
    enable_rate_limiting=settings.rate_limit_enabled,
    rate_limit_requests=settings.rate_limit_requests,
    rate_limit_window=settings.rate_limit_window
)

# Include API routers
for router in (
    auth_router,
    users_router,
    properties_router,
    images_router,
    inquiries_router,
    contact_router,
    seller_properties_router,
    seller_inquiries_router,
    seller_analytics_router,
    analytics_router,
):
    app.include_router(router, prefix=settings.api_v1_prefix)

app.mount(
    settings.media_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="media"
)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors without exposing backend messages."""
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Basic API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "marketplace.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
