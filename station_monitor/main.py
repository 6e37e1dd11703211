from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from station_monitor.core.config import settings
from station_monitor.core.logger import logger, log_error
from station_monitor.db.session import init_db
from station_monitor.api.admin.routes_admin import router as admin_router
from station_monitor.api.client.routes_members import router as members_router
from station_monitor.api.client.routes_stations import router as stations_router
from station_monitor.api.client.routes_journals import router as journals_router
from station_monitor.api.client.routes_navigation import router as navigation_router

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="River station monitoring with journals and multi-stop route planning",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
# Note: When allow_credentials=True, allow_origins cannot be ["*"]
logger.info(f"CORS origins: {settings.cors_origins_list}")

if settings.cors_origins_list == ["*"]:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )


# Global exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with proper logging"""
    logger.warning(
        f"HTTP {exc.status_code}: {request.method} {request.url.path} - {exc.detail}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with user-friendly messages"""
    errors = exc.errors()
    logger.warning(f"Validation error: {request.method} {request.url.path} - {errors}")

    formatted_errors = []
    for error in errors:
        field = " -> ".join(str(x) for x in error["loc"])
        formatted_errors.append(f"{field}: {error['msg']}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request data",
            "errors": formatted_errors
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler for unexpected errors"""
    log_error(
        f"{request.method} {request.url.path}",
        exc,
        "system"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred. Please try again later.",
            "type": type(exc).__name__ if settings.DEBUG else None
        }
    )


# Include routers
app.include_router(admin_router, prefix="/api")
app.include_router(members_router, prefix="/api")
app.include_router(stations_router, prefix="/api")
app.include_router(journals_router, prefix="/api")
app.include_router(navigation_router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    try:
        logger.info("=" * 60)
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info("=" * 60)

        init_db()
        logger.info("Database initialized successfully")
        logger.info(f"Debug mode: {settings.DEBUG}")
        logger.info(f"Station backend: {settings.API_BASE_URL or 'not configured (local catalog only)'}")
        logger.info(f"Place search: {'enabled' if settings.KAKAO_REST_API_KEY else 'disabled'}")
        logger.info(f"Reverse geocoding: {'enabled' if settings.VWORLD_API_KEY else 'disabled'}")
        logger.info("API documentation: /docs")
        logger.info("=" * 60)

    except Exception as e:
        logger.error(f"Startup failed: {type(e).__name__} - {str(e)}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("=" * 60)
    logger.info(f"Shutting down {settings.APP_NAME}")
    logger.info("=" * 60)


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "online",
        "endpoints": {
            "admin": "/api/admin",
            "members": "/api/members",
            "stations": "/api/stations",
            "journals": "/api/journals",
            "navigation": "/api/navigation",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "station_monitor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
