"""Main FastAPI application."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from .. import __version__
from ..config import settings
from .errors import error_response
from .routes import health, scraping, properties, news, telegram
from ..database.connection import init_db, check_db_connection
from ..monitoring.logger import setup_logging, APILogger

logger = logging.getLogger(__name__)
api_logger = APILogger()

# Create FastAPI app
app = FastAPI(
    title="Realty Portal API",
    description="Property ingestion, news publishing and Telegram bot backend",
    version=__version__,
    docs_url="/docs" if settings.api.debug else None,
    redoc_url="/redoc" if settings.api.debug else None,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to responses and log the request."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    api_logger.log_response(request.method, request.url.path, response.status_code, process_time)
    return response


# Exception handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    """Handle 404 errors."""
    return JSONResponse(
        status_code=404,
        content={"success": False, "error": "Resource not found"}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report request validation errors in the common error shape."""
    problems = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.info(f"Invalid request to {request.url.path}: {problems}")
    return error_response(422, "; ".join(problems) or "Invalid request")


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    """Report unhandled errors as JSON."""
    logger.error(f"Internal server error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc)}
    )


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize application on startup."""
    setup_logging()
    logger.info("Starting Realty Portal API...")

    # Check database connection
    if not check_db_connection():
        logger.error("Database connection failed!")
        raise RuntimeError("Cannot connect to database")

    init_db()
    logger.info("API startup completed")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Realty Portal API...")


# Include routers
app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(scraping.router, prefix="/api/v1/scraping", tags=["scraping"])
app.include_router(properties.router, prefix="/api/v1/properties", tags=["properties"])
app.include_router(news.router, prefix="/api/v1/news", tags=["news"])
app.include_router(telegram.router, prefix="/api/v1/telegram", tags=["telegram"])


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Realty Portal API",
        "version": __version__,
        "docs_url": "/docs" if settings.api.debug else None
    }
