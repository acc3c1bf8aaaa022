"""
FastAPI application entry point.
create_app() builds an application around an explicit Settings object;
`app` is the instance served by uvicorn (studio_site.main:app).
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_site.config import Settings, settings as default_settings
from studio_site.database import Database
from studio_site.routes import admin, auth, availability, chat, faqs, galleries, reviews
from studio_site.services.chat import ChatHub
from studio_site.services.cloudinary_service import configure_cloudinary
from studio_site.storage import DatabaseStorage
from studio_site.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Connect to the database before serving and dispose of it on shutdown.
    A failed connection is fatal: the exception aborts startup.
    """
    logger.info("Application starting up...")
    await app.state.database.connect()
    configure_cloudinary(app.state.settings)

    yield

    logger.info("Application shutting down...")
    await app.state.database.close()


async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every API request."""
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"Error processing {request.method} {request.url.path}: {str(e)}",
            exc_info=True
        )
        raise

    if request.url.path.startswith("/api"):
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms")
    return response


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions (401, 404, 500, ...) with an {"error": ...} body."""
    if exc.status_code >= 500:
        logger.error(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")
    else:
        logger.info(f"HTTPException on {request.method} {request.url.path}: {exc.status_code} {exc.detail}")

    # Handle both string and dict detail formats
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}

    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Dati non validi",
            "detail": jsonable_encoder(exc.errors())
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {str(exc)} ({type(exc).__name__})",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Errore interno del server"}
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its own database, store client and chat hub.

    Args:
        settings: Configuration to use; defaults to the environment-loaded settings

    Returns:
        FastAPI: Configured application
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    database = Database(settings)
    app.state.settings = settings
    app.state.database = database
    app.state.storage = DatabaseStorage(database.session_factory)
    app.state.chat_hub = ChatHub()

    limiter.enabled = settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,  # Session cookie
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(auth.router, prefix="/api")
    app.include_router(reviews.router, prefix="/api")
    app.include_router(availability.router, prefix="/api")
    app.include_router(galleries.router, prefix="/api")
    app.include_router(faqs.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")
    app.include_router(chat.router)

    @app.get("/")
    async def root():
        """Root endpoint - API health check."""
        return {
            "message": settings.API_TITLE,
            "status": "healthy",
            "version": settings.API_VERSION
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.get("/health/db")
    async def health_check_db():
        """Database health check endpoint."""
        try:
            await database.ping()
            return {"database": "connected", "status": "healthy"}
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"database": "error", "status": "unhealthy", "error": "Database connection failed"}
            )

    return app


app = create_app()
