from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .api.routes import applications
from .core.config import Settings, settings as default_settings
from .core.errors import ApplicationError, status_code_for
from .schemas.application import HealthResponse
from .services.cleanup import cleanup_files, sweep_upload_dir
from .services.mailer import MailClient, build_mail_client
from . import __version__
import logging
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

# Logging is configured in applymail/__init__.py
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    # Startup
    logger.info("🚀 Application startup initiated")
    settings: Settings = app.state.settings

    logger.info(f"🌍 Environment: {settings.ENVIRONMENT}")

    upload_dir = settings.upload_path
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"📁 Upload directory: {upload_dir}")

    # Other workers may share the directory, only stale files are removed
    sweep_upload_dir(upload_dir, older_than=settings.STALE_UPLOAD_SECONDS)

    if app.state.mail_client is None:
        app.state.mail_client = build_mail_client(settings)
        # SMTP verification opens a connection
        await asyncio.to_thread(app.state.mail_client.verify)

    if settings.MAIL_TO:
        logger.info(f"📨 Envoi vers: {settings.MAIL_TO}")
    else:
        logger.error("❌ MAIL_TO is not set, applications cannot be delivered")

    logger.info("✅ Application startup complete")

    yield

    # Shutdown
    logger.info("🔄 Application shutdown initiated - cleaning up resources...")
    try:
        app.state.mail_client.close()
        logger.info("✅ Resource cleanup completed")
    except Exception as e:
        logger.error(f"❌ Error during shutdown cleanup: {e}")


def _error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _cleanup_request_files(request: Request) -> None:
    cleanup_files(getattr(request.state, "uploaded_files", []))


async def application_error_handler(request: Request, exc: ApplicationError):
    _cleanup_request_files(request)
    logger.warning(f"❌ {exc}")
    return _error_envelope(status_code_for(exc), exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    _cleanup_request_files(request)
    return _error_envelope(exc.status_code, str(exc.detail))


async def catch_unhandled_errors(request: Request, call_next):
    """
    Catch-all: clean up and answer 400 with the error message.

    Registered as middleware inside CORS, so browsers can read the envelope.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        _cleanup_request_files(request)
        logger.exception(f"❌ Erreur: {exc}")
        return _error_envelope(400, str(exc))


def create_app(settings: Optional[Settings] = None, mail_client: Optional[MailClient] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration, defaults to the environment-loaded settings
        mail_client: Mail client to use; built from settings at startup when None
    """
    settings = settings or default_settings

    app = FastAPI(
        title="ApplyMail API",
        description="Receives job application forms and forwards them by email",
        version=__version__,
        debug=settings.DEBUG,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.mail_client = mail_client

    # Added before CORS so CORS wraps it
    app.middleware("http")(catch_unhandled_errors)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse()

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {"message": "ApplyMail API is running", "version": __version__}

    # Include routers
    app.include_router(applications.router, prefix="/api", tags=["applications"])

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    logger.info(f"🚀 Serveur démarré sur le port {default_settings.PORT}")
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)
