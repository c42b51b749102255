import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from cookie_consent.config import Settings, settings as default_settings
from cookie_consent.exception_handlers import register_exception_handlers
from cookie_consent.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from cookie_consent.routes import consent, policy

setup_structured_logging(log_level=default_settings.log_level, json_format=default_settings.log_json)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.app_name,
        description="Cookie policy and consent management API",
        debug=settings.debug,
        version=settings.app_version,
    )

    # Add middleware
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.secret_key,
        same_site=settings.consent_cookie_same_site,
        https_only=settings.consent_cookie_secure,
    )
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["*"],
        )

    app.state.settings = settings
    register_exception_handlers(app)

    # Include routers
    app.include_router(policy.router, prefix=settings.api_base_path)
    app.include_router(consent.router, prefix=settings.api_base_path)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict:
        return {"status": "ok"}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()
