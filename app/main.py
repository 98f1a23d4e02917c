"""
MedReport Explainer - FastAPI Application

Explains uploaded medical reports to patients in plain language and
illustrates the key finding with a generated image.

IMPORTANT: This is NOT a diagnostic tool.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.api.routes import router
from app.api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    setup_error_handlers
)
from app.dependencies import Services, build_services
from app.utils.logger import get_logger, configure_logging

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the provider clients once. A missing provider credential raises
    ConfigurationError here and the server refuses to start.
    """
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )

    logger.info(
        "Starting MedReport Explainer",
        version=settings.app_version,
        provider=settings.llm_provider,
        debug=settings.debug
    )

    if app.state.services is None:
        try:
            app.state.services = build_services(settings)
        except Exception as e:
            logger.critical("Failed to initialize services", error=str(e))
            raise

    logger.info("Application ready")

    yield

    logger.info("Shutting down MedReport Explainer")


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[Services] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        services: Prebuilt services; built from settings at startup if omitted

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="""
## MedReport Explainer

Upload a medical report and receive a plain-language explanation plus an
illustration of its key finding.

### ⚠️ Important Disclaimer

**This is NOT a diagnostic tool.** Always discuss your results with your
healthcare provider.

### API Endpoints

| Endpoint | Method | Description |
|----------|--------|-------------|
| `/chat` | POST | Explain an uploaded report |
| `/api/additional-info` | GET | Explain a single topic |
| `/health` | GET | Health check |
        """,
        version=settings.app_version,
        lifespan=lifespan,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.services = services

    # Error handling (outermost)
    app.add_middleware(ErrorHandlingMiddleware)

    app.add_middleware(RequestLoggingMiddleware)

    # The browser front-end is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_error_handlers(app)

    app.include_router(router)

    return app


# Create app instance
app = create_app()


# Run with: uvicorn app.main:app --reload
if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
