import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resume_backend.application import AnalysisService, configure_analysis_service
from resume_backend.core.config import Settings
from resume_backend.core.state import AdmissionLimiter, configure_admission_limiter
from resume_backend.infrastructure import (
    AssistantsClient,
    NoOpEmailStore,
    SupabaseEmailStore,
    UnconfiguredAnalysisClient,
    configure_analysis_client,
    configure_email_store,
    missing_configuration_reason,
)
from resume_backend.routes import analyze, health

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    _configure_logging(settings.log_level)

    app = FastAPI(title="Resume Scan API", version="0.1.0")

    if settings.analysis_configured:
        client = AssistantsClient(
            api_key=settings.openai_api_key or "",
            assistant_id=settings.openai_assistant_id or "",
            api_base=settings.openai_api_base,
            timeout=settings.openai_http_timeout_s,
        )
        configure_analysis_client(client)
    else:
        reason = missing_configuration_reason(settings.openai_api_key, settings.openai_assistant_id)
        logger.warning("analysis service disabled: %s", reason)
        configure_analysis_client(UnconfiguredAnalysisClient(reason))

    if settings.email_storage_configured:
        configure_email_store(
            SupabaseEmailStore(settings.supabase_url or "", settings.supabase_service_key or "")
        )
    else:
        logger.warning("email storage configuration missing, email records will be skipped")
        configure_email_store(NoOpEmailStore())

    configure_admission_limiter(
        AdmissionLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_s=settings.rate_limit_window_s,
            max_clients=settings.rate_limit_max_clients,
        )
    )
    configure_analysis_service(AnalysisService(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    app.include_router(analyze.router)
    app.include_router(health.router)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Resume Scan API",
                "docs": "/docs",
                "health": "/health",
            }
        )

    return app


app = create_app()
