from __future__ import annotations

from fastapi import APIRouter

from resume_backend.application import get_analysis_service
from resume_backend.infrastructure import NoOpEmailStore, UnconfiguredAnalysisClient, get_analysis_client, get_email_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Report which integrations are configured, without exposing credentials."""
    settings = get_analysis_service().settings
    return {
        "status": "ok",
        "analysis_configured": not isinstance(get_analysis_client(), UnconfiguredAnalysisClient),
        "email_storage_configured": not isinstance(get_email_store(), NoOpEmailStore),
        "limits": {
            "max_upload_bytes": settings.max_upload_bytes,
            "analysis_timeout_s": settings.analysis_timeout_s,
        },
    }
