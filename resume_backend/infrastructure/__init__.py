"""Infrastructure layer exports."""

from .analysis import (
    AnalysisClient,
    RunState,
    UnconfiguredAnalysisClient,
    configure_analysis_client,
    get_analysis_client,
    missing_configuration_reason,
)
from .assistants import AssistantsClient
from .email_store import (
    EmailStore,
    NoOpEmailStore,
    SupabaseEmailStore,
    configure_email_store,
    get_email_store,
    is_valid_email,
)

__all__ = [
    "AnalysisClient",
    "AssistantsClient",
    "EmailStore",
    "NoOpEmailStore",
    "RunState",
    "SupabaseEmailStore",
    "UnconfiguredAnalysisClient",
    "configure_analysis_client",
    "configure_email_store",
    "get_analysis_client",
    "get_email_store",
    "is_valid_email",
    "missing_configuration_reason",
]
