"""Application services."""

from .analysis import (
    AnalysisService,
    configure_analysis_service,
    get_analysis_service,
    reset_analysis_state,
)
from .responses import Classification, classify

__all__ = [
    "AnalysisService",
    "Classification",
    "classify",
    "configure_analysis_service",
    "get_analysis_service",
    "reset_analysis_state",
]
