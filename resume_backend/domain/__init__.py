"""Domain layer definitions."""

from .documents import UploadedDocument
from .jobs import TERMINAL_STATUSES, AnalysisJob, InvalidTransition, JobStatus

__all__ = [
    "AnalysisJob",
    "InvalidTransition",
    "JobStatus",
    "TERMINAL_STATUSES",
    "UploadedDocument",
]
