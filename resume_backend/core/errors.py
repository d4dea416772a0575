"""Error taxonomy shared by the analysis pipeline.

Every error carries an internal ``detail`` string that is safe to log but is
never returned to callers; user-facing wording is chosen by
:mod:`resume_backend.application.responses`.
"""
from __future__ import annotations

from resume_backend.domain.jobs import JobStatus


class AnalysisError(Exception):
    """Base class for failures raised while analysing a document."""

    job_status: JobStatus = JobStatus.FAILED

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail


class ValidationError(AnalysisError):
    """Raised when the uploaded document is rejected locally."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class AdmissionDenied(AnalysisError):
    """Raised when a client exceeded its request budget."""

    def __init__(self, remaining: int, reset_at: float) -> None:
        super().__init__(f"rate limit exceeded, window resets at {reset_at:.0f}")
        self.remaining = remaining
        self.reset_at = reset_at


class UpstreamConfigError(AnalysisError):
    """Missing or rejected credentials, identifiers or requests."""


class UpstreamTransient(AnalysisError):
    """Network failures, rate limits and quota exhaustion."""

    def __init__(self, detail: str = "", *, quota: bool = False) -> None:
        super().__init__(detail)
        self.quota = quota


class UpstreamPayloadTooLarge(AnalysisError):
    """The service refused the binary upload because of its size."""


class UpstreamRunFailed(AnalysisError):
    """The remote run finished in a failed state."""


class UpstreamCancelled(AnalysisError):
    job_status = JobStatus.CANCELLED


class UpstreamExpired(AnalysisError):
    job_status = JobStatus.TIMED_OUT


class LocalTimeout(AnalysisError):
    """The wall-clock budget for a job ran out."""

    job_status = JobStatus.TIMED_OUT


class ParseError(AnalysisError):
    """The run completed but its reply did not hold a valid assessment."""


class ExtractionInsufficient(AnalysisError):
    """Fallback text extraction produced too little text to analyse."""

    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"extracted {length} characters, need at least {minimum}")
        self.length = length
        self.minimum = minimum


__all__ = [
    "AdmissionDenied",
    "AnalysisError",
    "ExtractionInsufficient",
    "LocalTimeout",
    "ParseError",
    "UpstreamCancelled",
    "UpstreamConfigError",
    "UpstreamExpired",
    "UpstreamPayloadTooLarge",
    "UpstreamRunFailed",
    "UpstreamTransient",
    "ValidationError",
]
