"""Map analysis failures to stable HTTP statuses and user-facing messages.

Messages are fixed per error class; exception text is never forwarded, with
the single exception of the upload validator's own messages.
"""
from __future__ import annotations

from dataclasses import dataclass

from resume_backend.core.errors import (
    AdmissionDenied,
    ExtractionInsufficient,
    LocalTimeout,
    ParseError,
    UpstreamCancelled,
    UpstreamConfigError,
    UpstreamExpired,
    UpstreamPayloadTooLarge,
    UpstreamRunFailed,
    UpstreamTransient,
    ValidationError,
)


@dataclass(frozen=True)
class Classification:
    http_status: int
    user_message: str


GENERIC_FAILURE = Classification(500, "Internal server error. Please try again later.")

_MESSAGES: dict[type[Exception], Classification] = {
    ExtractionInsufficient: Classification(
        400,
        "Unable to extract sufficient text from resume. Please ensure the file contains readable text.",
    ),
    UpstreamPayloadTooLarge: Classification(
        400,
        "File too large for analysis. Please upload a smaller file or a text-based PDF.",
    ),
    AdmissionDenied: Classification(429, "Rate limit exceeded. Please try again later."),
    UpstreamConfigError: Classification(
        503,
        "Service configuration issue. Please contact support or try again later.",
    ),
    LocalTimeout: Classification(
        503,
        "The analysis is taking longer than expected. Please try again in a few minutes.",
    ),
    UpstreamExpired: Classification(
        503,
        "The analysis expired before it finished. Please try again in a few minutes.",
    ),
    UpstreamRunFailed: Classification(500, "Failed to analyze resume. Please try again later."),
    UpstreamCancelled: Classification(500, "Failed to analyze resume. Please try again later."),
    ParseError: Classification(
        500,
        "We could not read the analysis result. Please try again later.",
    ),
}

_HIGH_DEMAND = Classification(
    429,
    "Service is currently experiencing high demand. Please try again in a few minutes.",
)
_NETWORK = Classification(
    503,
    "Network connectivity issue. Please check your internet connection and try again.",
)


def classify(error: BaseException) -> Classification:
    """Return the HTTP status and message to show for ``error``."""

    if isinstance(error, ValidationError):
        return Classification(400, ", ".join(error.errors) or "Invalid upload.")
    if isinstance(error, UpstreamTransient):
        return _HIGH_DEMAND if error.quota else _NETWORK
    for error_type in type(error).__mro__:
        classification = _MESSAGES.get(error_type)
        if classification is not None:
            return classification
    return GENERIC_FAILURE
