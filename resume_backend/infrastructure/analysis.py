"""Analysis service integration hooks.

The orchestrator talks to the remote assistant through
:class:`AnalysisClient`. Until credentials are supplied the installed client
is :class:`UnconfiguredAnalysisClient`, which fails every call with a
configuration error; ``configure_analysis_client`` installs a real one during
application start-up.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from resume_backend.core.errors import UpstreamConfigError


@dataclass(slots=True)
class RunState:
    """Status snapshot of a remote run."""

    run_id: str
    status: str
    last_error: str | None = None


class AnalysisClient(Protocol):
    """Contract for the remote assistant service.

    ``timeout`` caps a single request in seconds; the client keeps its own
    default when it is ``None``.
    """

    def upload_file(
        self, filename: str, data: bytes, content_type: str | None = None, *, timeout: float | None = None
    ) -> str:
        """Store ``data`` as a remote file and return its identifier."""

    def delete_file(self, file_id: str) -> None:
        """Release a remote file."""

    def create_thread(self, content: str, *, file_id: str | None = None, timeout: float | None = None) -> str:
        """Open a conversation holding one user message and return its identifier."""

    def delete_thread(self, thread_id: str) -> None:
        """Release a remote conversation."""

    def create_run(self, thread_id: str, *, timeout: float | None = None) -> str:
        """Start the assistant on ``thread_id`` and return the run identifier."""

    def get_run(self, thread_id: str, run_id: str, *, timeout: float | None = None) -> RunState:
        """Fetch the current status of a run."""

    def list_messages(self, thread_id: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        """Return thread messages, newest first."""


class UnconfiguredAnalysisClient:
    """Placeholder used when credentials are missing."""

    def __init__(self, reason: str = "OpenAI API key is missing") -> None:
        self.reason = reason

    def _fail(self) -> Any:
        raise UpstreamConfigError(self.reason)

    def upload_file(
        self, filename: str, data: bytes, content_type: str | None = None, *, timeout: float | None = None
    ) -> str:
        return self._fail()

    def delete_file(self, file_id: str) -> None:
        self._fail()

    def create_thread(self, content: str, *, file_id: str | None = None, timeout: float | None = None) -> str:
        return self._fail()

    def delete_thread(self, thread_id: str) -> None:
        self._fail()

    def create_run(self, thread_id: str, *, timeout: float | None = None) -> str:
        return self._fail()

    def get_run(self, thread_id: str, run_id: str, *, timeout: float | None = None) -> RunState:
        return self._fail()

    def list_messages(self, thread_id: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        return self._fail()


def missing_configuration_reason(api_key: str | None, assistant_id: str | None) -> str:
    if not api_key:
        return "OpenAI API key is missing (OPENAI_API_KEY)"
    if not assistant_id:
        return "OpenAI Assistant ID is missing (OPENAI_ASSISTANT_ID)"
    return "analysis client not configured"


_client: AnalysisClient = UnconfiguredAnalysisClient()


def configure_analysis_client(client: AnalysisClient) -> None:
    """Install the client used by the analysis orchestrator."""

    global _client
    _client = client


def get_analysis_client() -> AnalysisClient:
    """Return the currently configured analysis client."""

    return _client
