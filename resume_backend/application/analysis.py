"""Application service running document analysis jobs."""
from __future__ import annotations

import time
from typing import Callable

from resume_backend.core.config import Settings, load_prompts
from resume_backend.core.schema import AnalysisResult
from resume_backend.domain import UploadedDocument
from resume_backend.infrastructure import get_analysis_client
from resume_backend.workers.orchestrator import AnalysisJobOrchestrator


class AnalysisService:
    """Builds a fresh orchestrator for every document it analyses."""

    def __init__(
        self,
        settings: Settings,
        *,
        prompts: dict[str, str] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._prompts = prompts or load_prompts()
        self._clock = clock
        self._sleep = sleep

    @property
    def settings(self) -> Settings:
        return self._settings

    def build_orchestrator(self) -> AnalysisJobOrchestrator:
        return AnalysisJobOrchestrator(
            get_analysis_client(),
            prompts=self._prompts,
            timeout_s=self._settings.analysis_timeout_s,
            poll_interval_s=self._settings.poll_interval_s,
            max_attempts=self._settings.max_attempts,
            min_text_chars=self._settings.min_extracted_chars,
            clock=self._clock,
            sleep=self._sleep,
        )

    def analyze(self, document: UploadedDocument) -> AnalysisResult:
        return self.build_orchestrator().run(document)


_service: AnalysisService | None = None


def configure_analysis_service(service: AnalysisService) -> None:
    global _service
    _service = service


def get_analysis_service() -> AnalysisService:
    """Return the process-wide analysis service, creating it from the environment if needed."""

    global _service
    if _service is None:
        _service = AnalysisService(Settings.from_env())
    return _service


def reset_analysis_state() -> None:
    """Forget the configured service (used in tests)."""

    global _service
    _service = None
