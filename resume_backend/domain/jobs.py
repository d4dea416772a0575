"""Domain entities for analysis job orchestration."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum


class JobStatus(str, Enum):
    CREATED = "created"
    UPLOADING = "uploading"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMED_OUT, JobStatus.CANCELLED}
)


class InvalidTransition(RuntimeError):
    """Raised when a job is asked to leave a terminal state."""


@dataclass(slots=True)
class AnalysisJob:
    """A single document travelling through the remote analysis service.

    ``remote_file_id`` is an owning reference: whoever drives the job must
    delete it before the job is discarded.
    """

    started_at: float
    job_id: str = field(default_factory=lambda: f"job-{uuid.uuid4().hex[:12]}")
    status: JobStatus = JobStatus.CREATED
    remote_file_id: str | None = None
    thread_id: str | None = None
    run_id: str | None = None
    attempt: int = 0
    used_text_fallback: bool = False
    file_released: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition(self, status: JobStatus) -> None:
        if self.is_terminal:
            raise InvalidTransition(f"{self.job_id} is already {self.status.value}")
        self.status = status
