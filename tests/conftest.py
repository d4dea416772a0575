from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from resume_backend.core.errors import AnalysisError  # noqa: E402
from resume_backend.infrastructure.analysis import RunState  # noqa: E402

SAMPLE_RESULT: dict[str, Any] = {
    "schema_version": "3.0.0",
    "generated_at": "2025-01-15T14:30:00Z",
    "overall": {
        "score_0_to_100": 72,
        "label": "Low Performance",
        "summary": "Solid structure with {good} alignment.",
    },
    "breakdown": {
        "keyword_coverage": 6.5,
        "ats_compliance": 7.5,
        "job_match": 8.0,
        "structure": 8.5,
        "ranking": 6.8,
        "readability": 8.2,
        "ghosted_risk_subscore_0_to_10": None,
    },
    "recommendations": [
        {"title": "Add metrics", "description": "Quantify impact.", "priority": "high"},
    ],
}

SAMPLE_REPLY = "Here is the assessment:\n```json\n" + json.dumps(SAMPLE_RESULT, indent=2) + "\n```\nGood luck!"


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeAnalysisClient:
    """In-memory stand-in for the remote assistant service."""

    def __init__(
        self,
        *,
        run_statuses: list[str] | None = None,
        reply: str | None = SAMPLE_REPLY,
        upload_error: AnalysisError | None = None,
        thread_errors: list[AnalysisError | None] | None = None,
        run_errors: list[AnalysisError | None] | None = None,
        delete_file_error: Exception | None = None,
    ) -> None:
        self.run_statuses = list(run_statuses or ["completed"])
        self.reply = reply
        self.upload_error = upload_error
        self.thread_errors = list(thread_errors or [])
        self.run_errors = list(run_errors or [])
        self.delete_file_error = delete_file_error
        self.calls: list[str] = []
        self.uploads: list[tuple[str, int, str | None]] = []
        self.threads: list[tuple[str, str | None]] = []
        self.deleted_files: list[str] = []
        self.deleted_threads: list[str] = []
        self.status_checks = 0
        self.timeouts: list[tuple[str, float | None]] = []

    def upload_file(
        self, filename: str, data: bytes, content_type: str | None = None, *, timeout: float | None = None
    ) -> str:
        self.calls.append("upload_file")
        self.timeouts.append(("upload_file", timeout))
        self.uploads.append((filename, len(data), content_type))
        if self.upload_error is not None:
            raise self.upload_error
        return "file-abc"

    def delete_file(self, file_id: str) -> None:
        self.calls.append("delete_file")
        self.deleted_files.append(file_id)
        if self.delete_file_error is not None:
            raise self.delete_file_error

    def create_thread(self, content: str, *, file_id: str | None = None, timeout: float | None = None) -> str:
        self.calls.append("create_thread")
        self.timeouts.append(("create_thread", timeout))
        self.threads.append((content, file_id))
        error = self.thread_errors.pop(0) if self.thread_errors else None
        if error is not None:
            raise error
        return f"thread-{len(self.threads)}"

    def delete_thread(self, thread_id: str) -> None:
        self.calls.append("delete_thread")
        self.deleted_threads.append(thread_id)

    def create_run(self, thread_id: str, *, timeout: float | None = None) -> str:
        self.calls.append("create_run")
        self.timeouts.append(("create_run", timeout))
        error = self.run_errors.pop(0) if self.run_errors else None
        if error is not None:
            raise error
        return f"run-for-{thread_id}"

    def get_run(self, thread_id: str, run_id: str, *, timeout: float | None = None) -> RunState:
        self.calls.append("get_run")
        self.timeouts.append(("get_run", timeout))
        self.status_checks += 1
        status = self.run_statuses.pop(0) if len(self.run_statuses) > 1 else self.run_statuses[0]
        last_error = "model overloaded" if status == "failed" else None
        return RunState(run_id=run_id, status=status, last_error=last_error)

    def list_messages(self, thread_id: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        self.calls.append("list_messages")
        self.timeouts.append(("list_messages", timeout))
        if self.reply is None:
            return [{"role": "user", "content": [{"type": "text", "text": {"value": "hi"}}]}]
        return [
            {"role": "assistant", "content": [{"type": "text", "text": {"value": self.reply}}]},
            {"role": "user", "content": [{"type": "text", "text": {"value": "Please analyze"}}]},
        ]


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def prompts() -> dict[str, str]:
    return {
        "attachment": "Analyze attached {filename}",
        "text": "Analyze {filename}:\n{document_text}",
    }
