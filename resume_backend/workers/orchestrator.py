"""Drive one document through the remote assistant to a terminal outcome.

The lifecycle is strictly sequential: upload, thread and run creation, status
polling, reply retrieval, parsing, cleanup. Time and waiting are injected so
the state machine can be exercised without real sleeps.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from pydantic import ValidationError as SchemaValidationError

from resume_backend.core.errors import (
    AnalysisError,
    ExtractionInsufficient,
    LocalTimeout,
    ParseError,
    UpstreamCancelled,
    UpstreamExpired,
    UpstreamPayloadTooLarge,
    UpstreamRunFailed,
    UpstreamTransient,
)
from resume_backend.core.json_scan import extract_json_object
from resume_backend.core.schema import AnalysisResult
from resume_backend.domain import AnalysisJob, JobStatus, UploadedDocument
from resume_backend.extractors.text_fallback import extract_text
from resume_backend.infrastructure.analysis import AnalysisClient, RunState

logger = logging.getLogger(__name__)

ACTIVE_RUN_STATUSES = frozenset({"queued", "in_progress"})
CANCELLED_RUN_STATUSES = frozenset({"cancelled", "cancelling"})

T = TypeVar("T")


def deadline_exceeded(started_at: float, now: float, budget_s: float) -> bool:
    return now - started_at >= budget_s


def remaining_budget(started_at: float, now: float, budget_s: float) -> float:
    return max(0.0, budget_s - (now - started_at))


def backoff_delay(attempt: int) -> float:
    return float(2**attempt)


class AnalysisJobOrchestrator:
    """Owns the remote resources of each job it runs and releases them on exit."""

    def __init__(
        self,
        client: AnalysisClient,
        *,
        prompts: dict[str, str],
        timeout_s: float = 120.0,
        poll_interval_s: float = 1.0,
        max_attempts: int = 3,
        min_text_chars: int = 50,
        extractor: Callable[[UploadedDocument], str] = extract_text,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._prompts = prompts
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._max_attempts = max_attempts
        self._min_text_chars = min_text_chars
        self._extractor = extractor
        self._clock = clock
        self._sleep = sleep
        self.last_job: AnalysisJob | None = None

    def run(self, document: UploadedDocument) -> AnalysisResult:
        job = AnalysisJob(started_at=self._clock())
        self.last_job = job
        logger.info("%s started for %s (%d bytes)", job.job_id, document.filename, document.size)
        try:
            result = self._drive(job, document)
        except AnalysisError as exc:
            job.transition(exc.job_status)
            logger.warning("%s ended %s: %s", job.job_id, job.status.value, exc.detail)
            raise
        except Exception:
            job.transition(JobStatus.FAILED)
            raise
        finally:
            self._release(job)

        job.transition(JobStatus.COMPLETED)
        logger.info("%s completed after %d attempt(s)", job.job_id, job.attempt)
        return result

    # ------------------------------------------------------------------
    # lifecycle steps
    # ------------------------------------------------------------------
    def _drive(self, job: AnalysisJob, document: UploadedDocument) -> AnalysisResult:
        content = self._submit_document(job, document)
        self._create_remote_job(job, content)
        job.transition(JobStatus.POLLING)
        run = self._poll(job)
        return self._finish(job, run)

    def _submit_document(self, job: AnalysisJob, document: UploadedDocument) -> str:
        job.transition(JobStatus.UPLOADING)
        try:
            job.remote_file_id = self._call(
                job, self._client.upload_file, document.filename, document.data, document.content_type
            )
        except UpstreamPayloadTooLarge as exc:
            logger.warning("%s upload rejected as too large, submitting text instead: %s", job.job_id, exc.detail)
            return self._text_submission(job, document)
        return self._render("attachment", filename=document.filename)

    def _text_submission(self, job: AnalysisJob, document: UploadedDocument) -> str:
        text = self._extractor(document)
        if len(text) < self._min_text_chars:
            raise ExtractionInsufficient(len(text), self._min_text_chars)
        job.used_text_fallback = True
        return self._render("text", filename=document.filename, document_text=text)

    def _render(self, template: str, *, filename: str, document_text: str | None = None) -> str:
        rendered = self._prompts[template].replace("{filename}", filename)
        if document_text is not None:
            rendered = rendered.replace("{document_text}", document_text)
        return rendered

    def _create_remote_job(self, job: AnalysisJob, content: str) -> None:
        while True:
            job.attempt += 1
            try:
                job.thread_id = self._call(job, self._client.create_thread, content, file_id=job.remote_file_id)
                job.run_id = self._call(job, self._client.create_run, job.thread_id)
                return
            except UpstreamTransient as exc:
                logger.warning(
                    "%s job creation attempt %d/%d failed: %s",
                    job.job_id,
                    job.attempt,
                    self._max_attempts,
                    exc.detail,
                )
                self._discard_thread(job)
                if job.attempt >= self._max_attempts:
                    raise
                self._wait(job, backoff_delay(job.attempt))

    def _poll(self, job: AnalysisJob) -> RunState:
        assert job.thread_id is not None and job.run_id is not None
        polls = 0
        while True:
            run = self._call(job, self._client.get_run, job.thread_id, job.run_id)
            polls += 1
            if run.status not in ACTIVE_RUN_STATUSES:
                logger.debug("%s run %s is %s after %d poll(s)", job.job_id, job.run_id, run.status, polls)
                return run
            self._wait(job, self._poll_interval_s)

    def _finish(self, job: AnalysisJob, run: RunState) -> AnalysisResult:
        if run.status == "completed":
            assert job.thread_id is not None
            reply = self._reply_text(self._call(job, self._client.list_messages, job.thread_id))
            data = extract_json_object(reply)
            try:
                return AnalysisResult.model_validate(data)
            except SchemaValidationError as exc:
                raise ParseError(f"reply does not match the result schema ({exc.error_count()} errors)") from exc

        detail = f"run {run.run_id} {run.status}: {run.last_error or 'no error reported'}"
        if run.status in CANCELLED_RUN_STATUSES:
            raise UpstreamCancelled(detail)
        if run.status == "expired":
            raise UpstreamExpired(detail)
        raise UpstreamRunFailed(detail)

    @staticmethod
    def _reply_text(messages: list[dict[str, Any]]) -> str:
        reply = next((message for message in messages if message.get("role") == "assistant"), None)
        if reply is None:
            raise ParseError("no assistant message in thread")
        for block in reply.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                value = text.get("value") if isinstance(text, dict) else text
                if isinstance(value, str):
                    return value
        raise ParseError("assistant message has no text content")

    # ------------------------------------------------------------------
    # timing
    # ------------------------------------------------------------------
    def _check_deadline(self, job: AnalysisJob) -> None:
        if deadline_exceeded(job.started_at, self._clock(), self._timeout_s):
            raise LocalTimeout(f"no result within {self._timeout_s:g}s")

    def _wait(self, job: AnalysisJob, seconds: float) -> None:
        self._check_deadline(job)
        self._sleep(min(seconds, remaining_budget(job.started_at, self._clock(), self._timeout_s)))
        self._check_deadline(job)

    def _call(self, job: AnalysisJob, method: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke a client method with its request timeout capped at the remaining budget."""

        self._check_deadline(job)
        kwargs["timeout"] = remaining_budget(job.started_at, self._clock(), self._timeout_s)
        try:
            return method(*args, **kwargs)
        except UpstreamTransient:
            # A request cut off by the budget is a timeout, not a network fault.
            self._check_deadline(job)
            raise

    # ------------------------------------------------------------------
    # cleanup
    # ------------------------------------------------------------------
    def _release(self, job: AnalysisJob) -> None:
        if job.remote_file_id and not job.file_released:
            job.file_released = True
            try:
                self._client.delete_file(job.remote_file_id)
            except Exception:
                logger.warning("%s could not delete file %s", job.job_id, job.remote_file_id, exc_info=True)
        self._discard_thread(job)

    def _discard_thread(self, job: AnalysisJob) -> None:
        thread_id, job.thread_id = job.thread_id, None
        if not thread_id:
            return
        try:
            self._client.delete_thread(thread_id)
        except Exception:
            logger.warning("%s could not delete thread %s", job.job_id, thread_id, exc_info=True)
