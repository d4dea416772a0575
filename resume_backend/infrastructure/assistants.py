"""Integration with the OpenAI Assistants HTTP API (files, threads, runs)."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from resume_backend.core.errors import (
    UpstreamConfigError,
    UpstreamPayloadTooLarge,
    UpstreamTransient,
)

from .analysis import RunState

logger = logging.getLogger(__name__)

_QUOTA_CODES = {"insufficient_quota", "rate_limit_exceeded"}


class AssistantsClient:
    """Client for the Assistants v2 REST endpoints."""

    def __init__(
        self,
        api_key: str,
        assistant_id: str,
        *,
        api_base: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(api_base)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("api_base must include scheme and host")
        if not api_key:
            raise ValueError("api_key is required")
        if not assistant_id:
            raise ValueError("assistant_id is required")

        self._assistant_id = assistant_id
        self._timeout = timeout
        self._api_base = api_base.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "OpenAI-Beta": "assistants=v2",
        }
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error_payload(response: httpx.Response) -> tuple[str, str]:
        try:
            body = response.json()
        except ValueError:
            return "", response.text[:200]
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return "", str(body)[:200]
        return str(error.get("code") or error.get("type") or ""), str(error.get("message") or "")

    @classmethod
    def _raise_for_status(cls, response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return

        status = response.status_code
        code, message = cls._error_payload(response)
        detail = f"{operation}: HTTP {status} {code} {message}".strip()

        if status == 413 or (status == 400 and "too large" in message.lower()):
            raise UpstreamPayloadTooLarge(detail)
        if status == 429 or code in _QUOTA_CODES:
            raise UpstreamTransient(detail, quota=True)
        if status == 408 or status >= 500:
            raise UpstreamTransient(detail)
        raise UpstreamConfigError(detail)

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        url = f"{self._api_base}{path}"
        if timeout is not None:
            kwargs["timeout"] = min(timeout, self._timeout)
        headers = dict(self._headers)
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamTransient(f"{operation}: timeout ({exc.__class__.__name__})") from exc
        except httpx.TransportError as exc:
            raise UpstreamTransient(f"{operation}: network error ({exc.__class__.__name__})") from exc

        self._raise_for_status(response, operation)
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamTransient(f"{operation}: response is not JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamTransient(f"{operation}: unexpected response shape")
        return payload

    @staticmethod
    def _require_id(payload: dict[str, Any], operation: str) -> str:
        identifier = payload.get("id")
        if not identifier:
            raise UpstreamTransient(f"{operation}: response missing id")
        return str(identifier)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def upload_file(
        self, filename: str, data: bytes, content_type: str | None = None, *, timeout: float | None = None
    ) -> str:
        payload = self._request(
            "POST",
            "/files",
            "upload file",
            timeout=timeout,
            data={"purpose": "assistants"},
            files={"file": (filename, data, content_type or "application/octet-stream")},
        )
        file_id = self._require_id(payload, "upload file")
        logger.debug("uploaded %s as %s (%d bytes)", filename, file_id, len(data))
        return file_id

    def delete_file(self, file_id: str) -> None:
        self._request("DELETE", f"/files/{file_id}", "delete file")

    def create_thread(self, content: str, *, file_id: str | None = None, timeout: float | None = None) -> str:
        message: dict[str, Any] = {"role": "user", "content": content}
        if file_id:
            message["attachments"] = [{"file_id": file_id, "tools": [{"type": "file_search"}]}]
        payload = self._request(
            "POST", "/threads", "create thread", timeout=timeout, json={"messages": [message]}
        )
        return self._require_id(payload, "create thread")

    def delete_thread(self, thread_id: str) -> None:
        self._request("DELETE", f"/threads/{thread_id}", "delete thread")

    def create_run(self, thread_id: str, *, timeout: float | None = None) -> str:
        payload = self._request(
            "POST",
            f"/threads/{thread_id}/runs",
            "create run",
            timeout=timeout,
            json={"assistant_id": self._assistant_id},
        )
        return self._require_id(payload, "create run")

    def get_run(self, thread_id: str, run_id: str, *, timeout: float | None = None) -> RunState:
        payload = self._request("GET", f"/threads/{thread_id}/runs/{run_id}", "retrieve run", timeout=timeout)
        last_error = payload.get("last_error")
        message = None
        if isinstance(last_error, dict):
            message = last_error.get("message") or last_error.get("code")
        return RunState(run_id=run_id, status=str(payload.get("status") or "unknown"), last_error=message)

    def list_messages(self, thread_id: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        payload = self._request(
            "GET",
            f"/threads/{thread_id}/messages",
            "list messages",
            timeout=timeout,
            params={"order": "desc", "limit": 20},
        )
        data = payload.get("data")
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["AssistantsClient"]
