"""Fire-and-forget storage of submitted email addresses.

Failures here are logged and swallowed: losing an email record must never
affect the analysis response.
"""
from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(_EMAIL_PATTERN.match(value.strip()))


class EmailStore(Protocol):
    def store_email(self, email: str, resume_filename: str | None = None) -> bool: ...

    def mark_analysis_complete(self, email: str) -> bool: ...


class NoOpEmailStore:
    """Used when no database is configured."""

    def store_email(self, email: str, resume_filename: str | None = None) -> bool:
        logger.debug("email storage not configured, skipping")
        return False

    def mark_analysis_complete(self, email: str) -> bool:
        return False


class SupabaseEmailStore:
    """Writes to the ``emails`` table through the PostgREST interface."""

    def __init__(
        self,
        url: str,
        service_key: str,
        *,
        table: str = "emails",
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    def store_email(self, email: str, resume_filename: str | None = None) -> bool:
        record = {"email": email, "resume_filename": resume_filename, "analysis_completed": False}
        headers = {**self._headers, "Prefer": "resolution=merge-duplicates,return=minimal"}
        try:
            response = self._client.post(
                self._endpoint,
                params={"on_conflict": "email"},
                json=record,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("email storage failed: %s", exc.__class__.__name__)
            return False
        logger.info("stored email record for %s", resume_filename or "upload")
        return True

    def mark_analysis_complete(self, email: str) -> bool:
        headers = {**self._headers, "Prefer": "return=minimal"}
        try:
            response = self._client.patch(
                self._endpoint,
                params={"email": f"eq.{email}"},
                json={"analysis_completed": True},
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("analysis completion update failed: %s", exc.__class__.__name__)
            return False
        return True

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


_store: EmailStore = NoOpEmailStore()


def configure_email_store(store: EmailStore) -> None:
    global _store
    _store = store


def get_email_store() -> EmailStore:
    return _store
