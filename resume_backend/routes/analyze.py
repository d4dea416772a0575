from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from resume_backend.application import classify, get_analysis_service
from resume_backend.core.errors import AdmissionDenied, AnalysisError, ValidationError
from resume_backend.core.state import Admission, get_admission_limiter
from resume_backend.core.validation import size_error, validate_upload
from resume_backend.domain import UploadedDocument
from resume_backend.infrastructure import get_email_store, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])

# Room for multipart boundaries and the email field on top of the file itself.
FORM_OVERHEAD_BYTES = 64 * 1024


def client_identity(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def _declared_length(request: Request) -> int:
    raw = (request.headers.get("content-length") or "").strip()
    return int(raw) if raw.isdigit() else 0


def _reset_header(reset_at: float) -> str:
    return datetime.fromtimestamp(reset_at, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _error_response(error: BaseException, headers: dict[str, str] | None = None) -> JSONResponse:
    classification = classify(error)
    return JSONResponse(
        status_code=classification.http_status,
        content={"success": False, "error": classification.user_message},
        headers=headers,
    )


def _rate_limit_headers(admission: Admission) -> dict[str, str]:
    return {
        "X-RateLimit-Remaining": str(admission.remaining),
        "X-RateLimit-Reset": _reset_header(admission.reset_at),
    }


def _store_email(email: str, filename: str) -> None:
    get_email_store().store_email(email, filename)


def _mark_complete(email: str) -> None:
    get_email_store().mark_analysis_complete(email)


@router.post("/analyze")
async def analyze_document(request: Request, background_tasks: BackgroundTasks) -> JSONResponse:
    """Analyse an uploaded resume and return the structured assessment."""

    admission = get_admission_limiter().admit(client_identity(request))
    if not admission.allowed:
        return _error_response(
            AdmissionDenied(admission.remaining, admission.reset_at),
            headers=_rate_limit_headers(admission),
        )

    content_type = request.headers.get("content-type") or ""
    if "multipart/form-data" not in content_type:
        return _error_response(
            ValidationError(["Invalid request format. Please ensure you are uploading a file properly."])
        )

    service = get_analysis_service()
    limit = service.settings.max_upload_bytes
    if _declared_length(request) > limit + FORM_OVERHEAD_BYTES:
        return _error_response(ValidationError([size_error(limit)]))

    try:
        form = await request.form()
    except Exception:
        logger.info("rejected unreadable multipart body", exc_info=True)
        return _error_response(ValidationError(["Failed to parse form data"]))

    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        return _error_response(ValidationError(["No file provided"]))

    # The parser records the part size, so oversized files are never read into memory.
    oversized = upload.size is not None and upload.size > limit
    try:
        data = b"" if oversized else await upload.read(limit + 1)
    finally:
        await upload.close()

    document = UploadedDocument(
        data=data,
        filename=Path(upload.filename or "upload").name,
        content_type=upload.content_type,
    )
    validation = validate_upload(document, limit, size=upload.size if oversized else None)
    if not validation.ok:
        return _error_response(ValidationError(validation.errors))

    email = form.get("email")
    email = email.strip() if isinstance(email, str) else None
    if email and is_valid_email(email):
        background_tasks.add_task(_store_email, email, document.filename)
    else:
        email = None

    try:
        result = await asyncio.to_thread(service.analyze, document)
    except AnalysisError as exc:
        return _error_response(exc)
    except Exception as exc:
        logger.exception("unexpected failure while analysing %s", document.filename)
        return _error_response(exc)

    if email:
        background_tasks.add_task(_mark_complete, email)

    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "data": result.model_dump(mode="json"),
            "message": "Resume analyzed successfully",
        },
        headers={"X-RateLimit-Remaining": str(admission.remaining)},
    )
