from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from resume_backend.domain import UploadedDocument

FileType = Literal["pdf", "doc", "docx"]

ACCEPTED_MIME_TYPES: dict[str, FileType] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}

ACCEPTED_EXTENSIONS: dict[str, FileType] = {
    ".pdf": "pdf",
    ".doc": "doc",
    ".docx": "docx",
}


@dataclass(frozen=True)
class UploadValidation:
    ok: bool
    errors: list[str] = field(default_factory=list)
    file_type: FileType | None = None
    size: int = 0


def detect_file_type(document: UploadedDocument) -> FileType | None:
    mime = (document.content_type or "").split(";", 1)[0].strip().lower()
    if mime in ACCEPTED_MIME_TYPES:
        return ACCEPTED_MIME_TYPES[mime]
    return ACCEPTED_EXTENSIONS.get(document.extension)


def size_error(max_bytes: int) -> str:
    return f"File size must be less than {max_bytes / (1024 * 1024):g}MB"


def validate_upload(
    document: UploadedDocument, max_bytes: int, *, size: int | None = None
) -> UploadValidation:
    """Check size and format of an upload, collecting every problem found.

    ``size`` overrides the length of ``document.data`` when the body was not
    read because its declared size already exceeds the limit.
    """

    errors: list[str] = []
    file_type = detect_file_type(document)
    size = document.size if size is None else size

    if file_type is None:
        errors.append("File must be PDF, DOC, or DOCX format")
    if size > max_bytes:
        errors.append(size_error(max_bytes))
    if size == 0:
        errors.append("File cannot be empty")

    return UploadValidation(ok=not errors, errors=errors, file_type=file_type, size=size)
