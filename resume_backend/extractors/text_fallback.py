"""Best-effort text recovery from raw document bytes.

This is not a real PDF or Word parser. It filters printable ASCII out of the
byte stream so that a document the analysis service refused as a binary
upload can still be submitted as plain text.
"""
from __future__ import annotations

import re

from resume_backend.domain import UploadedDocument

SCAN_LIMIT_BYTES = 50_000
MIN_USEFUL_CHARS = 50

_PDF_TEXT_BLOCK = re.compile(rb"BT\s*/F\d+\s+\d+\s+Tf\s*(.*?)ET", re.DOTALL)
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\r]")
_NON_PRINTABLE_INLINE = re.compile(r"[^\x20-\x7E]")
_WHITESPACE = re.compile(r"\s+")


def _printable(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    text = _NON_PRINTABLE.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def _pdf_text(data: bytes) -> str:
    blocks = [match.group(1).decode("latin-1") for match in _PDF_TEXT_BLOCK.finditer(data)]
    text = _NON_PRINTABLE_INLINE.sub(" ", " ".join(blocks)).strip()
    if len(text) < MIN_USEFUL_CHARS:
        text = _printable(data[:SCAN_LIMIT_BYTES])
    return text


def extract_text(document: UploadedDocument) -> str:
    """Return whatever readable text can be recovered from ``document``."""

    extension = document.extension
    if extension == ".pdf":
        return _pdf_text(document.data)
    if extension in {".doc", ".docx"}:
        return _printable(document.data)
    return _printable(document.data[:SCAN_LIMIT_BYTES])
