"""Uploaded document value object."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath


@dataclass(frozen=True, slots=True)
class UploadedDocument:
    data: bytes
    filename: str
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return PurePath(self.filename).suffix.lower()
