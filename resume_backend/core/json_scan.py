"""Locate the JSON object embedded in a free-text assistant reply."""
from __future__ import annotations

import json
from typing import Any

from resume_backend.core.errors import ParseError


def _balanced_end(text: str, start: int) -> int | None:
    """Return the index just past the brace closing ``text[start]``, if any."""

    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def find_object_spans(text: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` slices of every top-level balanced ``{...}``.

    Braces inside JSON string literals are ignored once an object has been
    opened. An opening brace that is never closed is skipped and the scan
    resumes right after it.
    """

    spans: list[tuple[int, int]] = []
    position = 0
    while True:
        start = text.find("{", position)
        if start < 0:
            break
        end = _balanced_end(text, start)
        if end is None:
            position = start + 1
            continue
        spans.append((start, end))
        position = end
    return spans


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the single JSON object contained in ``text``.

    A balanced candidate that does not decode (prose such as ``{name}``) is
    skipped and the scan restarts just inside it. Zero or several decodable
    objects are both rejected.
    """

    objects: list[dict[str, Any]] = []
    last_error: json.JSONDecodeError | None = None
    position = 0
    while True:
        start = text.find("{", position)
        if start < 0:
            break
        end = _balanced_end(text, start)
        if end is None:
            position = start + 1
            continue
        try:
            value = json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            last_error = exc
            position = start + 1
            continue
        objects.append(value)
        position = end

    if len(objects) > 1:
        raise ParseError(f"reply contains {len(objects)} JSON objects")
    if not objects:
        if last_error is not None:
            raise ParseError(f"invalid JSON in reply: {last_error.msg} at position {last_error.pos}")
        raise ParseError("no JSON object found in reply")
    return objects[0]
