#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import mimetypes
import sys
from dataclasses import replace
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from resume_backend.application import AnalysisService, classify  # noqa: E402
from resume_backend.core.config import Settings  # noqa: E402
from resume_backend.core.errors import AnalysisError, ValidationError  # noqa: E402
from resume_backend.core.validation import validate_upload  # noqa: E402
from resume_backend.domain import UploadedDocument  # noqa: E402
from resume_backend.infrastructure import AssistantsClient, configure_analysis_client  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Analyse a local resume with the configured assistant")
    parser.add_argument("path", help="PDF, DOC or DOCX file to analyse")
    parser.add_argument("--timeout", type=float, default=None, help="override ANALYSIS_TIMEOUT_S")
    args = parser.parse_args()

    settings = Settings.from_env()
    if args.timeout is not None:
        settings = replace(settings, analysis_timeout_s=args.timeout)
    if not settings.analysis_configured:
        print("OPENAI_API_KEY and OPENAI_ASSISTANT_ID must be set", file=sys.stderr)
        return 2

    path = Path(args.path)
    document = UploadedDocument(
        data=path.read_bytes(),
        filename=path.name,
        content_type=mimetypes.guess_type(path.name)[0],
    )
    validation = validate_upload(document, settings.max_upload_bytes)
    if not validation.ok:
        print(classify(ValidationError(validation.errors)).user_message, file=sys.stderr)
        return 1

    client = AssistantsClient(
        settings.openai_api_key or "",
        settings.openai_assistant_id or "",
        api_base=settings.openai_api_base,
        timeout=settings.openai_http_timeout_s,
    )
    configure_analysis_client(client)
    try:
        result = AnalysisService(settings).analyze(document)
    except AnalysisError as exc:
        classification = classify(exc)
        print(f"{classification.http_status}: {classification.user_message}", file=sys.stderr)
        return 1
    finally:
        client.close()

    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
