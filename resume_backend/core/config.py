"""Runtime settings read from the process environment."""
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def _env_str(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None


def _env_number(env: Mapping[str, str], name: str, default: float, *, minimum: float = 0) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {raw!r}")
    return value


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    return int(_env_number(env, name, default, minimum=minimum))


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_assistant_id: str | None = None
    openai_api_base: str = DEFAULT_API_BASE
    openai_http_timeout_s: float = 60.0
    max_upload_bytes: int = 5 * 1024 * 1024
    analysis_timeout_s: float = 120.0
    poll_interval_s: float = 1.0
    max_attempts: int = 3
    min_extracted_chars: int = 50
    rate_limit_window_s: float = 60.0
    rate_limit_max_requests: int = 5
    rate_limit_max_clients: int = 10_000
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"

    @property
    def analysis_configured(self) -> bool:
        return bool(self.openai_api_key and self.openai_assistant_id)

    @property
    def email_storage_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        origins_env = env.get("API_CORS_ORIGINS", "")
        origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]

        return cls(
            openai_api_key=_env_str(env, "OPENAI_API_KEY"),
            openai_assistant_id=_env_str(env, "OPENAI_ASSISTANT_ID"),
            openai_api_base=(_env_str(env, "OPENAI_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
            openai_http_timeout_s=_env_number(env, "OPENAI_HTTP_TIMEOUT_S", 60.0, minimum=1),
            max_upload_bytes=_env_int(env, "MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
            analysis_timeout_s=_env_number(env, "ANALYSIS_TIMEOUT_S", 120.0, minimum=1),
            poll_interval_s=_env_number(env, "ANALYSIS_POLL_INTERVAL_S", 1.0, minimum=0.05),
            max_attempts=_env_int(env, "ANALYSIS_MAX_ATTEMPTS", 3),
            min_extracted_chars=_env_int(env, "MIN_EXTRACTED_CHARS", 50, minimum=0),
            rate_limit_window_s=_env_number(env, "RATE_LIMIT_WINDOW_S", 60.0, minimum=1),
            rate_limit_max_requests=_env_int(env, "RATE_LIMIT_MAX_REQUESTS", 5),
            rate_limit_max_clients=_env_int(env, "RATE_LIMIT_MAX_CLIENTS", 10_000),
            supabase_url=(_env_str(env, "SUPABASE_URL") or "").rstrip("/") or None,
            supabase_service_key=_env_str(env, "SUPABASE_SERVICE_ROLE_KEY"),
            cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
            log_level=(_env_str(env, "LOG_LEVEL") or "INFO").upper(),
        )


DEFAULT_PROMPTS: dict[str, str] = {
    "attachment": (
        "Please analyze the attached resume ({filename}) and return only a JSON object "
        "matching the resume assessment schema."
    ),
    "text": (
        "Please analyze this resume and return only a JSON object matching the resume "
        "assessment schema.\n\nResume content:\n{document_text}"
    ),
}


def load_prompts(path: Path | None = None) -> dict[str, str]:
    """Load message templates, falling back to the built-in wording."""

    path = path or CONFIG_DIR / "analysis_prompt.yaml"
    if not path.exists():
        return dict(DEFAULT_PROMPTS)
    with path.open("r", encoding="utf-8") as fp:
        data: Any = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping of templates")

    prompts = dict(DEFAULT_PROMPTS)
    schema_hint = str(data.get("schema") or "").strip()
    for key in DEFAULT_PROMPTS:
        template = data.get(key)
        if template:
            prompts[key] = str(template).strip()
    if schema_hint:
        prompts = {key: value.replace("{schema}", schema_hint) for key, value in prompts.items()}
    return prompts
