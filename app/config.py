"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_ALLOWED_LLM_ADAPTERS = {"anthropic", "openai", "mock"}

_DEFAULT_MODELS = {
    "anthropic": "claude-3-5-sonnet-20241022",
    "openai": "gpt-4o-mini",
    "mock": "mock",
}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class LLMSettings:
    """
    Generation service settings.
    """

    adapter: str = "anthropic"
    model: str = _DEFAULT_MODELS["anthropic"]
    api_key: str | None = None
    base_url: str | None = None
    max_tokens: int = 300
    temperature: float = 0.3
    timeout_seconds: float = 60.0


@dataclass(frozen=True)
class SummarySettings:
    """
    Quality policy and pacing for summary generation.
    """

    max_retries: int = 3
    min_length: int = 150
    max_length: int = 280
    ideal_min_length: int = 160
    ideal_max_length: int = 250
    rate_limit_backoff_seconds: float = 5.0
    overloaded_backoff_seconds: float = 10.0
    refinement_delay_seconds: float = 1.0
    row_delay_seconds: float = 0.5
    fallback_length: int = 150


@dataclass(frozen=True)
class LogoFetchSettings:
    """
    Logo enrichment settings for the bounded worker pool.
    """

    enabled: bool = True
    primary_url_template: str = "https://logo.clearbit.com/{domain}"
    secondary_url_template: str = "https://www.google.com/s2/favicons?domain={domain}&sz=64"
    timeout_seconds: float = 2.0
    concurrency: int = 5
    window_pause_seconds: float = 0.1
    min_secondary_bytes: int = 100
    user_agent: str = "TargetListGenerator/1.0"
    size_px: int = 32


@dataclass(frozen=True)
class UploadSettings:
    """
    Source table parsing and validation settings.
    """

    header_row_index: int = 2
    large_file_warning_rows: int = 300
    very_large_file_warning_rows: int = 500


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return generation service settings from environment variables.

    Unknown LLM_ADAPTER values raise RuntimeError so a typo never silently
    falls back to a different provider.
    """

    adapter = _get_str_env("LLM_ADAPTER", "anthropic").lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        raise RuntimeError(
            f"LLM_ADAPTER '{adapter}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_LLM_ADAPTERS)}."
        )

    provider_key_env = "OPENAI_API_KEY" if adapter == "openai" else "ANTHROPIC_API_KEY"
    return LLMSettings(
        adapter=adapter,
        model=_get_str_env("LLM_MODEL", _DEFAULT_MODELS[adapter]),
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env(provider_key_env),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        max_tokens=max(1, _get_int_env("LLM_MAX_TOKENS", 300)),
        temperature=min(1.0, max(0.0, _get_float_env("LLM_TEMPERATURE", 0.3))),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 60.0)),
    )


@lru_cache(maxsize=1)
def get_summary_settings() -> SummarySettings:
    """
    Return summary quality and pacing settings from environment variables.
    """

    return SummarySettings(
        max_retries=max(0, _get_int_env("SUMMARY_MAX_RETRIES", 3)),
        min_length=max(1, _get_int_env("SUMMARY_MIN_LENGTH", 150)),
        max_length=max(1, _get_int_env("SUMMARY_MAX_LENGTH", 280)),
        ideal_min_length=max(1, _get_int_env("SUMMARY_IDEAL_MIN_LENGTH", 160)),
        ideal_max_length=max(1, _get_int_env("SUMMARY_IDEAL_MAX_LENGTH", 250)),
        rate_limit_backoff_seconds=max(0.0, _get_float_env("SUMMARY_RATE_LIMIT_BACKOFF_SECONDS", 5.0)),
        overloaded_backoff_seconds=max(0.0, _get_float_env("SUMMARY_OVERLOADED_BACKOFF_SECONDS", 10.0)),
        refinement_delay_seconds=max(0.0, _get_float_env("SUMMARY_REFINEMENT_DELAY_SECONDS", 1.0)),
        row_delay_seconds=max(0.0, _get_float_env("SUMMARY_ROW_DELAY_SECONDS", 0.5)),
        fallback_length=max(1, _get_int_env("SUMMARY_FALLBACK_LENGTH", 150)),
    )


@lru_cache(maxsize=1)
def get_logo_fetch_settings() -> LogoFetchSettings:
    """
    Return logo enrichment settings from environment variables.
    """

    return LogoFetchSettings(
        enabled=_get_bool_env("LOGO_FETCH_ENABLED", True),
        primary_url_template=_get_str_env("LOGO_PRIMARY_URL", "https://logo.clearbit.com/{domain}"),
        secondary_url_template=_get_str_env(
            "LOGO_SECONDARY_URL",
            "https://www.google.com/s2/favicons?domain={domain}&sz=64",
        ),
        timeout_seconds=max(0.1, _get_float_env("LOGO_TIMEOUT_SECONDS", 2.0)),
        concurrency=max(1, _get_int_env("LOGO_CONCURRENCY", 5)),
        window_pause_seconds=max(0.0, _get_float_env("LOGO_WINDOW_PAUSE_SECONDS", 0.1)),
        min_secondary_bytes=max(0, _get_int_env("LOGO_MIN_SECONDARY_BYTES", 100)),
        user_agent=_get_str_env("LOGO_USER_AGENT", "TargetListGenerator/1.0"),
        size_px=max(8, _get_int_env("LOGO_SIZE_PX", 32)),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return upload parsing settings from environment variables.
    """

    return UploadSettings(
        header_row_index=max(0, _get_int_env("UPLOAD_HEADER_ROW_INDEX", 2)),
        large_file_warning_rows=max(1, _get_int_env("UPLOAD_LARGE_FILE_WARNING_ROWS", 300)),
        very_large_file_warning_rows=max(1, _get_int_env("UPLOAD_VERY_LARGE_FILE_WARNING_ROWS", 500)),
    )
