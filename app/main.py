from __future__ import annotations

import os

from fastapi import FastAPI

from app.config import get_llm_settings, get_logo_fetch_settings, load_env_files
from app.logging_utils import configure_logging
from app.schemas.target_list import HealthResponse

_PROVIDER_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def _validate_env() -> None:
    """
    Validate required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - LLM_ADAPTER must be one of anthropic, openai or mock.
    - The LLM API key check is skipped only when LLM_ADAPTER=mock.
    - Empty-string keys are not accepted.
    """

    load_env_files()

    errors: list[str] = []

    adapter = os.getenv("LLM_ADAPTER", "anthropic").strip().lower() or "anthropic"
    if adapter not in {"anthropic", "openai", "mock"}:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['anthropic', 'mock', 'openai']."
        )
    elif adapter != "mock":
        provider_env = _PROVIDER_KEY_ENV[adapter]
        llm_api_key = os.getenv("LLM_API_KEY", "").strip()
        provider_api_key = os.getenv(provider_env, "").strip()
        if not llm_api_key and not provider_api_key:
            errors.append(
                f"LLM API key is not set. Provide LLM_API_KEY or {provider_env}. "
                "Empty strings are not permitted."
            )

    if errors:
        raise RuntimeError(
            "Startup validation failed. Missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    configure_logging()

    application = FastAPI(
        title="Target List Generator API",
        version="1.0.0",
    )

    from app.api.routers import target_list_router

    application.include_router(target_list_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(
            llm_adapter=get_llm_settings().adapter,
            logo_fetch_enabled=get_logo_fetch_settings().enabled,
        )

    return application


app = create_app()
