"""LLM adapters and the generation client used for summary synthesis.

Provides a base interface with concrete adapters for the Anthropic and
OpenAI-compatible APIs plus a deterministic mock, and a thin client that
classifies transport failures and cleans generated text. Nothing in this
module retries; retry policy belongs to ``llm_synthesis.retry``.
"""

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence

GenerationErrorKind = Literal["rate_limited", "overloaded", "other"]

_RATE_LIMITED_STATUS_CODES = frozenset({429})
_OVERLOADED_STATUS_CODES = frozenset({503, 529})


@dataclass(frozen=True)
class ChatMessage:
    """One conversation turn sent to the model."""

    role: Literal["user", "assistant"]
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


class GenerationError(Exception):
    """Raised when a generation call fails.

    Attributes:
        kind: ``rate_limited`` and ``overloaded`` are transient and expect a
            backoff; ``other`` is not retryable by the client.
        status_code: HTTP status reported by the provider, when known.
    """

    def __init__(
        self,
        kind: GenerationErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        return self.kind in ("rate_limited", "overloaded")


def classify_generation_error(exc: BaseException) -> GenerationError:
    """Map a provider exception to a ``GenerationError``.

    Both provider SDKs expose ``status_code`` on their HTTP status errors.
    """
    if isinstance(exc, GenerationError):
        return exc

    status_code = getattr(exc, "status_code", None)
    if not isinstance(status_code, int):
        response = getattr(exc, "response", None)
        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int):
            status_code = None

    if status_code in _RATE_LIMITED_STATUS_CODES:
        kind: GenerationErrorKind = "rate_limited"
    elif status_code in _OVERLOADED_STATUS_CODES:
        kind = "overloaded"
    else:
        kind = "other"
    return GenerationError(kind, str(exc) or exc.__class__.__name__, status_code)


def clean_generated_text(text: str) -> str:
    """Strip emphasis markup, one pair of wrapping quotes, and whitespace."""
    cleaned = text.strip()
    cleaned = cleaned.replace("**", "").replace("*", "")
    cleaned = cleaned.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in {'"', "'"}:
        cleaned = cleaned[1:-1]
    elif len(cleaned) >= 2 and cleaned[0] == "“" and cleaned[-1] == "”":
        cleaned = cleaned[1:-1]
    return cleaned.strip()


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def generate(self, messages: Sequence[ChatMessage]) -> str:
        """Send a conversation to the LLM and return the raw response text.

        Args:
            messages: Ordered conversation turns, ending with a user turn.

        Returns:
            Raw string response from the model.
        """


class AnthropicLLMAdapter(BaseLLMAdapter):
    """Adapter for the Anthropic Messages API."""

    def __init__(
        self,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 300,
        temperature: float = 0.3,
        timeout_seconds: float = 60.0,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        try:
            from anthropic import Anthropic  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "anthropic package is required for AnthropicLLMAdapter. "
                "Install it with: pip install anthropic"
            ) from exc

        resolved_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        client_kwargs: dict = {
            "api_key": resolved_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = Anthropic(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        response = self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=[message.to_dict() for message in messages],
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Configured for non-streaming output with a low temperature suitable
    for consistent, factual summaries.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 300,
        temperature: float = 0.3,
        timeout_seconds: float = 60.0,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            temperature: Sampling temperature.
            timeout_seconds: Per-request timeout.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        try:
            from openai import OpenAI  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAILLMAdapter. "
                "Install it with: pip install openai"
            ) from exc

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        client_kwargs: dict = {
            "api_key": resolved_key,
            "timeout": timeout_seconds,
            "max_retries": 0,
        }
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[message.to_dict() for message in messages],
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            stream=False,
        )
        return response.choices[0].message.content or ""


_NAME_LINE = re.compile(r"^Name: (.*)$", re.MULTILINE)
_SPECIALTIES_LINE = re.compile(r"^Specialties: (.*)$", re.MULTILINE)
_LOCATION_LINE = re.compile(r"^Location: (.*)$", re.MULTILINE)


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that writes a summary from the prompt fields.

    Used for local runs and CI where no LLM API is available. The first
    user turn is always the full summary prompt, so refinement turns get
    the same answer.
    """

    def generate(self, messages: Sequence[ChatMessage]) -> str:
        prompt = messages[0].content if messages else ""
        name = self._field(_NAME_LINE, prompt) or "The company"
        specialties = self._field(_SPECIALTIES_LINE, prompt)
        location = self._field(_LOCATION_LINE, prompt)

        offering = specialties.split(",")[0].strip().lower() if specialties else "specialized services"
        where = f" from {location}" if location else ""
        return (
            f"{name} delivers {offering} for commercial and industrial customers{where}, "
            "supporting project planning, delivery and ongoing service for "
            "long-term client relationships."
        )

    @staticmethod
    def _field(pattern: "re.Pattern[str]", prompt: str) -> str:
        match = pattern.search(prompt)
        return match.group(1).strip() if match else ""


class GenerationClient:
    """Wraps one adapter call per request with error classification.

    The refinement path sends the original prompt, the rejected candidate
    as the assistant turn, and the refinement instruction as a new user turn.
    """

    def __init__(self, adapter: BaseLLMAdapter) -> None:
        self._adapter = adapter

    def generate(
        self,
        prompt: str,
        previous_candidate: Optional[str] = None,
        refinement_instruction: Optional[str] = None,
    ) -> str:
        """Run one generation round-trip.

        Returns:
            Cleaned summary text.

        Raises:
            GenerationError: On any provider failure or an empty response.
        """
        messages: List[ChatMessage] = [ChatMessage("user", prompt)]
        if previous_candidate is not None and refinement_instruction is not None:
            messages.append(ChatMessage("assistant", previous_candidate))
            messages.append(ChatMessage("user", refinement_instruction))

        try:
            raw = self._adapter.generate(messages)
        except GenerationError:
            raise
        except Exception as exc:
            raise classify_generation_error(exc) from exc

        text = clean_generated_text(raw or "")
        if not text:
            raise GenerationError("other", "No text content in API response")
        return text
