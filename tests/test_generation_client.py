"""
tests/test_generation_client.py

Generation client: message layout, error classification, text cleanup.
"""

from __future__ import annotations

import pytest

from llm_synthesis.adapter import (
    GenerationClient,
    GenerationError,
    MockLLMAdapter,
    classify_generation_error,
    clean_generated_text,
)
from llm_synthesis.prompt_builder import SummaryPromptBuilder, SummaryPromptData


class TestCleanGeneratedText:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('  "Acme Widgets builds tools."  ', "Acme Widgets builds tools."),
            ("'Acme Widgets builds tools.'", "Acme Widgets builds tools."),
            ("**Acme Widgets** builds tools.", "Acme Widgets builds tools."),
            ("“Acme Widgets builds tools.”", "Acme Widgets builds tools."),
            ('"Acme" builds "tools".', '"Acme" builds "tools".'),
        ],
    )
    def test_cleanup(self, raw: str, expected: str) -> None:
        assert clean_generated_text(raw) == expected


class TestClassifyGenerationError:
    @pytest.mark.parametrize(
        ("status_code", "kind"),
        [(429, "rate_limited"), (529, "overloaded"), (503, "overloaded"), (500, "other"), (400, "other")],
    )
    def test_status_codes(self, status_error, status_code: int, kind: str) -> None:
        error = classify_generation_error(status_error(status_code))
        assert error.kind == kind
        assert error.status_code == status_code

    def test_status_on_response_attribute(self) -> None:
        class _Response:
            status_code = 429

        class _HTTPError(Exception):
            response = _Response()

        assert classify_generation_error(_HTTPError("slow down")).kind == "rate_limited"

    def test_unknown_exception_is_other(self) -> None:
        error = classify_generation_error(ConnectionError("reset"))
        assert error.kind == "other"
        assert error.status_code is None
        assert error.is_transient is False

    def test_transient_kinds(self) -> None:
        assert GenerationError("rate_limited", "x").is_transient is True
        assert GenerationError("overloaded", "x").is_transient is True


class TestGenerationClient:
    def test_single_turn_request(self, scripted_adapter) -> None:
        adapter = scripted_adapter('"Acme Widgets builds tools."')
        text = GenerationClient(adapter).generate("PROMPT")

        assert text == "Acme Widgets builds tools."
        assert [(m.role, m.content) for m in adapter.calls[0]] == [("user", "PROMPT")]

    def test_refinement_request_carries_conversation(self, scripted_adapter) -> None:
        adapter = scripted_adapter("Better summary.")
        GenerationClient(adapter).generate(
            "PROMPT",
            previous_candidate="Weak summary",
            refinement_instruction="FIX IT",
        )

        assert [(m.role, m.content) for m in adapter.calls[0]] == [
            ("user", "PROMPT"),
            ("assistant", "Weak summary"),
            ("user", "FIX IT"),
        ]

    def test_provider_errors_are_classified(self, scripted_adapter, status_error) -> None:
        client = GenerationClient(scripted_adapter(status_error(529)))
        with pytest.raises(GenerationError) as ctx:
            client.generate("PROMPT")
        assert ctx.value.kind == "overloaded"

    def test_generation_errors_pass_through(self, scripted_adapter) -> None:
        original = GenerationError("rate_limited", "quota")
        client = GenerationClient(scripted_adapter(original))
        with pytest.raises(GenerationError) as ctx:
            client.generate("PROMPT")
        assert ctx.value is original

    @pytest.mark.parametrize("raw", ["", "   ", '""', "**"])
    def test_empty_text_is_other_error(self, scripted_adapter, raw: str) -> None:
        client = GenerationClient(scripted_adapter(raw))
        with pytest.raises(GenerationError) as ctx:
            client.generate("PROMPT")
        assert ctx.value.kind == "other"
        assert str(ctx.value) == "No text content in API response"


def test_mock_adapter_writes_from_prompt_fields() -> None:
    data = SummaryPromptData(
        company_name="Acme Widgets, Inc.",
        industries="Industrial Machinery",
        revenue="$11.59M",
        employees="85",
        location="Dayton, OH",
        specialties="Precision tooling, rapid prototyping",
        full_description="",
    )
    prompt = SummaryPromptBuilder().build_initial_prompt(data)

    text = GenerationClient(MockLLMAdapter()).generate(prompt)

    assert text.startswith("Acme Widgets, Inc. delivers precision tooling")
    assert "Dayton, OH" in text
    assert text.endswith(".")
