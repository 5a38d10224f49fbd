"""
tests/test_summary_retry.py

Retry/refinement loop for one company summary.

All generation calls are scripted and sleeps are recorded, so every
assertion about attempts and backoff durations is deterministic.

Coverage
--------
- First-attempt acceptance
- Rate-limit and overload backoff durations
- Shared attempt budget between transient errors and refinement
- Exhaustion returns the last candidate
- Non-retryable errors fall back to the description
- Fallback determinism
"""

from __future__ import annotations

import pytest

from llm_synthesis.adapter import GenerationClient, GenerationError
from llm_synthesis.prompt_builder import SummaryPromptData
from llm_synthesis.retry import RetryPolicy, SummaryGenerator, build_fallback_summary

FAILING_CANDIDATE = "ACME provides leading-edge solutions..."


@pytest.fixture()
def data(acme) -> SummaryPromptData:
    return SummaryPromptData(
        company_name=acme.name,
        industries="Industrial Machinery",
        revenue="$11.59M",
        employees="85",
        location="Dayton, OH",
        specialties=acme.specialties,
        full_description=acme.description,
    )


def _generator(adapter, sleep, **policy) -> SummaryGenerator:
    return SummaryGenerator(GenerationClient(adapter), policy=RetryPolicy(**policy), sleep=sleep)


def _rate_limited() -> GenerationError:
    return GenerationError("rate_limited", "rate limit exceeded", 429)


class TestAcceptance:
    def test_excellent_on_first_attempt(self, scripted_adapter, recorded_sleep, data, acme) -> None:
        adapter = scripted_adapter(acme.excellent_summary)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.summary == acme.excellent_summary
        assert result.quality == "excellent"
        assert result.retries == 0
        assert result.error is None
        assert len(adapter.calls) == 1
        assert recorded_sleep.durations == []

    def test_refined_candidate_is_accepted(self, scripted_adapter, recorded_sleep, data, acme) -> None:
        adapter = scripted_adapter(FAILING_CANDIDATE, acme.excellent_summary)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.summary == acme.excellent_summary
        assert result.retries == 1
        assert recorded_sleep.durations == [1.0]

        refinement_call = adapter.calls[1]
        assert [message.role for message in refinement_call] == ["user", "assistant", "user"]
        assert refinement_call[1].content == FAILING_CANDIDATE
        assert '- Must include the exact company name: "Acme Widgets, Inc."' in refinement_call[2].content
        assert '"leading-edge"' in refinement_call[2].content


class TestTransientErrors:
    def test_rate_limited_twice_then_success(self, scripted_adapter, recorded_sleep, data, acme) -> None:
        adapter = scripted_adapter(_rate_limited(), _rate_limited(), acme.excellent_summary)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.retries == 2
        assert result.quality == "excellent"
        assert recorded_sleep.durations == [5.0, 5.0]
        assert adapter.calls[1][0].content.startswith("IMPORTANT: Previous attempt failed quality check.")
        assert adapter.calls[2][0].content.startswith("CRITICAL: Multiple attempts failed.")

    def test_overloaded_waits_longer(self, scripted_adapter, recorded_sleep, data, acme, status_error) -> None:
        adapter = scripted_adapter(status_error(529), acme.excellent_summary)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.retries == 1
        assert recorded_sleep.durations == [10.0]

    def test_transient_errors_exhaust_budget_into_fallback(
        self, scripted_adapter, recorded_sleep, data, acme
    ) -> None:
        adapter = scripted_adapter(*[_rate_limited() for _ in range(4)])

        result = _generator(adapter, recorded_sleep).generate(data)

        assert len(adapter.calls) == 4
        assert recorded_sleep.durations == [5.0, 5.0, 5.0]
        assert result.retries == 3
        assert result.quality == "needs_review"
        assert result.error == "rate limit exceeded"
        assert result.summary == build_fallback_summary(acme.description, acme.name)

    def test_rate_limit_during_refinement_consumes_attempt(
        self, scripted_adapter, recorded_sleep, data, acme
    ) -> None:
        adapter = scripted_adapter(FAILING_CANDIDATE, _rate_limited(), acme.excellent_summary)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.retries == 1
        assert result.quality == "excellent"
        assert recorded_sleep.durations == [1.0, 5.0]


class TestExhaustion:
    def test_always_failing_candidates_stop_at_budget(self, scripted_adapter, recorded_sleep, data) -> None:
        adapter = scripted_adapter(default=FAILING_CANDIDATE)

        result = _generator(adapter, recorded_sleep).generate(data)

        assert result.retries == 3
        assert result.summary == FAILING_CANDIDATE
        assert result.quality == "needs_review"
        assert result.error is None
        assert len(adapter.calls) == 6
        assert recorded_sleep.durations == [1.0, 1.0, 1.0]

    @pytest.mark.parametrize("max_retries", [0, 1, 2])
    def test_retries_never_exceed_policy(self, scripted_adapter, recorded_sleep, data, max_retries: int) -> None:
        adapter = scripted_adapter(default=FAILING_CANDIDATE)

        result = _generator(adapter, recorded_sleep, max_retries=max_retries).generate(data)

        assert result.retries == max_retries

    def test_non_retryable_error_falls_back_immediately(
        self, scripted_adapter, recorded_sleep, data, acme, status_error
    ) -> None:
        adapter = scripted_adapter(status_error(401, "invalid x-api-key"))

        result = _generator(adapter, recorded_sleep).generate(data)

        assert len(adapter.calls) == 1
        assert recorded_sleep.durations == []
        assert result.retries == 0
        assert result.quality == "needs_review"
        assert result.error == "invalid x-api-key"
        assert result.used_fallback is True
        assert result.summary.endswith("...")
        assert acme.description.startswith(result.summary[:-3])


class TestFallbackSummary:
    def test_truncates_to_length_with_ellipsis(self, acme) -> None:
        summary = build_fallback_summary(acme.description, acme.name)
        assert summary == acme.description[:150].rstrip() + "..."

    def test_is_deterministic(self, acme) -> None:
        assert build_fallback_summary(acme.description) == build_fallback_summary(acme.description)

    def test_collapses_whitespace(self) -> None:
        assert build_fallback_summary("Acme   builds\n\ntools.") == "Acme builds tools...."

    def test_empty_description_uses_company_name(self) -> None:
        assert build_fallback_summary("", "Acme Widgets, Inc.") == "Acme Widgets, Inc...."

    def test_never_empty(self) -> None:
        assert build_fallback_summary("", "") == "Description unavailable..."
