"""
tests/test_enrichment_service.py

Batch enrichment: sequential summaries, logo merge, quality statistics.
"""

from __future__ import annotations

import pytest

from app.config import LogoFetchSettings, LLMSettings, SummarySettings
from app.domain.target_list import NoLogo, PrimaryLogo
from app.services.enrichment_service import (
    EnrichmentService,
    build_llm_adapter,
    build_summary_generator,
    summarize_quality,
)
from app.services.logo_service import LogoService, synthesize_initials_logo
from llm_synthesis.adapter import GenerationClient, MockLLMAdapter
from llm_synthesis.retry import SummaryGenerator


class _ExplodingGenerator:
    """Summary generator double that fails in an unexpected way."""

    def __init__(self, inner: SummaryGenerator) -> None:
        self.policy = inner.policy

    def generate(self, data):
        raise RuntimeError("unexpected parser state")


@pytest.fixture()
def no_sleep():
    return lambda _: None


def _service(adapter, sleep, logo_service=None) -> EnrichmentService:
    generator = SummaryGenerator(GenerationClient(adapter), sleep=lambda _: None)
    return EnrichmentService(
        summary_generator=generator,
        logo_service=logo_service,
        row_delay_seconds=0.5,
        sleep=sleep,
    )


class TestSummaryPhase:
    def test_rows_are_processed_in_order_with_progress(
        self, scripted_adapter, recorded_sleep, company_row, acme
    ) -> None:
        rows = [
            company_row(),
            company_row(**{"Company Name": "Globex LLC", "Website": ""}),
            company_row(**{"Company Name": "Initech Corp", "Website": "initech.io"}),
        ]
        adapter = scripted_adapter(default=acme.excellent_summary)
        progress: list[tuple[int, int, str]] = []

        result = _service(adapter, recorded_sleep).enrich(
            rows,
            on_summary_progress=lambda index, total, name: progress.append((index, total, name)),
        )

        assert [company.company_name for company in result.companies] == [
            "Acme Widgets, Inc.",
            "Globex LLC",
            "Initech Corp",
        ]
        assert progress == [
            (1, 3, "Acme Widgets, Inc."),
            (2, 3, "Globex LLC"),
            (3, 3, "Initech Corp"),
        ]
        assert recorded_sleep.durations == [0.5, 0.5]

    def test_one_failing_row_does_not_stop_batch(self, scripted_adapter, no_sleep, company_row, acme) -> None:
        rows = [
            company_row(**{"Company Name": "Broken Co", "Description": "Broken Co makes   things."}),
            company_row(),
        ]
        adapter = scripted_adapter(ValueError("boom"), default=acme.excellent_summary)

        result = _service(adapter, no_sleep).enrich(rows)

        broken, good = result.companies
        assert broken.summary == "Broken Co makes things...."
        assert broken.summary_quality == "needs_review"
        assert broken.summary_error == "boom"
        assert good.summary == acme.excellent_summary
        assert good.summary_quality == "excellent"

    def test_unexpected_generator_crash_becomes_fallback(self, scripted_adapter, no_sleep, company_row, acme) -> None:
        inner = SummaryGenerator(GenerationClient(scripted_adapter()), sleep=no_sleep)
        service = EnrichmentService(summary_generator=_ExplodingGenerator(inner), sleep=no_sleep)

        result = service.enrich([company_row()])

        company = result.companies[0]
        assert company.summary == acme.description[:150].rstrip() + "..."
        assert company.summary_error == "unexpected parser state"
        assert company.summary_retries == 0

    def test_empty_rows_are_rejected(self, scripted_adapter, no_sleep) -> None:
        with pytest.raises(ValueError):
            _service(scripted_adapter(), no_sleep).enrich([])


class TestLogoPhase:
    def test_logos_merge_back_by_key(
        self, scripted_adapter, no_sleep, company_row, fake_session, fake_response, acme
    ) -> None:
        session = fake_session({"logo.clearbit.com/acmewidgets.com": fake_response(200, b"acme-logo")})
        logo_service = LogoService(settings=LogoFetchSettings(), session=session, sleep=no_sleep)
        rows = [
            company_row(),
            company_row(**{"Company Name": "Acme Rentals", "Website": ""}),
            company_row(**{"Company Name": "Acme Widgets East", "Website": "http://acmewidgets.com"}),
        ]

        result = _service(scripted_adapter(default=acme.excellent_summary), no_sleep, logo_service).enrich(rows)

        first, second, third = result.companies
        assert isinstance(first.logo, PrimaryLogo)
        assert third.logo == first.logo
        assert second.logo == synthesize_initials_logo("Acme Rentals")
        assert session.requested.count("https://logo.clearbit.com/acmewidgets.com") == 1

    def test_disabled_logo_phase_tags_none(self, scripted_adapter, no_sleep, company_row, acme) -> None:
        result = _service(scripted_adapter(default=acme.excellent_summary), no_sleep).enrich([company_row()])

        assert result.companies[0].logo == NoLogo()
        assert result.stats.logos_by_source == {"none": 1}


def test_summarize_quality_counts_tiers(scripted_adapter, company_row, acme) -> None:
    rows = [company_row(), company_row(), company_row()]
    adapter = scripted_adapter(
        acme.excellent_summary,
        ValueError("boom"),
        acme.excellent_summary.replace("custom widgets", "world-class custom widgets"),
    )
    service = _service(adapter, lambda _: None)

    companies = service.enrich(rows).companies
    stats = summarize_quality(companies)

    assert stats.total == 3
    assert stats.excellent == 1
    assert stats.good == 1
    assert stats.needs_review == 1
    assert stats.fallbacks == 1
    assert stats.average_retries == 0.0


def test_summarize_quality_empty() -> None:
    stats = summarize_quality([])
    assert stats.total == 0
    assert stats.average_retries == 0.0


def test_build_llm_adapter_mock() -> None:
    assert isinstance(build_llm_adapter(LLMSettings(adapter="mock")), MockLLMAdapter)


def test_build_summary_generator_uses_settings() -> None:
    settings = SummarySettings(max_retries=1, fallback_length=80)
    generator = build_summary_generator(adapter=MockLLMAdapter(), settings=settings)

    assert generator.policy.max_retries == 1
    assert generator.policy.fallback_length == 80


def test_mock_adapter_end_to_end(company_row, no_sleep) -> None:
    generator = build_summary_generator(
        adapter=MockLLMAdapter(),
        settings=SummarySettings(),
        sleep=no_sleep,
    )
    service = EnrichmentService(summary_generator=generator, sleep=no_sleep)

    company = service.enrich([company_row()]).companies[0]

    assert company.summary.startswith("Acme Widgets, Inc. delivers precision tooling")
    assert company.summary_quality in {"excellent", "good"}
