"""
app/services/enrichment_service.py

Batch enrichment of company rows: summaries first, logos second.

Summaries are generated strictly one row at a time with a fixed pause
between rows to stay under the generation service's rate limit. Logos
are then fetched through the bounded worker pool in `LogoService` and
attached to the records by lookup key. Neither phase aborts the batch
because of a single row.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from app.config import (
    LLMSettings,
    SummarySettings,
    get_llm_settings,
    get_logo_fetch_settings,
    get_summary_settings,
)
from app.domain.target_list import (
    EnrichedCompany,
    LogoProgressCallback,
    LogoRequest,
    NoLogo,
    NormalizedRow,
    QualityStats,
    SourceColumn,
    SummaryProgressCallback,
)
from app.logging_utils import log_event
from app.mappers.company_mapper import build_enriched_company, build_prompt_data, logo_lookup_key
from app.services.logo_service import LogoService
from llm_synthesis.adapter import (
    AnthropicLLMAdapter,
    BaseLLMAdapter,
    GenerationClient,
    MockLLMAdapter,
    OpenAILLMAdapter,
)
from llm_synthesis.retry import RetryPolicy, SummaryGenerator, build_fallback_summary
from llm_synthesis.schema import SummaryResult
from llm_synthesis.validator import QualityThresholds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichmentResult:
    """
    Enriched companies in input order plus batch quality statistics.
    """

    companies: list[EnrichedCompany]
    stats: QualityStats


class EnrichmentService:
    """
    Runs the summary phase and the logo phase over a batch of rows.
    """

    def __init__(
        self,
        *,
        summary_generator: SummaryGenerator,
        logo_service: LogoService | None = None,
        row_delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._summary_generator = summary_generator
        self._logo_service = logo_service
        self._row_delay_seconds = row_delay_seconds
        self._sleep = sleep

    def enrich(
        self,
        rows: Sequence[NormalizedRow],
        *,
        on_summary_progress: SummaryProgressCallback | None = None,
        on_logo_progress: LogoProgressCallback | None = None,
    ) -> EnrichmentResult:
        """
        Enrich every row and return records in the same order as `rows`.

        Raises:
            ValueError: If `rows` is empty.
        """

        if not rows:
            raise ValueError("Enrichment requires at least one company row.")

        companies = self.summarize_rows(rows, on_progress=on_summary_progress)
        companies = self.attach_logos(companies, on_progress=on_logo_progress)
        stats = summarize_quality(companies)
        log_event(
            logger,
            logging.INFO,
            "enrichment_completed",
            total=stats.total,
            excellent=stats.excellent,
            good=stats.good,
            needs_review=stats.needs_review,
            fallbacks=stats.fallbacks,
            average_retries=round(stats.average_retries, 2),
        )
        return EnrichmentResult(companies=companies, stats=stats)

    def summarize_rows(
        self,
        rows: Sequence[NormalizedRow],
        *,
        on_progress: SummaryProgressCallback | None = None,
    ) -> list[EnrichedCompany]:
        """
        Generate summaries sequentially, pausing between rows.
        """

        total = len(rows)
        companies: list[EnrichedCompany] = []
        for index, row in enumerate(rows):
            company_name = str(row.get(SourceColumn.COMPANY_NAME) or "").strip()
            if on_progress is not None:
                on_progress(index + 1, total, company_name)

            summary = self._summarize_row(row, company_name)
            companies.append(build_enriched_company(row, summary))
            log_event(
                logger,
                logging.INFO,
                "enrichment_row_completed",
                index=index + 1,
                total=total,
                company=company_name,
                quality=summary.quality,
                retries=summary.retries,
                fallback=summary.used_fallback,
            )

            if index < total - 1:
                self._sleep(self._row_delay_seconds)

        return companies

    def attach_logos(
        self,
        companies: Sequence[EnrichedCompany],
        *,
        on_progress: LogoProgressCallback | None = None,
    ) -> list[EnrichedCompany]:
        """
        Fetch logos for all companies and attach them by lookup key.
        """

        if self._logo_service is None:
            return [replace(company, logo=NoLogo()) for company in companies]

        keys = [logo_lookup_key(company.domain, company.company_name) for company in companies]
        logo_requests = [
            LogoRequest(key=key, domain=company.domain, company_name=company.company_name)
            for key, company in zip(keys, companies)
        ]
        results = self._logo_service.fetch_logos(logo_requests, on_progress=on_progress)
        return [
            replace(company, logo=results.get(key, NoLogo()))
            for key, company in zip(keys, companies)
        ]

    def _summarize_row(self, row: NormalizedRow, company_name: str) -> SummaryResult:
        data = build_prompt_data(row)
        try:
            return self._summary_generator.generate(data)
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "summary_generation_crashed",
                company=company_name,
                error=str(exc),
            )
            return SummaryResult(
                summary=build_fallback_summary(
                    data.full_description,
                    data.company_name,
                    self._summary_generator.policy.fallback_length,
                ),
                quality="needs_review",
                retries=0,
                error=str(exc) or exc.__class__.__name__,
            )


def summarize_quality(companies: Sequence[EnrichedCompany]) -> QualityStats:
    """
    Count quality tiers, fallbacks and logo sources over a batch.
    """

    tiers = Counter(company.summary_quality for company in companies)
    logo_sources = Counter(company.logo_source for company in companies)
    total = len(companies)
    total_retries = sum(company.summary_retries for company in companies)
    return QualityStats(
        total=total,
        excellent=tiers.get("excellent", 0),
        good=tiers.get("good", 0),
        needs_review=tiers.get("needs_review", 0),
        fallbacks=sum(1 for company in companies if company.summary_error is not None),
        average_retries=(total_retries / total) if total else 0.0,
        logos_by_source=dict(logo_sources),
    )


def build_llm_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    """
    Instantiate the adapter selected by LLM_ADAPTER.

    LLM_ADAPTER=mock      -> MockLLMAdapter (no API key required)
    LLM_ADAPTER=openai    -> OpenAILLMAdapter
    LLM_ADAPTER=anthropic -> AnthropicLLMAdapter (default)
    """

    if settings.adapter == "mock":
        return MockLLMAdapter()

    adapter_cls = OpenAILLMAdapter if settings.adapter == "openai" else AnthropicLLMAdapter
    return adapter_cls(
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout_seconds=settings.timeout_seconds,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )


def build_summary_generator(
    *,
    adapter: BaseLLMAdapter,
    settings: SummarySettings,
    sleep: Callable[[float], None] = time.sleep,
) -> SummaryGenerator:
    """
    Wire the summary loop from settings.
    """

    thresholds = QualityThresholds(
        min_length=settings.min_length,
        max_length=settings.max_length,
        ideal_min_length=settings.ideal_min_length,
        ideal_max_length=settings.ideal_max_length,
    )
    policy = RetryPolicy(
        max_retries=settings.max_retries,
        rate_limit_backoff_seconds=settings.rate_limit_backoff_seconds,
        overloaded_backoff_seconds=settings.overloaded_backoff_seconds,
        refinement_delay_seconds=settings.refinement_delay_seconds,
        fallback_length=settings.fallback_length,
    )
    return SummaryGenerator(
        GenerationClient(adapter),
        thresholds=thresholds,
        policy=policy,
        sleep=sleep,
    )


def get_enrichment_service() -> EnrichmentService:
    """
    Build an enrichment service from environment settings.
    """

    summary_settings = get_summary_settings()
    logo_settings = get_logo_fetch_settings()
    generator = build_summary_generator(
        adapter=build_llm_adapter(get_llm_settings()),
        settings=summary_settings,
    )
    return EnrichmentService(
        summary_generator=generator,
        logo_service=LogoService(settings=logo_settings) if logo_settings.enabled else None,
        row_delay_seconds=summary_settings.row_delay_seconds,
    )
