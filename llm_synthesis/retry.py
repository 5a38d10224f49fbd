"""Retry and refinement loop for company summary generation.

Each row gets a bounded attempt budget shared between transient-failure
retries (rate limits, overloaded service) and quality-driven refinement.
The loop never raises for a row: on exhaustion or a non-retryable failure
it falls back to a deterministic truncation of the original description.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from llm_synthesis.adapter import GenerationClient, GenerationError
from llm_synthesis.prompt_builder import SummaryPromptBuilder, SummaryPromptData
from llm_synthesis.schema import QualityVerdict, SummaryResult
from llm_synthesis.validator import (
    DEFAULT_THRESHOLDS,
    QualityThresholds,
    evaluate_summary,
    rate_summary_quality,
)

logger = logging.getLogger(__name__)

_FALLBACK_PLACEHOLDER = "Description unavailable"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and pacing for the summary loop."""

    max_retries: int = 3
    rate_limit_backoff_seconds: float = 5.0
    overloaded_backoff_seconds: float = 10.0
    refinement_delay_seconds: float = 1.0
    fallback_length: int = 150

    def backoff_for(self, error: GenerationError) -> float:
        if error.kind == "overloaded":
            return self.overloaded_backoff_seconds
        return self.rate_limit_backoff_seconds


@dataclass(frozen=True)
class SummaryAttempt:
    """One evaluated candidate in a retry session."""

    attempt: int
    candidate: str
    verdict: QualityVerdict
    refined: bool = False


@dataclass
class RetrySession:
    """Mutable state for one row's generation lifecycle.

    ``attempt`` only ever increases and never exceeds the policy's
    ``max_retries``; it becomes the result's retry count.
    """

    company_name: str
    attempt: int = 0
    history: List[SummaryAttempt] = field(default_factory=list)

    def record(
        self,
        candidate: str,
        verdict: QualityVerdict,
        *,
        refined: bool = False,
    ) -> None:
        self.history.append(
            SummaryAttempt(
                attempt=self.attempt,
                candidate=candidate,
                verdict=verdict,
                refined=refined,
            )
        )


def build_fallback_summary(
    description: str,
    company_name: str = "",
    length: int = 150,
) -> str:
    """Truncate the original description into a non-empty fallback summary."""
    source = " ".join((description or "").split())
    if not source:
        source = company_name.strip() or _FALLBACK_PLACEHOLDER
    return source[:length].rstrip() + "..."


class SummaryGenerator:
    """Runs generate -> evaluate -> refine for one company at a time."""

    def __init__(
        self,
        client: GenerationClient,
        *,
        prompt_builder: Optional[SummaryPromptBuilder] = None,
        thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
        policy: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._thresholds = thresholds
        self._prompt_builder = prompt_builder or SummaryPromptBuilder(thresholds)
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def generate(self, data: SummaryPromptData) -> SummaryResult:
        """Produce a summary for one company.

        Args:
            data: Prompt fields for the company.

        Returns:
            The accepted candidate, the last candidate once the budget is
            spent, or the description fallback when generation fails.
        """
        session = RetrySession(company_name=data.company_name)
        max_retries = self._policy.max_retries

        while True:
            attempt = session.attempt
            prompt = self._prompt_builder.build_prompt(data, attempt)

            try:
                candidate = self._client.generate(prompt)
            except GenerationError as exc:
                if self._backoff(exc, session):
                    continue
                return self._fallback(data, session, exc)

            verdict = self._evaluate(candidate, data)
            session.record(candidate, verdict)

            if verdict.passed or attempt >= max_retries:
                return self._finalize(candidate, verdict, session)

            logger.warning(
                "Attempt %d/%d failed quality check for '%s': %s",
                attempt + 1,
                max_retries + 1,
                data.company_name,
                "; ".join(verdict.issues),
            )
            self._sleep(self._policy.refinement_delay_seconds)

            refinement = self._prompt_builder.build_refinement_prompt(
                candidate,
                verdict,
                data.company_name,
                data.specialties,
            )
            try:
                refined = self._client.generate(
                    prompt,
                    previous_candidate=candidate,
                    refinement_instruction=refinement,
                )
            except GenerationError as exc:
                if self._backoff(exc, session):
                    continue
                return self._fallback(data, session, exc)

            session.attempt = attempt + 1
            refined_verdict = self._evaluate(refined, data)
            session.record(refined, refined_verdict, refined=True)

            if refined_verdict.passed or session.attempt >= max_retries:
                return self._finalize(refined, refined_verdict, session)

            logger.warning(
                "Refined summary for '%s' still failing, restarting at attempt %d: %s",
                data.company_name,
                session.attempt,
                "; ".join(refined_verdict.issues),
            )

    def _evaluate(self, candidate: str, data: SummaryPromptData) -> QualityVerdict:
        return evaluate_summary(
            candidate,
            data.company_name,
            data.specialties,
            self._thresholds,
        )

    def _backoff(self, error: GenerationError, session: RetrySession) -> bool:
        """Sleep and consume one attempt when ``error`` is worth retrying."""
        if not error.is_transient or session.attempt >= self._policy.max_retries:
            return False

        wait_seconds = self._policy.backoff_for(error)
        logger.warning(
            "Generation %s for '%s' on attempt %d/%d, waiting %.1fs",
            error.kind,
            session.company_name,
            session.attempt + 1,
            self._policy.max_retries + 1,
            wait_seconds,
        )
        self._sleep(wait_seconds)
        session.attempt += 1
        return True

    def _finalize(
        self,
        candidate: str,
        verdict: QualityVerdict,
        session: RetrySession,
    ) -> SummaryResult:
        quality = rate_summary_quality(verdict)
        if session.attempt > 0:
            logger.info(
                "Summary for '%s' finalized as %s after %d retr%s",
                session.company_name,
                quality,
                session.attempt,
                "y" if session.attempt == 1 else "ies",
            )
        return SummaryResult(summary=candidate, quality=quality, retries=session.attempt)

    def _fallback(
        self,
        data: SummaryPromptData,
        session: RetrySession,
        error: GenerationError,
    ) -> SummaryResult:
        logger.error(
            "Summary generation failed for '%s' (%s) after %d retr%s: %s",
            data.company_name,
            error.kind,
            session.attempt,
            "y" if session.attempt == 1 else "ies",
            error,
        )
        return SummaryResult(
            summary=build_fallback_summary(
                data.full_description,
                data.company_name,
                self._policy.fallback_length,
            ),
            quality="needs_review",
            retries=session.attempt,
            error=str(error) or error.kind,
        )
