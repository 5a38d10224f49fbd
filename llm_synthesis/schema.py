"""Structured contracts for summary generation and quality evaluation."""

from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

QualityTier = Literal["excellent", "good", "needs_review"]


class QualityVerdict(BaseModel):
    """Deterministic scoring of one candidate summary.

    Only ``length_in_window``, ``has_company_name`` and ``is_truncated``
    decide ``passed``; the remaining flags feed refinement guidance and
    tier classification.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    passed: bool
    issues: Tuple[str, ...] = ()
    length: int = Field(ge=0)
    length_in_window: bool
    length_in_ideal_window: bool
    has_company_name: bool
    has_banned_phrases: bool
    banned_phrases: Tuple[str, ...] = ()
    has_domain_terms: bool
    domain_terms_expected: bool
    is_well_formed: bool
    is_truncated: bool
    is_vague: bool


class SummaryResult(BaseModel):
    """Final outcome of the retry/refinement loop for one row."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    summary: str = Field(min_length=1)
    quality: QualityTier
    retries: int = Field(ge=0)
    error: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.error is not None
