"""Quality evaluation for generated company summaries.

Scores a candidate summary against deterministic rules and classifies
the result into a quality tier. Nothing here performs I/O; the same
inputs always produce the same verdict.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from llm_synthesis.schema import QualityTier, QualityVerdict

BANNED_PHRASES: Tuple[str, ...] = (
    "leading provider",
    "leading-edge",
    "innovative solutions",
    "cutting-edge",
    "state-of-the-art",
    "world-class",
    "industry leader",
    "premier provider",
    "trusted partner",
    "comprehensive solutions",
    "full-service",
    "one-stop shop",
    "best-in-class",
)

VAGUE_PHRASES: Tuple[str, ...] = (
    "various services",
    "multiple solutions",
    "different products",
    "wide range",
    "diverse offerings",
)

_ELLIPSIS_MARKERS = ("...", "…")
_ETC_PATTERN = re.compile(r"\betc\b", re.IGNORECASE)
_AND_MORE_PATTERN = re.compile(r"\sand more[\s.!]*$", re.IGNORECASE)

_LEGAL_SUFFIX_PATTERN = re.compile(
    r"\s+(inc|incorporated|llc|ltd|corp|corporation)\.?$",
    re.IGNORECASE,
)

_MIN_DOMAIN_TERM_LENGTH = 4

ISSUE_MISSING_NAME = "Missing company name"
ISSUE_NO_DOMAIN_TERMS = "Lacks industry-specific terminology from specialties"
ISSUE_NO_CAPITAL = "Does not start with capital letter"
ISSUE_NO_PERIOD = "Does not end with period"
ISSUE_TRUNCATED = 'Appears to be truncated (contains "...", "etc.", or "and more")'
ISSUE_VAGUE = "Contains vague descriptions instead of specific offerings"


@dataclass(frozen=True)
class QualityThresholds:
    """Length policy for summaries.

    ``min_length``/``max_length`` bound acceptance; the ideal window is
    only used when deciding whether a passing summary is excellent.
    """

    min_length: int = 150
    max_length: int = 280
    ideal_min_length: int = 160
    ideal_max_length: int = 250

    def __post_init__(self) -> None:
        if not (
            0 < self.min_length
            <= self.ideal_min_length
            <= self.ideal_max_length
            <= self.max_length
        ):
            raise ValueError(
                "Quality thresholds must satisfy "
                "0 < min <= ideal_min <= ideal_max <= max."
            )


DEFAULT_THRESHOLDS = QualityThresholds()


def company_name_core(company_name: str) -> str:
    """Return the lowercase company name without trailing legal suffixes.

    "Acme Widgets, Inc." -> "acme widgets"
    """
    core = company_name.split(",")[0]
    core = _LEGAL_SUFFIX_PATTERN.sub("", core.strip())
    return core.rstrip(" \t.,;:-").strip().lower()


def extract_domain_terms(domain_terms: str) -> List[str]:
    """Split a comma-separated specialties string into meaningful terms."""
    if not domain_terms:
        return []
    terms = (part.strip().lower() for part in domain_terms.split(","))
    return [term for term in terms if len(term) >= _MIN_DOMAIN_TERM_LENGTH]


def _contains_company_name(normalized_summary: str, company_name: str) -> bool:
    candidates = {company_name.strip().lower(), company_name_core(company_name)}
    return any(name and name in normalized_summary for name in candidates)


def _is_truncated(summary: str) -> bool:
    """
    Flag ellipses, a trailing "and more", or "etc" anywhere in the text.

    "etc" must stand as a whole word, unlike plain substring matching:
    "sketches" or "fetching" are not truncation markers, "pumps, etc, and" is.
    """

    if any(marker in summary for marker in _ELLIPSIS_MARKERS):
        return True
    if _ETC_PATTERN.search(summary):
        return True
    return bool(_AND_MORE_PATTERN.search(summary))


def evaluate_summary(
    summary: str,
    company_name: str,
    domain_terms: str,
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
) -> QualityVerdict:
    """Score a candidate summary against every quality rule.

    All rules are computed independently. ``passed`` is False only when
    the length is outside the acceptance window, the company name is
    missing, or the text looks truncated.

    Args:
        summary: Candidate summary text.
        company_name: Canonical company name from the source row.
        domain_terms: Comma-separated specialties (may be empty).
        thresholds: Length policy to apply.

    Returns:
        A frozen ``QualityVerdict``.
    """
    issues: List[str] = []
    normalized = summary.lower()

    length = len(summary)
    length_in_window = thresholds.min_length <= length <= thresholds.max_length
    length_in_ideal_window = (
        thresholds.ideal_min_length <= length <= thresholds.ideal_max_length
    )
    if length < thresholds.min_length:
        issues.append(
            f"Too short ({length} chars, need "
            f"{thresholds.min_length}-{thresholds.max_length})"
        )
    elif length > thresholds.max_length:
        issues.append(f"Too long ({length} chars, max {thresholds.max_length})")
    elif not length_in_ideal_window:
        issues.append(
            f"Length acceptable but outside ideal range ({length} chars, ideal "
            f"{thresholds.ideal_min_length}-{thresholds.ideal_max_length})"
        )

    has_company_name = _contains_company_name(normalized, company_name)
    if not has_company_name:
        issues.append(ISSUE_MISSING_NAME)

    banned = tuple(phrase for phrase in BANNED_PHRASES if phrase in normalized)
    if banned:
        issues.append(f"Contains generic phrases: {', '.join(banned)}")

    terms = extract_domain_terms(domain_terms)
    has_domain_terms = any(term in normalized for term in terms)
    if terms and not has_domain_terms:
        issues.append(ISSUE_NO_DOMAIN_TERMS)

    starts_capitalized = summary[:1] == summary[:1].upper()
    ends_with_period = summary.endswith(".")
    if not starts_capitalized:
        issues.append(ISSUE_NO_CAPITAL)
    if not ends_with_period:
        issues.append(ISSUE_NO_PERIOD)

    is_truncated = _is_truncated(summary)
    if is_truncated:
        issues.append(ISSUE_TRUNCATED)

    is_vague = any(phrase in normalized for phrase in VAGUE_PHRASES)
    if is_vague:
        issues.append(ISSUE_VAGUE)

    return QualityVerdict(
        passed=length_in_window and has_company_name and not is_truncated,
        issues=tuple(issues),
        length=length,
        length_in_window=length_in_window,
        length_in_ideal_window=length_in_ideal_window,
        has_company_name=has_company_name,
        has_banned_phrases=bool(banned),
        banned_phrases=banned,
        has_domain_terms=has_domain_terms,
        domain_terms_expected=bool(terms),
        is_well_formed=starts_capitalized and ends_with_period,
        is_truncated=is_truncated,
        is_vague=is_vague,
    )


def rate_summary_quality(verdict: QualityVerdict) -> QualityTier:
    """Classify a verdict into excellent, good or needs_review."""
    if (
        verdict.passed
        and verdict.length_in_ideal_window
        and verdict.has_company_name
        and not verdict.has_banned_phrases
        and (verdict.has_domain_terms or not verdict.domain_terms_expected)
        and verdict.is_well_formed
        and not verdict.is_truncated
    ):
        return "excellent"

    if verdict.passed and verdict.has_company_name and not verdict.is_truncated:
        return "good"

    return "needs_review"
