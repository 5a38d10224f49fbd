"""
tests/test_quality_validator.py

Pure unit tests for summary quality evaluation and tier classification.
"""

from __future__ import annotations

import pytest

from llm_synthesis.validator import (
    ISSUE_MISSING_NAME,
    ISSUE_NO_DOMAIN_TERMS,
    ISSUE_NO_PERIOD,
    ISSUE_TRUNCATED,
    QualityThresholds,
    company_name_core,
    evaluate_summary,
    extract_domain_terms,
    rate_summary_quality,
)

NAME = "Acme Widgets, Inc."
SPECIALTIES = "precision tooling, rapid prototyping"


def sized_summary(length: int, head: str = "Acme Widgets designs precision tooling") -> str:
    """Build a well-formed summary of exactly `length` characters."""
    filler = " for industrial pumps and conveyors" * 20
    body = (head + filler)[: length - 1]
    if body.endswith(" "):
        body = body[:-1] + "s"
    return body + "."


class TestLengthWindow:
    @pytest.mark.parametrize(
        ("length", "expected"),
        [(149, False), (150, True), (280, True), (281, False)],
    )
    def test_acceptance_boundaries(self, length: int, expected: bool) -> None:
        summary = sized_summary(length)
        assert len(summary) == length

        verdict = evaluate_summary(summary, NAME, SPECIALTIES)

        assert verdict.length_in_window is expected
        assert verdict.passed is expected

    def test_too_short_issue_mentions_range(self) -> None:
        verdict = evaluate_summary(sized_summary(120), NAME, SPECIALTIES)
        assert verdict.issues[0] == "Too short (120 chars, need 150-280)"

    def test_too_long_issue_mentions_max(self) -> None:
        verdict = evaluate_summary(sized_summary(300), NAME, SPECIALTIES)
        assert verdict.issues[0] == "Too long (300 chars, max 280)"

    def test_outside_ideal_window_is_informational(self) -> None:
        verdict = evaluate_summary(sized_summary(155), NAME, SPECIALTIES)

        assert verdict.passed is True
        assert verdict.length_in_ideal_window is False
        assert verdict.issues[0].startswith("Length acceptable but outside ideal range")
        assert rate_summary_quality(verdict) == "good"

    def test_custom_thresholds(self) -> None:
        thresholds = QualityThresholds(min_length=180, max_length=280, ideal_min_length=200, ideal_max_length=250)
        verdict = evaluate_summary(sized_summary(170), NAME, SPECIALTIES, thresholds)
        assert verdict.passed is False

    def test_thresholds_must_be_ordered(self) -> None:
        with pytest.raises(ValueError):
            QualityThresholds(min_length=200, max_length=150)


class TestScenarios:
    def test_excellent_first_attempt_summary(self, acme) -> None:
        verdict = evaluate_summary(acme.excellent_summary, acme.name, acme.specialties)

        assert verdict.passed is True
        assert verdict.issues == ()
        assert verdict.has_domain_terms is True
        assert rate_summary_quality(verdict) == "excellent"

    def test_generic_truncated_candidate_without_name(self) -> None:
        verdict = evaluate_summary("ACME provides leading-edge solutions...", NAME, SPECIALTIES)

        assert verdict.passed is False
        assert verdict.has_company_name is False
        assert ISSUE_MISSING_NAME in verdict.issues
        assert "Contains generic phrases: leading-edge" in verdict.issues
        assert verdict.banned_phrases == ("leading-edge",)
        assert verdict.is_truncated is True
        assert rate_summary_quality(verdict) == "needs_review"


class TestIndividualRules:
    def test_name_matches_without_legal_suffix(self) -> None:
        summary = sized_summary(200, head="Acme Widgets builds precision tooling")
        verdict = evaluate_summary(summary, NAME, SPECIALTIES)
        assert verdict.has_company_name is True

    def test_name_match_is_case_insensitive(self) -> None:
        summary = sized_summary(200, head="ACME WIDGETS builds precision tooling")
        assert evaluate_summary(summary, NAME, SPECIALTIES).has_company_name is True

    def test_empty_company_name_never_matches(self) -> None:
        verdict = evaluate_summary(sized_summary(200), "", SPECIALTIES)
        assert verdict.has_company_name is False

    @pytest.mark.parametrize(
        "ending",
        [" and more.", " etc.", "..."],
    )
    def test_truncation_markers(self, ending: str) -> None:
        summary = sized_summary(200)[:-1] + ending
        verdict = evaluate_summary(summary, NAME, SPECIALTIES)

        assert verdict.is_truncated is True
        assert ISSUE_TRUNCATED in verdict.issues
        assert verdict.passed is False

    @pytest.mark.parametrize("word", ["fetching", "sketches", "ketchup"])
    def test_words_containing_etc_are_not_truncation(self, word: str) -> None:
        summary = sized_summary(200, head=f"Acme Widgets designs precision tooling for {word} robots")
        assert evaluate_summary(summary, NAME, SPECIALTIES).is_truncated is False

    def test_standalone_etc_mid_sentence_is_truncation(self) -> None:
        summary = sized_summary(200, head="Acme Widgets designs precision tooling, gears, etc, for robots")
        assert evaluate_summary(summary, NAME, SPECIALTIES).is_truncated is True

    def test_missing_domain_terms_blocks_excellent_only(self) -> None:
        summary = sized_summary(200, head="Acme Widgets designs custom gear assemblies")
        verdict = evaluate_summary(summary, NAME, SPECIALTIES)

        assert verdict.passed is True
        assert ISSUE_NO_DOMAIN_TERMS in verdict.issues
        assert rate_summary_quality(verdict) == "good"

    def test_no_domain_terms_source_does_not_block_excellent(self) -> None:
        summary = sized_summary(200, head="Acme Widgets designs custom gear assemblies")
        verdict = evaluate_summary(summary, NAME, "")

        assert verdict.domain_terms_expected is False
        assert rate_summary_quality(verdict) == "excellent"

    def test_malformed_summary_is_good_not_excellent(self) -> None:
        summary = sized_summary(200)[:-1] + "s"
        verdict = evaluate_summary(summary, NAME, SPECIALTIES)

        assert verdict.is_well_formed is False
        assert ISSUE_NO_PERIOD in verdict.issues
        assert rate_summary_quality(verdict) == "good"

    def test_banned_phrase_keeps_pass_but_drops_tier(self) -> None:
        summary = sized_summary(200, head="Acme Widgets is a trusted partner for precision tooling")
        verdict = evaluate_summary(summary, NAME, SPECIALTIES)

        assert verdict.passed is True
        assert verdict.has_banned_phrases is True
        assert rate_summary_quality(verdict) == "good"

    def test_vague_wording_is_flagged(self) -> None:
        summary = sized_summary(200, head="Acme Widgets offers a wide range of precision tooling")
        assert evaluate_summary(summary, NAME, SPECIALTIES).is_vague is True

    def test_evaluation_is_deterministic(self, acme) -> None:
        first = evaluate_summary(acme.excellent_summary, acme.name, acme.specialties)
        evaluate_summary("other text", "Other Co", "")
        second = evaluate_summary(acme.excellent_summary, acme.name, acme.specialties)
        assert first == second


def test_company_name_core_strips_suffix_and_punctuation() -> None:
    assert company_name_core("Acme Widgets, Inc.") == "acme widgets"
    assert company_name_core("Globex Corporation") == "globex"
    assert company_name_core("Initech LLC.") == "initech"


def test_extract_domain_terms_drops_short_terms() -> None:
    assert extract_domain_terms("HVAC, AI, building automation") == ["hvac", "building automation"]
    assert extract_domain_terms("") == []
