"""Prompt builder for executive-ready company summaries."""

from dataclasses import dataclass
from typing import List

from llm_synthesis.schema import QualityVerdict
from llm_synthesis.validator import (
    BANNED_PHRASES,
    DEFAULT_THRESHOLDS,
    QualityThresholds,
)

_PROMPT_BANNED_EXCERPT = (
    "leading provider",
    "innovative solutions",
    "cutting-edge",
    "comprehensive",
    "full-service",
)

_EXAMPLE_SUMMARIES = (
    "Control Solutions, Incorporated specializes in commissioning including "
    "energy optimization for commercial and healthcare facilities.",
    "Engineered Systems & Energy Solutions, Inc. provides building automation "
    "systems including energy optimization for healthcare and educational facilities.",
    "Environmental Test and Balance Co. specializes in commissioning for "
    "industrial and utility facilities.",
)


@dataclass(frozen=True)
class SummaryPromptData:
    """Row fields embedded into every summary prompt."""

    company_name: str
    industries: str
    revenue: str
    employees: str
    location: str
    specialties: str
    full_description: str


class SummaryPromptBuilder:
    """Builds deterministic prompts for one company's summary.

    Three variants exist: the initial prompt, a retry prompt that prefixes
    an escalating emphasis line to the full initial prompt, and a
    refinement turn that quotes a rejected candidate and lists its defects.
    """

    def __init__(self, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> None:
        self._thresholds = thresholds

    @property
    def _target_range(self) -> str:
        return f"{self._thresholds.ideal_min_length}-{self._thresholds.ideal_max_length}"

    def build_initial_prompt(self, data: SummaryPromptData) -> str:
        """Build the first-attempt prompt with full context and scaffold."""
        target = self._target_range
        banned = ", ".join(f'"{phrase}"' for phrase in _PROMPT_BANNED_EXCERPT)
        examples = "\n".join(f'- "{example}"' for example in _EXAMPLE_SUMMARIES)

        return (
            "You are creating executive-ready company summaries for M&A target "
            "analysis presentations.\n\n"
            "COMPANY DATA:\n"
            f"Name: {data.company_name}\n"
            f"Industry: {data.industries}\n"
            f"Revenue: {data.revenue}\n"
            f"Employees: {data.employees}\n"
            f"Location: {data.location}\n"
            f"Specialties: {data.specialties}\n\n"
            "FULL DESCRIPTION:\n"
            f"{data.full_description}\n\n"
            "YOUR TASK:\n"
            f"Create a substantive {target} character summary that captures:\n\n"
            "1. CORE BUSINESS: What they provide/manufacture/specialize in "
            "(use specific terminology from specialties)\n"
            "2. KEY DIFFERENTIATORS: What makes them unique (technical capabilities, "
            "proprietary methods, certifications)\n"
            "3. TARGET MARKETS: Which industries/customer segments they serve\n"
            "4. APPLICATIONS: Key use cases or client types when relevant\n\n"
            "QUALITY REQUIREMENTS:\n"
            f'- Start with full company name (not abbreviated): "{data.company_name}"\n'
            f"- Use exact terminology from specialties field: {data.specialties}\n"
            "- Be specific and factual - avoid generic marketing language\n"
            '- Format: "[Company Name] provides/specializes in/manufactures '
            '[specific offering] for [end markets], including [key capabilities/applications]."\n'
            f"- CRITICAL: Must be {target} characters (not words, CHARACTERS!)\n"
            f"- No generic phrases: {banned}\n"
            '- No truncation: no "...", "etc.", "and more"\n'
            "- Include specific market segments when mentioned\n\n"
            "EXAMPLES OF GOOD SUMMARIES:\n"
            f"{examples}\n\n"
            "THINK STEP BY STEP:\n"
            "1. What is their PRIMARY service/product?\n"
            f"2. What SPECIFIC capabilities differentiate them? (from specialties: {data.specialties})\n"
            f"3. Which MARKETS do they serve? (from industries: {data.industries})\n"
            "4. Any KEY applications or notable client types?\n\n"
            f"Now write the summary ({target} characters, substantive and specific). "
            "Respond with the final summary only:"
        )

    def build_retry_prompt(self, data: SummaryPromptData, attempt: int) -> str:
        """Prefix the initial prompt with an emphasis line for ``attempt``."""
        target = self._target_range
        if attempt <= 1:
            emphasis = (
                "IMPORTANT: Previous attempt failed quality check. Focus on "
                f"specificity, accuracy, and proper length ({target} characters)."
            )
        else:
            emphasis = (
                "CRITICAL: Multiple attempts failed. Ensure exact character count "
                f"({target} characters), include full company name, and use "
                "specific terminology from specialties."
            )
        return f"{emphasis}\n\n{self.build_initial_prompt(data)}"

    def build_prompt(self, data: SummaryPromptData, attempt: int) -> str:
        """Return the initial prompt for attempt 0, the retry variant after."""
        if attempt == 0:
            return self.build_initial_prompt(data)
        return self.build_retry_prompt(data, attempt)

    def build_refinement_prompt(
        self,
        candidate: str,
        verdict: QualityVerdict,
        company_name: str,
        specialties: str,
    ) -> str:
        """Quote a rejected candidate and turn its defects into instructions."""
        problems = self.refinement_instructions(verdict, company_name, specialties)
        return (
            "The previous summary needs improvement:\n\n"
            f'"{candidate}"\n\n'
            "PROBLEMS:\n"
            + "\n".join(problems)
            + "\n\nPlease rewrite the summary addressing all the above issues. "
            f"Keep it factual, specific, and between {self._target_range} characters. "
            "Respond with the rewritten summary only."
        )

    def refinement_instructions(
        self,
        verdict: QualityVerdict,
        company_name: str,
        specialties: str,
    ) -> List[str]:
        """Map verdict defects to imperative fix-it lines, in a stable order."""
        problems: List[str] = []

        if not verdict.has_company_name:
            problems.append(f'- Must include the exact company name: "{company_name}"')

        if verdict.has_banned_phrases:
            found = verdict.banned_phrases or BANNED_PHRASES[:2]
            quoted = ", ".join(f'"{phrase}"' for phrase in found)
            problems.append(f"- Remove generic marketing phrases: {quoted}")

        if verdict.domain_terms_expected and not verdict.has_domain_terms:
            excerpt = ", ".join(part.strip() for part in specialties.split(",")[:3])
            problems.append(
                f"- Include specific terminology from their specialties: {excerpt}"
            )

        if verdict.length < self._thresholds.min_length:
            problems.append(
                f"- Expand to {self._target_range} characters "
                f"(at least {self._thresholds.min_length}) with more specific details"
            )
        elif verdict.length > self._thresholds.max_length:
            problems.append(
                f"- Shorten to {self._target_range} characters "
                f"(maximum {self._thresholds.max_length}) while keeping key details"
            )

        if not verdict.is_well_formed:
            problems.append("- Capitalize the first letter and end with a period")

        if verdict.is_truncated:
            problems.append(
                '- Write a complete sentence; do not truncate with "...", "etc." or "and more"'
            )

        if verdict.is_vague:
            problems.append("- Replace vague wording with the specific offerings")

        return problems
