"""Prompt construction and the structured analysis model call."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

from legalmitra.models import AnalysisContext, AnalysisReport, Metadata, SourceType
from legalmitra.services.llm import ModelClient
from legalmitra.services.normalizer import DEFAULT_EXCERPT_CHARS, NOT_LEGAL_SENTINEL, normalize

logger = logging.getLogger(__name__)

__all__ = ["DocumentAnalyzer", "SYSTEM_PROMPT", "build_analysis_prompt"]

SYSTEM_PROMPT = (
    "You are a legal document analysis expert who explains contracts, terms and policies "
    "to ordinary people. You always answer with a single JSON object and nothing else."
)

_OUTPUT_SCHEMA = """{
  "riskLevel": "LOW" | "MEDIUM" | "HIGH",
  "overallSummary": "A brief 2-3 sentence summary of what this document is about",
  "keyFindings": [
    {
      "type": "FINANCIAL_RISK" | "LEGAL_OBLIGATION" | "PRIVACY_CONCERN" | "TERMINATION_CLAUSE" | "LIABILITY" | "OTHER",
      "severity": "LOW" | "MEDIUM" | "HIGH",
      "title": "Brief title of the finding",
      "description": "Detailed explanation of what this clause means for the user",
      "recommendation": "What the user should do about this"
    }
  ],
  "redFlags": ["Specific concerning clauses or terms that heavily favor the other party"],
  "positiveAspects": ["Favorable terms or protections for the user"],
  "simplifiedExplanation": "Plain English explanation of what agreeing to this document means",
  "actionableAdvice": ["Specific steps the user should take before agreeing"]
}"""

_FOCUS_AREAS = """Focus particularly on:
- Financial obligations, hidden fees and penalties
- Automatic renewals or extensions
- Termination conditions and notice periods
- Liability, indemnity and responsibility clauses
- Privacy and data usage terms
- Dispute resolution, arbitration and jury-trial waivers
- Any unusual or potentially unfair terms"""


def build_analysis_prompt(content: str, context: AnalysisContext) -> str:
    """Return the single prompt sent to the model for a full analysis."""

    if context.source_type is SourceType.URL:
        source_block = (
            "Analyze the following legal document taken from a website.\n\n"
            f"Website URL: {context.source_url or '(unknown)'}\n"
            f"Page Title: {context.page_title or '(untitled)'}\n"
        )
    else:
        source_block = "Analyze the following legal text submitted by a user.\n"

    truncation_note = (
        "\nThe document was truncated to fit the analysis limit; base your analysis on the part shown.\n"
        if context.truncated
        else ""
    )

    return f"""{source_block}{truncation_note}
Content:
\"\"\"
{content}
\"\"\"

Provide your analysis as ONE JSON object with exactly this structure:

{_OUTPUT_SCHEMA}

Rules:
- Use only the listed values for "riskLevel", "type" and "severity".
- Output the JSON object only: no markdown, no code fences, no commentary.
- If the content is not a legal document (for example a news article, blog post, product page or FAQ), output exactly {{"error": "{NOT_LEGAL_SENTINEL}", "message": "<one sentence explaining why>"}} instead.

{_FOCUS_AREAS}

Explain legal jargon in simple terms, prioritise the most important issues and give actionable recommendations."""


class DocumentAnalyzer:
    """Run the structured risk analysis for one piece of content."""

    def __init__(
        self,
        client: ModelClient,
        *,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._client = client
        self._excerpt_chars = excerpt_chars
        self._clock = clock or (lambda: datetime.now(UTC))

    def analyze(self, content: str, context: AnalysisContext) -> AnalysisReport:
        """Make one model call and normalise its output.

        Model errors propagate as :class:`~legalmitra.errors.AnalysisError`;
        nothing is retried.
        """

        prompt = build_analysis_prompt(content, context)
        logger.info(
            "Sending %s analysis request (%d characters) to %s",
            context.source_type.value,
            len(content),
            self._client.model_name,
        )
        raw_text = self._client.generate(prompt, system=SYSTEM_PROMPT)
        logger.info("Received %d characters of analysis output", len(raw_text))

        metadata = Metadata(
            source_type=context.source_type,
            text_length=context.text_length,
            analyzed_at=self._clock(),
            model=self._client.model_name,
            source_url=context.source_url,
            page_title=context.page_title,
            truncated=context.truncated,
        )
        return normalize(raw_text, metadata, excerpt_chars=self._excerpt_chars)
