"""Gate that decides whether fetched content is a legal document."""

from __future__ import annotations

import logging
import re

from legalmitra.errors import AnalysisError
from legalmitra.services.llm import ModelClient

logger = logging.getLogger(__name__)

__all__ = ["LegalContentClassifier", "build_classification_prompt", "is_legal_verdict"]

_POSITIVE_RE = re.compile(r"\bLEGAL\b")
_NEGATIVE_RE = re.compile(r"\bNOT[\s_-]*LEGAL\b")


def build_classification_prompt(sample: str, title: str = "", description: str = "") -> str:
    return f"""You are a content validator. Decide whether the following web page contains legal content that an ordinary person might need help understanding.

Page title: {title or "(untitled)"}
Page description: {description or "(none)"}

Content sample:
\"\"\"
{sample}
\"\"\"

Respond with EXACTLY one word:
- "LEGAL" if the content is a legal document such as terms of service, terms and conditions, a privacy or cookie policy, a contract or agreement, an end-user license agreement, a rental or lease agreement, an employment agreement, a disclaimer, or another legal notice.
- "NOT_LEGAL" if the content is not legal in nature, such as a news article, blog post, marketing or landing page, product page, FAQ, help article, forum thread, or documentation.

Response:"""


def is_legal_verdict(response: str) -> bool:
    """Interpret the classifier reply.

    Models sometimes echo both labels, so the negative label wins whenever it
    appears.
    """

    verdict = (response or "").strip().upper()
    return bool(_POSITIVE_RE.search(verdict)) and not _NEGATIVE_RE.search(verdict)


class LegalContentClassifier:
    """Ask the model for a LEGAL / NOT_LEGAL verdict on a content sample.

    If the model call fails the content is assumed to be legal; the analyzer's
    NOT_LEGAL_CONTENT sentinel still guards the full analysis.
    """

    def __init__(self, client: ModelClient, *, sample_chars: int = 3000) -> None:
        self._client = client
        self._sample_chars = sample_chars

    def classify(self, sample: str, title: str = "", description: str = "") -> bool:
        prompt = build_classification_prompt(sample[: self._sample_chars], title, description)
        try:
            response = self._client.generate(prompt)
        except AnalysisError as exc:
            logger.warning("Content classification failed, proceeding with analysis: %s", exc)
            return True

        is_legal = is_legal_verdict(response)
        logger.info("Content classification response %r -> legal=%s", response[:40], is_legal)
        return is_legal
