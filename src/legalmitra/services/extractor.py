"""Turn fetched pages into bounded, normalised text for the model."""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from legalmitra.config import AnalyzerConfig
from legalmitra.errors import ExtractionError
from legalmitra.models import ExtractedContent

logger = logging.getLogger(__name__)

__all__ = [
    "BOILERPLATE_SELECTORS",
    "CONTENT_SELECTORS",
    "ContentExtractor",
    "TRUNCATION_MARKER",
    "normalize_whitespace",
    "truncate_content",
]

TRUNCATION_MARKER = "\n\n[Content truncated for analysis]"

BOILERPLATE_SELECTORS = (
    "script, style, noscript, iframe, template, svg, nav, header, footer, aside, "
    ".ad, .ads, .advertisement, .popup, .modal, .cookie-banner"
)

CONTENT_SELECTORS = (
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    ".legal-content",
    ".terms",
    ".privacy",
    ".policy",
    "article",
    ".document",
)

MIN_CANDIDATE_CHARS = 100

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace (including blank lines) to one space."""

    return _WHITESPACE_RE.sub(" ", text or "").strip()


def truncate_content(text: str, limit: int) -> tuple[str, bool]:
    """Cut ``text`` to ``limit`` characters, appending :data:`TRUNCATION_MARKER`.

    Text of exactly ``limit`` characters is returned unchanged.
    """

    if len(text) <= limit:
        return text, False
    return text[:limit] + TRUNCATION_MARKER, True


def _meta_content(soup: BeautifulSoup, *candidates: tuple[str, str]) -> str:
    for attr, value in candidates:
        tag = soup.find("meta", attrs={attr: value})
        if tag and tag.get("content"):
            return normalize_whitespace(tag["content"])
    return ""


class ContentExtractor:
    """Select the main legal text from an HTML page."""

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self._config = config or AnalyzerConfig()

    def extract(
        self, html: str, source_url: str = "", content_type: str = "text/html"
    ) -> ExtractedContent:
        """Return the readable content of ``html``.

        Plain text and JSON bodies are only normalised. Any parser failure is
        reported as :class:`~legalmitra.errors.ExtractionError`.
        """

        if "html" not in (content_type or "text/html").lower():
            return self._finish(normalize_whitespace(html), title="", description="", source_url=source_url)

        try:
            soup = BeautifulSoup(html or "", "lxml")
            title = soup.title.get_text(strip=True) if soup.title else ""
            description = _meta_content(
                soup, ("name", "description"), ("property", "og:description")
            )
            for element in soup.select(BOILERPLATE_SELECTORS):
                element.decompose()
            content = self._select_content(soup)
        except Exception as exc:  # noqa: BLE001 - any parser failure is an extraction failure
            logger.warning("Failed to extract content from %s: %s", source_url or "<html>", exc)
            raise ExtractionError("Failed to extract content from the webpage") from exc

        return self._finish(content, title=normalize_whitespace(title), description=description, source_url=source_url)

    def _select_content(self, soup: BeautifulSoup) -> str:
        longest = ""
        for selector in CONTENT_SELECTORS:
            for element in soup.select(selector):
                text = normalize_whitespace(element.get_text(" "))
                if len(text) > MIN_CANDIDATE_CHARS:
                    logger.debug("Selected content region %r (%d chars)", selector, len(text))
                    return text
                if len(text) > len(longest):
                    longest = text

        if longest:
            return longest

        root = soup.body or soup
        return normalize_whitespace(root.get_text(" "))

    def _finish(self, content: str, *, title: str, description: str, source_url: str) -> ExtractedContent:
        length = len(content)
        content, truncated = truncate_content(content, self._config.max_content_length)
        logger.info(
            "Extracted %d characters from %s%s",
            length,
            source_url or "<input>",
            " (truncated)" if truncated else "",
        )
        return ExtractedContent(
            content=content,
            title=title,
            length=length,
            description=description,
            truncated=truncated,
        )
