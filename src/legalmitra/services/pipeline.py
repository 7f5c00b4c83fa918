"""Request-scoped orchestration of the analysis stages."""

from __future__ import annotations

import logging

from legalmitra.config import AnalyzerConfig
from legalmitra.errors import (
    ClassificationRejection,
    ConfigurationError,
    ContentError,
    InputError,
    SecurityRejection,
)
from legalmitra.models import AnalysisContext, AnalysisReport, SourceType
from legalmitra.services.analyzer import DocumentAnalyzer
from legalmitra.services.classifier import LegalContentClassifier
from legalmitra.services.extractor import ContentExtractor, truncate_content
from legalmitra.services.fetcher import ContentFetcher
from legalmitra.services.llm import ModelClient
from legalmitra.services.url_validator import UrlValidator

logger = logging.getLogger(__name__)

__all__ = ["AnalysisPipeline"]


class AnalysisPipeline:
    """Validate, fetch, extract, classify and analyse, strictly in that order.

    The pipeline holds no per-request state, so one instance serves
    concurrent requests. ``model_client`` may be ``None`` when no credential
    is configured; every analysis then fails with a configuration error once
    the request input has been validated.
    """

    def __init__(
        self,
        config: AnalyzerConfig,
        model_client: ModelClient | None,
        *,
        validator: UrlValidator | None = None,
        fetcher: ContentFetcher | None = None,
        extractor: ContentExtractor | None = None,
    ) -> None:
        self.config = config
        self._model_client = model_client
        self._validator = validator or UrlValidator(config)
        self._fetcher = fetcher or ContentFetcher(config, validator=self._validator)
        self._extractor = extractor or ContentExtractor(config)

    def _require_model(self) -> ModelClient:
        if self._model_client is None:
            raise ConfigurationError("OpenAI API key is not configured")
        return self._model_client

    def _analyzer(self, client: ModelClient) -> DocumentAnalyzer:
        return DocumentAnalyzer(client, excerpt_chars=self.config.degraded_excerpt_chars)

    def analyze_text(self, text: object) -> AnalysisReport:
        """Analyse pasted legal text."""

        if not isinstance(text, str) or not text.strip():
            raise InputError("Please provide valid text to analyze")
        if len(text.strip()) < self.config.min_text_length:
            raise InputError(
                f"Text is too short to analyze. Please provide at least "
                f"{self.config.min_text_length} characters."
            )

        client = self._require_model()
        content, truncated = truncate_content(text.strip(), self.config.max_content_length)
        context = AnalysisContext(
            source_type=SourceType.TEXT,
            text_length=len(text),
            truncated=truncated,
        )
        return self._analyzer(client).analyze(content, context)

    def analyze_url(self, url: object) -> AnalysisReport:
        """Fetch a page and analyse it if it holds a legal document."""

        if not isinstance(url, str) or not url.strip():
            raise InputError("URL is required and must be a string")

        url = url.strip()
        validation = self._validator.validate(url)
        if not validation.valid:
            error_cls = SecurityRejection if validation.blocked else InputError
            raise error_cls(validation.reason or "Invalid URL")

        client = self._require_model()

        fetched = self._fetcher.fetch(url)
        extracted = self._extractor.extract(fetched.content, url, fetched.content_type)

        if extracted.length < self.config.min_extracted_length:
            logger.info("Only %d characters extracted from %s", extracted.length, url)
            raise ContentError("Not enough content found on the webpage to analyze")

        classifier = LegalContentClassifier(client, sample_chars=self.config.classifier_sample_chars)
        if not classifier.classify(extracted.content, extracted.title, extracted.description):
            raise ClassificationRejection(
                "The URL you provided does not appear to contain legal documents or terms "
                "that can be analyzed. Please provide a URL to privacy policies, terms of "
                "service, contracts, or other legal documents."
            )

        context = AnalysisContext(
            source_type=SourceType.URL,
            text_length=extracted.length,
            source_url=url,
            page_title=extracted.title or None,
            truncated=extracted.truncated,
        )
        return self._analyzer(client).analyze(extracted.content, context)
