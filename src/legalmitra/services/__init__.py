"""Service layer entry points for LegalMitra."""

from __future__ import annotations

from .analyzer import DocumentAnalyzer  # noqa: F401
from .classifier import LegalContentClassifier  # noqa: F401
from .extractor import ContentExtractor  # noqa: F401
from .fetcher import ContentFetcher  # noqa: F401
from .llm import ModelClient, OpenAIModelClient  # noqa: F401
from .pipeline import AnalysisPipeline  # noqa: F401
from .url_validator import UrlValidator  # noqa: F401

__all__ = [
    "AnalysisPipeline",
    "ContentExtractor",
    "ContentFetcher",
    "DocumentAnalyzer",
    "LegalContentClassifier",
    "ModelClient",
    "OpenAIModelClient",
    "UrlValidator",
]
