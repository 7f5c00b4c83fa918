"""Domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


Severity = RiskLevel


class FindingType(str, Enum):
    FINANCIAL_RISK = "FINANCIAL_RISK"
    LEGAL_OBLIGATION = "LEGAL_OBLIGATION"
    PRIVACY_CONCERN = "PRIVACY_CONCERN"
    TERMINATION_CLAUSE = "TERMINATION_CLAUSE"
    LIABILITY = "LIABILITY"
    OTHER = "OTHER"


class SourceType(str, Enum):
    TEXT = "text"
    URL = "url"


class _CamelModel(BaseModel):
    """Base model serialising field names in camelCase for the JSON API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextAnalysisRequest(BaseModel):
    """Body of ``POST /analyze-legal-text``."""

    text: Optional[str] = None


class UrlAnalysisRequest(BaseModel):
    """Body of ``POST /analyze-legal-url``."""

    url: Optional[str] = None


class Finding(_CamelModel):
    """One clause-level risk item."""

    type: FindingType = FindingType.OTHER
    severity: Severity = Severity.MEDIUM
    title: str = ""
    description: str = ""
    recommendation: str = ""


class Metadata(_CamelModel):
    """Facts about the request attached to every report."""

    source_type: SourceType
    text_length: int
    analyzed_at: datetime
    model: str
    source_url: Optional[str] = None
    page_title: Optional[str] = None
    truncated: bool = False
    degraded: bool = False


class AnalysisReport(_CamelModel):
    """Structured risk assessment returned by both endpoints."""

    risk_level: RiskLevel
    overall_summary: str
    key_findings: List[Finding] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    positive_aspects: List[str] = Field(default_factory=list)
    simplified_explanation: str = ""
    actionable_advice: List[str] = Field(default_factory=list)
    metadata: Metadata


@dataclass(slots=True)
class FetchResult:
    """Raw page returned by the content fetcher."""

    content: str
    content_type: str
    status: int
    size: int
    url: str


@dataclass(slots=True)
class ExtractedContent:
    """Readable text pulled out of a fetched page."""

    content: str
    title: str
    length: int
    description: str = ""
    truncated: bool = False


@dataclass(slots=True)
class AnalysisContext:
    """Where the analysed content came from; drives prompt wording and metadata."""

    source_type: SourceType
    text_length: int
    source_url: str | None = None
    page_title: str | None = None
    truncated: bool = False


__all__ = [
    "AnalysisContext",
    "AnalysisReport",
    "ExtractedContent",
    "FetchResult",
    "Finding",
    "FindingType",
    "Metadata",
    "RiskLevel",
    "Severity",
    "SourceType",
    "TextAnalysisRequest",
    "UrlAnalysisRequest",
]
