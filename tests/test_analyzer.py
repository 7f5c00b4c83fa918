from __future__ import annotations

from datetime import UTC, datetime

import pytest

from conftest import REPORT, StubModelClient
from legalmitra.errors import AnalysisError, AnalysisErrorKind, ClassificationRejection
from legalmitra.models import AnalysisContext, SourceType
from legalmitra.services.analyzer import SYSTEM_PROMPT, DocumentAnalyzer, build_analysis_prompt

FIXED_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def test_prompt_embeds_content_schema_and_sentinel() -> None:
    context = AnalysisContext(source_type=SourceType.TEXT, text_length=20)

    prompt = build_analysis_prompt("The tenant waives jury trial.", context)

    assert "The tenant waives jury trial." in prompt
    assert '"riskLevel": "LOW" | "MEDIUM" | "HIGH"' in prompt
    for finding_type in ("FINANCIAL_RISK", "LEGAL_OBLIGATION", "PRIVACY_CONCERN", "TERMINATION_CLAUSE", "LIABILITY", "OTHER"):
        assert finding_type in prompt
    assert '{"error": "NOT_LEGAL_CONTENT"' in prompt
    assert "Website URL" not in prompt


def test_prompt_for_url_sources_includes_page_context() -> None:
    context = AnalysisContext(
        source_type=SourceType.URL,
        text_length=500,
        source_url="https://example.com/privacy",
        page_title="Privacy Policy",
        truncated=True,
    )

    prompt = build_analysis_prompt("We sell your data.", context)

    assert "Website URL: https://example.com/privacy" in prompt
    assert "Page Title: Privacy Policy" in prompt
    assert "truncated" in prompt


def test_analyze_makes_one_call_and_attaches_metadata() -> None:
    client = StubModelClient()
    analyzer = DocumentAnalyzer(client, clock=lambda: FIXED_TIME)
    context = AnalysisContext(
        source_type=SourceType.URL,
        text_length=1234,
        source_url="https://example.com/terms",
        page_title="Terms",
    )

    report = analyzer.analyze("content", context)

    assert len(client.calls) == 1
    assert client.calls[0][1] == SYSTEM_PROMPT
    assert report.overall_summary == REPORT["overallSummary"]
    assert report.metadata.analyzed_at == FIXED_TIME
    assert report.metadata.model == "stub-model"
    assert report.metadata.text_length == 1234
    assert report.metadata.source_url == "https://example.com/terms"
    assert report.metadata.page_title == "Terms"


def test_analyze_is_deterministic_apart_from_timestamp() -> None:
    client = StubModelClient()
    analyzer = DocumentAnalyzer(client)
    context = AnalysisContext(source_type=SourceType.TEXT, text_length=7)

    first = analyzer.analyze("content", context).model_dump(mode="json")
    second = analyzer.analyze("content", context).model_dump(mode="json")
    first["metadata"].pop("analyzed_at")
    second["metadata"].pop("analyzed_at")

    assert first == second


def test_analyze_surfaces_model_errors_without_retry() -> None:
    client = StubModelClient(error=AnalysisError(AnalysisErrorKind.RATE_LIMITED))

    with pytest.raises(AnalysisError) as excinfo:
        DocumentAnalyzer(client).analyze("content", AnalysisContext(SourceType.TEXT, 7))

    assert excinfo.value.status_code == 429
    assert len(client.calls) == 1


def test_analyze_honours_sentinel() -> None:
    client = StubModelClient(analysis='{"error": "NOT_LEGAL_CONTENT", "message": "A recipe."}')

    with pytest.raises(ClassificationRejection):
        DocumentAnalyzer(client).analyze("Mix flour and eggs.", AnalysisContext(SourceType.TEXT, 19))
