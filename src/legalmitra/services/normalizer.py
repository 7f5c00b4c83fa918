"""Best-effort recovery of the structured report from free-form model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from legalmitra.errors import AnalysisError, AnalysisErrorKind, ClassificationRejection
from legalmitra.models import (
    AnalysisReport,
    Finding,
    FindingType,
    Metadata,
    RiskLevel,
    Severity,
)

logger = logging.getLogger(__name__)

__all__ = [
    "EMPTY_RESPONSE_DESCRIPTION",
    "NOT_LEGAL_SENTINEL",
    "build_degraded_report",
    "extract_json_object",
    "is_not_legal_sentinel",
    "normalize",
    "strip_code_fences",
]

NOT_LEGAL_SENTINEL = "NOT_LEGAL_CONTENT"

DEFAULT_EXCERPT_CHARS = 500

EMPTY_RESPONSE_DESCRIPTION = "The AI returned an empty response, so no detailed analysis is available."

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)\n?[ \t]*```", re.DOTALL)
_GREEDY_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_LIST_FIELDS = ("redFlags", "positiveAspects", "actionableAdvice")


def strip_code_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or ``text`` trimmed."""

    match = _FENCE_RE.search(text or "")
    if match:
        return match.group(1).strip()
    return (text or "").strip()


def _balanced_spans(text: str):
    """Yield every balanced ``{...}`` span, scanning from each opening brace.

    Braces inside JSON strings are ignored.
    """

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break
        start = text.find("{", start + 1)


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(raw_text: str) -> dict[str, Any] | None:
    """Recover the first JSON object embedded in ``raw_text``.

    Tries, in order: the whole (fence-stripped) text, each balanced brace span,
    and a greedy first-``{``-to-last-``}`` span. Returns ``None`` when nothing
    parses to a JSON object.
    """

    cleaned = strip_code_fences(raw_text)
    if not cleaned:
        return None

    parsed = _loads_object(cleaned)
    if parsed is not None:
        return parsed

    for source in dict.fromkeys((cleaned, raw_text or "")):
        for span in _balanced_spans(source):
            parsed = _loads_object(span)
            if parsed is not None:
                return parsed

        match = _GREEDY_OBJECT_RE.search(source)
        if match:
            parsed = _loads_object(match.group(0))
            if parsed is not None:
                return parsed

    return None


def is_not_legal_sentinel(payload: dict[str, Any]) -> bool:
    for key in ("error", "status", "type"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip().upper() == NOT_LEGAL_SENTINEL:
            return True
    return False


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [_as_text(item) for item in value if _as_text(item)]
    return [_as_text(value)]


def _enum_value(enum_cls, value: Any, default):
    candidate = _as_text(value).upper().replace(" ", "_").replace("-", "_")
    try:
        return enum_cls(candidate)
    except ValueError:
        return default


def _coerce_findings(value: Any) -> list[Finding]:
    if isinstance(value, dict):
        value = [value]
    if not isinstance(value, list):
        return []

    findings: list[Finding] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        findings.append(
            Finding(
                type=_enum_value(FindingType, item.get("type"), FindingType.OTHER),
                severity=_enum_value(Severity, item.get("severity"), Severity.MEDIUM),
                title=_as_text(item.get("title")),
                description=_as_text(item.get("description")),
                recommendation=_as_text(item.get("recommendation")),
            )
        )
    return findings


def build_degraded_report(
    raw_text: str, metadata: Metadata, *, excerpt_chars: int = DEFAULT_EXCERPT_CHARS
) -> AnalysisReport:
    """Wrap unparseable model output in a well-formed MEDIUM risk report."""

    excerpt = (raw_text or "").strip()
    if len(excerpt) > excerpt_chars:
        excerpt = excerpt[:excerpt_chars] + "..."
    if not excerpt:
        excerpt = EMPTY_RESPONSE_DESCRIPTION

    return AnalysisReport(
        risk_level=RiskLevel.MEDIUM,
        overall_summary=(
            "The AI analysis could not be properly parsed, but the document has been reviewed."
        ),
        key_findings=[
            Finding(
                type=FindingType.OTHER,
                severity=Severity.MEDIUM,
                title="Analysis Available",
                description=excerpt,
                recommendation=(
                    "Please review the full analysis and consider consulting a legal professional."
                ),
            )
        ],
        red_flags=["Analysis parsing error - manual review required"],
        positive_aspects=[],
        simplified_explanation=excerpt[:300],
        actionable_advice=["Consider getting professional legal advice for important documents"],
        metadata=metadata.model_copy(update={"degraded": True}),
    )


def normalize(
    raw_text: str, metadata: Metadata, *, excerpt_chars: int = DEFAULT_EXCERPT_CHARS
) -> AnalysisReport:
    """Convert raw model output into an :class:`AnalysisReport`.

    * A NOT_LEGAL_CONTENT sentinel raises :class:`ClassificationRejection`.
    * Output with no recoverable JSON object, empty output included, yields a
      degraded report.
    * An object missing ``overallSummary``/``riskLevel`` raises
      :class:`AnalysisError` with kind ``INVALID_SCHEMA``.

    ``metadata`` is applied last and replaces any model supplied metadata.
    """

    payload = extract_json_object(raw_text or "")
    if payload is None:
        logger.warning("Model output contained no JSON object; returning degraded report")
        return build_degraded_report(raw_text, metadata, excerpt_chars=excerpt_chars)

    if is_not_legal_sentinel(payload):
        logger.info("Analyzer flagged the content as not legal")
        message = payload.get("message")
        raise ClassificationRejection(message if isinstance(message, str) and message.strip() else None)

    summary = _as_text(payload.get("overallSummary"))
    risk_raw = _as_text(payload.get("riskLevel"))
    if not summary or not risk_raw:
        raise AnalysisError(
            AnalysisErrorKind.INVALID_SCHEMA,
            details="The AI response is missing required fields",
        )

    risk_level = _enum_value(RiskLevel, risk_raw, None)
    if risk_level is None:
        raise AnalysisError(
            AnalysisErrorKind.INVALID_SCHEMA,
            details=f"Unknown risk level {risk_raw[:40]!r}",
        )

    lists = {field: _as_list(payload.get(field)) for field in _LIST_FIELDS}
    return AnalysisReport(
        risk_level=risk_level,
        overall_summary=summary,
        key_findings=_coerce_findings(payload.get("keyFindings")),
        red_flags=lists["redFlags"],
        positive_aspects=lists["positiveAspects"],
        simplified_explanation=_as_text(payload.get("simplifiedExplanation")),
        actionable_advice=lists["actionableAdvice"],
        metadata=metadata,
    )
