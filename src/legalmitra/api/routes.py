"""API routes exposing the legal text and legal URL analyzers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from legalmitra.errors import LegalMitraError
from legalmitra.models import AnalysisReport, TextAnalysisRequest, UrlAnalysisRequest
from legalmitra.services.pipeline import AnalysisPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

TEXT_ANALYSIS_PATH = "/analyze-legal-text"
URL_ANALYSIS_PATH = "/analyze-legal-url"


def get_pipeline(request: Request) -> AnalysisPipeline:
    """Return the pipeline configured on the running application."""

    return request.app.state.pipeline


@router.post(
    TEXT_ANALYSIS_PATH,
    response_model=AnalysisReport,
    response_model_exclude_none=True,
)
async def analyze_legal_text(payload: TextAnalysisRequest, request: Request) -> AnalysisReport:
    """Analyse pasted legal text and return a structured risk report."""

    pipeline = get_pipeline(request)
    try:
        return await run_in_threadpool(pipeline.analyze_text, payload.text)
    except LegalMitraError:
        raise
    except Exception as exc:
        logger.exception("Legal text analysis failed")
        raise LegalMitraError("Failed to analyze the legal text. Please try again.") from exc


@router.post(
    URL_ANALYSIS_PATH,
    response_model=AnalysisReport,
    response_model_exclude_none=True,
)
async def analyze_legal_url(payload: UrlAnalysisRequest, request: Request) -> AnalysisReport:
    """Fetch a legal document from a URL and return a structured risk report."""

    pipeline = get_pipeline(request)
    try:
        return await run_in_threadpool(pipeline.analyze_url, payload.url)
    except LegalMitraError:
        raise
    except Exception as exc:
        logger.exception("Legal URL analysis failed for %s", payload.url)
        raise LegalMitraError("Failed to analyze URL. Please try again.") from exc
