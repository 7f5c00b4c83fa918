"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from legalmitra.api.routes import TEXT_ANALYSIS_PATH, URL_ANALYSIS_PATH, router
from legalmitra.config import AnalyzerConfig
from legalmitra.errors import InputError, LegalMitraError
from legalmitra.services.fetcher import ContentFetcher
from legalmitra.services.llm import ModelClient, OpenAIModelClient
from legalmitra.services.pipeline import AnalysisPipeline

logger = logging.getLogger(__name__)

_INVALID_BODY_MESSAGES = {
    TEXT_ANALYSIS_PATH: "Please provide valid text to analyze",
    URL_ANALYSIS_PATH: "URL is required and must be a string",
}


def _invalid_body_message(path: str) -> str:
    for suffix, message in _INVALID_BODY_MESSAGES.items():
        if path.endswith(suffix):
            return message
    return "Invalid request body"


def _register_exception_handlers(app: FastAPI, config: AnalyzerConfig) -> None:
    @app.exception_handler(LegalMitraError)
    async def handle_legalmitra_error(request: Request, exc: LegalMitraError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload(include_cause=config.development_mode),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = InputError(
            _invalid_body_message(request.url.path),
            details=str(exc.errors()) if config.development_mode else None,
        )
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            message = "Method not allowed. Use POST to analyze legal documents."
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


def create_app(
    config: AnalyzerConfig | None = None,
    *,
    model_client: ModelClient | None = None,
    fetcher: ContentFetcher | None = None,
) -> FastAPI:
    """Build the application.

    ``model_client`` defaults to an OpenAI client built from ``config``; when no
    API key is configured the app still starts and every analysis request
    answers with a configuration error.
    """

    config = config or AnalyzerConfig.from_env()
    if model_client is None and config.has_credentials:
        model_client = OpenAIModelClient.from_config(config)
    elif model_client is None:
        logger.warning("OpenAI API key is not configured; analysis requests will fail")

    app = FastAPI(title="LegalMitra", description="Legal document risk analysis API")
    app.state.config = config
    app.state.pipeline = AnalysisPipeline(config, model_client, fetcher=fetcher)

    _register_exception_handlers(app, config)
    app.include_router(router)
    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
