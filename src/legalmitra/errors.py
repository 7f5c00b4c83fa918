"""Error taxonomy shared by the pipeline stages and the API layer."""

from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = [
    "AnalysisError",
    "AnalysisErrorKind",
    "ClassificationRejection",
    "ConfigurationError",
    "ContentError",
    "ExtractionError",
    "FetchError",
    "FetchErrorKind",
    "InputError",
    "LegalMitraError",
    "NON_LEGAL_SUGGESTION",
    "SecurityRejection",
]

NON_LEGAL_SUGGESTION = (
    "Try URLs like privacy policies, terms of service, user agreements, "
    "rental or employment contracts, or other legal notices."
)


class LegalMitraError(Exception):
    """Base class for errors that map onto a JSON error response."""

    status_code: int = 500

    def __init__(self, error: str, /, *, details: str | None = None, **extra: Any) -> None:
        super().__init__(error)
        self.message = error
        self.details = details
        self.extra = extra

    def to_payload(self, *, include_cause: bool = False) -> dict[str, Any]:
        """Return the JSON body for this error.

        The chained cause is only exposed when ``include_cause`` is set, which
        the API does in development mode.
        """

        payload: dict[str, Any] = {"error": self.message}
        payload.update(self.extra)
        details = self.details
        if include_cause and details is None and self.__cause__ is not None:
            details = f"{type(self.__cause__).__name__}: {self.__cause__}"
        if details is not None:
            payload["details"] = details
        return payload


class InputError(LegalMitraError):
    """The request body is missing fields or carries malformed values."""

    status_code = 400


class SecurityRejection(LegalMitraError):
    """The URL points at a blocked, private, or suspicious destination."""

    status_code = 400


class FetchErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    TIMEOUT = "TIMEOUT"
    FORBIDDEN = "FORBIDDEN"
    SERVER_ERROR = "SERVER_ERROR"
    UNSUPPORTED_CONTENT_TYPE = "UNSUPPORTED_CONTENT_TYPE"
    TOO_LARGE = "TOO_LARGE"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    FETCH_FAILED = "FETCH_FAILED"


_FETCH_MESSAGES = {
    FetchErrorKind.NOT_FOUND: "Page not found. Please check the URL and try again.",
    FetchErrorKind.CONNECTION_REFUSED: "Connection refused. The website may be down.",
    FetchErrorKind.TIMEOUT: "Request timed out. The website is taking too long to respond.",
    FetchErrorKind.FORBIDDEN: "Access forbidden. The website blocks automated requests.",
    FetchErrorKind.SERVER_ERROR: "The website is experiencing server issues. Please try again later.",
    FetchErrorKind.UNSUPPORTED_CONTENT_TYPE: "Content type not supported for analysis.",
    FetchErrorKind.TOO_LARGE: "The page is too large to analyze.",
    FetchErrorKind.TOO_MANY_REDIRECTS: "The URL redirects too many times.",
    FetchErrorKind.FETCH_FAILED: "Failed to fetch content from the URL.",
}


class FetchError(LegalMitraError):
    """Fetching the remote page failed."""

    status_code = 400

    def __init__(self, kind: FetchErrorKind, *, details: str | None = None) -> None:
        super().__init__(_FETCH_MESSAGES[kind], details=details)
        self.kind = kind


class ContentError(LegalMitraError):
    """The fetched page does not carry enough usable text."""

    status_code = 400


class ExtractionError(ContentError):
    """The page could not be parsed into text."""


class ClassificationRejection(LegalMitraError):
    """The content was judged not to be a legal document."""

    status_code = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            "Non-legal content detected",
            message=message
            or (
                "The content you provided does not appear to contain legal documents or terms "
                "that can be analyzed. Please provide privacy policies, terms of service, "
                "contracts, or other legal documents."
            ),
            suggestion=NON_LEGAL_SUGGESTION,
        )


class ConfigurationError(LegalMitraError):
    """The service is missing required configuration such as the API key."""

    status_code = 500


class AnalysisErrorKind(str, Enum):
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNPARSEABLE_RESPONSE = "UNPARSEABLE_RESPONSE"
    INVALID_SCHEMA = "INVALID_SCHEMA"


_ANALYSIS_STATUS = {
    AnalysisErrorKind.UNAUTHORIZED: 401,
    AnalysisErrorKind.RATE_LIMITED: 429,
}

_ANALYSIS_MESSAGES = {
    AnalysisErrorKind.MODEL_UNAVAILABLE: "The analysis service is currently unavailable. Please try again.",
    AnalysisErrorKind.RATE_LIMITED: "API quota exceeded. Please try again later.",
    AnalysisErrorKind.UNAUTHORIZED: "Invalid API key or API access issue.",
    AnalysisErrorKind.UNPARSEABLE_RESPONSE: "Failed to parse AI response.",
    AnalysisErrorKind.INVALID_SCHEMA: "Invalid analysis format.",
}


class AnalysisError(LegalMitraError):
    """The generative model call failed or returned an unusable report."""

    def __init__(self, kind: AnalysisErrorKind, *, details: str | None = None) -> None:
        super().__init__(_ANALYSIS_MESSAGES[kind], details=details)
        self.kind = kind
        self.status_code = _ANALYSIS_STATUS.get(kind, 500)
