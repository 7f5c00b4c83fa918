"""Bounded HTTP fetching of user supplied pages."""

from __future__ import annotations

import logging
from urllib.parse import urljoin

import requests
from urllib3.exceptions import NameResolutionError, ReadTimeoutError

from legalmitra.config import AnalyzerConfig
from legalmitra.errors import FetchError, FetchErrorKind, SecurityRejection
from legalmitra.models import FetchResult
from legalmitra.services.url_validator import UrlValidator

logger = logging.getLogger(__name__)

__all__ = ["ContentFetcher", "DEFAULT_HEADERS"]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,text/plain;q=0.8,*/*;q=0.5",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
}

CHUNK_SIZE = 64_000

_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


def _exception_chain(exc: BaseException):
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                yield arg
                reason = getattr(arg, "reason", None)
                if isinstance(reason, BaseException):
                    yield reason
        current = current.__cause__ or current.__context__


def _is_read_timeout(exc: BaseException) -> bool:
    """Streamed bodies surface read timeouts as ``ConnectionError(ReadTimeoutError)``."""

    return any(
        isinstance(link, (requests.Timeout, ReadTimeoutError, TimeoutError)) for link in _exception_chain(exc)
    )


def _classify_connection_error(exc: requests.ConnectionError) -> FetchErrorKind:
    """Tell DNS failures apart from refused connections."""

    for link in _exception_chain(exc):
        if isinstance(link, (ReadTimeoutError, TimeoutError)):
            return FetchErrorKind.TIMEOUT
        if isinstance(link, NameResolutionError):
            return FetchErrorKind.NOT_FOUND
        if isinstance(link, ConnectionRefusedError):
            return FetchErrorKind.CONNECTION_REFUSED

    message = str(exc).lower()
    if any(marker in message for marker in _DNS_FAILURE_MARKERS):
        return FetchErrorKind.NOT_FOUND
    if "refused" in message:
        return FetchErrorKind.CONNECTION_REFUSED
    return FetchErrorKind.FETCH_FAILED


def _status_kind(status: int) -> FetchErrorKind | None:
    if status < 400:
        return None
    if status == 404 or status == 410:
        return FetchErrorKind.NOT_FOUND
    if status in (401, 403):
        return FetchErrorKind.FORBIDDEN
    if status >= 500:
        return FetchErrorKind.SERVER_ERROR
    return FetchErrorKind.FETCH_FAILED


class ContentFetcher:
    """Perform a bounded GET request for a page to analyse.

    Redirects are followed by hand so that every hop passes the same
    :class:`UrlValidator` checks as the submitted URL.
    """

    def __init__(
        self,
        config: AnalyzerConfig | None = None,
        session: requests.Session | None = None,
        validator: UrlValidator | None = None,
    ) -> None:
        self._config = config or AnalyzerConfig()
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        self._session.headers["User-Agent"] = self._config.user_agent
        self._validator = validator or UrlValidator(self._config)

    def is_allowed_content_type(self, content_type: str) -> bool:
        """Return ``True`` if ``content_type`` is one the extractor understands."""

        lowered = (content_type or "").lower()
        return any(allowed in lowered for allowed in self._config.allowed_content_types)

    def fetch(self, url: str) -> FetchResult:
        """Download ``url`` and return its decoded body.

        Raises :class:`~legalmitra.errors.FetchError` for every transport or
        HTTP failure and :class:`~legalmitra.errors.SecurityRejection` when a
        redirect points at a blocked destination. The underlying exception
        text is only logged and kept as the error cause.
        """

        logger.info("Fetching content from %s", url)
        current = url
        for hop in range(self._config.max_redirects + 1):
            response = self._get(current)
            location = response.headers.get("location")
            if response.status_code not in _REDIRECT_STATUSES or not location:
                try:
                    return self._read_response(current, response)
                finally:
                    response.close()

            response.close()
            target = urljoin(current, location)
            validation = self._validator.validate(target)
            if not validation.valid:
                logger.warning("Refusing redirect from %s to %s: %s", current, target, validation.reason)
                raise SecurityRejection(validation.reason or "Redirect target not allowed")
            logger.info("Following redirect %d from %s to %s", hop + 1, current, target)
            current = target

        logger.warning("Exceeded %d redirects fetching %s", self._config.max_redirects, url)
        raise FetchError(FetchErrorKind.TOO_MANY_REDIRECTS)

    def _get(self, url: str) -> requests.Response:
        timeout = (self._config.timeout_seconds, self._config.timeout_seconds)
        try:
            return self._session.get(url, timeout=timeout, allow_redirects=False, stream=True)
        except requests.Timeout as exc:
            logger.warning("Timed out fetching %s: %s", url, exc)
            raise FetchError(FetchErrorKind.TIMEOUT) from exc
        except requests.ConnectionError as exc:
            kind = _classify_connection_error(exc)
            logger.warning("Connection error fetching %s (%s): %s", url, kind.value, exc)
            raise FetchError(kind) from exc
        except requests.RequestException as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            raise FetchError(FetchErrorKind.FETCH_FAILED) from exc

    def _read_response(self, url: str, response: requests.Response) -> FetchResult:
        kind = _status_kind(response.status_code)
        if kind is not None:
            logger.warning("Fetching %s returned HTTP %s", url, response.status_code)
            raise FetchError(kind)

        content_type = (response.headers.get("content-type") or "").lower()
        if not self.is_allowed_content_type(content_type):
            logger.warning("Unsupported content type %r for %s", content_type, url)
            raise FetchError(FetchErrorKind.UNSUPPORTED_CONTENT_TYPE)

        limit = self._config.max_response_bytes
        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > limit:
            logger.warning("Declared size %s exceeds limit for %s", declared, url)
            raise FetchError(FetchErrorKind.TOO_LARGE)

        body = bytearray()
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > limit:
                    logger.warning("Body of %s exceeded %d bytes", url, limit)
                    raise FetchError(FetchErrorKind.TOO_LARGE)
        except requests.RequestException as exc:
            kind = FetchErrorKind.TIMEOUT if _is_read_timeout(exc) else FetchErrorKind.FETCH_FAILED
            logger.warning("Failed reading body of %s (%s): %s", url, kind.value, exc)
            raise FetchError(kind) from exc

        # Without an explicit charset requests assumes ISO-8859-1 for text/*.
        encoding = response.encoding if "charset=" in content_type else None
        encoding = encoding or "utf-8"
        try:
            text = bytes(body).decode(encoding, errors="replace")
        except LookupError:
            text = bytes(body).decode("utf-8", errors="replace")

        logger.info("Fetched %d bytes (%s) from %s", len(body), content_type, url)
        return FetchResult(
            content=text,
            content_type=content_type,
            status=response.status_code,
            size=len(body),
            url=str(getattr(response, "url", "") or url),
        )
