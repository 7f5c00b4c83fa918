from __future__ import annotations

import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from conftest import DummyResponse, DummySession
from legalmitra.config import AnalyzerConfig
from legalmitra.errors import FetchError, FetchErrorKind, SecurityRejection
from legalmitra.services.fetcher import ContentFetcher

URL = "https://example.com/terms"


def make_fetcher(outcome, **config_overrides) -> tuple[ContentFetcher, DummySession]:
    session = DummySession({URL: outcome})
    return ContentFetcher(AnalyzerConfig(**config_overrides), session=session), session


def test_fetch_returns_decoded_body_and_metadata() -> None:
    fetcher, session = make_fetcher(DummyResponse("<p>Conditions générales</p>"))

    result = fetcher.fetch(URL)

    assert result.content == "<p>Conditions générales</p>"
    assert result.status == 200
    assert result.content_type.startswith("text/html")
    assert result.size == len("<p>Conditions générales</p>".encode("utf-8"))
    assert result.url == URL

    _, kwargs = session.requests[0]
    assert kwargs["stream"] is True
    assert kwargs["timeout"] == (15.0, 15.0)


def test_session_is_configured_with_browser_headers_and_user_agent() -> None:
    _, session = make_fetcher(DummyResponse(""))

    assert session.headers["User-Agent"].startswith("LegalMitra-Bot/1.0")
    assert "text/html" in session.headers["Accept"]


@pytest.mark.parametrize(
    ("status", "kind"),
    [
        (404, FetchErrorKind.NOT_FOUND),
        (403, FetchErrorKind.FORBIDDEN),
        (500, FetchErrorKind.SERVER_ERROR),
        (503, FetchErrorKind.SERVER_ERROR),
        (418, FetchErrorKind.FETCH_FAILED),
    ],
)
def test_http_errors_map_to_fetch_error_kinds(status: int, kind: FetchErrorKind) -> None:
    response = DummyResponse("nope", status_code=status)
    fetcher, _ = make_fetcher(response)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is kind
    assert excinfo.value.status_code == 400
    assert response.closed


def test_not_found_message_mentions_not_found() -> None:
    fetcher, _ = make_fetcher(DummyResponse("", status_code=404))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert "not found" in excinfo.value.message.lower()


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (requests.ConnectTimeout("connect timed out"), FetchErrorKind.TIMEOUT),
        (requests.ReadTimeout("read timed out"), FetchErrorKind.TIMEOUT),
        (
            requests.ConnectionError(ConnectionRefusedError(111, "Connection refused")),
            FetchErrorKind.CONNECTION_REFUSED,
        ),
        (
            requests.ConnectionError(
                "Failed to resolve 'nowhere.example' ([Errno -2] Name or service not known)"
            ),
            FetchErrorKind.NOT_FOUND,
        ),
        (requests.ConnectionError("connection reset by peer"), FetchErrorKind.FETCH_FAILED),
        (requests.RequestException("something odd"), FetchErrorKind.FETCH_FAILED),
    ],
)
def test_transport_failures_map_to_fetch_error_kinds(exc: Exception, kind: FetchErrorKind) -> None:
    fetcher, _ = make_fetcher(exc)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is kind
    assert excinfo.value.__cause__ is exc
    # The underlying message is kept for logs only.
    assert str(exc) not in excinfo.value.message


@pytest.mark.parametrize("content_type", ["text/html", "text/plain; charset=utf-8", "application/json"])
def test_allowed_content_types(content_type: str) -> None:
    fetcher, _ = make_fetcher(DummyResponse("body", content_type=content_type))

    assert fetcher.fetch(URL).content == "body"


@pytest.mark.parametrize("content_type", ["application/pdf", "image/png", ""])
def test_unsupported_content_type_is_rejected(content_type: str) -> None:
    fetcher, _ = make_fetcher(DummyResponse(b"%PDF-1.4", content_type=content_type))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.UNSUPPORTED_CONTENT_TYPE


def test_declared_oversized_body_is_rejected_before_reading() -> None:
    response = DummyResponse("small", headers={"Content-Length": "5000"})
    fetcher, _ = make_fetcher(response, max_response_bytes=1000)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.TOO_LARGE


def test_streamed_body_is_capped() -> None:
    fetcher, _ = make_fetcher(DummyResponse("x" * 200_000), max_response_bytes=100_000)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.TOO_LARGE


def test_body_without_charset_is_decoded_as_utf8() -> None:
    fetcher, _ = make_fetcher(DummyResponse("Política de privacidad", content_type="text/html"))

    assert fetcher.fetch(URL).content == "Política de privacidad"


class StalledResponse(DummyResponse):
    """Sends headers, then times out while the body is streamed."""

    def __init__(self, error: Exception) -> None:
        super().__init__("")
        self.error = error

    def iter_content(self, chunk_size: int):
        yield b"<html><body>partial"
        raise self.error


@pytest.mark.parametrize(
    "error",
    [
        requests.ConnectionError(ReadTimeoutError(None, URL, "Read timed out.")),
        requests.ReadTimeout("Read timed out."),
    ],
)
def test_read_timeout_while_streaming_body_is_a_timeout(error: Exception) -> None:
    response = StalledResponse(error)
    fetcher, _ = make_fetcher(response)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.TIMEOUT
    assert response.closed


def test_connection_reset_while_streaming_body_is_a_fetch_failure() -> None:
    fetcher, _ = make_fetcher(StalledResponse(requests.ConnectionError("connection reset by peer")))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.FETCH_FAILED


def redirect(location: str, status: int = 302) -> DummyResponse:
    return DummyResponse("", status_code=status, headers={"Location": location})


def test_redirects_are_followed_manually_and_revalidated() -> None:
    final_url = "https://www.example.com/legal/terms"
    session = DummySession(
        {
            URL: redirect("https://www.example.com/legal/start", status=301),
            "https://www.example.com/legal/start": redirect("terms"),
            final_url: DummyResponse("<p>Terms</p>", url=final_url),
        }
    )
    fetcher = ContentFetcher(AnalyzerConfig(), session=session)

    result = fetcher.fetch(URL)

    assert result.content == "<p>Terms</p>"
    assert result.url == final_url
    assert [url for url, _ in session.requests] == [URL, "https://www.example.com/legal/start", final_url]
    assert all(kwargs["allow_redirects"] is False for _, kwargs in session.requests)


@pytest.mark.parametrize(
    "location",
    ["http://127.0.0.1:8080/internal", "http://10.0.0.5/admin", "https://bit.ly/elsewhere"],
)
def test_redirect_to_blocked_destination_is_refused(location: str) -> None:
    first = redirect(location)
    fetcher, session = make_fetcher(first)

    with pytest.raises(SecurityRejection):
        fetcher.fetch(URL)

    assert [url for url, _ in session.requests] == [URL]
    assert first.closed


def test_redirect_chain_longer_than_limit_is_rejected() -> None:
    session = DummySession(
        {
            URL: redirect("https://example.com/a"),
            "https://example.com/a": redirect("https://example.com/b"),
            "https://example.com/b": redirect("https://example.com/c"),
        }
    )
    fetcher = ContentFetcher(AnalyzerConfig(max_redirects=2), session=session)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)

    assert excinfo.value.kind is FetchErrorKind.TOO_MANY_REDIRECTS
    assert len(session.requests) == 3
