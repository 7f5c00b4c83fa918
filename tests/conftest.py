from __future__ import annotations

import json
from typing import Callable, Iterator

import pytest
from requests.structures import CaseInsensitiveDict

from legalmitra.config import AnalyzerConfig

RENTAL_AGREEMENT = (
    "RESIDENTIAL LEASE AGREEMENT. This lease automatically renews for successive twelve month "
    "terms unless the Tenant gives written notice of non-renewal at least ninety (90) days before "
    "the end of the current term. Rent is due on the first day of each month. A late fee of "
    "$150 plus $25 per day will be charged for any payment received after the 3rd of the month. "
    "Tenant is responsible for all repairs regardless of cause. TENANT AND LANDLORD WAIVE THE "
    "RIGHT TO A TRIAL BY JURY in any action arising out of this lease. The security deposit is "
    "non-refundable."
)

REPORT = {
    "riskLevel": "HIGH",
    "overallSummary": "A one-year residential lease with automatic renewal and steep late fees.",
    "keyFindings": [
        {
            "type": "FINANCIAL_RISK",
            "severity": "HIGH",
            "title": "High late fees",
            "description": "Late payments cost $150 plus $25 per day.",
            "recommendation": "Negotiate a capped late fee.",
        },
        {
            "type": "TERMINATION_CLAUSE",
            "severity": "MEDIUM",
            "title": "Automatic renewal",
            "description": "The lease renews unless cancelled 90 days in advance.",
            "recommendation": "Set a reminder well before the notice deadline.",
        },
    ],
    "redFlags": ["Jury trial waiver", "Non-refundable security deposit"],
    "positiveAspects": ["Rent due date is clearly stated"],
    "simplifiedExplanation": "You are locked in for another year unless you cancel early.",
    "actionableAdvice": ["Ask a lawyer about the jury waiver before signing"],
}

LEGAL_HTML = """
<html>
  <head>
    <title>Terms of Service | Example</title>
    <meta name="description" content="The terms that govern your use of Example." />
  </head>
  <body>
    <nav>Home Pricing Blog</nav>
    <header>Example Inc. navigation header</header>
    <main>
      <h1>Terms of Service</h1>
      <p>By using the Example service you agree to these terms. We may terminate your account
      at any time without notice. Your subscription renews automatically each month and fees
      are non-refundable. Any dispute will be resolved by binding arbitration.</p>
      <script>trackVisitor();</script>
    </main>
    <footer>Copyright Example Inc.</footer>
  </body>
</html>
"""


class StubModelClient:
    """Deterministic stand-in for the OpenAI client."""

    model_name = "stub-model"

    def __init__(
        self,
        *,
        classification: str = "LEGAL",
        analysis: str | Callable[[str], str] = json.dumps(REPORT),
        error: Exception | None = None,
        classification_error: Exception | None = None,
    ) -> None:
        self.classification = classification
        self.analysis = analysis
        self.error = error
        self.classification_error = classification_error
        self.calls: list[tuple[str, str | None]] = []

    @property
    def classification_calls(self) -> list[str]:
        return [prompt for prompt, _ in self.calls if prompt.startswith("You are a content validator")]

    @property
    def analysis_calls(self) -> list[str]:
        return [prompt for prompt, _ in self.calls if not prompt.startswith("You are a content validator")]

    def generate(self, prompt: str, *, system: str | None = None) -> str:
        self.calls.append((prompt, system))
        if prompt.startswith("You are a content validator"):
            if self.classification_error is not None:
                raise self.classification_error
            return self.classification
        if self.error is not None:
            raise self.error
        if callable(self.analysis):
            return self.analysis(prompt)
        return self.analysis


class DummyResponse:
    def __init__(
        self,
        body: str | bytes = "",
        *,
        status_code: int = 200,
        content_type: str = "text/html; charset=utf-8",
        headers: dict[str, str] | None = None,
        url: str = "https://example.com/terms",
    ) -> None:
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self.status_code = status_code
        self.headers = CaseInsensitiveDict({"Content-Type": content_type, **(headers or {})})
        self.encoding = "utf-8" if "charset=utf-8" in content_type else "ISO-8859-1"
        self.url = url
        self.closed = False

    def iter_content(self, chunk_size: int) -> Iterator[bytes]:
        for start in range(0, len(self._body), chunk_size):
            yield self._body[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


class DummySession:
    """Replacement for :class:`requests.Session` that never touches the network."""

    def __init__(self, responses: dict[str, DummyResponse | Exception] | None = None) -> None:
        self.headers: dict[str, str] = {}
        self.responses = responses or {}
        self.requests: list[tuple[str, dict]] = []

    def get(self, url: str, **kwargs) -> DummyResponse:
        self.requests.append((url, kwargs))
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def config() -> AnalyzerConfig:
    return AnalyzerConfig(api_key="test-key")


@pytest.fixture()
def stub_client() -> StubModelClient:
    return StubModelClient()
