"""Checks applied to user supplied URLs before any network access happens."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Iterable

from pydantic import HttpUrl, TypeAdapter, ValidationError

from legalmitra.config import AnalyzerConfig

logger = logging.getLogger(__name__)

__all__ = ["SUSPICIOUS_URL_PATTERNS", "UrlValidator", "ValidationResult", "is_private_host"]

_HTTP_URL = TypeAdapter(HttpUrl)

# Dotted private prefixes, only applied to hosts made of digits and dots.
_PRIVATE_HOST_RE = re.compile(
    r"^(?:10\.|127\.|0\.0\.0\.0|169\.254\.|192\.168\.|172\.(?:1[6-9]|2\d|3[01])\.)"
)
_NUMERIC_HOST_RE = re.compile(r"^[\d.]+$")
# Wildcard DNS names such as "10.0.0.1.nip.io" that embed a full IPv4 address.
_EMBEDDED_IPV4_RE = re.compile(r"^(\d{1,3}(?:\.\d{1,3}){3})\.")

SUSPICIOUS_URL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(?:verify|confirm|update|secure|unlock)[-_.]?(?:your[-_.]?)?(?:account|login|password|wallet)",
        r"(?:account|login|signin)[-_.]?(?:verify|verification|suspended|locked)",
        r"free[-_.]?(?:money|iphone|gift|giftcard|bitcoin|crypto)",
        r"(?:you[-_.]?(?:have[-_.]?)?won|claim[-_.]?(?:your[-_.]?)?prize|winner[-_.]?selected)",
        r"\.(?:exe|scr|bat|cmd|msi|apk|vbs|jar)(?:[?#]|$)",
        r"(?:viagra|cialis|casino|payday[-_.]?loan)",
        r"(?:malware|phishing|ransomware|keylogger)",
    )
]


@dataclass(slots=True)
class ValidationResult:
    """Outcome of :meth:`UrlValidator.validate`.

    ``blocked`` distinguishes security rejections from malformed input.
    """

    valid: bool
    reason: str | None = None
    blocked: bool = False


def _is_internal_address(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
        or address.is_multicast
    )


def is_private_host(hostname: str) -> bool:
    """Return ``True`` for loopback, private, link-local or unspecified hosts.

    Ordinary names are never private, even when a label is numeric
    (``10.example.com``); only IP literals and names embedding a full IPv4
    address are checked.
    """

    host = hostname.strip("[]").rstrip(".").lower()
    embedded = _EMBEDDED_IPV4_RE.match(host)
    candidate = embedded.group(1) if embedded else host
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return bool(_NUMERIC_HOST_RE.match(host) and _PRIVATE_HOST_RE.match(host + "."))

    return _is_internal_address(address)


def _host_matches(host: str, candidates: Iterable[str]) -> bool:
    for candidate in candidates:
        candidate = candidate.strip().lower().lstrip(".")
        if candidate and (host == candidate or host.endswith("." + candidate)):
            return True
    return False


class UrlValidator:
    """Validate URLs against format, network and reputation rules."""

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self._config = config or AnalyzerConfig()

    def validate(self, url: str) -> ValidationResult:
        """Return whether ``url`` may be fetched; never raises."""

        candidate = (url or "").strip()
        if not candidate:
            return ValidationResult(False, "URL is required")

        try:
            parsed = _HTTP_URL.validate_python(candidate)
        except ValidationError:
            return ValidationResult(False, "Invalid URL format")

        # pydantic accepts bare hosts like "example"; insist on a scheme prefix.
        if not re.match(r"^https?://", candidate, re.IGNORECASE):
            return ValidationResult(False, "Invalid URL format")

        host = (parsed.host or "").rstrip(".").lower()
        if not host:
            return ValidationResult(False, "Invalid URL format")

        if is_private_host(host):
            logger.info("Rejected private or local URL host %s", host)
            return ValidationResult(False, "Private/local URLs are not allowed", blocked=True)

        if _host_matches(host, self._config.blocked_hosts) or any(
            fragment.lower() in host for fragment in self._config.blocked_domain_substrings if fragment
        ):
            logger.info("Rejected blocked URL host %s", host)
            return ValidationResult(False, "Domain not allowed for security reasons", blocked=True)

        for pattern in SUSPICIOUS_URL_PATTERNS:
            if pattern.search(candidate):
                logger.info("Rejected URL %s matching suspicious pattern %s", candidate, pattern.pattern)
                return ValidationResult(False, "URL appears to be malicious or suspicious", blocked=True)

        return ValidationResult(True)
