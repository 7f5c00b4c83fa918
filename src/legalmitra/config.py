"""Configuration model and helpers for the LegalMitra analyzer."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, ValidationError

__all__ = [
    "AnalyzerConfig",
    "API_KEY_ENV",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_MODEL",
    "ENVIRONMENT_ENV",
    "MODEL_ENV",
]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "analyzer.json"

API_KEY_ENV = "OPENAI_API_KEY"
MODEL_ENV = "LEGALMITRA_MODEL"
ENVIRONMENT_ENV = "LEGALMITRA_ENV"
CONFIG_PATH_ENV = "LEGALMITRA_CONFIG"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_USER_AGENT = "LegalMitra-Bot/1.0 (Legal Document Analyzer)"

DEFAULT_BLOCKED_HOSTS = [
    "localhost",
    "localhost.localdomain",
    "ip6-localhost",
    # URL shorteners hide the real destination of a link.
    "bit.ly",
    "tinyurl.com",
    "t.co",
    "goo.gl",
    "ow.ly",
    "is.gd",
    "buff.ly",
    "cutt.ly",
    "rebrand.ly",
    "shorturl.at",
    "tiny.cc",
]


class AnalyzerConfig(BaseModel):
    """Limits and settings shared by every stage of the analysis pipeline."""

    max_content_length: int = Field(
        default=50_000,
        gt=0,
        description="Maximum number of characters of extracted text sent to the model",
    )
    max_response_bytes: int = Field(
        default=2_000_000,
        gt=0,
        description="Maximum size of a fetched page body in bytes",
    )
    max_redirects: int = Field(default=3, ge=0, description="Maximum redirects followed per fetch")
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Connect and read timeout applied to page fetches",
    )
    blocked_hosts: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_HOSTS),
        description="Hosts (and their subdomains) that may never be fetched",
    )
    blocked_domain_substrings: List[str] = Field(
        default_factory=lambda: ["malware", "phishing"],
        description="Host fragments that cause a URL to be rejected",
    )
    allowed_content_types: List[str] = Field(
        default_factory=lambda: ["text/html", "text/plain", "application/json"],
        description="Response content types accepted for analysis",
    )
    min_extracted_length: int = Field(
        default=100,
        ge=0,
        description="Minimum characters of extracted page text required for analysis",
    )
    min_text_length: int = Field(
        default=50,
        ge=1,
        description="Minimum characters of pasted text (after trimming) required for analysis",
    )
    classifier_sample_chars: int = Field(
        default=3000,
        gt=0,
        description="Number of leading characters shown to the legal-content classifier",
    )
    degraded_excerpt_chars: int = Field(
        default=500,
        gt=0,
        description="Characters of raw model output kept when synthesizing a degraded report",
    )
    model: str = Field(default=DEFAULT_MODEL, description="Generative model identifier")
    temperature: float = Field(default=0.3, ge=0, le=2)
    user_agent: str = Field(default=DEFAULT_USER_AGENT)
    api_key: str | None = Field(
        default=None,
        repr=False,
        exclude=True,
        description="Model API credential; never written back to disk",
    )
    development_mode: bool = Field(
        default=False,
        description="Include diagnostic details in error responses",
    )

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "AnalyzerConfig":
        """Load configuration data from a JSON file."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Build a configuration from the process environment.

        ``LEGALMITRA_CONFIG`` may point at a JSON file providing the limits; the
        credential, model and environment name always come from environment
        variables so they never have to live in a checked-in file.
        """

        config_path = os.environ.get(CONFIG_PATH_ENV)
        if config_path:
            config = cls.from_file(config_path)
        elif DEFAULT_CONFIG_PATH.exists():
            config = cls.from_file(DEFAULT_CONFIG_PATH)
        else:
            config = cls()

        updates: dict[str, object] = {}
        api_key = os.environ.get(API_KEY_ENV, "").strip()
        if api_key:
            updates["api_key"] = api_key
        model = os.environ.get(MODEL_ENV, "").strip()
        if model:
            updates["model"] = model
        if os.environ.get(ENVIRONMENT_ENV, "").strip().lower() == "development":
            updates["development_mode"] = True

        return config.model_copy(update=updates) if updates else config

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the configuration back to disk as JSON."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    @property
    def has_credentials(self) -> bool:
        """Return ``True`` when a model API key is configured."""

        return bool(self.api_key and self.api_key.strip())
