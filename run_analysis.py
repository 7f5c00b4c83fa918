"""Convenience script for running a LegalMitra analysis from the command line."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure the src directory is on the Python path so the legalmitra package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from legalmitra.config import AnalyzerConfig  # noqa: E402  (import after path setup)
from legalmitra.errors import LegalMitraError  # noqa: E402
from legalmitra.services.llm import OpenAIModelClient  # noqa: E402
from legalmitra.services.pipeline import AnalysisPipeline  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    """Analyse a URL or a local text file and print the report as JSON."""

    parser = argparse.ArgumentParser(description="Analyse a legal document for risks.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="URL of a legal document to fetch and analyse")
    source.add_argument("--file", type=Path, help="Path to a text file holding the legal text")
    parser.add_argument("--config", type=Path, help="Optional JSON configuration file")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = AnalyzerConfig.from_env()
        if args.config:
            config = AnalyzerConfig.from_file(args.config).model_copy(
                update={"api_key": config.api_key, "development_mode": config.development_mode}
            )
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Could not load configuration: %s", exc)
        return 1

    try:
        client = OpenAIModelClient.from_config(config) if config.has_credentials else None
        pipeline = AnalysisPipeline(config, client)
        if args.url:
            report = pipeline.analyze_url(args.url)
        else:
            report = pipeline.analyze_text(args.file.read_text(encoding="utf-8"))
    except LegalMitraError as exc:
        print(json.dumps(exc.to_payload(include_cause=True), indent=2), file=sys.stderr)
        return 2
    except OSError as exc:
        logging.error("Could not read %s: %s", args.file, exc)
        return 1

    print(report.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
