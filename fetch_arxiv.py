#!/usr/bin/env python3
"""Backfill arXiv RAG papers submitted within a date window.

Usage: fetch_arxiv.py START [END] [--translate]
Dates are YYYY-MM-DD; END defaults to START.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime

from dotenv import load_dotenv

from aiwire.bootstrap import build_orchestrator, configure_logging
from aiwire.config import Config
from aiwire.ingestion.sources import find_source


def _date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Fetch arXiv papers for a submission date window")
    parser.add_argument("start", type=_date, help="First submission date (YYYY-MM-DD)")
    parser.add_argument("end", type=_date, nargs="?", help="Last submission date (defaults to START)")
    parser.add_argument("--source", default="arXiv RAG Papers", help="Source name to query")
    parser.add_argument("--translate", action="store_true", help="Translate pending articles afterwards")
    args = parser.parse_args()

    end = args.end or args.start
    if end < args.start:
        parser.error("END must not be before START")

    config = Config.from_env()
    configure_logging(config.log_file)
    orchestrator = build_orchestrator(config)

    summary = orchestrator.run_ingestion(sources=[find_source(args.source)], arxiv_window=(args.start, end))
    print(json.dumps(summary.to_dict(), default=str, indent=2))
    if args.translate:
        translated = orchestrator.run_translation()
        print(json.dumps(translated.to_dict(), default=str, indent=2))
    return 0 if not summary.errors else 1


if __name__ == "__main__":
    sys.exit(main())
