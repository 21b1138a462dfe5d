#!/usr/bin/env python3
"""Article store housekeeping: stats, pruning old articles, clearing everything."""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

from aiwire.bootstrap import configure_logging
from aiwire.config import Config
from aiwire.storage.postgres_articles import PostgresArticleStore
from aiwire.storage.postgres_schema import ensure_postgres_schema

DEFAULT_RETENTION_DAYS = 90


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Maintain the article store")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("stats", help="Print article counts")
    prune = sub.add_parser("prune", help="Delete articles older than N days")
    prune.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS)
    clear = sub.add_parser("clear", help="Delete every article")
    clear.add_argument("--yes", action="store_true", help="Confirm deleting all articles")
    args = parser.parse_args()

    config = Config.from_env()
    configure_logging(config.log_file)
    ensure_postgres_schema(config.pg_dsn)
    store = PostgresArticleStore(config.pg_dsn)

    if args.command == "stats":
        print(json.dumps(store.count_stats(), indent=2))
    elif args.command == "prune":
        if args.days < 1:
            parser.error("--days must be at least 1")
        deleted = store.delete_older_than(args.days)
        print(f"Deleted {deleted} articles older than {args.days} days")
    elif args.command == "clear":
        if not args.yes:
            parser.error("refusing to clear without --yes")
        deleted = store.delete_all()
        print(f"Deleted {deleted} articles")
    return 0


if __name__ == "__main__":
    sys.exit(main())
