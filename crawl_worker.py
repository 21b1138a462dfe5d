#!/usr/bin/env python3
"""Crawl + translate worker.

Runs one pipeline cycle (``--once`` or INGEST_MODE=once), or stays up as a
daemon whose crawl interval follows the run_settings record: every change
to that row is picked up over LISTEN/NOTIFY and reschedules the crawl.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys

from dotenv import load_dotenv

from aiwire.bootstrap import build_orchestrator, configure_logging
from aiwire.config import Config
from aiwire.errors import ConfigMissing
from aiwire.pipeline.scheduler import CrawlScheduler
from aiwire.storage.postgres_settings import SettingsFeed, SettingsWatcher

logger = logging.getLogger(__name__)


def run_once(config: Config) -> int:
    orchestrator = build_orchestrator(config)
    summary = orchestrator.run()
    print(json.dumps(summary.to_dict(), default=str, indent=2))
    return 0 if not summary.errors else 1


def run_daemon(config: Config) -> int:
    orchestrator = build_orchestrator(config)
    scheduler = CrawlScheduler(orchestrator.run, poll_seconds=config.scheduler_poll_seconds)
    feed = SettingsFeed()
    feed.subscribe(scheduler.apply)
    watcher = SettingsWatcher(orchestrator.settings_store, feed, poll_seconds=config.scheduler_poll_seconds)

    def _shutdown(signum, frame):
        logger.info(f"Received signal {signum}, stopping scheduler")
        scheduler.stop()
        watcher.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        scheduler.apply(orchestrator.settings_store.require())
    except ConfigMissing as e:
        logger.warning(f"{e}; waiting for settings changes")
        scheduler.apply(None)
    watcher.start()
    scheduler.start()
    logger.info("Crawl worker running")
    scheduler.wait()
    return 0


def main() -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Crawl sources and translate new articles")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    args = parser.parse_args()

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    configure_logging(config.log_file)

    mode = (os.environ.get("INGEST_MODE") or "daemon").lower().strip()
    if args.once or mode == "once":
        return run_once(config)
    return run_daemon(config)


if __name__ == "__main__":
    sys.exit(main())
