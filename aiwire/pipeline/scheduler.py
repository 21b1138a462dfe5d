"""Periodic crawl trigger that follows the live run settings.

The scheduler owns one ``schedule.Scheduler`` holding at most one job.
apply() is the settings-change callback: it cancels the current job and,
when auto crawl is enabled, installs a new one at the configured interval.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

import schedule

from aiwire.storage.postgres_settings import RunSettings

logger = logging.getLogger(__name__)


class CrawlScheduler:
    def __init__(self, run_job: Callable[[], object], *, poll_seconds: float = 5.0):
        self.run_job = run_job
        self.poll_seconds = poll_seconds
        self._scheduler = schedule.Scheduler()
        self._job: Optional[schedule.Job] = None
        self._generation = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def jobs(self) -> List[schedule.Job]:
        return list(self._scheduler.get_jobs())

    @property
    def active_job(self) -> Optional[schedule.Job]:
        return self._job

    def apply(self, settings: Optional[RunSettings]) -> None:
        with self._lock:
            self._generation += 1
            if self._job is not None:
                self._scheduler.cancel_job(self._job)
                self._job = None
            if settings is None:
                logger.warning("No run settings record; auto crawl stays off")
                return
            if not settings.auto_crawl_enabled:
                logger.info("Auto crawl disabled; no crawl scheduled")
                return
            interval = max(1, int(settings.crawl_interval_minutes))
            self._job = self._scheduler.every(interval).minutes.do(self._run, self._generation)
            logger.info(f"Auto crawl scheduled every {interval} minutes (next run {self._job.next_run})")

    def _run(self, generation: int) -> None:
        with self._lock:
            current = generation == self._generation and self._job is not None
        if not current:
            logger.info("Settings changed before the crawl started; skipping")
            return
        try:
            self.run_job()
        except Exception as e:
            logger.error(f"Scheduled crawl failed: {e}", exc_info=True)

    def run_pending(self) -> None:
        # The job runs outside the lock so a settings change is never blocked by a crawl;
        # _run re-checks that its job is still the installed one
        with self._lock:
            job = self._job
            due = job is not None and job.should_run
        if due:
            job.run()

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.run_pending()
            self._stop.wait(self.poll_seconds)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="crawl-scheduler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop triggering runs; a crawl already in progress finishes on its own."""
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.poll_seconds + 1)

    def wait(self) -> None:
        while self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
