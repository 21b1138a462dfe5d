"""Run settings record and its change feed.

The admin surface edits the single ``run_settings`` row; a trigger fires
``pg_notify`` and SettingsWatcher republishes the fresh record to every
subscriber (the scheduler in practice).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

import psycopg

from aiwire.errors import ConfigMissing
from aiwire.storage.postgres_schema import SETTINGS_CHANNEL

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = (
    "articles_per_source_limit",
    "final_articles_count",
    "crawl_interval_minutes",
    "auto_crawl_enabled",
    "last_run_time",
    "next_run_time",
    "interest_keywords",
)


@dataclass(frozen=True)
class RunSettings:
    articles_per_source_limit: int = 20
    final_articles_count: int = 5
    crawl_interval_minutes: int = 240
    auto_crawl_enabled: bool = False
    last_run_time: Optional[datetime] = None
    next_run_time: Optional[datetime] = None
    interest_keywords: List[str] = field(default_factory=list)


SettingsCallback = Callable[[Optional[RunSettings]], None]


class SettingsFeed:
    """In-process subscription point for settings changes."""

    def __init__(self):
        self._subscribers: List[SettingsCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: SettingsCallback) -> None:
        with self._lock:
            self._subscribers.append(callback)

    def publish(self, settings: Optional[RunSettings]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(settings)
            except Exception as e:
                logger.error(f"Settings subscriber {callback!r} failed: {e}", exc_info=True)


@dataclass
class PostgresSettingsStore:
    pg_dsn: str

    def load(self) -> Optional[RunSettings]:
        """Return the settings record, or None when it has never been written."""
        with psycopg.connect(self.pg_dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {', '.join(SETTINGS_FIELDS)} FROM run_settings WHERE id = 1")
                row = cur.fetchone()
        if not row:
            return None
        values = dict(zip(SETTINGS_FIELDS, row))
        values["interest_keywords"] = list(values.get("interest_keywords") or [])
        return RunSettings(**values)

    def require(self) -> RunSettings:
        settings = self.load()
        if settings is None:
            raise ConfigMissing("run_settings has no row; save settings from the admin surface first")
        return settings

    def save(self, **changes: Any) -> RunSettings:
        """Upsert settings fields. Used by the admin surface and scripts, never by the pipeline."""
        unknown = set(changes) - set(SETTINGS_FIELDS)
        if unknown:
            raise ValueError(f"Unknown settings fields: {', '.join(sorted(unknown))}")
        current = self.load() or RunSettings()
        merged = {name: changes.get(name, getattr(current, name)) for name in SETTINGS_FIELDS}
        assignments = ", ".join(f"{name} = EXCLUDED.{name}" for name in SETTINGS_FIELDS)
        with psycopg.connect(self.pg_dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO run_settings (id, {', '.join(SETTINGS_FIELDS)})
                    VALUES (1, {', '.join(['%s'] * len(SETTINGS_FIELDS))})
                    ON CONFLICT (id) DO UPDATE SET {assignments}, updated_at = now()
                    """,
                    [merged[name] for name in SETTINGS_FIELDS],
                )
        return RunSettings(**merged)


class SettingsWatcher:
    """LISTEN on the settings channel and republish the record on every change."""

    def __init__(
        self,
        store: PostgresSettingsStore,
        feed: SettingsFeed,
        *,
        poll_seconds: float = 5.0,
        reconnect_seconds: float = 10.0,
    ):
        self.store = store
        self.feed = feed
        self.poll_seconds = poll_seconds
        self.reconnect_seconds = reconnect_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._listen, name="settings-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=self.poll_seconds + 1)

    def _reload(self) -> None:
        try:
            settings = self.store.load()
        except psycopg.Error as e:
            logger.error(f"Failed to reload run settings: {e}")
            return
        self.feed.publish(settings)

    def _listen(self) -> None:
        while not self._stop.is_set():
            try:
                with psycopg.connect(self.store.pg_dsn, autocommit=True) as conn:
                    conn.execute(f"LISTEN {SETTINGS_CHANNEL}")
                    logger.info(f"Listening for settings changes on '{SETTINGS_CHANNEL}'")
                    # Catch changes made before LISTEN or while reconnecting
                    self._reload()
                    while not self._stop.is_set():
                        changed = False
                        for _notify in conn.notifies(timeout=self.poll_seconds):
                            changed = True
                            break
                        if changed:
                            logger.info("Settings change detected")
                            self._reload()
            except psycopg.Error as e:
                logger.error(f"Settings watcher connection lost: {e}; retrying in {self.reconnect_seconds}s")
                self._stop.wait(self.reconnect_seconds)
