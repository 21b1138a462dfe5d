"""Postgres schema management.

Schema creation is idempotent (CREATE IF NOT EXISTS / CREATE OR REPLACE).
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg

SETTINGS_CHANNEL = "run_settings_changed"

SCHEMA_STATEMENTS: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS articles (
      id BIGSERIAL PRIMARY KEY,
      url TEXT NOT NULL UNIQUE,
      title TEXT NOT NULL,
      body TEXT NOT NULL DEFAULT '',
      summary TEXT NOT NULL DEFAULT '',
      source TEXT NOT NULL,
      category TEXT NOT NULL,
      score INTEGER NOT NULL DEFAULT 0,
      publish_date TIMESTAMPTZ,
      is_translated BOOLEAN NOT NULL DEFAULT FALSE,
      translated_title TEXT,
      translated_body TEXT,
      translated_summary TEXT,
      likes INTEGER NOT NULL DEFAULT 0,
      views INTEGER NOT NULL DEFAULT 0,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_articles_title ON articles (title);",
    "CREATE INDEX IF NOT EXISTS idx_articles_publish_date ON articles (publish_date DESC);",
    "CREATE INDEX IF NOT EXISTS idx_articles_untranslated ON articles (publish_date DESC) WHERE is_translated = FALSE;",
    # Single-row settings record, edited by the admin surface
    """
    CREATE TABLE IF NOT EXISTS run_settings (
      id SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
      articles_per_source_limit INTEGER NOT NULL DEFAULT 20,
      final_articles_count INTEGER NOT NULL DEFAULT 5,
      crawl_interval_minutes INTEGER NOT NULL DEFAULT 240,
      auto_crawl_enabled BOOLEAN NOT NULL DEFAULT FALSE,
      last_run_time TIMESTAMPTZ,
      next_run_time TIMESTAMPTZ,
      interest_keywords TEXT[] NOT NULL DEFAULT '{}',
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    f"""
    CREATE OR REPLACE FUNCTION notify_run_settings_changed() RETURNS trigger AS $$
    BEGIN
      PERFORM pg_notify('{SETTINGS_CHANNEL}', NEW.id::text);
      RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;
    """,
    "DROP TRIGGER IF EXISTS trg_run_settings_changed ON run_settings;",
    """
    CREATE TRIGGER trg_run_settings_changed
    AFTER INSERT OR UPDATE ON run_settings
    FOR EACH ROW EXECUTE FUNCTION notify_run_settings_changed();
    """,
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
