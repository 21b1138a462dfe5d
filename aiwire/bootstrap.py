"""Wiring shared by the worker scripts."""

from __future__ import annotations

import logging
import sys

from aiwire.config import Config
from aiwire.ingestion.http import build_session
from aiwire.pipeline.orchestrator import PipelineOrchestrator
from aiwire.storage.postgres_articles import PostgresArticleStore
from aiwire.storage.postgres_schema import ensure_postgres_schema
from aiwire.storage.postgres_settings import PostgresSettingsStore
from aiwire.translation.engine import TranslationEngine
from aiwire.translation.providers import build_providers


def configure_logging(log_file: str = "") -> None:
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def build_engine(config: Config) -> TranslationEngine:
    session = build_session(max_redirects=config.http_max_redirects, user_agent=config.user_agent)
    return TranslationEngine(
        build_providers(config, session=session),
        target_language=config.target_language,
        retries=config.translate_retries,
        backoff_seconds=config.translate_backoff_seconds,
    )


def build_orchestrator(config: Config) -> PipelineOrchestrator:
    ensure_postgres_schema(config.pg_dsn)
    return PipelineOrchestrator(
        config,
        PostgresArticleStore(config.pg_dsn),
        build_engine(config),
        settings_store=PostgresSettingsStore(config.pg_dsn),
    )
