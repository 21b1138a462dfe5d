"""Process configuration loaded from the environment.

Run-level knobs that an admin edits live (interval, per-source limit, auto
crawl) are stored in Postgres instead; see aiwire.storage.postgres_settings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

DEFAULT_PG_DSN = "dbname=aiwire user=aiwire password=aiwirepass host=localhost port=5432"

SELECTION_MODES = ("per_source", "global")
TRANSLATION_POLICIES = ("title_only", "all_fields")
KNOWN_PROVIDERS = ("google", "libre")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [p.strip().lower() for p in raw.split(",") if p.strip()]


@dataclass
class Config:
    """Pipeline configuration with validation"""
    pg_dsn: str = DEFAULT_PG_DSN

    # HTTP
    http_connect_timeout: float = 5.0
    http_read_timeout: float = 15.0
    http_max_redirects: int = 5
    user_agent: str = "AIWire/1.0 (+https://github.com/aiwire)"

    # arXiv pagination
    arxiv_page_size: int = 50
    arxiv_page_delay: float = 3.0
    arxiv_max_pages: int = 10

    # Extraction
    min_content_length: int = 200

    # Selection
    selection_mode: str = "per_source"

    # Translation
    target_language: str = "zh-CN"
    translation_providers: List[str] = field(default_factory=lambda: ["google", "libre"])
    libretranslate_url: str = ""
    libretranslate_api_key: str = ""
    translate_retries: int = 3
    translate_backoff_seconds: float = 2.0
    translate_delay_seconds: float = 3.0
    translate_batch_size: int = 5
    translate_batch_pause_seconds: float = 10.0
    translation_policy: str = "title_only"

    # Scheduler
    scheduler_poll_seconds: float = 5.0

    log_file: str = ""

    @classmethod
    def from_env(cls) -> 'Config':
        """Load and validate configuration from environment variables"""
        config = cls(
            pg_dsn=os.getenv('PG_DSN', DEFAULT_PG_DSN),

            http_connect_timeout=float(os.getenv('HTTP_CONNECT_TIMEOUT', '5')),
            http_read_timeout=float(os.getenv('HTTP_READ_TIMEOUT', '15')),
            http_max_redirects=int(os.getenv('HTTP_MAX_REDIRECTS', '5')),

            arxiv_page_size=int(os.getenv('ARXIV_PAGE_SIZE', '50')),
            arxiv_page_delay=float(os.getenv('ARXIV_PAGE_DELAY', '3.0')),
            arxiv_max_pages=int(os.getenv('ARXIV_MAX_PAGES', '10')),

            min_content_length=int(os.getenv('MIN_CONTENT_LENGTH', '200')),

            selection_mode=os.getenv('SELECTION_MODE', 'per_source').strip().lower(),

            target_language=os.getenv('TARGET_LANGUAGE', 'zh-CN').strip(),
            translation_providers=_env_list('TRANSLATION_PROVIDERS', 'google,libre'),
            libretranslate_url=os.getenv('LIBRETRANSLATE_URL', '').strip(),
            libretranslate_api_key=os.getenv('LIBRETRANSLATE_API_KEY', '').strip(),
            translate_retries=int(os.getenv('TRANSLATE_RETRIES', '3')),
            translate_backoff_seconds=float(os.getenv('TRANSLATE_BACKOFF_SECONDS', '2.0')),
            translate_delay_seconds=float(os.getenv('TRANSLATE_DELAY_SECONDS', '3.0')),
            translate_batch_size=int(os.getenv('TRANSLATE_BATCH_SIZE', '5')),
            translate_batch_pause_seconds=float(os.getenv('TRANSLATE_BATCH_PAUSE_SECONDS', '10.0')),
            translation_policy=os.getenv('TRANSLATION_POLICY', 'title_only').strip().lower(),

            scheduler_poll_seconds=float(os.getenv('SCHEDULER_POLL_SECONDS', '5.0')),

            log_file=os.getenv('LOG_FILE', '').strip(),
        )

        config._validate()
        return config

    @property
    def http_timeout(self):
        return (self.http_connect_timeout, self.http_read_timeout)

    def _validate(self):
        """Validate configuration values"""
        errors = []

        if not self.pg_dsn:
            errors.append("PG_DSN is required")

        if self.selection_mode not in SELECTION_MODES:
            errors.append(f"SELECTION_MODE must be one of {', '.join(SELECTION_MODES)}")

        if self.translation_policy not in TRANSLATION_POLICIES:
            errors.append(f"TRANSLATION_POLICY must be one of {', '.join(TRANSLATION_POLICIES)}")

        if not self.translation_providers:
            errors.append("TRANSLATION_PROVIDERS must name at least one provider")
        for name in self.translation_providers:
            if name not in KNOWN_PROVIDERS:
                errors.append(f"Unknown translation provider: {name}")
        if "libre" in self.translation_providers and not self.libretranslate_url:
            # Not fatal: the provider is skipped when no instance is configured
            logger.warning("LIBRETRANSLATE_URL not set; LibreTranslate fallback disabled")

        if self.translate_retries < 1 or self.translate_retries > 10:
            errors.append("TRANSLATE_RETRIES should be between 1 and 10")

        if self.http_max_redirects < 0 or self.http_max_redirects > 30:
            errors.append("HTTP_MAX_REDIRECTS should be between 0 and 30")

        if self.http_connect_timeout <= 0 or self.http_read_timeout <= 0:
            errors.append("HTTP timeouts must be positive")

        if self.arxiv_page_size < 1 or self.arxiv_page_size > 2000:
            errors.append("ARXIV_PAGE_SIZE should be between 1 and 2000")

        if self.translate_batch_size < 1:
            errors.append("TRANSLATE_BATCH_SIZE must be at least 1")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            raise ValueError(error_msg)

        logger.info(
            f"Configuration validated. Target language: {self.target_language}, "
            f"providers: {', '.join(self.translation_providers)}"
        )
