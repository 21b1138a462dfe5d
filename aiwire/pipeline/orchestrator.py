"""One pipeline run: ingestion over every source, then translation.

run() always returns a RunSummary. Per-source and per-item failures are
counted and logged; a phase that blows up is recorded in ``errors`` and the
run moves on (or ends, for the translation phase).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from aiwire.config import Config
from aiwire.errors import SourceUnavailable, TranslationRateLimited
from aiwire.extraction.extractors import build_extractor
from aiwire.extraction.fulltext import PageFetcher
from aiwire.ingestion.article_types import ArticleCandidate, RawItem, SourceDescriptor
from aiwire.ingestion.http import build_session
from aiwire.ingestion.ingestors import fetch_source
from aiwire.ingestion.sources import default_sources
from aiwire.ingestion.url_utils import canonicalize_url
from aiwire.pipeline.selection import build_queues, fill_budget
from aiwire.scoring.article_scoring import score_title
from aiwire.storage.persistence_gate import PersistenceGate
from aiwire.storage.postgres_settings import RunSettings
from aiwire.translation.engine import TranslationEngine

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    sources_ok: int = 0
    sources_failed: int = 0
    fetched: int = 0
    candidates: int = 0
    dropped: int = 0
    inserted: int = 0
    skipped: int = 0

    translation_attempted: int = 0
    translation_succeeded: int = 0
    translation_failed: int = 0

    aborted: bool = False
    abort_reason: Optional[str] = None
    skipped_reason: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PipelineOrchestrator:
    def __init__(
        self,
        config: Config,
        store,
        engine: TranslationEngine,
        *,
        settings_store=None,
        sources: Optional[Sequence[SourceDescriptor]] = None,
        fetch: Callable[..., List[RawItem]] = fetch_source,
        extractor_factory: Callable[..., Any] = build_extractor,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.store = store
        self.engine = engine
        self.settings_store = settings_store
        self.sources: List[SourceDescriptor] = list(sources) if sources is not None else default_sources()
        self.fetch = fetch
        self.extractor_factory = extractor_factory
        self.sleep = sleep
        self.gate = PersistenceGate(store)
        self._run_lock = threading.Lock()
        self._session = None

    @property
    def session(self):
        if self._session is None:
            self._session = build_session(
                max_redirects=self.config.http_max_redirects,
                user_agent=self.config.user_agent,
            )
        return self._session

    def _load_settings(self, summary: RunSummary) -> RunSettings:
        if self.settings_store is None:
            return RunSettings()
        try:
            settings = self.settings_store.load()
        except Exception as e:
            summary.errors.append(f"settings: {e}")
            logger.error(f"Could not load run settings, using defaults: {e}")
            return RunSettings()
        if settings is None:
            logger.info("No run settings record; using defaults")
            return RunSettings()
        return settings

    def run(self) -> RunSummary:
        if not self._run_lock.acquire(blocking=False):
            logger.warning("A pipeline run is already in progress; skipping")
            summary = RunSummary(skipped_reason="run already in progress")
            summary.finished_at = summary.started_at
            return summary
        try:
            summary = RunSummary()
            settings = self._load_settings(summary)
            logger.info(f"Run started: {len(self.sources)} sources, mode={self.config.selection_mode}")
            try:
                self._ingest(summary, settings, self.sources)
            except Exception as e:
                summary.errors.append(f"ingestion: {e}")
                logger.error(f"Ingestion phase failed: {e}", exc_info=True)
            try:
                self._translate(summary)
            except Exception as e:
                summary.errors.append(f"translation: {e}")
                logger.error(f"Translation phase failed: {e}", exc_info=True)
            summary.finished_at = datetime.now(timezone.utc)
            logger.info(
                f"Run finished: inserted={summary.inserted} skipped={summary.skipped} "
                f"translated={summary.translation_succeeded}/{summary.translation_attempted} "
                f"aborted={summary.aborted}"
            )
            return summary
        finally:
            self._run_lock.release()

    def run_ingestion(
        self,
        sources: Optional[Sequence[SourceDescriptor]] = None,
        arxiv_window: Optional[Tuple[datetime, datetime]] = None,
    ) -> RunSummary:
        """Ingestion phase only (no translation), e.g. for a date-window backfill."""
        summary = RunSummary()
        settings = self._load_settings(summary)
        self._ingest(summary, settings, list(sources) if sources is not None else self.sources, arxiv_window)
        summary.finished_at = datetime.now(timezone.utc)
        return summary

    def run_translation(self) -> RunSummary:
        summary = RunSummary()
        self._translate(summary)
        summary.finished_at = datetime.now(timezone.utc)
        return summary

    # ---- ingestion ----

    def _ingestor_kwargs(self, arxiv_window) -> Dict[str, Any]:
        return {
            "session": self.session,
            "timeout": self.config.http_timeout,
            "page_size": self.config.arxiv_page_size,
            "page_delay": self.config.arxiv_page_delay,
            "max_pages": self.config.arxiv_max_pages,
            "window": arxiv_window,
            "sleep": self.sleep,
        }

    def _collect(
        self,
        summary: RunSummary,
        settings: RunSettings,
        sources: Sequence[SourceDescriptor],
        arxiv_window,
    ) -> Dict[str, List[ArticleCandidate]]:
        by_source: Dict[str, List[ArticleCandidate]] = {}
        discovery_index = 0
        for source in sources:
            try:
                items = self.fetch(source, **self._ingestor_kwargs(arxiv_window))
            except SourceUnavailable as e:
                summary.sources_failed += 1
                summary.errors.append(str(e))
                logger.error(f"Source unavailable: {e}")
                continue
            except Exception as e:
                summary.sources_failed += 1
                summary.errors.append(f"{source.name}: {e}")
                logger.error(f"Fetching {source.name} failed: {e}", exc_info=True)
                continue
            summary.sources_ok += 1
            summary.fetched += len(items)
            scored: List[ArticleCandidate] = []
            for item in items:
                result = score_title(item.title, item.source_name, extra_keywords=settings.interest_keywords)
                scored.append(
                    ArticleCandidate(
                        item=item,
                        score=result.score,
                        category=result.category,
                        discovery_index=discovery_index,
                    )
                )
                discovery_index += 1
            by_source[source.name] = scored
        return by_source

    def _ingest(
        self,
        summary: RunSummary,
        settings: RunSettings,
        sources: Sequence[SourceDescriptor],
        arxiv_window=None,
    ) -> None:
        by_source = self._collect(summary, settings, sources, arxiv_window)
        source_map = {s.name: s for s in sources}
        fetcher = PageFetcher(session=self.session, timeout=self.config.http_timeout)
        extractors: Dict[str, Any] = {}

        def realize(candidate: ArticleCandidate) -> Optional[ArticleCandidate]:
            name = candidate.source_name
            try:
                if name not in extractors:
                    extractors[name] = self.extractor_factory(
                        source_map[name],
                        fetcher=fetcher,
                        min_content_length=self.config.min_content_length,
                    )
                content = extractors[name].extract(candidate.item)
            except Exception as e:
                summary.errors.append(f"{name}: {candidate.title}: {e}")
                logger.error(f"Extraction failed for {candidate.url}: {e}", exc_info=True)
                return None
            if content is None:
                return None
            return ArticleCandidate(
                item=candidate.item,
                score=candidate.score,
                category=candidate.category,
                discovery_index=candidate.discovery_index,
                content=content,
            )

        queues = build_queues(
            by_source,
            mode=self.config.selection_mode,
            per_source_limit=settings.articles_per_source_limit,
            global_limit=settings.final_articles_count,
        )
        for queue, budget in queues:
            realized, dropped = fill_budget(self._unseen(queue, summary), budget, realize)
            summary.candidates += len(realized)
            summary.dropped += dropped
            for candidate in realized:
                try:
                    result = self.gate.persist(candidate)
                except Exception as e:
                    summary.dropped += 1
                    summary.errors.append(f"{candidate.source_name}: {candidate.title}: {e}")
                    logger.error(f"Failed to store {candidate.url}: {e}")
                    continue
                if result.inserted:
                    summary.inserted += 1
                else:
                    summary.skipped += 1

    def _unseen(self, queue: Sequence[ArticleCandidate], summary: RunSummary) -> Iterator[ArticleCandidate]:
        """Lazily skip stored and repeated items so no fetch is spent on them."""
        seen = set()
        for candidate in queue:
            key = canonicalize_url(candidate.url) or candidate.url
            if key in seen:
                continue
            seen.add(key)
            if self.gate.exists(candidate):
                summary.skipped += 1
                continue
            yield candidate

    # ---- translation ----

    def _translate(self, summary: RunSummary) -> None:
        pending = self.store.find_untranslated()
        if not pending:
            logger.info("Nothing to translate")
            return
        batch_size = max(1, self.config.translate_batch_size)
        policy = self.config.translation_policy
        logger.info(f"Translating {len(pending)} articles in batches of {batch_size} ({policy})")
        for index, article in enumerate(pending):
            if index > 0:
                if index % batch_size == 0:
                    self.sleep(self.config.translate_batch_pause_seconds)
                else:
                    self.sleep(self.config.translate_delay_seconds)
            summary.translation_attempted += 1
            try:
                translation = self.engine.translate_article(article, policy)
            except TranslationRateLimited as e:
                summary.translation_failed += 1
                summary.aborted = True
                summary.abort_reason = f"rate limited by {e.provider or 'provider'}: {e}"
                logger.error(f"Translation aborted after {index} articles: {summary.abort_reason}")
                return
            if not translation.accepted:
                summary.translation_failed += 1
                logger.warning(f"Translation failed for article {article.id}: {article.title}")
                continue
            updated = self.store.mark_translated(
                article.id,
                translated_title=translation.title.text,
                translated_body=translation.stored_text(translation.body),
                translated_summary=translation.stored_text(translation.summary),
            )
            if updated:
                summary.translation_succeeded += 1
            else:
                # Someone else translated it meanwhile
                summary.translation_failed += 1
                logger.info(f"Article {article.id} was already translated")
