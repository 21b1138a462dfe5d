"""Insert-only write path for new articles.

A record is created only on first sighting of its URL. Existing content is
never overwritten, and a unique-key race on insert counts as "already there".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from aiwire.errors import PersistenceConflict
from aiwire.extraction.html_text import first_paragraph
from aiwire.ingestion.article_types import ArticleCandidate, NormalizedArticle
from aiwire.ingestion.url_utils import canonicalize_url

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 200

INSERTED = "inserted"
SKIPPED = "skipped_existing"


def generate_summary(body: str, length: int = SUMMARY_LENGTH) -> str:
    text = first_paragraph(body)
    if len(text) <= length:
        return text
    return text[:length].rstrip() + "..."


def to_article(candidate: ArticleCandidate) -> NormalizedArticle:
    content = candidate.content
    body = content.body if content else ""
    summary = (content.abstract if content and content.abstract else "") or generate_summary(body)
    return NormalizedArticle(
        title=candidate.title,
        body=body,
        summary=summary,
        url=canonicalize_url(candidate.url) or candidate.url,
        source=candidate.source_name,
        category=candidate.category,
        score=candidate.score,
        publish_date=candidate.item.published_at,
    )


@dataclass(frozen=True)
class PersistResult:
    status: str
    article_id: int = 0

    @property
    def inserted(self) -> bool:
        return self.status == INSERTED


class PersistenceGate:
    def __init__(self, store):
        self.store = store

    def _lookup(self, url: str, title: str):
        return self.store.find_by_url(url) or self.store.find_by_title(title)

    def exists(self, candidate: ArticleCandidate) -> bool:
        url = canonicalize_url(candidate.url) or candidate.url
        return self._lookup(url, candidate.title) is not None

    def persist(self, candidate: ArticleCandidate) -> PersistResult:
        article = to_article(candidate)
        existing = self._lookup(article.url, article.title)
        if existing is not None:
            logger.debug(f"Already stored, skipping: {article.title}")
            return PersistResult(status=SKIPPED, article_id=existing.id or 0)
        try:
            article_id = self.store.insert(article)
        except PersistenceConflict:
            logger.info(f"Concurrent insert for {article.url}; treating as existing")
            return PersistResult(status=SKIPPED)
        logger.info(f"Stored [{article.category} {article.score}] {article.title}")
        return PersistResult(status=INSERTED, article_id=article_id)
