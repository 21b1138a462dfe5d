"""Feed readers: one source in, a list of RawItem out.

- RSS/Atom blogs (feedparser over a bounded requests fetch)
- arXiv export API (Atom, paginated with start/max_results until an empty page)

A failing source raises SourceUnavailable; the orchestrator isolates it.
"""

from __future__ import annotations

import calendar
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import feedparser
import requests

from aiwire.errors import SourceUnavailable
from aiwire.ingestion.article_types import RawItem, SourceDescriptor
from aiwire.ingestion.http import DEFAULT_TIMEOUT, build_session
from aiwire.ingestion.sources import STRATEGY_ARTICLE_PAGE, STRATEGY_ARXIV, STRATEGY_RSS

logger = logging.getLogger(__name__)


def _parse_dt(dt: Any) -> Optional[datetime]:
    if not dt:
        return None
    if isinstance(dt, datetime):
        return dt
    if isinstance(dt, time.struct_time):
        return datetime.fromtimestamp(calendar.timegm(dt), tz=timezone.utc)
    s = str(dt).strip()
    if not s:
        return None
    s = s.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        return None
    # Normalize naive to UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _entry_published(entry) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if value:
            return _parse_dt(value)
    return _parse_dt(entry.get("published") or entry.get("updated"))


def _entry_content(entry) -> str:
    contents = entry.get("content") or []
    for c in contents:
        value = c.get("value") if hasattr(c, "get") else None
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def _parse_feed(source: SourceDescriptor, payload: bytes):
    parsed = feedparser.parse(payload)
    if parsed.get("bozo") and not parsed.entries:
        reason = parsed.get("bozo_exception") or "unparseable feed"
        raise SourceUnavailable(source.name, f"parse error: {reason}")
    return parsed


class BaseIngestor:
    name: str = "base"

    def fetch(self, source: SourceDescriptor) -> List[RawItem]:
        raise NotImplementedError


@dataclass
class RSSIngestor(BaseIngestor):
    """Generic RSS/Atom reader."""

    session: requests.Session = field(default_factory=build_session)
    timeout: Tuple[float, float] = DEFAULT_TIMEOUT
    name: str = "rss"

    def fetch(self, source: SourceDescriptor) -> List[RawItem]:
        try:
            resp = self.session.get(source.url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SourceUnavailable(source.name, f"fetch failed: {e}") from e

        parsed = _parse_feed(source, resp.content)
        out: List[RawItem] = []
        for entry in parsed.entries or []:
            link = entry.get("link")
            title = entry.get("title")
            if not link or not title:
                continue
            summary = entry.get("summary")
            out.append(
                RawItem(
                    title=str(title).strip(),
                    url=str(link).strip(),
                    content=_entry_content(entry),
                    source_name=source.name,
                    published_at=_entry_published(entry),
                    summary=str(summary).strip() if isinstance(summary, str) else None,
                    raw=dict(entry),
                )
            )
        logger.info(f"{source.name}: {len(out)} items from feed")
        return out


@dataclass
class ArxivIngestor(BaseIngestor):
    """arXiv export API reader.

    The query is the source's search terms, optionally narrowed to a
    submittedDate window. Pages are requested until the API returns an empty
    page, with a fixed delay between requests (arXiv asks for >= 3s).
    """

    session: requests.Session = field(default_factory=build_session)
    timeout: Tuple[float, float] = DEFAULT_TIMEOUT
    page_size: int = 50
    page_delay: float = 3.0
    max_pages: int = 10
    window: Optional[Tuple[datetime, datetime]] = None
    sleep: Callable[[float], None] = time.sleep
    name: str = "arxiv"

    def build_query(self, source: SourceDescriptor) -> str:
        query = source.query or "all:RAG"
        if self.window:
            start, end = self.window
            query = f"({query}) AND submittedDate:[{start:%Y%m%d}0000 TO {end:%Y%m%d}2359]"
        return query

    def _fetch_page(self, source: SourceDescriptor, query: str, start: int):
        params: Dict[str, Any] = {
            "search_query": query,
            "sortBy": "submittedDate",
            "sortOrder": "descending",
            "start": start,
            "max_results": self.page_size,
        }
        try:
            resp = self.session.get(source.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SourceUnavailable(source.name, f"page at offset {start} failed: {e}") from e
        return _parse_feed(source, resp.content)

    def fetch(self, source: SourceDescriptor) -> List[RawItem]:
        query = self.build_query(source)
        out: List[RawItem] = []
        start = 0
        for page in range(self.max_pages):
            if page > 0:
                self.sleep(self.page_delay)
            try:
                parsed = self._fetch_page(source, query, start)
            except SourceUnavailable as e:
                if page == 0:
                    raise
                logger.warning(f"{e}; keeping {len(out)} papers from earlier pages")
                break
            entries = parsed.entries or []
            if not entries:
                break
            for entry in entries:
                entry_id = entry.get("id") or entry.get("link")
                title = entry.get("title")
                if not entry_id or not title:
                    continue
                abstract = " ".join(str(entry.get("summary") or "").split())
                out.append(
                    RawItem(
                        title=" ".join(str(title).split()),
                        url=str(entry_id).strip(),
                        content=abstract,
                        source_name=source.name,
                        published_at=_entry_published(entry),
                        summary=abstract or None,
                        raw=dict(entry),
                    )
                )
            start += len(entries)
        else:
            logger.warning(f"{source.name}: stopped after max_pages={self.max_pages}")
        logger.info(f"{source.name}: {len(out)} papers for query {query!r}")
        return out


def build_ingestor(source: SourceDescriptor, **kwargs) -> BaseIngestor:
    if source.strategy == STRATEGY_ARXIV:
        return ArxivIngestor(**kwargs)
    if source.strategy in (STRATEGY_RSS, STRATEGY_ARTICLE_PAGE):
        arxiv_only = ("page_size", "page_delay", "max_pages", "window", "sleep")
        return RSSIngestor(**{k: v for k, v in kwargs.items() if k not in arxiv_only})
    raise ValueError(f"No ingestor for strategy {source.strategy!r}")


def fetch_source(source: SourceDescriptor, **kwargs) -> List[RawItem]:
    """Read one source with the ingestor its strategy calls for."""
    return build_ingestor(source, **kwargs).fetch(source)
