"""Shared ingestion data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class SourceDescriptor:
    """One configured feed/API. Loaded once at orchestrator start."""

    name: str
    url: str
    strategy: str
    query: Optional[str] = None


@dataclass(frozen=True)
class RawItem:
    """Item as read from a feed, before extraction. Pipeline-local."""

    title: str
    url: str
    content: str
    source_name: str
    published_at: Optional[datetime] = None
    summary: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False)


@dataclass(frozen=True)
class NormalizedContent:
    """Structured text (heading/list/quote markers) plus an optional abstract."""

    body: str
    abstract: Optional[str] = None


@dataclass(frozen=True)
class ArticleCandidate:
    """Scored candidate awaiting selection and persistence.

    Scoring only needs the title, so candidates are ranked before extraction
    and ``content`` is attached once the extractor has run.
    discovery_index is the position in which the run saw the item; it keeps
    ranking stable when scores tie.
    """

    item: RawItem
    score: int
    category: str
    discovery_index: int = 0
    content: Optional[NormalizedContent] = None

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def url(self) -> str:
        return self.item.url

    @property
    def source_name(self) -> str:
        return self.item.source_name


@dataclass
class NormalizedArticle:
    """Persisted article row (table ``articles``)."""

    title: str
    body: str
    summary: str
    url: str
    source: str
    category: str
    score: int
    publish_date: Optional[datetime] = None
    id: Optional[int] = None
    is_translated: bool = False
    translated_title: Optional[str] = None
    translated_body: Optional[str] = None
    translated_summary: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
