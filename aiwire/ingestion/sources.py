"""Static source registry."""

from __future__ import annotations

from typing import List

from aiwire.ingestion.article_types import SourceDescriptor

STRATEGY_RSS = "rss"
STRATEGY_ARXIV = "arxiv"
STRATEGY_ARTICLE_PAGE = "article_page"

ARXIV_API_URL = "http://export.arxiv.org/api/query"
ARXIV_RAG_QUERY = 'all:"Retrieval Augmented Generation" OR all:RAG'


def default_sources() -> List[SourceDescriptor]:
    """Curated starter set. Source names double as scoring-bonus keys."""
    return [
        SourceDescriptor(
            name="OpenAI Blog",
            url="https://openai.com/blog/rss.xml",
            strategy=STRATEGY_RSS,
        ),
        SourceDescriptor(
            name="Google AI Blog",
            url="https://blog.research.google/feeds/posts/default",
            strategy=STRATEGY_ARTICLE_PAGE,
        ),
        SourceDescriptor(
            name="arXiv RAG Papers",
            url=ARXIV_API_URL,
            strategy=STRATEGY_ARXIV,
            query=ARXIV_RAG_QUERY,
        ),
    ]


def find_source(name: str) -> SourceDescriptor:
    for source in default_sources():
        if source.name == name:
            return source
    raise KeyError(f"Unknown source: {name}")
