"""Per-source content extractors.

Each source's extraction-strategy tag selects one Extractor. Extractors never
raise: an unusable item yields None and is dropped by the caller.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Type

import requests

from aiwire.errors import ExtractionFailed
from aiwire.extraction.fulltext import PageFetcher, extract_page_text
from aiwire.extraction.html_text import (
    extract_abstract,
    html_to_structured_text,
    make_soup,
    structured_text_from_node,
)
from aiwire.ingestion.article_types import NormalizedContent, RawItem, SourceDescriptor
from aiwire.ingestion.sources import STRATEGY_ARTICLE_PAGE, STRATEGY_ARXIV, STRATEGY_RSS
from aiwire.ingestion.url_utils import arxiv_id

logger = logging.getLogger(__name__)

ARXIV_HTML_URL = "https://arxiv.org/html/{paper_id}"

# Parts of an arXiv HTML render that are not body text
ARXIV_NOISE_SELECTORS = (
    ".ltx_abstract",
    ".ltx_bibliography",
    ".ltx_authors",
    ".ltx_page_footer",
    "nav",
    "header",
    "footer",
)


class Extractor:
    """extract(item) -> NormalizedContent | None"""

    strategy: str = "base"
    # Whether a too-short result may trigger one fetch of item.url
    secondary_fetch: bool = True

    def __init__(self, *, fetcher: Optional[PageFetcher] = None, min_content_length: int = 200):
        self.fetcher = fetcher or PageFetcher()
        self.min_content_length = min_content_length

    def _extract(self, item: RawItem) -> Optional[NormalizedContent]:
        raise NotImplementedError

    def extract(self, item: RawItem) -> Optional[NormalizedContent]:
        try:
            content = self._extract(item)
            if content is None or not content.body.strip():
                raise ExtractionFailed("no content extracted")
            return self._ensure_length(item, content)
        except ExtractionFailed as e:
            logger.info(f"Dropping '{item.title}' ({item.url}): {e}")
        except Exception as e:
            logger.warning(f"Dropping '{item.title}' ({item.url}): extraction error: {e}")
        return None

    def _ensure_length(self, item: RawItem, content: NormalizedContent) -> NormalizedContent:
        if len(content.body) >= self.min_content_length or not self.secondary_fetch:
            return content
        result = self.fetcher.fetch_and_extract(item.url)
        if result.text and len(result.text) > len(content.body):
            logger.info(f"Secondary fetch for {item.url} improved body {len(content.body)} -> {len(result.text)} chars")
            return NormalizedContent(body=result.text, abstract=content.abstract)
        logger.info(f"Secondary fetch for {item.url} did not help ({result.status}); keeping snippet")
        return content


class FeedContentExtractor(Extractor):
    """Body comes straight from the feed entry's HTML content."""

    strategy = STRATEGY_RSS

    def _extract(self, item: RawItem) -> Optional[NormalizedContent]:
        body = html_to_structured_text(item.content) or html_to_structured_text(item.summary or "")
        return NormalizedContent(body=body) if body else None


class ArticlePageExtractor(Extractor):
    """Feed is only an index; the body lives on the linked page."""

    strategy = STRATEGY_ARTICLE_PAGE
    secondary_fetch = False

    def _extract(self, item: RawItem) -> Optional[NormalizedContent]:
        result = self.fetcher.fetch_and_extract(item.url)
        if result.text:
            return NormalizedContent(body=result.text)
        logger.info(f"Page fetch for {item.url} failed ({result.status}); using feed snippet")
        body = html_to_structured_text(item.content)
        return NormalizedContent(body=body) if body else None


class ArxivExtractor(Extractor):
    """Papers: abstract via locator list, body from the arXiv HTML render."""

    strategy = STRATEGY_ARXIV

    def _extract(self, item: RawItem) -> Optional[NormalizedContent]:
        paper_id = arxiv_id(item.url)
        if not paper_id:
            raise ExtractionFailed(f"no arXiv id in {item.url}")
        feed_abstract = " ".join((item.summary or item.content or "").split()) or None
        try:
            html = self.fetcher.fetch_html(ARXIV_HTML_URL.format(paper_id=paper_id))
        except (requests.RequestException, ValueError) as e:
            # Many papers have no HTML render; the abstract is still worth keeping
            logger.info(f"No HTML render for {paper_id}: {e}")
            if not feed_abstract:
                raise ExtractionFailed(f"no HTML render and no abstract for {paper_id}") from e
            return NormalizedContent(body=feed_abstract, abstract=feed_abstract)

        soup = make_soup(html)
        abstract = extract_abstract(soup) or feed_abstract
        for selector in ARXIV_NOISE_SELECTORS:
            for node in soup.select(selector):
                node.decompose()
        document = soup.select_one("article.ltx_document") or soup.body or soup
        body = structured_text_from_node(document)
        if not body:
            body = extract_page_text(html).text or abstract or ""
        return NormalizedContent(body=body, abstract=abstract)


EXTRACTORS: Dict[str, Type[Extractor]] = {
    STRATEGY_RSS: FeedContentExtractor,
    STRATEGY_ARTICLE_PAGE: ArticlePageExtractor,
    STRATEGY_ARXIV: ArxivExtractor,
}


def build_extractor(source: SourceDescriptor, **kwargs) -> Extractor:
    try:
        cls = EXTRACTORS[source.strategy]
    except KeyError:
        raise ValueError(f"No extractor for strategy {source.strategy!r}") from None
    return cls(**kwargs)
