"""Full-page fetch + extraction.

Used for sources whose feed only carries a teaser, and as the one secondary
fetch an extractor may make when its first pass came out too short.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import requests
import trafilatura

from aiwire.extraction.html_text import find_main_container, make_soup, structured_text_from_node
from aiwire.ingestion.http import DEFAULT_TIMEOUT, build_session, fetch_text, validate_fetch_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FulltextResult:
    text: Optional[str]
    status: str
    error: Optional[str] = None
    method: str = "structured"


def extract_page_text(html: str) -> FulltextResult:
    """Structured extraction from the main container, trafilatura as fallback."""
    if not html or not html.strip():
        return FulltextResult(text=None, status="empty", error="empty_html")
    soup = make_soup(html)
    main = find_main_container(soup)
    if main is not None:
        text = structured_text_from_node(main)
        if text:
            return FulltextResult(text=text, status="ok")
    text = trafilatura.extract(html, include_comments=False, include_tables=False)
    if not text:
        return FulltextResult(text=None, status="no_extract", error="no_extract", method="trafilatura")
    return FulltextResult(text=text.strip(), status="ok", method="trafilatura")


@dataclass
class PageFetcher:
    session: requests.Session = field(default_factory=build_session)
    timeout: Tuple[float, float] = DEFAULT_TIMEOUT
    max_bytes: int = 2_000_000

    def fetch_html(self, url: str) -> str:
        return fetch_text(self.session, url, timeout=self.timeout, max_bytes=self.max_bytes)

    def fetch_and_extract(self, url: str) -> FulltextResult:
        if not url:
            return FulltextResult(text=None, status="error", error="empty_url")
        err = validate_fetch_url(url)
        if err:
            return FulltextResult(text=None, status="blocked", error=err)
        try:
            html = self.fetch_html(url)
        except requests.HTTPError as e:
            code = e.response.status_code if e.response is not None else "error"
            return FulltextResult(text=None, status=f"http_{code}", error=str(e))
        except (requests.RequestException, ValueError) as e:
            return FulltextResult(text=None, status="error", error=str(e))
        return extract_page_text(html)


def fetch_and_extract(url: str, *, timeout: Tuple[float, float] = DEFAULT_TIMEOUT) -> FulltextResult:
    return PageFetcher(timeout=timeout).fetch_and_extract(url)
