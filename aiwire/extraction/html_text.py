"""HTML → structured plain text.

Output conventions (the translation layer protects these markers):
- headings:   "#" * level + " " + text
- paragraphs: separated by one blank line
- list items: "- " + text
- quotes:     "> " + text (one prefix per line)
- links:      "text (url)"
- bold:       "**text**"
Identical blocks are emitted once, in first-seen order.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

STRIP_TAGS = ("script", "style", "noscript", "template", "iframe", "svg")
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
BLOCK_TAGS = HEADING_TAGS + ("p", "li", "blockquote", "pre")

MAIN_CONTAINER_SELECTORS = (
    "article",
    "main",
    "[itemprop='articleBody']",
    ".post-content",
    ".entry-content",
    ".article-content",
)

DEFAULT_ABSTRACT_LOCATORS = (
    ".ltx_abstract",
    "blockquote.abstract",
    ".abstract",
    "meta[name='citation_abstract']",
    "meta[name='description']",
    "meta[property='og:description']",
)

_ABSTRACT_PREFIX = re.compile(r"^(?:\s*abstract\b\s*[:.]?\s*)+", re.IGNORECASE)


def make_soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup.find_all(list(STRIP_TAGS)):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return soup


def _squash(text: str) -> str:
    return " ".join(text.split())


def _inline_text(node: Union[Tag, NavigableString]) -> str:
    if isinstance(node, Comment):
        return ""
    if isinstance(node, NavigableString):
        return str(node)
    if not isinstance(node, Tag):
        return ""
    if node.name == "br":
        return " "
    inner = "".join(_inline_text(child) for child in node.children)
    if node.name == "a":
        text = _squash(inner)
        href = (node.get("href") or "").strip()
        if href and not href.startswith(("#", "javascript:", "mailto:")):
            if not text or text == href:
                return f" {href} "
            return f"{text} ({href})"
        return inner
    if node.name in ("strong", "b"):
        text = _squash(inner)
        return f"**{text}**" if text else ""
    return inner


def _render_block(el: Tag) -> List[str]:
    name = el.name
    if name in HEADING_TAGS:
        text = _squash(_inline_text(el))
        return [f"{'#' * int(name[1])} {text}"] if text else []
    if name == "li":
        text = _squash(_inline_text(el))
        return [f"- {text}"] if text else []
    if name == "blockquote":
        parts = [_squash(_inline_text(p)) for p in el.find_all("p")] or [_squash(_inline_text(el))]
        lines = [f"> {p}" for p in parts if p]
        return ["\n".join(lines)] if lines else []
    if name == "pre":
        text = el.get_text().strip("\n")
        return [text] if text.strip() else []
    text = _squash(_inline_text(el))
    return [text] if text else []


def _has_block_ancestor(el: Tag, root: Tag) -> bool:
    for parent in el.parents:
        if parent is root:
            return False
        if parent.name in BLOCK_TAGS:
            return True
    return False


def dedupe_blocks(blocks: Iterable[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for block in blocks:
        key = block.strip()
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(block)
    return out


def structured_text_from_node(root: Tag) -> str:
    blocks: List[str] = []
    for el in root.find_all(list(BLOCK_TAGS)):
        if _has_block_ancestor(el, root):
            continue
        blocks.extend(_render_block(el))
    if not blocks:
        # Bare text without block markup (common in RSS descriptions)
        text = root.get_text("\n")
        blocks = [_squash(line) for line in re.split(r"\n\s*\n", text)]
    return "\n\n".join(dedupe_blocks(blocks))


def html_to_structured_text(html: str) -> str:
    if not html or not html.strip():
        return ""
    soup = make_soup(html)
    root = soup.body or soup
    return structured_text_from_node(root)


def find_main_container(soup: BeautifulSoup, selectors: Sequence[str] = MAIN_CONTAINER_SELECTORS) -> Optional[Tag]:
    for selector in selectors:
        node = soup.select_one(selector)
        if node is not None and node.get_text(strip=True):
            return node
    return None


def extract_abstract(soup: BeautifulSoup, locators: Sequence[str] = DEFAULT_ABSTRACT_LOCATORS) -> Optional[str]:
    """First non-empty abstract from the locator list, else the first non-empty paragraph."""
    for selector in locators:
        node = soup.select_one(selector)
        if node is None:
            continue
        if node.name == "meta":
            text = node.get("content") or ""
        else:
            text = node.get_text(" ")
        text = _ABSTRACT_PREFIX.sub("", _squash(text))
        if text:
            return text
    for p in soup.find_all("p"):
        text = _squash(p.get_text(" "))
        if text:
            return text
    return None


def first_paragraph(body: str) -> str:
    """First body block that is not a heading."""
    for block in (body or "").split("\n\n"):
        block = block.strip()
        if block and not block.startswith("#"):
            return block
    return ""
