"""Deterministic relevance scoring.

score_title(title, source) -> (score, category)

- Categories are checked in priority order; the first one with any keyword
  hit wins (no aggregation across categories).
- Matching is a case-insensitive substring test on word-normalized text
  (lowercased, punctuation collapsed to single spaces, padded at both ends),
  not on the raw title. Keywords therefore match whole words or word runs:
  "rag" hits "RAG-based" but not "storage".
- A fixed per-source bonus is added on top. Bonuses stay below the gap
  between adjacent category weights so category priority always holds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple


RAG = "RAG"
LLM_DEV = "LLM_DEV"
AI_COMPANY = "AI_COMPANY"
GENERAL_AI = "GENERAL_AI"
OTHER = "OTHER"

# (category, weight, keywords), highest priority first
CATEGORY_TABLE: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    (
        RAG,
        100,
        (
            "retrieval augmented",
            "rag",
            "vector database",
            "vector search",
            "embedding",
            "embeddings",
            "reranker",
            "knowledge graph",
            "semantic search",
        ),
    ),
    (
        LLM_DEV,
        80,
        (
            "fine-tuning",
            "prompt",
            "prompting",
            "agent",
            "agents",
            "function calling",
            "tool use",
            "inference",
            "benchmark",
            "evaluation",
            "api",
            "sdk",
        ),
    ),
    (
        AI_COMPANY,
        60,
        (
            "openai",
            "anthropic",
            "google",
            "deepmind",
            "meta ai",
            "microsoft",
            "nvidia",
            "hugging face",
            "mistral",
        ),
    ),
    (
        GENERAL_AI,
        40,
        (
            "ai",
            "llm",
            "llms",
            "language model",
            "language models",
            "gpt",
            "machine learning",
            "neural",
            "transformer",
            "deep learning",
        ),
    ),
)

SOURCE_BONUS = {
    "arXiv RAG Papers": 10,
    "OpenAI Blog": 5,
    "Google AI Blog": 5,
}


_NON_WORD = re.compile(r"[^0-9a-z]+")


def _normalize(text: str) -> str:
    return " " + " ".join(_NON_WORD.split((text or "").lower())).strip() + " "


@dataclass(frozen=True)
class ArticleScore:
    score: int
    category: str


def source_bonus(source_name: Optional[str]) -> int:
    return SOURCE_BONUS.get(source_name or "", 0)


def categorize(title: str, *, extra_keywords: Sequence[str] = ()) -> Tuple[str, int]:
    """Return (category, weight) for the first category with a keyword hit.

    extra_keywords (admin-configured interests) join the top category.
    """
    blob = _normalize(title)
    for i, (category, weight, keywords) in enumerate(CATEGORY_TABLE):
        candidates: Iterable[str] = keywords
        if i == 0 and extra_keywords:
            candidates = list(keywords) + [k for k in extra_keywords if k and k.strip()]
        if any(_normalize(kw) in blob for kw in candidates):
            return category, weight
    return OTHER, 0


def score_title(title: str, source_name: Optional[str], *, extra_keywords: Sequence[str] = ()) -> ArticleScore:
    category, weight = categorize(title, extra_keywords=extra_keywords)
    return ArticleScore(score=weight + source_bonus(source_name), category=category)
