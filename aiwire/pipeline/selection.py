"""Candidate selection: rank scored candidates and cut them to the run budget.

Two modes:
- per_source (default): each source keeps its best ``per_source_limit``.
- global: everything is pooled, ranked, and cut to ``global_limit``.

Ranking is a stable descending sort on score; ties keep discovery order.
Because scoring only needs the title, selection runs before extraction and
``fill_budget`` backfills from the queue when an item is dropped.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from aiwire.ingestion.article_types import ArticleCandidate

PER_SOURCE = "per_source"
GLOBAL = "global"


def rank(candidates: Sequence[ArticleCandidate]) -> List[ArticleCandidate]:
    return sorted(candidates, key=lambda c: (-c.score, c.discovery_index))


def build_queues(
    candidates_by_source: Dict[str, List[ArticleCandidate]],
    *,
    mode: str = PER_SOURCE,
    per_source_limit: int = 20,
    global_limit: int = 5,
) -> List[Tuple[List[ArticleCandidate], int]]:
    """Ranked queues with the number of items each may contribute."""
    if mode == PER_SOURCE:
        return [(rank(items), max(0, per_source_limit)) for items in candidates_by_source.values()]
    if mode == GLOBAL:
        pooled = [c for items in candidates_by_source.values() for c in items]
        return [(rank(pooled), max(0, global_limit))]
    raise ValueError(f"Unknown selection mode: {mode}")


def select_candidates(
    candidates_by_source: Dict[str, List[ArticleCandidate]],
    *,
    mode: str = PER_SOURCE,
    per_source_limit: int = 20,
    global_limit: int = 5,
) -> List[ArticleCandidate]:
    selected: List[ArticleCandidate] = []
    for queue, budget in build_queues(
        candidates_by_source,
        mode=mode,
        per_source_limit=per_source_limit,
        global_limit=global_limit,
    ):
        selected.extend(queue[:budget])
    return selected


def fill_budget(
    queue: Iterable[ArticleCandidate],
    budget: int,
    realize: Callable[[ArticleCandidate], Optional[ArticleCandidate]],
) -> Tuple[List[ArticleCandidate], int]:
    """Walk a ranked queue until ``budget`` candidates are realized.

    ``realize`` returns the candidate with content attached, or None when the
    item is dropped. Returns (realized, dropped_count).
    """
    realized: List[ArticleCandidate] = []
    dropped = 0
    # Budget is checked before pulling so a lazy queue is never advanced past it
    pending = iter(queue)
    while len(realized) < budget:
        candidate = next(pending, None)
        if candidate is None:
            break
        result = realize(candidate)
        if result is None:
            dropped += 1
            continue
        realized.append(result)
    return realized, dropped
