import unittest

from aiwire.ingestion.article_types import ArticleCandidate
from aiwire.pipeline.selection import GLOBAL, PER_SOURCE, build_queues, fill_budget, select_candidates

from fakes import raw_item


def _candidate(title, score, index, source="A"):
    return ArticleCandidate(
        item=raw_item(title, f"https://example.com/{title}", source_name=source),
        score=score,
        category="X",
        discovery_index=index,
    )


class TestSelection(unittest.TestCase):
    def setUp(self):
        self.by_source = {
            "A": [_candidate("a1", 40, 0), _candidate("a2", 100, 1), _candidate("a3", 40, 2)],
            "B": [_candidate("b1", 60, 3, "B"), _candidate("b2", 105, 4, "B")],
        }

    def test_per_source_cap(self):
        picked = select_candidates(self.by_source, mode=PER_SOURCE, per_source_limit=2)
        self.assertEqual([c.title for c in picked], ["a2", "a1", "b2", "b1"])

    def test_global_cap_sorted_desc_stable(self):
        picked = select_candidates(self.by_source, mode=GLOBAL, global_limit=4)
        self.assertEqual([c.title for c in picked], ["b2", "a2", "b1", "a1"])

    def test_ties_keep_discovery_order(self):
        picked = select_candidates({"A": self.by_source["A"]}, mode=PER_SOURCE, per_source_limit=3)
        self.assertEqual([c.title for c in picked], ["a2", "a1", "a3"])

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            build_queues(self.by_source, mode="random")

    def test_fill_budget_backfills_dropped_items(self):
        queue = [_candidate(f"c{i}", 50, i) for i in range(5)]
        seen = []

        def realize(c):
            seen.append(c.title)
            return None if c.title == "c1" else c

        realized, dropped = fill_budget(queue, 3, realize)
        self.assertEqual([c.title for c in realized], ["c0", "c2", "c3"])
        self.assertEqual(dropped, 1)
        self.assertEqual(seen, ["c0", "c1", "c2", "c3"])

    def test_fill_budget_stops_pulling_at_budget(self):
        pulled = []

        def lazy():
            for i in range(5):
                pulled.append(i)
                yield _candidate(f"c{i}", 50, i)

        realized, _ = fill_budget(lazy(), 2, lambda c: c)
        self.assertEqual(len(realized), 2)
        self.assertEqual(pulled, [0, 1])

    def test_zero_budget(self):
        realized, dropped = fill_budget([_candidate("c", 1, 0)], 0, lambda c: c)
        self.assertEqual((realized, dropped), ([], 0))


if __name__ == "__main__":
    unittest.main()
