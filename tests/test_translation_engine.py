import unittest
from unittest import mock

from aiwire.errors import TranslationRateLimited
from aiwire.ingestion.article_types import NormalizedArticle
from aiwire.translation.engine import ALL_FIELDS, TITLE_ONLY, TranslationEngine
from aiwire.translation.providers import TranslationProvider

from fakes import EchoProvider, FakeProvider


class MarkerDroppingProvider(TranslationProvider):
    name = "dropper"

    def translate(self, text, *, target, source="auto"):
        return "译文"


def _article(title="Retrieval for agents", body="## Setup\n\nWe use **dense** retrieval.", summary="Short summary."):
    return NormalizedArticle(
        title=title, body=body, summary=summary, url="https://example.com/a", source="Test", category="RAG", score=100
    )


class TestTranslateText(unittest.TestCase):
    def setUp(self):
        self.sleep = mock.Mock()

    def _engine(self, *providers, **kwargs):
        kwargs.setdefault("sleep", self.sleep)
        return TranslationEngine(list(providers), **kwargs)

    def test_empty_text_never_calls_provider(self):
        provider = FakeProvider()
        engine = self._engine(provider)
        for text in ("", "   \n\t ", None):
            outcome = engine.translate_text(text)
            self.assertEqual(outcome.text, "")
            self.assertTrue(outcome.success)
            self.assertIsNone(outcome.provider)
        self.assertEqual(provider.calls, [])

    def test_text_without_letters_is_kept(self):
        provider = FakeProvider()
        outcome = self._engine(provider).translate_text("2024 / 42%")
        self.assertEqual(outcome.text, "2024 / 42%")
        self.assertEqual(provider.calls, [])

    def test_formatting_survives_translation(self):
        outcome = self._engine(FakeProvider()).translate_text("## Method\n\nWe use **dense** retrieval.")
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.text, "## 词\n\n词 词 **词** 词.")
        self.assertEqual(outcome.text.count("## "), 1)
        self.assertEqual(outcome.text.count("**") // 2, 1)

    def test_retries_with_linear_backoff(self):
        provider = FakeProvider(fail_when=lambda text: len(provider.calls) <= 2)
        outcome = self._engine(provider, retries=3, backoff_seconds=2.0).translate_text("Hello world")
        self.assertTrue(outcome.success)
        self.assertEqual(len(provider.calls), 3)
        self.assertEqual(self.sleep.call_args_list, [mock.call(2.0), mock.call(4.0)])

    def test_falls_back_to_next_provider(self):
        primary = FakeProvider("primary", fail_when=lambda text: True)
        secondary = FakeProvider("secondary")
        outcome = self._engine(primary, secondary, retries=2).translate_text("Hello world")
        self.assertEqual(outcome.provider, "secondary")
        self.assertEqual(len(primary.calls), 2)
        self.assertEqual(len(secondary.calls), 1)

    def test_untranslated_output_counts_as_failure(self):
        echo = EchoProvider()
        outcome = self._engine(echo, retries=3).translate_text("Hello world")
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.text, "")
        self.assertEqual(len(echo.calls), 3)

    def test_output_without_target_script_counts_as_failure(self):
        latin = FakeProvider()
        latin.translate = lambda text, *, target, source="auto": "Bonjour le monde"
        outcome = self._engine(latin, retries=1).translate_text("Hello world")
        self.assertFalse(outcome.success)

    def test_unknown_target_script_is_not_checked(self):
        latin = FakeProvider()
        latin.translate = lambda text, *, target, source="auto": "Bonjour le monde"
        outcome = self._engine(latin, retries=1, target_language="fr").translate_text("Hello world")
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.text, "Bonjour le monde")

    def test_lost_markers_count_as_failure(self):
        outcome = self._engine(MarkerDroppingProvider(), retries=2).translate_text("# Title")
        self.assertFalse(outcome.success)

    def test_rate_limit_is_not_retried_and_skips_fallback(self):
        primary = FakeProvider("primary", rate_limit_when=lambda text: True)
        secondary = FakeProvider("secondary")
        engine = self._engine(primary, secondary, retries=3)
        with self.assertRaises(TranslationRateLimited):
            engine.translate_text("Hello world")
        self.assertEqual(len(primary.calls), 1)
        self.assertEqual(secondary.calls, [])
        self.sleep.assert_not_called()

    def test_long_text_is_chunked(self):
        provider = FakeProvider(max_chars=30)
        text = "First sentence here. Second sentence here. Third one."
        outcome = self._engine(provider).translate_text(text)
        self.assertTrue(outcome.success)
        self.assertEqual(len(provider.calls), 3)
        self.assertTrue(all(len(c) <= 30 for c in provider.calls))
        self.assertEqual(outcome.text.count("\n\n"), 2)


class TestTranslateArticle(unittest.TestCase):
    def test_title_only_policy_stores_failed_fields_empty(self):
        provider = FakeProvider(fail_when=lambda text: "dense" in text)
        engine = TranslationEngine([provider], retries=1, sleep=mock.Mock())
        result = engine.translate_article(_article(), TITLE_ONLY)
        self.assertTrue(result.accepted)
        self.assertFalse(result.body.success)
        self.assertEqual(result.stored_text(result.body), "")
        self.assertEqual(result.stored_text(result.summary), "词 词.")

    def test_all_fields_policy_requires_every_field(self):
        provider = FakeProvider(fail_when=lambda text: "dense" in text)
        engine = TranslationEngine([provider], retries=1, sleep=mock.Mock())
        result = engine.translate_article(_article(), ALL_FIELDS)
        self.assertFalse(result.accepted)

    def test_failed_title_skips_other_fields(self):
        provider = FakeProvider(fail_when=lambda text: "agents" in text)
        engine = TranslationEngine([provider], retries=1, sleep=mock.Mock())
        result = engine.translate_article(_article(), TITLE_ONLY)
        self.assertFalse(result.accepted)
        self.assertEqual(len(provider.calls), 1)

    def test_empty_body_and_summary_are_successful(self):
        provider = FakeProvider()
        engine = TranslationEngine([provider], sleep=mock.Mock())
        result = engine.translate_article(_article(body="", summary=""), ALL_FIELDS)
        self.assertTrue(result.accepted)
        self.assertEqual(len(provider.calls), 1)


if __name__ == "__main__":
    unittest.main()
