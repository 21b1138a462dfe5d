import unittest

from aiwire.translation.text_utils import chunk_text, has_letters, has_target_script, normalize_text


class TestTextUtils(unittest.TestCase):
    def test_normalize(self):
        raw = "  Hello   world \r\n\r\n\r\n\r\nNext\tline  "
        self.assertEqual(normalize_text(raw), "Hello world\n\nNext line")
        self.assertEqual(normalize_text(None), "")
        self.assertEqual(normalize_text(" \n\t "), "")

    def test_has_letters(self):
        self.assertTrue(has_letters("GPT-4"))
        self.assertFalse(has_letters("2024-01-01 / 42%"))

    def test_target_script(self):
        self.assertTrue(has_target_script("检索增强生成", "zh-CN"))
        self.assertFalse(has_target_script("Retrieval augmented generation", "zh-CN"))
        self.assertIsNone(has_target_script("anything", "fr"))

    def test_short_text_is_one_chunk(self):
        self.assertEqual(chunk_text("One. Two.", 100), ["One. Two."])

    def test_chunks_split_on_sentences_under_limit(self):
        text = "First sentence here. Second sentence here. Third sentence here."
        chunks = chunk_text(text, 45)
        self.assertEqual(chunks, ["First sentence here. Second sentence here.", "Third sentence here."])
        self.assertTrue(all(len(c) <= 45 for c in chunks))

    def test_overlong_sentence_is_hard_split(self):
        text = "word " * 30
        chunks = chunk_text(text.strip(), 40)
        self.assertTrue(all(len(c) <= 40 for c in chunks))
        self.assertEqual(" ".join(chunks).split(), text.split())


if __name__ == "__main__":
    unittest.main()
