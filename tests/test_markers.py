import unittest

from aiwire.translation.markers import protect, restore


class TestMarkers(unittest.TestCase):
    def test_protect_replaces_markers_with_tokens(self):
        p = protect("## Heading\n\nSome **bold** text\n- item\n> quote")
        self.assertNotIn("##", p.text)
        self.assertNotIn("**", p.text)
        self.assertNotIn("- item", p.text)
        self.assertEqual(len(p), 5)
        self.assertTrue(p.text.startswith("⟦H0⟧ Heading"))

    def test_restore_is_exact_when_tokens_survive(self):
        source = "## Heading\n\nSome **bold** text\n- item\n> quote"
        p = protect(source)
        restored, missing = restore(p.text, p)
        self.assertEqual(restored, source)
        self.assertEqual(missing, 0)

    def test_restore_tolerates_spaced_tokens(self):
        p = protect("# Title")
        restored, missing = restore("⟦ H 0 ⟧  Titel", p)
        self.assertEqual(restored, "# Titel")
        self.assertEqual(missing, 0)

    def test_restore_counts_lost_tokens(self):
        p = protect("Some **bold** text")
        restored, missing = restore("Some bold text", p)
        self.assertEqual(missing, 2)

    def test_plain_text_has_no_markers(self):
        p = protect("Nothing special here. Hyphen-ated - and 2 * 3.")
        self.assertEqual(len(p), 0)
        self.assertEqual(p.text, "Nothing special here. Hyphen-ated - and 2 * 3.")


if __name__ == "__main__":
    unittest.main()
