import tempfile
import unittest
from pathlib import Path

from vc_patch_helper.diff.synthesizer import (
    deletion_marker,
    rewrite_paths,
    synthesize_added_file_diff,
)
from vc_patch_helper.errors import MissingFileError


class TestSynthesizeAddedFileDiff(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_single_line_file(self) -> None:
        path = self.root / "hello.txt"
        path.write_text("hello\n", encoding="utf-8")

        diff = synthesize_added_file_diff(path, "pkg/hello.txt")

        self.assertEqual(diff, "--- /dev/null\n+++ pkg/hello.txt\n@@ -0,0 +1 @@\n+hello\n")

    def test_multi_line_file(self) -> None:
        path = self.root / "three.py"
        path.write_text("a = 1\nb = 2\nc = 3\n", encoding="utf-8")

        diff = synthesize_added_file_diff(path, "three.py")

        self.assertEqual(
            diff,
            "--- /dev/null\n+++ three.py\n@@ -0,0 +1,3 @@\n+a = 1\n+b = 2\n+c = 3\n",
        )

    def test_display_path_defaults_to_local_path(self) -> None:
        path = self.root / "x.txt"
        path.write_text("x\n", encoding="utf-8")

        diff = synthesize_added_file_diff(str(path))

        self.assertIn(f"+++ {path}\n", diff)

    def test_missing_final_newline_is_marked(self) -> None:
        path = self.root / "no_newline.txt"
        path.write_text("first\nlast", encoding="utf-8")

        diff = synthesize_added_file_diff(path, "no_newline.txt")

        self.assertTrue(diff.endswith("+first\n+last\n\\ No newline at end of file\n"))
        self.assertIn("@@ -0,0 +1,2 @@\n", diff)

    def test_blank_lines_inside_file_are_kept(self) -> None:
        path = self.root / "gaps.txt"
        path.write_text("a\n\nb\n", encoding="utf-8")

        diff = synthesize_added_file_diff(path, "gaps.txt")

        self.assertIn("+a\n+\n+b\n", diff)

    def test_form_feed_does_not_split_line(self) -> None:
        path = self.root / "page.c"
        path.write_bytes(b"one\x0c\ntwo\n")

        diff = synthesize_added_file_diff(path, "page.c")

        self.assertEqual(diff, "--- /dev/null\n+++ page.c\n@@ -0,0 +1,2 @@\n+one\x0c\n+two\n")

    def test_unicode_line_separator_does_not_split_line(self) -> None:
        path = self.root / "s.js"
        path.write_text("var s = 'x\u2028y';\n", encoding="utf-8")

        diff = synthesize_added_file_diff(path, "s.js")

        self.assertEqual(diff, "--- /dev/null\n+++ s.js\n@@ -0,0 +1 @@\n+var s = 'x\u2028y';\n")

    def test_missing_file_raises(self) -> None:
        with self.assertRaises(MissingFileError):
            synthesize_added_file_diff(self.root / "absent.txt", "absent.txt")

    def test_directory_raises(self) -> None:
        with self.assertRaises(MissingFileError):
            synthesize_added_file_diff(self.root, "dir")

    def test_whitespace_only_file_raises(self) -> None:
        path = self.root / "blank.txt"
        path.write_text("  \n\n\t\n", encoding="utf-8")
        with self.assertRaises(MissingFileError):
            synthesize_added_file_diff(path, "blank.txt")

    def test_invalid_utf8_is_replaced(self) -> None:
        path = self.root / "latin1.txt"
        path.write_bytes(b"caf\xe9\n")

        diff = synthesize_added_file_diff(path, "latin1.txt")

        self.assertIn("+caf�\n", diff)


class TestDeletionMarker(unittest.TestCase):
    def test_marker(self) -> None:
        self.assertEqual(deletion_marker("pkg/foo.go"), "delete pkg/foo.go")


class TestRewritePaths(unittest.TestCase):
    def test_depot_and_local_paths_replaced(self) -> None:
        diff = (
            "--- //depot/main/pkg/foo.go\t//depot/main/pkg/foo.go#3\n"
            "+++ /home/bob/ws/pkg/foo.go\t2024/05/01 10:00:00\n"
            "@@ -1 +1 @@\n-old\n+new\n"
        )
        rewritten = rewrite_paths(diff, {
            "//depot/main/pkg/foo.go": "pkg/foo.go",
            "/home/bob/ws/pkg/foo.go": "pkg/foo.go",
        })
        self.assertEqual(
            rewritten,
            "--- pkg/foo.go\tpkg/foo.go\n"
            "+++ pkg/foo.go\t2024/05/01 10:00:00\n"
            "@@ -1 +1 @@\n-old\n+new\n",
        )

    def test_longer_path_not_clobbered_by_prefix(self) -> None:
        diff = "--- //d/m/a.go\n--- //d/m/a.go2\n"
        rewritten = rewrite_paths(diff, {"//d/m/a.go": "a.go", "//d/m/a.go2": "a.go2"})
        self.assertEqual(rewritten, "--- a.go\n--- a.go2\n")

    def test_revision_keywords_dropped(self) -> None:
        rewritten = rewrite_paths("==== //d/m/x.c#none - /ws/x.c ====\n", {"//d/m/x.c": "x.c", "/ws/x.c": "x.c"})
        self.assertEqual(rewritten, "==== x.c - x.c ====\n")

    def test_no_replacements(self) -> None:
        self.assertEqual(rewrite_paths("--- a\n", {}), "--- a\n")
        self.assertEqual(rewrite_paths("", {"a": "b"}), "")

    def test_regex_characters_in_paths(self) -> None:
        rewritten = rewrite_paths("--- //d/m/a+b (1).txt\n", {"//d/m/a+b (1).txt": "a+b (1).txt"})
        self.assertEqual(rewritten, "--- a+b (1).txt\n")


if __name__ == "__main__":
    unittest.main()
