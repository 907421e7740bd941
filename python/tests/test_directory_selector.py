"""
Tests for directory scanning and file selection.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from zipper import DirectorySelector, SelectionResult

TREE = {
    "a.txt": "top level text",
    "b.py": "print('b')",
    "src/main.py": "print('main')",
    "src/README.md": "# readme",
    "src/util/helper.py": "def helper(): pass",
    "build/out.o": "object",
    "build/gen/x.py": "generated = True",
    "docs/Guide.TXT": "upper case extension",
}


def _create_tree(root: str, tree: dict) -> None:
    for rel_path, content in tree.items():
        full_path = Path(root) / rel_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")


class TestDirectorySelector(unittest.TestCase):
    """Test include/exclude selection over a synthetic tree."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        _create_tree(self.temp_dir, TREE)
        self.selector = DirectorySelector()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_no_patterns_selects_every_file(self):
        """Without includes the implicit ** pattern applies."""
        result = self.selector.select(self.temp_dir)

        self.assertIsInstance(result, SelectionResult)
        self.assertEqual(set(result.included_files), set(TREE))
        self.assertEqual(len(result), len(TREE))

    def test_paths_are_relative_with_forward_slashes(self):
        result = self.selector.select(self.temp_dir)

        for name in result:
            self.assertFalse(os.path.isabs(name))
            self.assertNotIn("\\", name)
        self.assertIn("src/util/helper.py", result.included_files)

    def test_scan_order_is_deterministic(self):
        first = self.selector.select(self.temp_dir, ["**/*.py"], ["build/**"])
        second = self.selector.select(self.temp_dir, ["**/*.py"], ["build/**"])

        self.assertEqual(first.included_files, second.included_files)

    def test_include_patterns(self):
        result = self.selector.select(self.temp_dir, ["**/*.py"])

        self.assertEqual(
            set(result.included_files),
            {"b.py", "src/main.py", "src/util/helper.py", "build/gen/x.py"},
        )

    def test_top_level_pattern_is_rooted(self):
        result = self.selector.select(self.temp_dir, ["*.py", "*.txt"])

        self.assertEqual(set(result.included_files), {"b.py", "a.txt"})

    def test_exclude_patterns(self):
        """A file is selected only if it matches no exclude pattern."""
        result = self.selector.select(self.temp_dir, ["**/*.py"], ["**/helper.py"])

        self.assertEqual(
            set(result.included_files), {"b.py", "src/main.py", "build/gen/x.py"}
        )
        self.assertEqual(result.excluded_files, ("src/util/helper.py",))

    def test_excluded_directory_contents_are_not_scanned(self):
        """Directories excluded with <dir>/** are pruned from the walk."""
        result = self.selector.select(self.temp_dir, [], ["build/**"])

        self.assertNotIn("build/out.o", result.included_files)
        self.assertNotIn("build/gen/x.py", result.included_files)
        self.assertIn("build", result.excluded_dirs)
        self.assertNotIn("build/out.o", result.excluded_files)

    def test_selection_rule(self):
        """Selected iff (no includes or any include matches) and no exclude matches."""
        includes = ["**/*.py", "**/*.md"]
        excludes = ["**/gen/**", "src/main.py"]
        result = self.selector.select(self.temp_dir, includes, excludes)

        self.assertEqual(
            set(result.included_files),
            {"b.py", "src/README.md", "src/util/helper.py"},
        )

    def test_case_insensitive_by_default(self):
        result = self.selector.select(self.temp_dir, ["**/*.txt"])

        self.assertEqual(set(result.included_files), {"a.txt", "docs/Guide.TXT"})

    def test_case_sensitive_option(self):
        selector = DirectorySelector(case_sensitive=True)
        result = selector.select(self.temp_dir, ["**/*.txt"])

        self.assertEqual(set(result.included_files), {"a.txt"})

    def test_filtered_to_nothing(self):
        result = self.selector.select(self.temp_dir, ["**/*.rs"])

        self.assertFalse(result)
        self.assertEqual(result.included_files, ())

    def test_result_is_immutable(self):
        result = self.selector.select(self.temp_dir)

        with self.assertRaises(Exception):
            result.included_files = ()

    def test_accepts_path_objects(self):
        result = self.selector.select(Path(self.temp_dir), ["*.txt"])

        self.assertEqual(result.included_files, ("a.txt",))


class TestDirectorySelectorEdgeCases(unittest.TestCase):
    """Test missing directories, unreadable directories and symlinks."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.selector = DirectorySelector()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_missing_base_directory_gives_empty_selection(self):
        missing = os.path.join(self.temp_dir, "does-not-exist")

        result = self.selector.select(missing, ["**"])

        self.assertFalse(result)
        self.assertEqual(result.base_dir, missing)

    def test_file_as_base_directory_gives_empty_selection(self):
        file_path = os.path.join(self.temp_dir, "plain.txt")
        Path(file_path).write_text("x")

        self.assertFalse(self.selector.select(file_path))

    def test_empty_directory(self):
        self.assertFalse(self.selector.select(self.temp_dir))

    def test_unreadable_subdirectory_is_skipped(self):
        _create_tree(self.temp_dir, {"ok/a.txt": "a", "locked/b.txt": "b"})
        real_list_entries = DirectorySelector._list_entries

        def list_entries(selector, abs_dir):
            if os.path.basename(abs_dir) == "locked":
                raise PermissionError("denied")
            return real_list_entries(selector, abs_dir)

        with patch.object(DirectorySelector, "_list_entries", list_entries):
            with self.assertLogs("zipper.directory_selector", level="WARNING"):
                result = self.selector.select(self.temp_dir)

        self.assertEqual(result.included_files, ("ok/a.txt",))
        self.assertEqual(result.unreadable_dirs, ("locked",))

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_symlinked_directories_are_not_followed(self):
        _create_tree(self.temp_dir, {"real/inner.txt": "inner"})
        os.symlink(
            os.path.join(self.temp_dir, "real"), os.path.join(self.temp_dir, "link")
        )

        result = self.selector.select(self.temp_dir)

        self.assertEqual(result.included_files, ("real/inner.txt",))
        self.assertIn("link", result.not_followed_symlinks)

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_symlinked_files_are_selected(self):
        _create_tree(self.temp_dir, {"target.txt": "target"})
        os.symlink(
            os.path.join(self.temp_dir, "target.txt"),
            os.path.join(self.temp_dir, "alias.txt"),
        )

        result = self.selector.select(self.temp_dir)

        self.assertEqual(set(result.included_files), {"alias.txt", "target.txt"})

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_dangling_symlink_is_not_selected(self):
        os.symlink(
            os.path.join(self.temp_dir, "gone.txt"),
            os.path.join(self.temp_dir, "dangling.txt"),
        )

        result = self.selector.select(self.temp_dir)

        self.assertFalse(result)
        self.assertEqual(result.not_followed_symlinks, ("dangling.txt",))

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_follow_symlinks_option_walks_linked_directories(self):
        _create_tree(self.temp_dir, {"real/inner.txt": "inner"})
        os.symlink(
            os.path.join(self.temp_dir, "real"), os.path.join(self.temp_dir, "link")
        )

        result = DirectorySelector(follow_symlinks=True).select(self.temp_dir)

        self.assertEqual(
            set(result.included_files), {"real/inner.txt", "link/inner.txt"}
        )

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_follow_symlinks_stops_at_loops(self):
        _create_tree(self.temp_dir, {"d/f.txt": "f"})
        os.symlink(self.temp_dir, os.path.join(self.temp_dir, "d", "back"))

        result = DirectorySelector(follow_symlinks=True).select(self.temp_dir)

        self.assertEqual(result.included_files, ("d/f.txt",))
        self.assertIn("d/back", result.not_followed_symlinks)


if __name__ == "__main__":
    unittest.main()
