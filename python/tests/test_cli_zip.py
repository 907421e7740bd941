"""
Tests for the filtered zip command-line tool.
"""

import io
import os
import shutil
import tempfile
import unittest
import zipfile
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from cli_zip import ZipperCLI


class TestZipperCLI(unittest.TestCase):
    """Test exit codes and output of the CLI commands."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.base_dir = os.path.join(self.temp_dir, "project")
        for rel_path in ("main.py", "lib/util.py", "lib/tests/test_util.py", "notes.md"):
            full_path = Path(self.base_dir, rel_path)
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(f"# {rel_path}\n" * 20)
        self.output = os.path.join(self.temp_dir, "out.zip")
        self.cli = ZipperCLI()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _run_quietly(self, args):
        with redirect_stdout(io.StringIO()) as stdout:
            code = self.cli.run(args)
        return code, stdout.getvalue()

    def test_create_with_patterns(self):
        code = self.cli.run(
            ["create", self.base_dir, "-o", self.output, "-p", "**/*.py, !**/tests/**"]
        )

        self.assertEqual(code, 0)
        with zipfile.ZipFile(self.output) as zipf:
            self.assertEqual(set(zipf.namelist()), {"main.py", "lib/util.py"})

    def test_create_with_include_and_exclude(self):
        code = self.cli.run(
            [
                "create",
                self.base_dir,
                "-o",
                self.output,
                "-i",
                "**/*.py",
                "-i",
                "*.md",
                "-e",
                "lib/**",
            ]
        )

        self.assertEqual(code, 0)
        with zipfile.ZipFile(self.output) as zipf:
            self.assertEqual(set(zipf.namelist()), {"main.py", "notes.md"})

    def test_create_into_base_directory(self):
        output = os.path.join(self.base_dir, "project.zip")

        code = self.cli.run(["create", self.base_dir, "-o", output])

        self.assertEqual(code, 0)
        with zipfile.ZipFile(output) as zipf:
            self.assertNotIn("project.zip", zipf.namelist())
            self.assertEqual(len(zipf.namelist()), 4)

    def test_create_from_missing_directory_fails(self):
        code = self.cli.run(
            ["create", os.path.join(self.temp_dir, "missing"), "-o", self.output]
        )

        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output))

    def test_create_over_size_limit_fails(self):
        code = self.cli.run(
            ["create", self.base_dir, "-o", self.output, "--max-size", "10"]
        )

        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output))

    def test_create_with_bad_config_fails(self):
        config_path = Path(self.temp_dir, "zipper.yml")
        config_path.write_text("archive:\n  compression: rar\n")

        code = self.cli.run(
            ["create", self.base_dir, "-o", self.output, "-c", str(config_path)]
        )

        self.assertEqual(code, 1)

    def test_patterns_and_include_are_exclusive(self):
        code = self.cli.run(
            ["create", self.base_dir, "-o", self.output, "-p", "**", "-i", "*.py"]
        )

        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(self.output))

    def test_no_command_prints_help(self):
        code, output = self._run_quietly([])

        self.assertEqual(code, 1)
        self.assertIn("usage", output.lower())

    def test_keyboard_interrupt(self):
        with patch("cli_zip.zip_directory", side_effect=KeyboardInterrupt):
            code = self.cli.run(["create", self.base_dir, "-o", self.output])

        self.assertEqual(code, 130)

    def test_list_prints_selected_files(self):
        code, output = self._run_quietly(
            ["list", self.base_dir, "-p", "**/*.py\n!**/tests/**"]
        )

        self.assertEqual(code, 0)
        self.assertEqual(set(output.split()), {"main.py", "lib/util.py"})
        self.assertFalse(os.path.exists(self.output))

    def test_list_with_no_match_fails(self):
        code, output = self._run_quietly(["list", self.base_dir, "-i", "**/*.rs"])

        self.assertEqual(code, 1)
        self.assertEqual(output, "")


if __name__ == "__main__":
    unittest.main()
