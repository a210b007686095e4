import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from exasearch.utils.env_parser import iter_env_assignments, load_env_file


class ConfigEnvParserTests(unittest.TestCase):
    def _load_from_text(self, text: str) -> None:
        with tempfile.TemporaryDirectory() as tmp_dir:
            env_path = Path(tmp_dir) / ".env"
            env_path.write_text(text, encoding="utf-8")
            load_env_file(env_path)

    def test_inline_comment_is_ignored_for_unquoted_values(self) -> None:
        self.assertEqual(
            list(iter_env_assignments("EXA_API_KEY=abc123 # personal key\n")),
            [("EXA_API_KEY", "abc123")],
        )

    def test_hash_without_space_is_kept(self) -> None:
        self.assertEqual(list(iter_env_assignments("PROXY=http://h:1#frag\n")), [("PROXY", "http://h:1#frag")])

    def test_export_prefix_blank_lines_and_comments(self) -> None:
        text = "# comment\n\nexport LOG_LEVEL=DEBUG\nnot an assignment\n"
        self.assertEqual(list(iter_env_assignments(text)), [("LOG_LEVEL", "DEBUG")])

    def test_nested_quotes_are_preserved_inside_outer_quotes(self) -> None:
        text = "A=\"'hello'\"\nB='\"hello\"'\n"
        self.assertEqual(list(iter_env_assignments(text)), [("A", "'hello'"), ("B", '"hello"')])

    def test_double_quoted_escapes(self) -> None:
        self.assertEqual(list(iter_env_assignments('A="tab\\there \\"q\\""\n')), [("A", 'tab\there "q"')])

    def test_multiline_quoted_value_is_supported(self) -> None:
        text = 'A="line1\nline2\nline3"\nB=after\n'
        self.assertEqual(list(iter_env_assignments(text)), [("A", "line1\nline2\nline3"), ("B", "after")])

    def test_existing_environment_wins(self) -> None:
        with patch.dict(os.environ, {"TEST_EXA_ENV_KEEP": "process"}, clear=False):
            os.environ.pop("TEST_EXA_ENV_NEW", None)
            self._load_from_text("TEST_EXA_ENV_KEEP=file\nTEST_EXA_ENV_NEW=file\n")
            self.assertEqual(os.environ.get("TEST_EXA_ENV_KEEP"), "process")
            self.assertEqual(os.environ.get("TEST_EXA_ENV_NEW"), "file")

    def test_missing_file_is_silent(self) -> None:
        fake_stderr = io.StringIO()
        with patch("exasearch.utils.env_parser.sys.stderr", fake_stderr):
            load_env_file(Path("does/not/exist/.env"))
        self.assertEqual(fake_stderr.getvalue(), "")

    def test_read_oserror_is_reported_in_stderr(self) -> None:
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            fake_stderr = io.StringIO()
            with patch("exasearch.utils.env_parser.sys.stderr", fake_stderr):
                load_env_file(Path("missing/.env"))
            self.assertIn("failed to read env file", fake_stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
