import tempfile
import unittest
from contextlib import redirect_stderr
from io import StringIO
from pathlib import Path

from propeval.config.config import DEFAULT_MAX_AGE_MS, load_config, validate_config


class LoadConfigTests(unittest.TestCase):
    def test_package_defaults(self) -> None:
        cfg = validate_config(load_config())
        self.assertEqual(cfg["session"]["max_age_ms"], 86_400_000)
        self.assertEqual(cfg["results"]["format"], "parquet")
        self.assertEqual(cfg["report"]["improvement_limit"], 3)
        self.assertEqual(cfg["ui"]["language"], "en")

    def test_user_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cfg.yml"
            path.write_text("results:\n  format: JSON\nui:\n  language: ro\n", encoding="utf-8")
            cfg = validate_config(load_config(str(path)))
        self.assertEqual(cfg["results"]["format"], "json")
        self.assertEqual(cfg["ui"]["language"], "ro")
        self.assertEqual(cfg["session"]["storage_dir"], "./.propeval/sessions")

    def test_missing_file_exits(self) -> None:
        err = StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
            load_config("/nonexistent/propeval.yml")
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("Config file not found", err.getvalue())

    def test_unparseable_file_exits(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.yml"
            path.write_text("session: [unclosed\n", encoding="utf-8")
            with redirect_stderr(StringIO()), self.assertRaises(SystemExit):
                load_config(str(path))


class ValidateConfigTests(unittest.TestCase):
    def test_empty_config_gets_defaults(self) -> None:
        cfg = validate_config({})
        self.assertEqual(cfg["session"]["max_age_ms"], DEFAULT_MAX_AGE_MS)
        self.assertEqual(cfg["results"]["output_path"], "./.propeval/results")
        self.assertIsNone(cfg["report"]["improvement_limit"])

    def test_invalid_values_fall_back(self) -> None:
        raw = {
            "session": {"max_age_ms": "soon"},
            "results": {"format": "xml"},
            "report": {"improvement_limit": -2},
            "ui": {"language": "fr"},
        }
        with self.assertLogs("propeval.config.config", level="WARNING") as logs:
            cfg = validate_config(raw)
        self.assertEqual(len(logs.records), 4)
        self.assertEqual(cfg["session"]["max_age_ms"], DEFAULT_MAX_AGE_MS)
        self.assertEqual(cfg["results"]["format"], "parquet")
        self.assertIsNone(cfg["report"]["improvement_limit"])
        self.assertEqual(cfg["ui"]["language"], "en")

    def test_numeric_strings_are_accepted(self) -> None:
        cfg = validate_config({"session": {"max_age_ms": "3600000"}, "report": {"improvement_limit": "5"}})
        self.assertEqual(cfg["session"]["max_age_ms"], 3_600_000)
        self.assertEqual(cfg["report"]["improvement_limit"], 5)


if __name__ == "__main__":
    unittest.main()
