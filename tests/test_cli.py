import logging
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from typer.testing import CliRunner

from watchtower.cli import app
from watchtower.core.types import Brief
from watchtower.infra.cache.brief_cache import BriefCache


class CliTest(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        self.env = {
            "WATCHTOWER_CONFIG_FILE": str(self.root / "config.yaml"),
            "WATCHTOWER_CACHE_DIR": str(self.root / "cache"),
            "WATCHTOWER_LOG_FILE": str(self.root / "watchtower.log"),
        }

    def tearDown(self):
        for handler in list(logging.getLogger().handlers):
            logging.getLogger().removeHandler(handler)
            handler.close()
        self._tmpdir.cleanup()

    def test_init_config_writes_defaults(self):
        result = self.runner.invoke(app, ["init-config"], env=self.env)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Config initialized", result.output)
        self.assertTrue((self.root / "config.yaml").exists())

    def test_invalid_config_exits_non_zero(self):
        (self.root / "config.yaml").write_text("refresh_seconds: 1\n", encoding="utf-8")
        result = self.runner.invoke(app, ["init-config"], env=self.env)
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Config error", result.output)

    def test_cache_clear_removes_brief(self):
        path = self.root / "cache" / "brief.json"
        BriefCache(path).save(Brief(summary="s", generated_at=datetime.now(timezone.utc)))
        self.assertTrue(path.exists())

        result = self.runner.invoke(app, ["cache", "clear"], env=self.env)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertFalse(path.exists())


if __name__ == "__main__":
    unittest.main()
