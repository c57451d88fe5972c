import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from starshot.infrastructure.utils.config import (
    BotApiConfig,
    DashboardConfig,
    ForecastConfig,
    UpstreamConfig,
)

YAML = """
environment: DEV
log_level: debug
bots:
  chatgpt:
    base_url: http://10.0.0.5:8071/api/v1/
    username: agent
  gemini:
    base_url: http://10.0.0.5:8073/api/v1
upstream:
  status_path: stats
  open_trades_source: STATUS
dashboard:
  poll_interval_seconds: 30
"""


class ConfigFromYamlTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "config.yaml"

    def _write(self, text):
        self.path.write_text(text, encoding="utf-8")
        return self.path

    @patch.dict(os.environ, {}, clear=True)
    def test_yaml_values_are_validated(self):
        cfg = DashboardConfig.from_yaml(self._write(YAML))

        self.assertEqual(cfg.log_level, "DEBUG")
        self.assertEqual(cfg.models, ["chatgpt", "gemini"])
        self.assertEqual(cfg.bots["chatgpt"].base_url, "http://10.0.0.5:8071/api/v1")
        self.assertEqual(cfg.bots["chatgpt"].username, "agent")
        self.assertEqual(cfg.upstream.status_path, "/stats")
        self.assertEqual(cfg.upstream.open_trades_source, "status")
        self.assertEqual(cfg.dashboard.poll_interval_seconds, 30)
        self.assertFalse(cfg.forecast.is_configured)

    @patch.dict(
        os.environ,
        {
            "BOTS__CHATGPT__USERNAME": "env-user",
            "BOTS__CHATGPT__PASSWORD": "env-pass",
            "BOTS__GEMINI__PASSWORD": "g-pass",
            "FORECAST__API_KEY": "sk-env",
            "LOG_LEVEL": "warning",
            "ENVIRONMENT": "prod",
        },
        clear=True,
    )
    def test_env_overrides_secrets(self):
        cfg = DashboardConfig.from_yaml(self._write(YAML))

        self.assertEqual(cfg.bots["chatgpt"].username, "env-user")
        self.assertEqual(cfg.bots["chatgpt"].password, "env-pass")
        self.assertEqual(cfg.bots["gemini"].password, "g-pass")
        self.assertEqual(cfg.forecast.api_key, "sk-env")
        self.assertTrue(cfg.forecast.is_configured)
        self.assertEqual(cfg.log_level, "WARNING")
        self.assertEqual(cfg.environment, "PROD")

    @patch.dict(os.environ, {}, clear=True)
    def test_single_bot_config(self):
        cfg = DashboardConfig.from_yaml(self._write("bots:\n  gemini:\n    base_url: https://bot.example/api/v1\n"))
        self.assertEqual(cfg.models, ["gemini"])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            DashboardConfig.from_yaml(Path(self._tmp.name) / "nope.yaml")

    @patch.dict(os.environ, {}, clear=True)
    def test_invalid_values_raise_value_error(self):
        bad_docs = [
            "bots:\n  claude:\n    base_url: http://x/api/v1\n",
            "bots: {}\n",
            "bots:\n  chatgpt:\n    base_url: ftp://x\n",
            "upstream:\n  status_path: /balance\n",
            "upstream:\n  open_trades_source: both\n",
            "environment: STAGING\n",
            "bots: [unclosed\n",
        ]
        for doc in bad_docs:
            with self.subTest(doc=doc):
                with self.assertRaises(ValueError):
                    DashboardConfig.from_yaml(self._write(doc))


class ConfigModelTests(unittest.TestCase):
    def test_base_url_trailing_slash_is_stripped(self):
        self.assertEqual(BotApiConfig(base_url=" http://h:1/api/v1/ ").base_url, "http://h:1/api/v1")

    def test_upstream_defaults(self):
        up = UpstreamConfig()
        self.assertEqual(up.status_path, "/status")
        self.assertEqual(up.trades_path, "/trades")
        self.assertEqual(up.open_trades_source, "merged")

    def test_forecast_disabled_is_not_configured(self):
        self.assertFalse(ForecastConfig(api_key="sk", enabled=False).is_configured)
        self.assertTrue(ForecastConfig(api_key="sk").is_configured)


if __name__ == "__main__":
    unittest.main()
