import tempfile
import unittest
from pathlib import Path

from watchtower.config import AppConfig, FeedSource, LLMConfig, normalize_crypto_pairs
from watchtower.core.errors import ConfigError
from watchtower.services.config_store import ConfigStore


class ConfigStoreTest(unittest.TestCase):
    def test_load_creates_default_and_save_round_trip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config" / "config.yaml"
            store = ConfigStore(config_path=config_path)

            loaded = store.load()
            self.assertTrue(config_path.exists())
            self.assertEqual(loaded.refresh_seconds, 120)
            self.assertEqual(loaded.brief_cache_minutes, 60)
            self.assertEqual(len(loaded.global_feeds), 8)
            self.assertEqual(loaded.global_feeds[0].source_id, "reuters")

            updated = loaded.model_copy(update={"refresh_seconds": 300, "brief_cache_minutes": 0})
            store.save(updated)

            reloaded = store.load()
            self.assertEqual(reloaded.refresh_seconds, 300)
            self.assertEqual(reloaded.brief_cache_minutes, 0)

    def test_patch_merges_location(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = ConfigStore(config_path=Path(tmpdir) / "config.yaml")
            patched = store.patch(
                {"location": {"city": "Oslo", "country": "NO", "latitude": 59.91, "longitude": 10.75}}
            )
            self.assertEqual(patched.location.city, "Oslo")
            self.assertEqual(store.load().location.country, "NO")

    def test_invalid_content_raises_config_error(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.yaml"
            store = ConfigStore(config_path=config_path)

            config_path.write_text("llm: [unclosed", encoding="utf-8")
            with self.assertRaises(ConfigError):
                store.load()

            config_path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                store.load()

            config_path.write_text("refresh_seconds: 1\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                store.load()

            config_path.write_text("llm:\n  provider: mystery\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                store.load()


class AppConfigTest(unittest.TestCase):
    def test_llm_resolution_and_configured_flag(self):
        self.assertFalse(LLMConfig().configured)
        self.assertTrue(LLMConfig(api_key="k").configured)
        self.assertTrue(LLMConfig(provider="local").configured)
        llm = LLMConfig(provider="OpenAI")
        self.assertEqual(llm.provider, "openai")
        self.assertEqual(llm.resolved_model(), "gpt-4o-mini")
        self.assertEqual(llm.resolved_base_url(), "https://api.openai.com/v1")
        self.assertEqual(LLMConfig(model="custom").resolved_model(), "custom")

    def test_normalization_dedupes_pairs_and_feed_ids(self):
        self.assertEqual(normalize_crypto_pairs([" Bitcoin", "bitcoin", "", "SOL"]), ["bitcoin", "sol"])
        self.assertEqual(normalize_crypto_pairs([]), ["bitcoin", "ethereum", "dogecoin", "usd-coin"])

        config = AppConfig(
            global_feeds=[
                FeedSource(name="World Wire", url="https://a.example/rss"),
                FeedSource(name="World Wire", url="https://b.example/rss", enabled=False),
            ]
        ).normalized()
        self.assertEqual([feed.source_id for feed in config.global_feeds], ["world-wire", "world-wire-2"])
        self.assertEqual([feed.url for feed in config.enabled_global_feeds()], ["https://a.example/rss"])


if __name__ == "__main__":
    unittest.main()
