from __future__ import annotations

import asyncio
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from watchtower.config import AppConfig, LLMConfig
from watchtower.core.errors import SourceFetchError
from watchtower.core.types import Brief, FetchParams, SourceId
from watchtower.infra.cache.brief_cache import BriefCache
from watchtower.modules.dashboard.messages import FetchResult
from watchtower.modules.dashboard.orchestrator import (
    FetchOrchestrator,
    fetch_params,
    source_timeouts,
)
from watchtower.modules.intel.service import IntelService

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
PARAMS = FetchParams(city="Oslo", country="NO", latitude=59.91, longitude=10.75)


class _FakeClient:
    def __init__(self, source_id: SourceId, value=None, delay: float = 0.0, error: Optional[Exception] = None):
        self.source_id = source_id
        self.value = value
        self.delay = delay
        self.error = error
        self.calls = 0

    async def fetch(self, params: FetchParams):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


class _FakeSynthesizer:
    provider_id = "fake"

    async def synthesize(self, prompt: str) -> Tuple[str, str]:
        return "SUMMARY:\nAll calm.", "fake-model"


def _intel(tmpdir: str, api_key: str = "") -> IntelService:
    config = AppConfig(llm=LLMConfig(api_key=api_key))
    cache = BriefCache(Path(tmpdir) / "brief.json", clock=lambda: NOW)
    return IntelService(config, _FakeSynthesizer(), cache, clock=lambda: NOW)


class FetchOrchestratorTest(unittest.IsolatedAsyncioTestCase):
    async def test_timeout_in_one_source_does_not_affect_others(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            clients = {
                SourceId.CRYPTO: _FakeClient(SourceId.CRYPTO, value=["btc"]),
                SourceId.STOCKS: _FakeClient(SourceId.STOCKS, value=["spx"], delay=5),
                SourceId.WEATHER: _FakeClient(SourceId.WEATHER, value="sunny", delay=0.01),
            }
            timeouts = {source: 0.05 for source in clients}
            orchestrator = FetchOrchestrator(clients, _intel(tmpdir), timeouts)
            posted: List[FetchResult] = []

            tasks = orchestrator.refresh_all(list(clients), PARAMS, posted.append)
            await asyncio.gather(*tasks)

        by_source = {result.source: result for result in posted}
        self.assertEqual(len(posted), 3)
        self.assertEqual(by_source[SourceId.CRYPTO].value, ["btc"])
        self.assertEqual(by_source[SourceId.WEATHER].value, "sunny")
        self.assertFalse(by_source[SourceId.STOCKS].ok)
        self.assertEqual(by_source[SourceId.STOCKS].error, "stocks timed out after 0.05s")

    async def test_exceptions_become_failed_results(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            clients = {
                SourceId.CRYPTO: _FakeClient(
                    SourceId.CRYPTO, error=SourceFetchError("CoinGecko rate limited (try again in ~1min)")
                ),
            }
            orchestrator = FetchOrchestrator(clients, _intel(tmpdir), {SourceId.CRYPTO: 1})
            result = await orchestrator.fetch_one(SourceId.CRYPTO, PARAMS)

        self.assertEqual(result.error, "CoinGecko rate limited (try again in ~1min)")
        self.assertIsNone(result.value)

    async def test_unregistered_source_posts_error_immediately(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            orchestrator = FetchOrchestrator({}, _intel(tmpdir), {})
            posted: List[FetchResult] = []
            tasks = orchestrator.refresh_all([SourceId.WEATHER], PARAMS, posted.append)

        self.assertEqual(tasks, [])
        self.assertEqual(len(posted), 1)
        self.assertFalse(posted[0].ok)

    async def test_request_brief_posts_brief_result(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            orchestrator = FetchOrchestrator({}, _intel(tmpdir, api_key="k"), {SourceId.BRIEF: 1})
            posted: List[FetchResult] = []
            await orchestrator.request_brief([], force=False, post=posted.append)

        self.assertEqual(len(posted), 1)
        self.assertEqual(posted[0].source, SourceId.BRIEF)
        self.assertIsInstance(posted[0].value, Brief)
        self.assertFalse(posted[0].from_cache)

    async def test_load_cached_brief_posts_only_on_hit(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            intel = _intel(tmpdir)
            orchestrator = FetchOrchestrator({}, intel, {})
            posted: List[FetchResult] = []

            await orchestrator.load_cached_brief(posted.append)
            self.assertEqual(posted, [])

            intel.cache.save(Brief(summary="cached", generated_at=NOW, model="m"))
            await orchestrator.load_cached_brief(posted.append)

        self.assertEqual(len(posted), 1)
        self.assertTrue(posted[0].from_cache)
        self.assertEqual(posted[0].value.summary, "cached")


class OrchestratorHelpersTest(unittest.TestCase):
    def test_timeouts_follow_source_families(self):
        config = AppConfig()
        timeouts = source_timeouts(config)
        self.assertEqual(timeouts[SourceId.GLOBAL_NEWS], config.timeouts.news)
        self.assertEqual(timeouts[SourceId.COMMODITIES], config.timeouts.markets)
        self.assertEqual(timeouts[SourceId.WEATHER], config.timeouts.weather)
        self.assertEqual(timeouts[SourceId.BRIEF], config.timeouts.brief)
        self.assertEqual(len(timeouts), len(SourceId))

    def test_fetch_params_come_from_location(self):
        params = fetch_params(AppConfig())
        self.assertEqual(params.city, "London")
        self.assertEqual(params.crypto_ids, ["bitcoin", "ethereum", "dogecoin", "usd-coin"])


if __name__ == "__main__":
    unittest.main()
