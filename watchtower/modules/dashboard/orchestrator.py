from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Sequence

from watchtower.config import AppConfig
from watchtower.core.contracts import SourceClient
from watchtower.core.types import FetchParams, NewsItem, SourceId
from watchtower.modules.dashboard.messages import FetchResult, Message
from watchtower.modules.intel.service import IntelService

logger = logging.getLogger(__name__)

Post = Callable[[Message], None]


def source_timeouts(config: AppConfig) -> Dict[SourceId, float]:
    timeouts = config.timeouts
    return {
        SourceId.GLOBAL_NEWS: timeouts.news,
        SourceId.LOCAL_NEWS: timeouts.news,
        SourceId.CRYPTO: timeouts.markets,
        SourceId.STOCKS: timeouts.markets,
        SourceId.COMMODITIES: timeouts.markets,
        SourceId.PREDICTION_MARKETS: timeouts.markets,
        SourceId.WEATHER: timeouts.weather,
        SourceId.BRIEF: timeouts.brief,
    }


def fetch_params(config: AppConfig) -> FetchParams:
    location = config.location
    return FetchParams(
        city=location.city,
        country=location.country,
        latitude=location.latitude,
        longitude=location.longitude,
        crypto_ids=list(config.crypto_pairs),
    )


class FetchOrchestrator:
    """Runs each source fetch as its own task and posts exactly one result per source."""

    def __init__(
        self,
        clients: Dict[SourceId, SourceClient],
        intel: IntelService,
        timeouts: Dict[SourceId, float],
    ) -> None:
        self.clients = clients
        self.intel = intel
        self.timeouts = timeouts
        self._tasks: set = set()

    def refresh_all(
        self, sources: Iterable[SourceId], params: FetchParams, post: Post
    ) -> List[asyncio.Task]:
        tasks = []
        for source in sources:
            if source not in self.clients:
                post(FetchResult(source=source, error=f"no client registered for {source.value}"))
                continue
            tasks.append(self._spawn(self._fetch_and_post(source, params, post), source.value))
        return tasks

    def request_brief(self, items: Sequence[NewsItem], force: bool, post: Post) -> asyncio.Task:
        return self._spawn(self._brief_and_post(list(items), force, post), "brief")

    def load_cached_brief(self, post: Post) -> asyncio.Task:
        return self._spawn(self._cached_brief_and_post(post), "brief-cache")

    async def fetch_one(self, source: SourceId, params: FetchParams) -> FetchResult:
        client = self.clients[source]
        timeout = self.timeouts.get(source, 30.0)
        try:
            value = await asyncio.wait_for(client.fetch(params), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %gs", source.value, timeout)
            return FetchResult(source=source, error=f"{source.value} timed out after {timeout:g}s")
        except Exception as exc:
            logger.warning("%s fetch failed: %s", source.value, exc)
            return FetchResult(source=source, error=str(exc) or exc.__class__.__name__)
        return FetchResult(source=source, value=value)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"watchtower-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fetch_and_post(self, source: SourceId, params: FetchParams, post: Post) -> None:
        post(await self.fetch_one(source, params))

    async def _brief_and_post(self, items: List[NewsItem], force: bool, post: Post) -> None:
        timeout = self.timeouts.get(SourceId.BRIEF, 60.0)
        try:
            outcome = await asyncio.wait_for(self.intel.get_brief(items, force=force), timeout)
        except asyncio.TimeoutError:
            logger.warning("brief timed out after %gs", timeout)
            post(FetchResult(source=SourceId.BRIEF, error=f"brief timed out after {timeout:g}s"))
            return
        except Exception as exc:
            logger.warning("brief failed: %s", exc)
            post(FetchResult(source=SourceId.BRIEF, error=str(exc) or exc.__class__.__name__))
            return
        post(FetchResult(source=SourceId.BRIEF, value=outcome.brief, from_cache=outcome.from_cache))

    async def _cached_brief_and_post(self, post: Post) -> None:
        try:
            brief = await self.intel.load_cached()
        except Exception as exc:
            logger.warning("brief cache load failed: %s", exc)
            return
        if brief is not None:
            post(FetchResult(source=SourceId.BRIEF, value=brief, from_cache=True))
