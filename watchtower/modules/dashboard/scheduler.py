from __future__ import annotations

from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from watchtower.modules.dashboard.messages import Message, RefreshTick


class RefreshScheduler:
    """Posts a RefreshTick into the dashboard inbox on a fixed interval."""

    JOB_ID = "watchtower_refresh"

    def __init__(self, interval_seconds: int, post: Callable[[Message], None]) -> None:
        self.interval_seconds = interval_seconds
        self.post = post
        self.scheduler: Optional[AsyncIOScheduler] = None

    def start(self) -> None:
        if self.scheduler is not None:
            return
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self._tick,
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.interval_seconds,
        )
        scheduler.start()
        self.scheduler = scheduler

    async def _tick(self) -> None:
        self.post(RefreshTick())

    def shutdown(self) -> None:
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
