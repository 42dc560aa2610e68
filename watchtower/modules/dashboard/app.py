from __future__ import annotations

import asyncio
import logging
import signal
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from rich.console import Console
from rich.live import Live

from watchtower.config import AppConfig
from watchtower.core.registry import ProviderRegistry
from watchtower.infra.cache.brief_cache import BriefCache
from watchtower.infra.http.client import HttpClient
from watchtower.modules.dashboard.browser import open_url
from watchtower.modules.dashboard.keyboard import KeyboardReader
from watchtower.modules.dashboard.machine import DashboardStateMachine
from watchtower.modules.dashboard.messages import (
    Command,
    KeyPressed,
    LoadCachedBrief,
    Message,
    OpenURL,
    Quit,
    RefreshAll,
    RequestBrief,
    Resized,
    UiTick,
)
from watchtower.modules.dashboard.orchestrator import (
    FetchOrchestrator,
    fetch_params,
    source_timeouts,
)
from watchtower.modules.dashboard.renderer import render_frame
from watchtower.modules.dashboard.scheduler import RefreshScheduler
from watchtower.modules.dashboard.sources import SourceCatalog
from watchtower.modules.intel.service import IntelService

logger = logging.getLogger(__name__)

UI_TICK_SECONDS = 0.25


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardApp:
    """Owns the inbox and the render loop; the state machine is the only state writer."""

    def __init__(
        self,
        config: AppConfig,
        cache: BriefCache,
        console: Optional[Console] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.cache = cache
        self.console = console or Console()
        self.clock = clock
        self.machine = DashboardStateMachine(config, clock=clock)
        self.inbox: "asyncio.Queue[Message]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    def post(self, message: Message) -> None:
        """Thread-safe entry point for every producer."""
        if self._loop is None:
            self.inbox.put_nowait(message)
            return
        self._loop.call_soon_threadsafe(self.inbox.put_nowait, message)

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        async with HttpClient(
            timeout_seconds=self.config.request_timeout_seconds,
            user_agent=self.config.user_agent,
        ) as client:
            catalog = SourceCatalog(config=self.config, client=client, registry=ProviderRegistry())
            intel = IntelService(
                config=self.config,
                synthesizer=catalog.synthesizer(),
                cache=self.cache,
                clock=self.clock,
            )
            orchestrator = FetchOrchestrator(
                clients=catalog.clients(),
                intel=intel,
                timeouts=source_timeouts(self.config),
            )
            scheduler = RefreshScheduler(self.config.refresh_seconds, self.post)
            keyboard = KeyboardReader(lambda key: self.post(KeyPressed(key)))
            try:
                with Live(
                    console=self.console,
                    screen=True,
                    auto_refresh=False,
                    transient=True,
                ) as live:
                    self._install_resize_handler()
                    self.machine.handle(Resized(*self.console.size))
                    self._execute(self.machine.start(), orchestrator)
                    live.update(render_frame(self.machine.state, self.clock()), refresh=True)

                    scheduler.start()
                    keyboard.start()
                    self._spawn(self._ui_ticker(), "ui-ticker")
                    await self._consume(live, orchestrator)
            finally:
                scheduler.shutdown()
                keyboard.stop()
                self._remove_resize_handler()
                await self._cancel_tasks()
                await orchestrator.shutdown()

    async def _consume(self, live: Live, orchestrator: FetchOrchestrator) -> None:
        while True:
            message = await self.inbox.get()
            if self._execute(self.machine.handle(message), orchestrator):
                return
            # Render once per burst of queued messages.
            if self.inbox.empty():
                live.update(render_frame(self.machine.state, self.clock()), refresh=True)

    def _execute(self, commands: List[Command], orchestrator: FetchOrchestrator) -> bool:
        for command in commands:
            if isinstance(command, Quit):
                return True
            if isinstance(command, RefreshAll):
                orchestrator.refresh_all(command.sources, fetch_params(self.config), self.post)
            elif isinstance(command, RequestBrief):
                orchestrator.request_brief(command.items, command.force, self.post)
            elif isinstance(command, LoadCachedBrief):
                orchestrator.load_cached_brief(self.post)
            elif isinstance(command, OpenURL):
                self._spawn(asyncio.to_thread(open_url, command.url), "open-url")
        return False

    async def _ui_ticker(self) -> None:
        while True:
            await asyncio.sleep(UI_TICK_SECONDS)
            self.post(UiTick())

    def _install_resize_handler(self) -> None:
        if self._loop is None or not hasattr(signal, "SIGWINCH"):
            return
        self._loop.add_signal_handler(
            signal.SIGWINCH, lambda: self.post(Resized(*self.console.size))
        )

    def _remove_resize_handler(self) -> None:
        if self._loop is None or not hasattr(signal, "SIGWINCH"):
            return
        self._loop.remove_signal_handler(signal.SIGWINCH)

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=f"watchtower-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _cancel_tasks(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
