from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, FrozenSet, Iterable, List

from watchtower.config import AppConfig
from watchtower.core.types import SourceId
from watchtower.modules.dashboard.messages import (
    Command,
    FetchResult,
    KeyPressed,
    LoadCachedBrief,
    Message,
    OpenURL,
    Quit,
    RefreshAll,
    RefreshTick,
    RequestBrief,
    Resized,
    UiTick,
)
from watchtower.modules.dashboard.renderer import (
    MAX_GLOBAL_ITEMS,
    MAX_LOCAL_ITEMS,
    render_pane,
    truncate,
)
from watchtower.modules.dashboard.state import (
    DATA_SOURCES,
    NEWS_TABS,
    TAB_COUNT,
    DashboardState,
    Tab,
)
from watchtower.modules.dashboard.viewport import scroll_into_view

logger = logging.getLogger(__name__)

# Panes whose text must be regenerated when a source's result lands.
PANE_DEPENDENCIES: Dict[SourceId, FrozenSet[Tab]] = {
    SourceId.GLOBAL_NEWS: frozenset({Tab.NEWS, Tab.OVERVIEW}),
    SourceId.LOCAL_NEWS: frozenset({Tab.LOCAL}),
    SourceId.CRYPTO: frozenset({Tab.OVERVIEW}),
    SourceId.STOCKS: frozenset({Tab.OVERVIEW}),
    SourceId.COMMODITIES: frozenset({Tab.OVERVIEW}),
    SourceId.PREDICTION_MARKETS: frozenset({Tab.OVERVIEW}),
    SourceId.WEATHER: frozenset({Tab.LOCAL, Tab.OVERVIEW}),
    SourceId.BRIEF: frozenset({Tab.OVERVIEW, Tab.NEWS}),
}

SOURCE_PANES: Dict[Tab, FrozenSet[SourceId]] = {
    tab: frozenset(source for source, panes in PANE_DEPENDENCIES.items() if tab in panes)
    for tab in Tab
}

STATUS_SECONDS = 3
BRIEF_STATUS_SECONDS = 4
PAGE_ITEMS = 10

NEXT_TAB_KEYS = {"tab", "right", "l"}
PREV_TAB_KEYS = {"shift+tab", "left", "h"}
JUMP_KEYS = {"1": Tab.OVERVIEW, "2": Tab.NEWS, "3": Tab.LOCAL}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DashboardStateMachine:
    """Sole owner of the dashboard state; consumes one message at a time."""

    def __init__(self, config: AppConfig, clock: Callable[[], datetime] = _utcnow) -> None:
        self.config = config
        self.clock = clock
        self.state = DashboardState(
            city=config.location.city,
            llm_configured=config.llm.configured,
            llm_label=f"{config.llm.provider} / {config.llm.resolved_model()}",
        )

    def start(self) -> List[Command]:
        commands: List[Command] = []
        if self.config.brief_cache_minutes > 0:
            commands.append(LoadCachedBrief())
        commands.append(self._begin_refresh())
        return commands

    def handle(self, message: Message) -> List[Command]:
        if isinstance(message, FetchResult):
            return self._on_result(message)
        if isinstance(message, KeyPressed):
            return self._on_key(message.key)
        if isinstance(message, Resized):
            self._on_resize(message.width, message.height)
            return []
        if isinstance(message, RefreshTick):
            return self._on_refresh_tick()
        if isinstance(message, UiTick):
            self._on_ui_tick()
            return []
        logger.debug("Ignoring unknown message %r", message)
        return []

    # Results

    def _on_result(self, result: FetchResult) -> List[Command]:
        state = self.state
        commands: List[Command] = []
        state.loading.discard(result.source)
        if result.ok:
            state.data[result.source] = result.value
            state.errors.pop(result.source, None)
        else:
            state.errors[result.source] = result.error or "unknown error"
            logger.warning("%s failed: %s", result.source.value, result.error)

        if result.source == SourceId.GLOBAL_NEWS and result.ok:
            if state.llm_configured and state.brief is None and SourceId.BRIEF not in state.loading:
                commands.append(self._begin_brief(force=False))

        if result.source == SourceId.BRIEF and result.ok and state.brief is not None:
            if result.from_cache:
                stamp = state.brief.generated_at.astimezone().strftime("%b %d %H:%M")
                self._set_status(f"Brief loaded from cache ({stamp})", BRIEF_STATUS_SECONDS)
            else:
                self._set_status("Brief generated and cached", BRIEF_STATUS_SECONDS)

        if result.source != SourceId.BRIEF and not any(
            source in state.loading for source in DATA_SOURCES
        ):
            state.last_refresh = self.clock()

        self._regenerate(PANE_DEPENDENCIES.get(result.source, frozenset()))
        return commands

    # Refresh

    def _begin_refresh(self) -> RefreshAll:
        self.state.loading.update(DATA_SOURCES)
        self.state.last_refresh = None
        self._regenerate(Tab)
        return RefreshAll(sources=DATA_SOURCES)

    def _begin_brief(self, force: bool) -> RequestBrief:
        self.state.loading.add(SourceId.BRIEF)
        self._regenerate(PANE_DEPENDENCIES[SourceId.BRIEF])
        return RequestBrief(items=tuple(self.state.global_news), force=force)

    def _on_refresh_tick(self) -> List[Command]:
        commands: List[Command] = [self._begin_refresh()]
        if self._brief_is_stale():
            commands.append(self._begin_brief(force=False))
        return commands

    def _brief_is_stale(self) -> bool:
        state = self.state
        brief = state.brief
        minutes = self.config.brief_cache_minutes
        if brief is None or minutes <= 0 or not state.llm_configured:
            return False
        if SourceId.BRIEF in state.loading:
            return False
        return self.clock() - brief.generated_at > timedelta(minutes=minutes)

    # Keys

    def _on_key(self, key: str) -> List[Command]:
        state = self.state
        tab = state.active_tab

        if key in {"q", "ctrl+c"}:
            return [Quit()]
        if key in NEXT_TAB_KEYS:
            state.active_tab = Tab((tab + 1) % TAB_COUNT)
            return []
        if key in PREV_TAB_KEYS:
            state.active_tab = Tab((tab - 1 + TAB_COUNT) % TAB_COUNT)
            return []
        if key in JUMP_KEYS:
            state.active_tab = JUMP_KEYS[key]
            return []
        if key == "r":
            return [self._begin_refresh()]
        if key in {"b", "B"}:
            return self._on_brief_key(force=key == "B")
        if key == "enter":
            return self._open_selected()

        if tab in NEWS_TABS:
            count = self._item_count(tab)
            if key in {"j", "down"}:
                self._select(tab, state.selected[tab] + 1)
            elif key in {"k", "up"}:
                self._select(tab, state.selected[tab] - 1)
            elif key in {"d", "pgdown"}:
                self._select(tab, state.selected[tab] + PAGE_ITEMS)
            elif key in {"u", "pgup"}:
                self._select(tab, state.selected[tab] - PAGE_ITEMS)
            elif key == "G":
                self._select(tab, count - 1)
            elif key == "g":
                self._select(tab, 0)
            return []

        viewport = state.viewports[tab]
        if key in {"j", "down"}:
            viewport.line_down(1)
        elif key in {"k", "up"}:
            viewport.line_up(1)
        elif key in {"d", "pgdown"}:
            viewport.half_view_down()
        elif key in {"u", "pgup"}:
            viewport.half_view_up()
        elif key == "G":
            viewport.goto_bottom()
        elif key == "g":
            viewport.goto_top()
        return []

    def _on_brief_key(self, force: bool) -> List[Command]:
        state = self.state
        if not state.llm_configured:
            self._set_status("No LLM API key configured (set llm.api_key or LLM_API_KEY)")
            return []
        if SourceId.BRIEF in state.loading:
            self._set_status("Brief already in progress...")
            return []
        if force:
            self._set_status("Forcing fresh brief (ignoring cache)...")
        return [self._begin_brief(force=force)]

    def _open_selected(self) -> List[Command]:
        state = self.state
        tab = state.active_tab
        if tab not in NEWS_TABS:
            return []
        items = state.global_news if tab == Tab.NEWS else state.local_news
        index = state.selected[tab]
        if index >= min(len(items), self._item_limit(tab)):
            return []
        item = items[index]
        if not item.url:
            self._set_status("No URL available for this article")
            return []
        self._set_status("Opening: " + truncate(item.title, 60))
        return [OpenURL(url=item.url)]

    def _item_limit(self, tab: Tab) -> int:
        return MAX_GLOBAL_ITEMS if tab == Tab.NEWS else MAX_LOCAL_ITEMS

    def _item_count(self, tab: Tab) -> int:
        items = self.state.global_news if tab == Tab.NEWS else self.state.local_news
        return min(len(items), self._item_limit(tab))

    def _select(self, tab: Tab, index: int) -> None:
        count = self._item_count(tab)
        if count == 0:
            return
        self.state.selected[tab] = min(max(0, index), count - 1)
        self._regenerate([tab])

    # Layout

    def _on_resize(self, width: int, height: int) -> None:
        state = self.state
        state.width = width
        state.height = height
        for viewport in state.viewports.values():
            viewport.set_size(width - 4, height - 6)
        self._regenerate(Tab)

    def _on_ui_tick(self) -> None:
        state = self.state
        if state.status_message and not state.status_active(self.clock()):
            state.status_message = ""
            state.status_expiry = None
        if not state.loading:
            return
        state.spinner_frame += 1
        self._regenerate(
            tab for tab in Tab if any(source in state.loading for source in SOURCE_PANES[tab])
        )

    def _set_status(self, message: str, seconds: int = STATUS_SECONDS) -> None:
        self.state.status_message = message
        self.state.status_expiry = self.clock() + timedelta(seconds=seconds)

    def _regenerate(self, tabs: Iterable[Tab]) -> None:
        state = self.state
        if state.width == 0:
            return
        now = self.clock()
        for tab in tabs:
            viewport = state.viewports[tab]
            if tab in NEWS_TABS:
                count = self._item_count(tab)
                state.selected[tab] = min(state.selected[tab], max(count - 1, 0))
            pane = render_pane(tab, state, now)
            viewport.set_content(pane.lines)
            if tab in NEWS_TABS:
                state.header_lines[tab] = pane.header_lines
                scroll_into_view(viewport, pane.header_lines, state.selected[tab])