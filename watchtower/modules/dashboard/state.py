from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Optional, Set, Union

from watchtower.core.types import (
    Brief,
    Commodity,
    CryptoPrice,
    NewsItem,
    PredictionMarket,
    SourceId,
    StockIndex,
    WeatherReport,
)
from watchtower.modules.dashboard.viewport import Viewport


class Tab(IntEnum):
    OVERVIEW = 0
    NEWS = 1
    LOCAL = 2


TAB_COUNT = len(Tab)
NEWS_TABS = (Tab.NEWS, Tab.LOCAL)

DATA_SOURCES = (
    SourceId.GLOBAL_NEWS,
    SourceId.LOCAL_NEWS,
    SourceId.CRYPTO,
    SourceId.STOCKS,
    SourceId.COMMODITIES,
    SourceId.PREDICTION_MARKETS,
    SourceId.WEATHER,
)


@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class Loaded:
    value: Any


@dataclass(frozen=True)
class Failed:
    error: str


SourceResult = Union[Pending, Loaded, Failed]


@dataclass
class DashboardState:
    city: str
    width: int = 0
    height: int = 0
    active_tab: Tab = Tab.OVERVIEW
    loading: Set[SourceId] = field(default_factory=set)
    errors: Dict[SourceId, str] = field(default_factory=dict)
    data: Dict[SourceId, Any] = field(default_factory=dict)
    last_refresh: Optional[datetime] = None
    viewports: Dict[Tab, Viewport] = field(
        default_factory=lambda: {tab: Viewport() for tab in Tab}
    )
    selected: Dict[Tab, int] = field(default_factory=lambda: {tab: 0 for tab in NEWS_TABS})
    header_lines: Dict[Tab, int] = field(default_factory=lambda: {tab: 0 for tab in NEWS_TABS})
    status_message: str = ""
    status_expiry: Optional[datetime] = None
    spinner_frame: int = 0
    llm_configured: bool = False
    llm_label: str = ""

    def result(self, source: SourceId) -> SourceResult:
        if source in self.loading:
            return Pending()
        if source in self.errors:
            return Failed(self.errors[source])
        if source in self.data:
            return Loaded(self.data[source])
        return Pending()

    def status_active(self, now: datetime) -> bool:
        return bool(self.status_message) and self.status_expiry is not None and now < self.status_expiry

    @property
    def global_news(self) -> List[NewsItem]:
        return self.data.get(SourceId.GLOBAL_NEWS) or []

    @property
    def local_news(self) -> List[NewsItem]:
        return self.data.get(SourceId.LOCAL_NEWS) or []

    @property
    def crypto(self) -> List[CryptoPrice]:
        return self.data.get(SourceId.CRYPTO) or []

    @property
    def stocks(self) -> List[StockIndex]:
        return self.data.get(SourceId.STOCKS) or []

    @property
    def commodities(self) -> List[Commodity]:
        return self.data.get(SourceId.COMMODITIES) or []

    @property
    def prediction_markets(self) -> List[PredictionMarket]:
        return self.data.get(SourceId.PREDICTION_MARKETS) or []

    @property
    def weather(self) -> Optional[WeatherReport]:
        return self.data.get(SourceId.WEATHER)

    @property
    def brief(self) -> Optional[Brief]:
        return self.data.get(SourceId.BRIEF)
