"""Inbox messages consumed by the state machine and the commands it emits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from watchtower.core.types import NewsItem, SourceId


@dataclass(frozen=True)
class FetchResult:
    source: SourceId
    value: Any = None
    error: Optional[str] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class RefreshTick:
    pass


@dataclass(frozen=True)
class UiTick:
    pass


Message = Union[FetchResult, KeyPressed, Resized, RefreshTick, UiTick]


@dataclass(frozen=True)
class RefreshAll:
    sources: Tuple[SourceId, ...]


@dataclass(frozen=True)
class RequestBrief:
    items: Tuple[NewsItem, ...]
    force: bool = False


@dataclass(frozen=True)
class LoadCachedBrief:
    pass


@dataclass(frozen=True)
class OpenURL:
    url: str


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[RefreshAll, RequestBrief, LoadCachedBrief, OpenURL, Quit]
