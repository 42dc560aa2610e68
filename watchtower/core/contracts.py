from __future__ import annotations

from typing import Any, Protocol, Tuple

from watchtower.core.types import FetchParams, SourceId


class SourceClient(Protocol):
    source_id: SourceId

    async def fetch(self, params: FetchParams) -> Any:
        ...


class Synthesizer(Protocol):
    provider_id: str

    async def synthesize(self, prompt: str) -> Tuple[str, str]:
        ...
