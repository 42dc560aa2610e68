"""Fan-out/fan-in helper shared by multi-endpoint sources."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, Sequence, TypeVar

from watchtower.core.errors import GroupFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_group(label: str, calls: Sequence[Awaitable[T]]) -> List[T]:
    """Run *calls* concurrently and return the successes in submission order.

    Failed members are dropped. When every member fails a single
    ``GroupFetchError`` carrying all member errors is raised instead.
    """
    if not calls:
        return []
    settled = await asyncio.gather(*calls, return_exceptions=True)
    results: List[T] = []
    errors: List[BaseException] = []
    for slot in settled:
        if isinstance(slot, BaseException):
            if isinstance(slot, asyncio.CancelledError):
                raise slot
            errors.append(slot)
            continue
        results.append(slot)
    if errors:
        logger.warning("%s: %d of %d fetches failed", label, len(errors), len(settled))
    if not results:
        raise GroupFetchError(errors)
    return results
