from __future__ import annotations

from typing import Iterable, List, Set

from watchtower.core.types import NewsItem

DEDUP_PREFIX_LEN = 40


def dedup_key(title: str) -> str:
    return title[:DEDUP_PREFIX_LEN].lower()


def rank_and_dedupe(items: Iterable[NewsItem]) -> List[NewsItem]:
    """Sort by threat level then recency, keeping the first item per title prefix."""
    ranked = sorted(
        items,
        key=lambda item: (item.threat_level, item.published),
        reverse=True,
    )
    seen: Set[str] = set()
    output: List[NewsItem] = []
    for item in ranked:
        key = dedup_key(item.title)
        if key in seen:
            continue
        seen.add(key)
        output.append(item)
    return output
