from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx

from watchtower.config import AppConfig
from watchtower.core.errors import SourceFetchError
from watchtower.core.types import FetchParams, PredictionMarket, SourceId
from watchtower.infra.http.client import HttpClient

POLYMARKET_MARKETS_URL = "https://gamma-api.polymarket.com/markets"


class PolymarketProvider:
    source_id = SourceId.PREDICTION_MARKETS

    def __init__(self, config: AppConfig, client: HttpClient) -> None:
        self.config = config
        self.client = client

    async def fetch(self, params: FetchParams) -> List[PredictionMarket]:
        query = {
            "limit": "20",
            "active": "true",
            "closed": "false",
            "order": "volume",
            "ascending": "false",
            "tag_slug": "politics",
        }
        try:
            rows = await self.client.get_json(POLYMARKET_MARKETS_URL, params=query)
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(f"polymarket HTTP {exc.response.status_code}") from exc
        if not isinstance(rows, list):
            raise SourceFetchError("decoding polymarket response: expected a list")
        markets = [parse_market(row) for row in rows if isinstance(row, dict)]
        return [market for market in markets if market is not None]


def parse_market(row: Dict[str, Any]) -> Optional[PredictionMarket]:
    question = str(row.get("question") or "").strip()
    if not question:
        return None

    probability = 0.5
    try:
        prices = row.get("outcomePrices") or "[]"
        if isinstance(prices, str):
            prices = json.loads(prices)
        if isinstance(prices, list) and prices:
            probability = float(prices[0])
    except (TypeError, ValueError):
        pass

    try:
        volume = float(row.get("volume") or 0)
    except (TypeError, ValueError):
        volume = 0.0

    tags = row.get("tags") or []
    category = "politics"
    if tags and isinstance(tags[0], dict) and tags[0].get("slug"):
        category = str(tags[0]["slug"])

    end_date_iso = str(row.get("endDateIso") or "")
    return PredictionMarket(
        title=question,
        probability=probability,
        volume=volume,
        category=category,
        end_date=end_date_iso[:10] if len(end_date_iso) >= 10 else "",
        slug=str(row.get("slug") or ""),
    )
