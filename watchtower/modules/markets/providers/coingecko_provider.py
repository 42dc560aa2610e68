from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import httpx

from watchtower.config import AppConfig
from watchtower.core.errors import SourceFetchError
from watchtower.core.types import CryptoPrice, FetchParams, SourceId
from watchtower.infra.http.client import HttpClient

COINGECKO_MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"


class CoinGeckoProvider:
    source_id = SourceId.CRYPTO

    def __init__(self, config: AppConfig, client: HttpClient) -> None:
        self.config = config
        self.client = client

    async def fetch(self, params: FetchParams) -> List[CryptoPrice]:
        ids = params.crypto_ids or self.config.crypto_pairs
        query = {
            "vs_currency": "usd",
            "ids": ",".join(ids),
            "order": "market_cap_desc",
            "per_page": "20",
            "page": "1",
            "sparkline": "false",
            "price_change_percentage": "24h",
        }
        try:
            rows = await self.client.get_json(COINGECKO_MARKETS_URL, params=query)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == 429:
                raise SourceFetchError("CoinGecko rate limited (try again in ~1min)") from exc
            raise SourceFetchError(f"coingecko HTTP {status_code}") from exc
        if not isinstance(rows, list):
            raise SourceFetchError("decoding coingecko response: expected a list")

        prices: List[CryptoPrice] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            prices.append(
                CryptoPrice(
                    id=str(row.get("id") or ""),
                    symbol=str(row.get("symbol") or "").upper(),
                    name=str(row.get("name") or ""),
                    price_usd=_as_float(row.get("current_price")),
                    change_24h=_as_float(row.get("price_change_percentage_24h")),
                    market_cap=_as_float(row.get("market_cap")),
                    volume_24h=_as_float(row.get("total_volume")),
                    last_updated=_parse_time(row.get("last_updated")),
                )
            )
        return prices


def _as_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


def _parse_time(value: object) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
