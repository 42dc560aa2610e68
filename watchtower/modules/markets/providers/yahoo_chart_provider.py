from __future__ import annotations

from typing import Any, Dict, List, NamedTuple
from urllib.parse import quote

import httpx

from watchtower.config import AppConfig
from watchtower.core.concurrency import gather_group
from watchtower.core.errors import SourceFetchError
from watchtower.core.types import Commodity, FetchParams, SourceId, StockIndex
from watchtower.infra.http.client import BROWSER_USER_AGENT, HttpClient

YAHOO_CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/"


class ChartQuote(NamedTuple):
    symbol: str
    price: float
    prev_close: float
    change_pct: float


class IndexDef(NamedTuple):
    symbol: str
    name: str


class CommodityDef(NamedTuple):
    symbol: str
    name: str
    unit: str


STOCK_INDICES = (
    IndexDef("^GSPC", "S&P 500"),
    IndexDef("^DJI", "Dow Jones"),
)

COMMODITIES = (
    CommodityDef("CL=F", "WTI Crude Oil", "$/bbl"),
    CommodityDef("GC=F", "Gold", "$/oz"),
    CommodityDef("HG=F", "Copper", "$/lb"),
)


def quote_from_meta(symbol: str, meta: Dict[str, Any]) -> ChartQuote:
    price = float(meta.get("regularMarketPrice") or 0)
    prev_close = float(meta.get("previousClose") or 0)
    change_pct = float(meta.get("regularMarketChangePercent") or 0)
    chart_prev_close = float(meta.get("chartPreviousClose") or 0)

    if change_pct == 0 and prev_close != 0:
        change_pct = (price - prev_close) / prev_close * 100
    if prev_close == 0 and chart_prev_close != 0:
        prev_close = chart_prev_close
        if change_pct == 0:
            change_pct = (price - chart_prev_close) / chart_prev_close * 100
    return ChartQuote(
        symbol=str(meta.get("symbol") or symbol),
        price=price,
        prev_close=prev_close,
        change_pct=change_pct,
    )


class YahooChartClient:
    def __init__(self, client: HttpClient) -> None:
        self.client = client

    async def get_quote(self, symbol: str) -> ChartQuote:
        url = YAHOO_CHART_URL + quote(symbol, safe="")
        try:
            payload = await self.client.get_json(
                url, headers={"User-Agent": BROWSER_USER_AGENT}
            )
        except httpx.HTTPStatusError as exc:
            raise SourceFetchError(
                f"yahoo chart HTTP {exc.response.status_code} for {symbol}"
            ) from exc

        chart = payload.get("chart") if isinstance(payload, dict) else None
        if not isinstance(chart, dict):
            raise SourceFetchError(f"decoding yahoo chart for {symbol}: missing chart")
        error = chart.get("error")
        if isinstance(error, dict):
            raise SourceFetchError(
                f"yahoo chart error for {symbol}: {error.get('description', '')}"
            )
        results = chart.get("result") or []
        if not results:
            raise SourceFetchError(f"no results from yahoo chart for {symbol}")
        meta = results[0].get("meta") or {}
        return quote_from_meta(symbol, meta)


class StockIndexProvider:
    source_id = SourceId.STOCKS

    def __init__(self, config: AppConfig, client: HttpClient) -> None:
        self.config = config
        self.chart = YahooChartClient(client)

    async def fetch(self, params: FetchParams) -> List[StockIndex]:
        return await gather_group(
            "stock indices",
            [self._fetch_one(definition) for definition in STOCK_INDICES],
        )

    async def _fetch_one(self, definition: IndexDef) -> StockIndex:
        chart_quote = await self.chart.get_quote(definition.symbol)
        return StockIndex(
            symbol=chart_quote.symbol,
            name=definition.name,
            price=chart_quote.price,
            prev_close=chart_quote.prev_close,
            change_pct=chart_quote.change_pct,
        )


class CommodityProvider:
    source_id = SourceId.COMMODITIES

    def __init__(self, config: AppConfig, client: HttpClient) -> None:
        self.config = config
        self.chart = YahooChartClient(client)

    async def fetch(self, params: FetchParams) -> List[Commodity]:
        return await gather_group(
            "commodities",
            [self._fetch_one(definition) for definition in COMMODITIES],
        )

    async def _fetch_one(self, definition: CommodityDef) -> Commodity:
        chart_quote = await self.chart.get_quote(definition.symbol)
        return Commodity(
            symbol=chart_quote.symbol,
            name=definition.name,
            price=chart_quote.price,
            prev_close=chart_quote.prev_close,
            unit=definition.unit,
            change_pct=chart_quote.change_pct,
        )
