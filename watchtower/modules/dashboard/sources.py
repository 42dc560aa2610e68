from __future__ import annotations

from typing import Dict

from watchtower.config import AppConfig
from watchtower.core.contracts import SourceClient, Synthesizer
from watchtower.core.registry import SOURCES, SYNTHESIZERS, ProviderRegistry
from watchtower.core.types import SourceId
from watchtower.infra.http.client import HttpClient
from watchtower.modules.intel.providers.openai_compatible_provider import (
    OpenAICompatibleSynthesizer,
)
from watchtower.modules.markets.providers.coingecko_provider import CoinGeckoProvider
from watchtower.modules.markets.providers.polymarket_provider import PolymarketProvider
from watchtower.modules.markets.providers.yahoo_chart_provider import (
    CommodityProvider,
    StockIndexProvider,
)
from watchtower.modules.news.providers.rss_provider import (
    GlobalNewsProvider,
    LocalNewsProvider,
)
from watchtower.modules.weather.providers.open_meteo_provider import OpenMeteoProvider


class SourceCatalog:
    """Registers every dashboard source and the brief synthesizer."""

    def __init__(self, config: AppConfig, client: HttpClient, registry: ProviderRegistry) -> None:
        self.config = config
        self.client = client
        self.registry = registry
        self.registry.register(SOURCES, SourceId.GLOBAL_NEWS.value, self._build_global_news)
        self.registry.register(SOURCES, SourceId.LOCAL_NEWS.value, self._build_local_news)
        self.registry.register(SOURCES, SourceId.CRYPTO.value, self._build_crypto)
        self.registry.register(SOURCES, SourceId.STOCKS.value, self._build_stocks)
        self.registry.register(SOURCES, SourceId.COMMODITIES.value, self._build_commodities)
        self.registry.register(
            SOURCES, SourceId.PREDICTION_MARKETS.value, self._build_prediction_markets
        )
        self.registry.register(SOURCES, SourceId.WEATHER.value, self._build_weather)
        self.registry.register(SYNTHESIZERS, "openai_compatible", self._build_synthesizer)

    def _build_global_news(self):
        return GlobalNewsProvider(config=self.config, client=self.client)

    def _build_local_news(self):
        return LocalNewsProvider(config=self.config, client=self.client)

    def _build_crypto(self):
        return CoinGeckoProvider(config=self.config, client=self.client)

    def _build_stocks(self):
        return StockIndexProvider(config=self.config, client=self.client)

    def _build_commodities(self):
        return CommodityProvider(config=self.config, client=self.client)

    def _build_prediction_markets(self):
        return PolymarketProvider(config=self.config, client=self.client)

    def _build_weather(self):
        return OpenMeteoProvider(config=self.config, client=self.client)

    def _build_synthesizer(self):
        return OpenAICompatibleSynthesizer(llm_config=self.config.llm)

    def clients(self) -> Dict[SourceId, SourceClient]:
        built = self.registry.resolve_all(SOURCES)
        return {SourceId(source_id): client for source_id, client in built.items()}

    def synthesizer(self) -> Synthesizer:
        return self.registry.resolve(SYNTHESIZERS, "openai_compatible")
