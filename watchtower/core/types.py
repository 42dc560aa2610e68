from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, Field


class SourceId(str, Enum):
    GLOBAL_NEWS = "global-news"
    LOCAL_NEWS = "local-news"
    CRYPTO = "crypto"
    STOCKS = "stocks"
    COMMODITIES = "commodities"
    PREDICTION_MARKETS = "prediction-markets"
    WEATHER = "weather"
    BRIEF = "brief"


class ThreatLevel(IntEnum):
    INFO = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name


class FetchParams(BaseModel):
    city: str
    country: str
    latitude: float
    longitude: float
    crypto_ids: List[str] = Field(default_factory=list)


class NewsItem(BaseModel):
    title: str
    source: str
    published: datetime
    url: str = ""
    threat_level: ThreatLevel = ThreatLevel.INFO
    category: str = "general"
    is_local: bool = False


class CryptoPrice(BaseModel):
    id: str
    symbol: str
    name: str
    price_usd: float
    change_24h: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0
    last_updated: Optional[datetime] = None


class StockIndex(BaseModel):
    symbol: str
    name: str
    price: float
    prev_close: float = 0.0
    change_pct: float = 0.0


class Commodity(BaseModel):
    symbol: str
    name: str
    price: float
    prev_close: float = 0.0
    unit: str = ""
    change_pct: float = 0.0


class PredictionMarket(BaseModel):
    title: str
    probability: float = 0.5
    volume: float = 0.0
    category: str = "politics"
    end_date: str = ""
    slug: str = ""


class WeatherConditions(BaseModel):
    city: str
    temp_c: float
    feels_like_c: float
    humidity: int = 0
    wind_speed_kmh: float = 0.0
    wind_dir_deg: int = 0
    description: str = ""
    icon: str = ""
    visibility_m: float = 0.0
    uv_index: float = 0.0
    is_day: bool = True
    updated_at: datetime


class DayForecast(BaseModel):
    date: datetime
    max_c: float
    min_c: float
    rain_mm: float = 0.0
    icon: str = ""
    description: str = ""


class WeatherReport(BaseModel):
    conditions: WeatherConditions
    forecast: List[DayForecast] = Field(default_factory=list)


class CountryRisk(BaseModel):
    country: str
    score: int = Field(ge=0, le=100)
    reason: str = ""


class Brief(BaseModel):
    summary: str
    key_threats: List[str] = Field(default_factory=list)
    country_risks: List[CountryRisk] = Field(default_factory=list)
    generated_at: datetime
    model: str = ""
