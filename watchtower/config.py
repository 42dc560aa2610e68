from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

LLM_PROVIDERS = ("groq", "openai", "deepseek", "gemini", "claude", "local")

LLM_BASE_URLS: Dict[str, str] = {
    "groq": "https://api.groq.com/openai/v1",
    "openai": "https://api.openai.com/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "gemini": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "claude": "https://api.anthropic.com/v1/",
    "local": "http://localhost:11434/v1",
}

LLM_DEFAULT_MODELS: Dict[str, str] = {
    "groq": "llama-3.1-8b-instant",
    "openai": "gpt-4o-mini",
    "deepseek": "deepseek-chat",
    "gemini": "gemini-2.0-flash",
    "claude": "claude-3-5-haiku-latest",
    "local": "llama3.1",
}


class FeedSource(BaseModel):
    source_id: Optional[str] = None
    name: str
    url: str
    enabled: bool = True


class LLMConfig(BaseModel):
    provider: str = "groq"
    api_key: str = ""
    model: str = ""
    base_url: str = ""
    timeout: int = Field(default=30, ge=3, le=300)
    max_tokens: int = Field(default=700, ge=100, le=8000)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LLM_PROVIDERS:
            raise ValueError(f"unknown llm provider: {value}")
        return value

    def resolved_model(self) -> str:
        return self.model or LLM_DEFAULT_MODELS[self.provider]

    def resolved_base_url(self) -> str:
        return self.base_url or LLM_BASE_URLS[self.provider]

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self.provider == "local"


class LocationConfig(BaseModel):
    city: str = "London"
    country: str = "GB"
    latitude: float = Field(default=51.5072, ge=-90, le=90)
    longitude: float = Field(default=-0.1276, ge=-180, le=180)


class SourceTimeouts(BaseModel):
    feed: int = Field(default=10, ge=1, le=120)
    news: int = Field(default=20, ge=1, le=300)
    markets: int = Field(default=15, ge=1, le=120)
    weather: int = Field(default=10, ge=1, le=120)
    brief: int = Field(default=60, ge=5, le=600)


def default_global_feeds() -> List[FeedSource]:
    return [
        FeedSource(name="Reuters", url="https://feeds.reuters.com/reuters/topNews"),
        FeedSource(name="BBC World", url="http://feeds.bbci.co.uk/news/world/rss.xml"),
        FeedSource(name="AP News", url="https://rsshub.app/apnews/topics/apf-topnews"),
        FeedSource(name="Al Jazeera", url="https://www.aljazeera.com/xml/rss/all.xml"),
        FeedSource(name="The Guardian", url="https://www.theguardian.com/world/rss"),
        FeedSource(
            name="Defense News",
            url="https://www.defensenews.com/arc/outboundfeeds/rss/",
        ),
        FeedSource(name="Politico", url="https://rss.politico.com/politics-news.xml"),
        FeedSource(name="Foreign Policy", url="https://foreignpolicy.com/feed/"),
    ]


def default_crypto_pairs() -> List[str]:
    return ["bitcoin", "ethereum", "dogecoin", "usd-coin"]


class AppConfig(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    refresh_seconds: int = Field(default=120, ge=10, le=3600)
    crypto_pairs: List[str] = Field(default_factory=default_crypto_pairs)
    brief_cache_minutes: int = Field(default=60, ge=0, le=24 * 60)
    request_timeout_seconds: int = Field(default=15, ge=3, le=120)
    user_agent: str = "watchtower/1.0"
    timeouts: SourceTimeouts = Field(default_factory=SourceTimeouts)
    global_feeds: List[FeedSource] = Field(default_factory=default_global_feeds)

    def normalized(self) -> "AppConfig":
        payload = self.model_dump(mode="python")
        payload["crypto_pairs"] = normalize_crypto_pairs(self.crypto_pairs)
        payload["global_feeds"] = normalize_feed_sources(self.global_feeds)
        return AppConfig.model_validate(payload)

    def enabled_global_feeds(self) -> List[FeedSource]:
        return [feed for feed in self.global_feeds if feed.enabled]


def default_app_config() -> AppConfig:
    return AppConfig()


def normalize_crypto_pairs(pairs: List[str]) -> List[str]:
    seen: set[str] = set()
    output: List[str] = []
    for pair in pairs:
        value = str(pair or "").strip().lower()
        if not value or value in seen:
            continue
        seen.add(value)
        output.append(value)
    return output or default_crypto_pairs()


def normalize_source_id(raw: str) -> str:
    value = re.sub(r"[^a-z0-9]+", "-", str(raw or "").lower()).strip("-")
    return value or "feed"


def normalize_feed_sources(feeds: List[FeedSource]) -> List[FeedSource]:
    normalized: List[FeedSource] = []
    used_ids: set[str] = set()
    for idx, feed in enumerate(feeds):
        base_id = normalize_source_id(feed.source_id or feed.name or f"feed-{idx + 1}")
        source_id = base_id
        cursor = 2
        while source_id in used_ids:
            source_id = f"{base_id}-{cursor}"
            cursor += 1
        used_ids.add(source_id)
        normalized.append(feed.model_copy(update={"source_id": source_id}))
    return normalized
