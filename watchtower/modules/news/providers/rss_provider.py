from __future__ import annotations

import asyncio
import calendar
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote, quote_plus

import feedparser

from watchtower.config import AppConfig, FeedSource
from watchtower.core.concurrency import gather_group
from watchtower.core.types import FetchParams, NewsItem, SourceId
from watchtower.infra.http.client import HttpClient
from watchtower.modules.news.classifier import classify
from watchtower.modules.news.service import rank_and_dedupe

logger = logging.getLogger(__name__)

NEWS_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_feeds(city: str, country: str) -> List[FeedSource]:
    country = country.upper()
    search_url = (
        "https://news.google.com/rss/search"
        f"?q={quote_plus(city)}+news&hl=en&gl={country}&ceid={country}:en"
    )
    geo_url = f"https://news.google.com/rss/headlines/section/geo/{quote(city)}"
    return [
        FeedSource(source_id="google-news-local", name="Google News Local", url=search_url),
        FeedSource(source_id="google-news-country", name="Google News Country", url=geo_url),
    ]


class RSSFeedReader:
    """Fetches a set of feeds as one group and returns ranked, deduplicated items."""

    def __init__(
        self,
        client: HttpClient,
        feed_timeout: float,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.feed_timeout = feed_timeout
        self.clock = clock

    async def collect(
        self, label: str, feeds: Sequence[FeedSource], is_local: bool
    ) -> List[NewsItem]:
        batches = await gather_group(
            label,
            [self._collect_from_feed(feed=feed, is_local=is_local) for feed in feeds],
        )
        return rank_and_dedupe(item for batch in batches for item in batch)

    async def _collect_from_feed(self, feed: FeedSource, is_local: bool) -> List[NewsItem]:
        try:
            body = await asyncio.wait_for(self.client.get_text(feed.url), self.feed_timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"{feed.name}: timed out after {self.feed_timeout:g}s") from exc
        except Exception as exc:
            logger.warning("Feed failed [name=%s;url=%s]: %s", feed.name, feed.url, exc)
            raise
        return self.parse_feed(body=body, feed_name=feed.name, is_local=is_local)

    def parse_feed(self, body: str, feed_name: str, is_local: bool) -> List[NewsItem]:
        parsed = feedparser.parse(body)
        now = self.clock()
        cutoff = now - NEWS_WINDOW
        output: List[NewsItem] = []
        for entry in parsed.entries:
            title = str(entry.get("title", "")).strip()
            if not title:
                continue
            published = _entry_time(entry) or now
            if published < cutoff:
                continue
            level, category = classify(title)
            output.append(
                NewsItem(
                    title=title,
                    source=feed_name,
                    published=published,
                    url=str(entry.get("link", "")).strip(),
                    threat_level=level,
                    category=category,
                    is_local=is_local,
                )
            )
        return output


def _entry_time(entry: dict) -> Optional[datetime]:
    for key in ("published_parsed", "updated_parsed"):
        value = entry.get(key)
        if value:
            return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    return None


class GlobalNewsProvider:
    source_id = SourceId.GLOBAL_NEWS

    def __init__(self, config: AppConfig, client: HttpClient, reader: Optional[RSSFeedReader] = None) -> None:
        self.config = config
        self.reader = reader or RSSFeedReader(client=client, feed_timeout=config.timeouts.feed)

    async def fetch(self, params: FetchParams) -> List[NewsItem]:
        return await self.reader.collect(
            "global news", self.config.enabled_global_feeds(), is_local=False
        )


class LocalNewsProvider:
    source_id = SourceId.LOCAL_NEWS

    def __init__(self, config: AppConfig, client: HttpClient, reader: Optional[RSSFeedReader] = None) -> None:
        self.config = config
        self.reader = reader or RSSFeedReader(client=client, feed_timeout=config.timeouts.feed)

    async def fetch(self, params: FetchParams) -> List[NewsItem]:
        return await self.reader.collect(
            "local news", local_feeds(params.city, params.country), is_local=True
        )
