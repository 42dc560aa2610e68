from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from watchtower.config import AppConfig
from watchtower.core.contracts import Synthesizer
from watchtower.core.types import Brief, NewsItem
from watchtower.infra.cache.brief_cache import BriefCache
from watchtower.modules.intel.parser import parse_brief_response
from watchtower.modules.intel.prompt_builder import build_brief_prompt
from watchtower.modules.intel.schemas import BriefOutcome

logger = logging.getLogger(__name__)

NO_KEY_SUMMARY = (
    "No LLM_API_KEY set. Add llm.api_key to ~/.config/watchtower/config.yaml "
    "to enable AI briefings."
)
NO_ITEMS_SUMMARY = "No news items available to summarize."
MAX_FALLBACK_SUMMARY = 600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntelService:
    def __init__(
        self,
        config: AppConfig,
        synthesizer: Synthesizer,
        cache: BriefCache,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.synthesizer = synthesizer
        self.cache = cache
        self.clock = clock

    @property
    def configured(self) -> bool:
        return self.config.llm.configured

    @property
    def cache_max_age(self) -> timedelta:
        return timedelta(minutes=self.config.brief_cache_minutes)

    async def load_cached(self) -> Optional[Brief]:
        if self.config.brief_cache_minutes <= 0:
            return None
        return await asyncio.to_thread(self.cache.load, self.cache_max_age)

    async def get_brief(self, items: Sequence[NewsItem], force: bool = False) -> BriefOutcome:
        if not force:
            cached = await self.load_cached()
            if cached is not None:
                logger.info("Brief served from cache (generated %s)", cached.generated_at)
                return BriefOutcome(brief=cached, from_cache=True)

        if not self.configured:
            return BriefOutcome(
                brief=Brief(summary=NO_KEY_SUMMARY, generated_at=self.clock(), model="none")
            )
        if not items:
            return BriefOutcome(brief=Brief(summary=NO_ITEMS_SUMMARY, generated_at=self.clock()))

        content, model = await self.synthesizer.synthesize(build_brief_prompt(items))
        summary, threats, risks = parse_brief_response(content)
        if not summary and not threats and not risks:
            logger.warning("Brief reply did not follow the section format")
            summary = content[:MAX_FALLBACK_SUMMARY]
        brief = Brief(
            summary=summary,
            key_threats=threats,
            country_risks=risks,
            generated_at=self.clock(),
            model=model,
        )
        await asyncio.to_thread(self.cache.save, brief)
        return BriefOutcome(brief=brief)
