from __future__ import annotations

from pydantic import BaseModel

from watchtower.core.types import Brief


class BriefOutcome(BaseModel):
    brief: Brief
    from_cache: bool = False
