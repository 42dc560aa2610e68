from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import ConfigDict, ValidationError

from watchtower.core.types import Brief

logger = logging.getLogger(__name__)


class CachedBriefRecord(Brief):
    """On-disk form of a brief; unknown keys from newer writers are ignored."""

    model_config = ConfigDict(extra="ignore")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BriefCache:
    def __init__(self, path: Path, clock: Callable[[], datetime] = _utcnow) -> None:
        self.path = path
        self.clock = clock

    def load(self, max_age: timedelta) -> Optional[Brief]:
        if max_age <= timedelta(0):
            return None
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Brief cache unreadable at %s: %s", self.path, exc)
            return None
        try:
            record = CachedBriefRecord.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring corrupt brief cache %s: %s", self.path, exc)
            return None

        generated_at = record.generated_at
        if generated_at.tzinfo is None:
            generated_at = generated_at.replace(tzinfo=timezone.utc)
        age = self.clock() - generated_at
        if age > max_age:
            logger.debug("Brief cache expired (age=%s, max=%s)", age, max_age)
            return None
        payload = record.model_dump()
        payload["generated_at"] = generated_at
        return Brief.model_validate(payload)

    def save(self, brief: Brief) -> None:
        payload = CachedBriefRecord.model_validate(brief.model_dump()).model_dump_json(indent=2)
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            logger.warning("Could not write brief cache %s: %s", self.path, exc)
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
