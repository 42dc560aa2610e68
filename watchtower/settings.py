from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WATCHTOWER_",
        env_file=".env",
        extra="ignore",
    )

    config_file: Path = Path.home() / ".config" / "watchtower" / "config.yaml"
    cache_dir: Path = Path.home() / ".cache" / "watchtower"
    log_file: Path = Path.home() / ".cache" / "watchtower" / "watchtower.log"
    log_level: str = "INFO"
    llm_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("WATCHTOWER_LLM_API_KEY", "LLM_API_KEY"),
    )

    @property
    def brief_cache_file(self) -> Path:
        return self.cache_dir / "brief.json"
