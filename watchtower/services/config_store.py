from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from watchtower.config import AppConfig, default_app_config
from watchtower.core.errors import ConfigError

logger = logging.getLogger(__name__)


class ConfigStore:
    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path

    def load(self) -> AppConfig:
        if not self.config_path.exists():
            logger.info("Writing default config to %s", self.config_path)
            return self.save(default_app_config())

        try:
            raw = yaml.safe_load(self.config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid config file content: {self.config_path}")
        try:
            return AppConfig.model_validate(raw).normalized()
        except ValidationError as exc:
            raise ConfigError(f"Invalid config {self.config_path}: {exc}") from exc

    def save(self, config: AppConfig) -> AppConfig:
        normalized = config.normalized()
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = normalized.model_dump(mode="json")
        self.config_path.write_text(
            yaml.safe_dump(payload, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        return normalized

    def patch(self, patch_data: Dict[str, Any]) -> AppConfig:
        current = self.load()
        payload = current.model_dump(mode="python")
        payload.update(patch_data)
        try:
            merged = AppConfig.model_validate(payload)
        except ValidationError as exc:
            raise ConfigError(f"Invalid config patch: {exc}") from exc
        return self.save(merged)
