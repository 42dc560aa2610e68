from __future__ import annotations

from typing import List


class WatchtowerError(Exception):
    """Base exception for application-level errors."""


class ConfigError(WatchtowerError):
    """Raised when the config file cannot be read or validated."""


class ProviderNotFoundError(WatchtowerError):
    """Raised when a provider id cannot be resolved."""


class SourceFetchError(WatchtowerError):
    """Raised when a source answers but the payload is unusable."""


class GroupFetchError(SourceFetchError):
    """Raised when every member of a fan-in group failed."""

    def __init__(self, errors: List[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(str(error) for error in self.errors) or "all fetches failed")


class SynthesisError(WatchtowerError):
    """Raised when the LLM brief cannot be produced."""
