from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List

from watchtower.core.errors import ProviderNotFoundError

ClientFactory = Callable[..., Any]

SOURCES = "sources"
SYNTHESIZERS = "synthesizers"


class ProviderRegistry:
    """Maps (module, provider id) to a factory building the client."""

    def __init__(self) -> None:
        self._registry: Dict[str, Dict[str, ClientFactory]] = defaultdict(dict)

    def register(self, module: str, provider_id: str, factory: ClientFactory) -> None:
        self._registry[module][provider_id] = factory

    def has(self, module: str, provider_id: str) -> bool:
        return provider_id in self._registry.get(module, {})

    def resolve(self, module: str, provider_id: str, **kwargs: Any) -> Any:
        module_map = self._registry.get(module)
        if not module_map or provider_id not in module_map:
            raise ProviderNotFoundError(
                f"Provider not found: module={module}, provider_id={provider_id}"
            )
        return module_map[provider_id](**kwargs)

    def resolve_all(self, module: str, **kwargs: Any) -> Dict[str, Any]:
        # Registration order is kept; the orchestrator fans out in this order.
        return {
            provider_id: factory(**kwargs)
            for provider_id, factory in self._registry.get(module, {}).items()
        }

    def list_ids(self, module: str) -> List[str]:
        return list(self._registry.get(module, {}).keys())
