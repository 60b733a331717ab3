from __future__ import annotations

"""
Provider resolver: which providers take part in a search.

Providers are enabled from environment-driven settings in ``config``, then
ordered by priority and filtered by availability and by the stores a
search is restricted to.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from loguru import logger

from . import config
from .pipeline_types import SearchIntent
from .providers import FileProvider, HttpProvider, ProductProvider

_UNRANKED = 999


def default_providers() -> List[ProductProvider]:
    """Providers enabled by the current settings."""
    providers: List[ProductProvider] = []
    if config.ENABLE_AMAZON_FILE:
        providers.append(FileProvider("amazon-file", "amazon", config.AMAZON_DATA_PATH))
    if config.ENABLE_SHEIN_FILE:
        providers.append(FileProvider("shein-file", "shein", config.SHEIN_DATA_PATH))
    if config.AMAZON_API_URL:
        providers.append(HttpProvider("amazon-api", "amazon", config.AMAZON_API_URL, api_key=config.PRODUCT_API_KEY))
    if config.SHEIN_API_URL:
        providers.append(HttpProvider("shein-api", "shein", config.SHEIN_API_URL, api_key=config.PRODUCT_API_KEY))
    return providers


class ProviderResolver:
    def __init__(
        self,
        providers: Optional[Iterable[ProductProvider]] = None,
        priorities: Optional[Mapping[str, int]] = None,
    ):
        self._priorities: Dict[str, int] = dict(priorities if priorities is not None else config.PROVIDER_PRIORITIES)
        self._providers: Dict[str, ProductProvider] = {}
        self.reload(default_providers() if providers is None else providers)

    def reload(self, providers: Iterable[ProductProvider]) -> None:
        self._providers = {}
        for p in providers:
            if p.name in self._providers:
                logger.warning("Duplicate provider name {}; keeping the first", p.name)
                continue
            self._providers[p.name] = p

    @property
    def names(self) -> List[str]:
        return [p.name for p in self._sorted(self._providers.values())]

    def get_provider(self, name: str) -> Optional[ProductProvider]:
        return self._providers.get(name)

    def _sorted(self, providers: Iterable[ProductProvider]) -> List[ProductProvider]:
        return sorted(providers, key=lambda p: self._priorities.get(p.name, _UNRANKED))

    def available_providers(self, intent: Optional[SearchIntent] = None) -> List[ProductProvider]:
        """
        Available providers in priority order.

        When the intent restricts stores, only providers for those stores
        are returned.
        """
        stores = intent.constraints.stores if intent is not None and intent.constraints else ()
        wanted = {s.lower() for s in stores}

        out: List[ProductProvider] = []
        for p in self._sorted(self._providers.values()):
            if wanted and p.store.lower() not in wanted:
                continue
            if not p.is_available():
                logger.debug("Provider {} unavailable", p.name)
                continue
            out.append(p)
        return out

    def providers_for_store(self, store: str) -> List[ProductProvider]:
        return [p for p in self.available_providers() if p.store == store.lower()]

    def has_available_providers(self) -> bool:
        return bool(self.available_providers())
