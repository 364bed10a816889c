"""Built-in providers and the default registry used by the CLI."""

from __future__ import annotations

from i18nxy.providers.baidu import BaiduProvider
from i18nxy.providers.base import ProviderRegistry
from i18nxy.providers.deepl import DeepLProvider
from i18nxy.providers.dummy import DummyProvider


def create_registry() -> ProviderRegistry:
    """A fresh registry holding the built-in providers."""
    registry = ProviderRegistry()
    registry.register(DummyProvider.name, DummyProvider)
    registry.register(BaiduProvider.name, BaiduProvider)
    registry.register(DeepLProvider.name, DeepLProvider)
    return registry


provider_registry = create_registry()
