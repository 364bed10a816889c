"""Abstract base class for translation providers, and the provider registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from i18nxy.errors import ProviderConfigurationError, ProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranslationOptions:
    """Per-call options. Empty languages fall back to the provider defaults."""
    source_lang: str = ""
    target_lang: str = ""
    provider_options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TranslationResult:
    source: str
    target: str
    from_lang: str
    to_lang: str
    provider: str
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderConfig:
    """Settings handed to a provider factory.

    ``credentials`` holds provider-specific values such as ``appid``/``key``
    for Baidu or ``api_key`` for DeepL.
    """
    default_source_lang: str = "zh"
    default_target_lang: str = "en"
    credentials: dict[str, str] = field(default_factory=dict)


class TranslationProvider(ABC):
    """Interface for translation providers."""

    name: str = ""

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self.config = config or ProviderConfig()

    @abstractmethod
    async def translate(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        """Translate one text.

        Raises:
            ProviderError: If the remote service rejects the request.
        """
        ...

    async def batch_translate(
        self, texts: list[str], options: TranslationOptions | None = None,
    ) -> list[TranslationResult]:
        """Translate several texts. Default implementation calls translate in order."""
        return [await self.translate(text, options) for text in texts]

    def is_config_valid(self) -> bool:
        return True

    def supported_languages(self) -> list[str]:
        return []

    def languages(self, options: TranslationOptions | None) -> tuple[str, str]:
        """Resolve (source, target) from *options* and the configured defaults."""
        source = (options.source_lang if options else "") or self.config.default_source_lang
        target = (options.target_lang if options else "") or self.config.default_target_lang
        return source, target

    def result(
        self, source: str, target: str, from_lang: str, to_lang: str, **extra: Any,
    ) -> TranslationResult:
        return TranslationResult(source, target, from_lang, to_lang, self.name, dict(extra))

    def require_valid_config(self) -> None:
        if not self.is_config_valid():
            raise ProviderError(f"{self.name} provider is not configured", code="CONFIG_INVALID")


ProviderFactory = Callable[[ProviderConfig], TranslationProvider]


class ProviderRegistry:
    """Maps provider names to factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        self._factories[name] = factory
        logger.debug("Registered translation provider: %s", name)

    def create(self, name: str, config: ProviderConfig | None = None) -> TranslationProvider:
        factory = self._factories.get(name)
        if factory is None:
            raise ProviderConfigurationError(
                f"Unknown translation provider: {name!r}. Available: {', '.join(self.names())}"
            )
        return factory(config or ProviderConfig())

    def names(self) -> list[str]:
        return sorted(self._factories)

    def has(self, name: str) -> bool:
        return name in self._factories
