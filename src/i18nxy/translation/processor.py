"""Back-fill locale tables by machine-translating the primary locale."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from i18nxy.config import I18nConfig
from i18nxy.core.keystore import KeyStore
from i18nxy.errors import BatchTranslationError
from i18nxy.providers.base import (
    ProviderConfig,
    ProviderRegistry,
    TranslationOptions,
    TranslationResult,
)
from i18nxy.translation.queue import TranslationQueue

logger = logging.getLogger(__name__)


@dataclass
class TranslateSummary:
    """Outcome of translating a list of texts."""
    count: int = 0
    results: list[TranslationResult] = field(default_factory=list)
    errors: list[tuple[str, BaseException]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def fail_count(self) -> int:
        return len(self.errors)


def locale_to_lang(locale: str) -> str:
    """``zh-CN`` → ``zh``: providers take bare language codes."""
    return locale.split("-")[0].lower()


class TranslationProcessor:
    """Drives a :class:`TranslationQueue` over texts or whole locale tables."""

    def __init__(self, queue: TranslationQueue, keystore: KeyStore | None = None) -> None:
        self.queue = queue
        self.keystore = keystore

    @classmethod
    def from_config(
        cls,
        config: I18nConfig,
        registry: ProviderRegistry,
        keystore: KeyStore | None = None,
        *,
        provider_name: str | None = None,
        concurrency: int | None = None,
    ) -> TranslationProcessor:
        translation = config.translation
        name = provider_name or translation.provider
        provider = registry.create(
            name,
            ProviderConfig(
                default_source_lang=translation.default_source_lang,
                default_target_lang=translation.default_target_lang,
                credentials=translation.credentials_for(name),
            ),
        )
        queue = TranslationQueue(
            provider,
            concurrency=concurrency or translation.concurrency,
            retry_times=translation.retry_times,
            retry_delay=translation.retry_delay,
            batch_delay=translation.batch_delay,
        )
        return cls(queue, keystore or KeyStore.from_config(config))

    async def translate_text(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        return await self.queue.add_task(text, options)

    async def translate_texts(
        self, texts: list[str], options: TranslationOptions | None = None,
    ) -> TranslateSummary:
        """Translate *texts*; failures are collected, never raised."""
        summary = TranslateSummary(count=len(texts))
        if not texts:
            return summary
        try:
            summary.results = await self.queue.add_batch_tasks(texts, options)
        except BatchTranslationError as e:
            summary.results = list(e.results)
            summary.errors = list(e.errors)
            for text, error in e.errors:
                logger.debug("Failed to translate %.30s: %s", text, error)
        return summary

    async def translate_locale(
        self, target_locale: str, source_locale: str | None = None,
    ) -> TranslateSummary:
        """Translate the keys *target_locale* is missing and save its table."""
        if self.keystore is None:
            raise ValueError("translate_locale needs a key store")
        store = self.keystore
        source_locale = source_locale or store.locale
        store.load_existing_data([source_locale, target_locale])

        source_table = store.get_all(source_locale)
        target_table = store.get_all(target_locale)
        missing = [key for key in source_table if not target_table.get(key)]
        if not missing:
            logger.info("%s already has every key of %s", target_locale, source_locale)
            return TranslateSummary()

        # Identical texts under different keys are translated once.
        texts = list(dict.fromkeys(source_table[key] for key in missing))
        logger.info(
            "Translating %d texts from %s to %s", len(texts), source_locale, target_locale,
        )
        summary = await self.translate_texts(
            texts,
            TranslationOptions(
                source_lang=locale_to_lang(source_locale),
                target_lang=locale_to_lang(target_locale),
            ),
        )

        translated = {r.source: r.target for r in summary.results}
        updates = {
            key: translated[source_table[key]]
            for key in missing
            if source_table[key] in translated
        }
        store.merge(updates, target_locale)
        store.save_to_file([target_locale])
        logger.info(
            "%s: %d translated, %d failed", target_locale, summary.success_count, summary.fail_count,
        )
        return summary
