"""DeepL API translation provider."""

from __future__ import annotations

import asyncio

from i18nxy.errors import ProviderConfigurationError, ProviderError
from i18nxy.providers.base import (
    ProviderConfig,
    TranslationOptions,
    TranslationProvider,
    TranslationResult,
)

# DeepL free tier limits
MAX_BATCH_SIZE = 50

# DeepL wants a regional variant for these targets
_TARGET_VARIANTS = {"EN": "EN-US", "PT": "PT-BR"}


def deepl_lang(code: str, *, target: bool) -> str:
    code = code.upper()
    if code == "ZH-CN":
        code = "ZH"
    if target:
        return _TARGET_VARIANTS.get(code, code)
    return code.split("-")[0]


class DeepLProvider(TranslationProvider):
    """Translation provider using the official DeepL SDK.

    The SDK is blocking, so calls run in a worker thread.
    """

    name = "deepl"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        super().__init__(config)
        try:
            import deepl
        except ImportError:
            raise ProviderConfigurationError(
                "DeepL provider requires the 'deepl' package. "
                "Install it with: pip install i18nxy[deepl]"
            ) from None
        self._deepl = deepl
        self.api_key = self.config.credentials.get("api_key", "")
        self._translator = deepl.Translator(self.api_key) if self.api_key else None

    def is_config_valid(self) -> bool:
        return self._translator is not None

    def _translate_sync(self, texts: list[str], source: str, target: str) -> list[str]:
        try:
            result = self._translator.translate_text(
                texts,
                source_lang=deepl_lang(source, target=False) if source else None,
                target_lang=deepl_lang(target, target=True),
            )
        except self._deepl.DeepLException as e:
            raise ProviderError(f"DeepL request failed: {e}", code=type(e).__name__) from e
        # translate_text returns a list of TextResult when given a list
        if isinstance(result, list):
            return [r.text for r in result]
        return [result.text]

    async def translate(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        return (await self.batch_translate([text], options))[0]

    async def batch_translate(
        self, texts: list[str], options: TranslationOptions | None = None,
    ) -> list[TranslationResult]:
        if not texts:
            return []
        self.require_valid_config()
        source, target = self.languages(options)

        results: list[TranslationResult] = []
        for i in range(0, len(texts), MAX_BATCH_SIZE):
            batch = texts[i : i + MAX_BATCH_SIZE]
            translated = await asyncio.to_thread(self._translate_sync, batch, source, target)
            results.extend(
                self.result(src, dst, source, target) for src, dst in zip(batch, translated)
            )
        return results
