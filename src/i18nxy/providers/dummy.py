"""Dummy translation provider for testing: prefixes texts with a [XX] tag."""

from __future__ import annotations

from i18nxy.providers.base import TranslationOptions, TranslationProvider, TranslationResult


class DummyProvider(TranslationProvider):
    """Offline provider that tags each text with the target language.

    Example: "你好" → "[EN] 你好"
    """

    name = "dummy"

    async def translate(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        source, target = self.languages(options)
        return self.result(text, f"[{target.upper()}] {text}", source, target)

    async def batch_translate(
        self, texts: list[str], options: TranslationOptions | None = None,
    ) -> list[TranslationResult]:
        source, target = self.languages(options)
        tag = f"[{target.upper()}]"
        return [self.result(text, f"{tag} {text}", source, target) for text in texts]
