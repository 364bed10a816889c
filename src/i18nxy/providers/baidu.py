"""Baidu Fanyi (general text translation) provider.

API reference: https://fanyi-api.baidu.com/doc/21
"""

from __future__ import annotations

import hashlib
import logging
import random

import aiohttp

from i18nxy.errors import ProviderError
from i18nxy.providers.base import (
    ProviderConfig,
    TranslationOptions,
    TranslationProvider,
    TranslationResult,
)

logger = logging.getLogger(__name__)

API_URL = "https://fanyi-api.baidu.com/api/trans/vip/translate"
REQUEST_TIMEOUT_SECONDS = 10

SUPPORTED_LANGUAGES = [
    "zh", "en", "yue", "wyw", "jp", "kor", "fra", "spa", "th", "ara", "ru", "pt",
    "de", "it", "el", "nl", "pl", "bul", "est", "dan", "fin", "cs", "rom", "slo",
    "swe", "hu", "cht", "vie",
]

# ISO 639-1 codes that Baidu spells differently
_LANG_ALIASES = {
    "ja": "jp",
    "ko": "kor",
    "fr": "fra",
    "es": "spa",
    "ar": "ara",
    "bg": "bul",
    "et": "est",
    "da": "dan",
    "fi": "fin",
    "ro": "rom",
    "sl": "slo",
    "sv": "swe",
    "vi": "vie",
}


def baidu_lang(code: str) -> str:
    code = code.lower()
    return _LANG_ALIASES.get(code, code)


def sign(appid: str, text: str, salt: str, key: str) -> str:
    """MD5 request signature: appid + q + salt + secret key."""
    return hashlib.md5(f"{appid}{text}{salt}{key}".encode("utf-8")).hexdigest()


class BaiduProvider(TranslationProvider):
    """Translate through the Baidu Fanyi HTTP API using aiohttp."""

    name = "baidu"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        super().__init__(config)
        self.appid = self.config.credentials.get("appid", "")
        self.key = self.config.credentials.get("key", "")

    def is_config_valid(self) -> bool:
        return bool(self.appid and self.key)

    def supported_languages(self) -> list[str]:
        return list(SUPPORTED_LANGUAGES)

    async def _request(self, text: str, source: str, target: str, extra: dict) -> dict:
        salt = str(random.randint(32768, 65536))
        data = {
            "q": text,
            "from": baidu_lang(source),
            "to": baidu_lang(target),
            "appid": self.appid,
            "salt": salt,
            "sign": sign(self.appid, text, salt, self.key),
            **extra,
        }
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(API_URL, data=data) as response:
                    response.raise_for_status()
                    # Baidu answers with text/html content type on some errors
                    return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ProviderError(f"Baidu request failed: {e}", code="NETWORK_ERROR") from e

    async def translate(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        self.require_valid_config()
        source, target = self.languages(options)
        extra = options.provider_options if options else {}
        logger.debug("Baidu translate %.50s (%s -> %s)", text, source, target)

        payload = await self._request(text, source, target, extra)
        if "error_code" in payload and str(payload["error_code"]) != "52000":
            raise ProviderError(
                f"Baidu API error {payload['error_code']}: {payload.get('error_msg', '')}",
                code=payload["error_code"],
            )
        lines = payload.get("trans_result") or []
        if not lines:
            raise ProviderError("Baidu API returned no translation", code="EMPTY_RESULT")

        # Each input line comes back as its own entry.
        translated = "\n".join(item["dst"] for item in lines)
        return self.result(text, translated, source, target, raw=payload)

    async def batch_translate(
        self, texts: list[str], options: TranslationOptions | None = None,
    ) -> list[TranslationResult]:
        """Send all texts as one newline-joined request and split the answer."""
        if not texts:
            return []
        if len(texts) == 1:
            return [await self.translate(texts[0], options)]
        if any("\n" in text for text in texts):
            raise ProviderError("Cannot batch texts containing newlines", code="BATCH_UNSUPPORTED")

        combined = await self.translate("\n".join(texts), options)
        parts = combined.target.split("\n")
        if len(parts) != len(texts):
            raise ProviderError(
                f"Baidu returned {len(parts)} lines for {len(texts)} texts",
                code="BATCH_MISMATCH",
            )
        return [
            self.result(text, part, combined.from_lang, combined.to_lang)
            for text, part in zip(texts, parts)
        ]
