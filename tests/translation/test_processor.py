"""Tests for locale back-filling through the translation queue."""

import asyncio
import json

import pytest

from i18nxy.core.keystore import KeyStore
from i18nxy.errors import ProviderConfigurationError, ProviderError
from i18nxy.providers.base import ProviderRegistry, TranslationProvider
from i18nxy.providers.dummy import DummyProvider
from i18nxy.providers.registry import create_registry
from i18nxy.translation.processor import TranslationProcessor, locale_to_lang
from i18nxy.translation.queue import TranslationQueue


class FailingProvider(TranslationProvider):
    name = "failing"

    def __init__(self, config=None, bad=("坏",)):
        super().__init__(config)
        self.bad = set(bad)
        self.seen = []

    async def translate(self, text, options=None):
        self.seen.append(text)
        if text in self.bad:
            raise ProviderError("nope")
        source, target = self.languages(options)
        return self.result(text, f"<{target}> {text}", source, target)


def write_locale(directory, locale, data):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{locale}.json").write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def make_processor(provider, store=None):
    return TranslationProcessor(TranslationQueue(provider, retry_times=0), store)


class TestLocaleToLang:
    def test_region_dropped(self):
        assert locale_to_lang("zh-CN") == "zh"
        assert locale_to_lang("EN") == "en"


class TestTranslateTexts:
    def test_success(self):
        processor = make_processor(DummyProvider())
        summary = asyncio.run(processor.translate_texts(["你好", "世界"]))
        assert summary.count == 2
        assert summary.success_count == 2
        assert summary.fail_count == 0

    def test_failures_collected(self):
        processor = make_processor(FailingProvider())
        summary = asyncio.run(processor.translate_texts(["好", "坏"]))
        assert summary.success_count == 1
        assert summary.fail_count == 1
        assert summary.errors[0][0] == "坏"

    def test_empty(self):
        summary = asyncio.run(make_processor(DummyProvider()).translate_texts([]))
        assert summary.count == 0

    def test_translate_text(self):
        result = asyncio.run(make_processor(DummyProvider()).translate_text("你好"))
        assert result.target == "[EN] 你好"


class TestTranslateLocale:
    def test_fills_missing_keys_only(self, tmp_path):
        locales = tmp_path / "locales"
        write_locale(locales, "zh-CN", {"nihao": "你好", "shijie": "世界"})
        write_locale(locales, "en-US", {"nihao": "Hello"})
        store = KeyStore(output_dir=locales)

        summary = asyncio.run(make_processor(DummyProvider(), store).translate_locale("en-US"))

        assert summary.success_count == 1
        saved = json.loads((locales / "en-US.json").read_text(encoding="utf-8"))
        assert saved == {"nihao": "Hello", "shijie": "[EN] 世界"}

    def test_duplicate_texts_translated_once(self, tmp_path):
        locales = tmp_path / "locales"
        write_locale(locales, "zh-CN", {"a": "确定", "b": "确定", "c": "取消"})
        provider = FailingProvider()
        store = KeyStore(output_dir=locales)

        asyncio.run(make_processor(provider, store).translate_locale("ja"))

        assert sorted(provider.seen) == ["取消", "确定"]
        saved = json.loads((locales / "ja.json").read_text(encoding="utf-8"))
        assert saved == {"a": "<ja> 确定", "b": "<ja> 确定", "c": "<ja> 取消"}

    def test_failed_texts_left_out(self, tmp_path):
        locales = tmp_path / "locales"
        write_locale(locales, "zh-CN", {"hao": "好", "huai": "坏"})
        store = KeyStore(output_dir=locales)

        summary = asyncio.run(make_processor(FailingProvider(), store).translate_locale("en-US"))

        assert summary.fail_count == 1
        saved = json.loads((locales / "en-US.json").read_text(encoding="utf-8"))
        assert saved == {"hao": "<en> 好"}

    def test_nothing_missing(self, tmp_path):
        locales = tmp_path / "locales"
        write_locale(locales, "zh-CN", {"nihao": "你好"})
        write_locale(locales, "en-US", {"nihao": "Hello"})
        provider = FailingProvider()

        summary = asyncio.run(
            make_processor(provider, KeyStore(output_dir=locales)).translate_locale("en-US"),
        )
        assert summary.count == 0
        assert provider.seen == []

    def test_requires_keystore(self):
        with pytest.raises(ValueError):
            asyncio.run(make_processor(DummyProvider()).translate_locale("en-US"))


class TestFromConfig:
    def test_uses_configured_provider(self, make_config):
        config = make_config(translation={"provider": "dummy", "concurrency": 3, "retry_times": 1})
        processor = TranslationProcessor.from_config(config, create_registry())
        assert isinstance(processor.queue.provider, DummyProvider)
        assert processor.queue.concurrency == 3
        assert processor.queue.retry_times == 1
        assert processor.keystore.locale == "zh-CN"

    def test_overrides(self, make_config):
        config = make_config()
        processor = TranslationProcessor.from_config(
            config, create_registry(), provider_name="dummy", concurrency=7,
        )
        assert processor.queue.provider.name == "dummy"
        assert processor.queue.concurrency == 7

    def test_credentials_passed(self, make_config):
        config = make_config(translation={"baidu": {"appid": "id", "key": "k"}})
        processor = TranslationProcessor.from_config(config, create_registry())
        assert processor.queue.provider.is_config_valid()

    def test_unknown_provider(self, make_config):
        with pytest.raises(ProviderConfigurationError):
            TranslationProcessor.from_config(make_config(), ProviderRegistry(), provider_name="x")
