"""Tests for the Baidu provider (HTTP layer mocked)."""

import asyncio
import hashlib
from unittest.mock import AsyncMock, patch

import pytest

from i18nxy.errors import ProviderError
from i18nxy.providers.baidu import BaiduProvider, baidu_lang, sign
from i18nxy.providers.base import ProviderConfig, TranslationOptions


def make_provider(**credentials):
    creds = {"appid": "app", "key": "secret"}
    creds.update(credentials)
    return BaiduProvider(ProviderConfig(credentials=creds))


def ok_payload(*lines):
    return {
        "from": "zh",
        "to": "en",
        "trans_result": [{"src": "", "dst": line} for line in lines],
    }


class TestHelpers:
    def test_sign(self):
        expected = hashlib.md5("app你好123secret".encode("utf-8")).hexdigest()
        assert sign("app", "你好", "123", "secret") == expected

    def test_lang_aliases(self):
        assert baidu_lang("ja") == "jp"
        assert baidu_lang("KO") == "kor"
        assert baidu_lang("en") == "en"


class TestBaiduProvider:
    def test_config_validity(self):
        assert make_provider().is_config_valid()
        assert not BaiduProvider().is_config_valid()
        assert not make_provider(key="").is_config_valid()

    def test_unconfigured_translate_fails(self):
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(BaiduProvider().translate("你好"))
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_translate(self):
        provider = make_provider()
        with patch.object(
            BaiduProvider, "_request", new=AsyncMock(return_value=ok_payload("Hello")),
        ) as request:
            result = asyncio.run(provider.translate("你好", TranslationOptions(target_lang="en")))
        assert result.target == "Hello"
        assert result.provider == "baidu"
        assert result.extra["raw"]["to"] == "en"
        request.assert_awaited_once_with("你好", "zh", "en", {})

    def test_provider_options_forwarded(self):
        provider = make_provider()
        options = TranslationOptions(provider_options={"action": "1"})
        with patch.object(
            BaiduProvider, "_request", new=AsyncMock(return_value=ok_payload("Hi")),
        ) as request:
            asyncio.run(provider.translate("你好", options))
        assert request.await_args.args[3] == {"action": "1"}

    def test_multiline_result_joined(self):
        provider = make_provider()
        with patch.object(
            BaiduProvider, "_request", new=AsyncMock(return_value=ok_payload("a", "b")),
        ):
            result = asyncio.run(provider.translate("甲\n乙"))
        assert result.target == "a\nb"

    def test_api_error_code(self):
        provider = make_provider()
        payload = {"error_code": "54001", "error_msg": "Invalid Sign"}
        with patch.object(BaiduProvider, "_request", new=AsyncMock(return_value=payload)):
            with pytest.raises(ProviderError, match="Invalid Sign") as exc_info:
                asyncio.run(provider.translate("你好"))
        assert exc_info.value.code == "54001"

    def test_success_code_is_not_an_error(self):
        provider = make_provider()
        payload = {**ok_payload("Hello"), "error_code": "52000"}
        with patch.object(BaiduProvider, "_request", new=AsyncMock(return_value=payload)):
            assert asyncio.run(provider.translate("你好")).target == "Hello"

    def test_empty_result(self):
        provider = make_provider()
        with patch.object(BaiduProvider, "_request", new=AsyncMock(return_value={})):
            with pytest.raises(ProviderError) as exc_info:
                asyncio.run(provider.translate("你好"))
        assert exc_info.value.code == "EMPTY_RESULT"


class TestBaiduBatch:
    def test_batch_single_request(self):
        provider = make_provider()
        with patch.object(
            BaiduProvider, "_request", new=AsyncMock(return_value=ok_payload("Hello", "World")),
        ) as request:
            results = asyncio.run(provider.batch_translate(["你好", "世界"]))
        assert [r.target for r in results] == ["Hello", "World"]
        assert [r.source for r in results] == ["你好", "世界"]
        assert request.await_args.args[0] == "你好\n世界"

    def test_batch_mismatch(self):
        provider = make_provider()
        with patch.object(
            BaiduProvider, "_request", new=AsyncMock(return_value=ok_payload("Hello")),
        ):
            with pytest.raises(ProviderError) as exc_info:
                asyncio.run(provider.batch_translate(["你好", "世界"]))
        assert exc_info.value.code == "BATCH_MISMATCH"

    def test_batch_rejects_newlines(self):
        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(make_provider().batch_translate(["甲\n乙", "丙"]))
        assert exc_info.value.code == "BATCH_UNSUPPORTED"

    def test_empty_batch(self):
        assert asyncio.run(make_provider().batch_translate([])) == []
