"""Tests for the DeepL provider (mocked SDK)."""

import asyncio
from types import ModuleType
from unittest.mock import MagicMock, patch

import pytest

from i18nxy.errors import ProviderConfigurationError, ProviderError
from i18nxy.providers.base import ProviderConfig, TranslationOptions
from i18nxy.providers.deepl import DeepLProvider, deepl_lang


def _make_mock_deepl():
    """Create a mock deepl module with required exception classes."""
    mock_mod = ModuleType("deepl")
    mock_mod.Translator = MagicMock()  # type: ignore[attr-defined]
    mock_mod.DeepLException = type("DeepLException", (Exception,), {})  # type: ignore[attr-defined]
    return mock_mod


def _config(api_key="fake-key"):
    return ProviderConfig(credentials={"api_key": api_key} if api_key else {})


class TestDeepLLang:
    def test_target_variants(self):
        assert deepl_lang("en", target=True) == "EN-US"
        assert deepl_lang("pt", target=True) == "PT-BR"
        assert deepl_lang("de", target=True) == "DE"

    def test_source_drops_region(self):
        assert deepl_lang("zh-CN", target=False) == "ZH"
        assert deepl_lang("en-GB", target=False) == "EN"


class TestDeepLProvider:
    def test_translate_batch(self):
        mock_deepl = _make_mock_deepl()
        mock_translator = MagicMock()
        mock_deepl.Translator.return_value = mock_translator
        mock_translator.translate_text.return_value = [
            MagicMock(text="Hello"), MagicMock(text="World"),
        ]

        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config())
            results = asyncio.run(
                provider.batch_translate(["你好", "世界"], TranslationOptions(target_lang="en")),
            )

        assert [r.target for r in results] == ["Hello", "World"]
        mock_translator.translate_text.assert_called_once_with(
            ["你好", "世界"], source_lang="ZH", target_lang="EN-US",
        )

    def test_single_translate(self):
        mock_deepl = _make_mock_deepl()
        mock_translator = MagicMock()
        mock_deepl.Translator.return_value = mock_translator
        mock_translator.translate_text.return_value = [MagicMock(text="Hallo")]

        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config())
            result = asyncio.run(provider.translate("你好", TranslationOptions(target_lang="de")))

        assert result.target == "Hallo"
        assert result.provider == "deepl"

    def test_large_batch_is_chunked(self):
        mock_deepl = _make_mock_deepl()
        mock_translator = MagicMock()
        mock_deepl.Translator.return_value = mock_translator

        def make_result(texts, **kwargs):
            return [MagicMock(text=f"translated_{t}") for t in texts]

        mock_translator.translate_text.side_effect = make_result

        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config())
            texts = [f"文本{i}" for i in range(75)]
            results = asyncio.run(provider.batch_translate(texts))

        assert len(results) == 75
        assert results[-1].target == "translated_文本74"
        assert mock_translator.translate_text.call_count == 2

    def test_empty_batch(self):
        mock_deepl = _make_mock_deepl()
        mock_translator = MagicMock()
        mock_deepl.Translator.return_value = mock_translator

        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config())
            assert asyncio.run(provider.batch_translate([])) == []

        mock_translator.translate_text.assert_not_called()

    def test_sdk_error_wrapped(self):
        mock_deepl = _make_mock_deepl()
        mock_translator = MagicMock()
        mock_deepl.Translator.return_value = mock_translator
        mock_translator.translate_text.side_effect = mock_deepl.DeepLException("quota")

        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config())
            with pytest.raises(ProviderError, match="quota") as exc_info:
                asyncio.run(provider.translate("你好"))

        assert exc_info.value.code == "DeepLException"

    def test_missing_api_key(self):
        mock_deepl = _make_mock_deepl()
        with patch.dict("sys.modules", {"deepl": mock_deepl}):
            provider = DeepLProvider(_config(api_key=""))
            assert not provider.is_config_valid()
            with pytest.raises(ProviderError):
                asyncio.run(provider.translate("你好"))
        mock_deepl.Translator.assert_not_called()

    def test_missing_package(self):
        with patch.dict("sys.modules", {"deepl": None}):
            with pytest.raises(ProviderConfigurationError, match="pip install"):
                DeepLProvider(_config())
