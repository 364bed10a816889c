"""Tests for translation-call rendering."""

import pytest

from i18nxy.core.replacement import ReplacementFormatter, detect_quote_style
from i18nxy.core.scanner import QuoteStyle


class TestQuote:
    def test_default_single(self):
        assert ReplacementFormatter().quote("a.b") == "'a.b'"

    def test_configured_double(self):
        assert ReplacementFormatter(quote="double").quote("k") == '"k"'

    def test_override_per_call(self):
        assert ReplacementFormatter().quote("k", QuoteStyle.DOUBLE) == '"k"'

    def test_escapes_quote_and_backslash(self):
        assert ReplacementFormatter().quote("it's\\") == "'it\\'s\\\\'"

    def test_backtick_escapes_substitution(self):
        assert ReplacementFormatter().quote("a${b}", "`") == "`a\\${b}`"


class TestCalls:
    def test_call(self):
        assert ReplacementFormatter().call("nihao") == "$t('nihao')"

    def test_custom_function(self):
        assert ReplacementFormatter("i18n.t").call("k") == "i18n.t('k')"

    def test_jsx(self):
        assert ReplacementFormatter().jsx("k") == "{$t('k')}"

    def test_template(self):
        assert ReplacementFormatter().template("k") == "${$t('k')}"


class TestDetectQuoteStyle:
    @pytest.mark.parametrize(
        "literal,expected",
        [
            ("'a'", QuoteStyle.SINGLE),
            ('"a"', QuoteStyle.DOUBLE),
            ("`a`", QuoteStyle.BACKTICK),
            ("a", QuoteStyle.SINGLE),
        ],
    )
    def test_detect(self, literal, expected):
        assert detect_quote_style(literal) is expected

    def test_available_on_formatter(self):
        assert ReplacementFormatter.detect_quote_style('"x"') is QuoteStyle.DOUBLE
