"""Render the translation-function call that replaces an extracted literal."""

from __future__ import annotations

from i18nxy.core.scanner import QuoteStyle

_QUOTE_NAMES = {"single": QuoteStyle.SINGLE, "double": QuoteStyle.DOUBLE}


def _coerce_quote(quote: QuoteStyle | str) -> QuoteStyle:
    if isinstance(quote, QuoteStyle):
        return quote
    if quote in _QUOTE_NAMES:
        return _QUOTE_NAMES[quote]
    return QuoteStyle(quote)


def detect_quote_style(literal: str) -> QuoteStyle:
    """Quote style of a literal's source text, single quote when unknown."""
    if literal.startswith('"'):
        return QuoteStyle.DOUBLE
    if literal.startswith("`"):
        return QuoteStyle.BACKTICK
    return QuoteStyle.SINGLE


class ReplacementFormatter:
    """Builds ``fn('key')`` call text for each syntactic position.

    Example with the defaults::

        >>> ReplacementFormatter().call("hello")
        "$t('hello')"
    """

    def __init__(self, function_name: str = "$t", quote: QuoteStyle | str = "single") -> None:
        self.function_name = function_name
        self.default_quote = _coerce_quote(quote)

    detect_quote_style = staticmethod(detect_quote_style)

    def quote(self, key: str, quote: QuoteStyle | str | None = None) -> str:
        """Wrap *key* in quotes, escaping backslashes and the quote itself."""
        q = _coerce_quote(quote) if quote is not None else self.default_quote
        escaped = key.replace("\\", "\\\\").replace(q.value, "\\" + q.value)
        if q is QuoteStyle.BACKTICK:
            escaped = escaped.replace("${", "\\${")
        return f"{q.value}{escaped}{q.value}"

    def call(self, key: str, quote: QuoteStyle | str | None = None) -> str:
        return f"{self.function_name}({self.quote(key, quote)})"

    def jsx(self, key: str, quote: QuoteStyle | str | None = None) -> str:
        """Call wrapped in a JSX expression container."""
        return "{" + self.call(key, quote) + "}"

    def template(self, key: str, quote: QuoteStyle | str | None = None) -> str:
        """Call wrapped in a template-literal substitution."""
        return "${" + self.call(key, quote) + "}"
