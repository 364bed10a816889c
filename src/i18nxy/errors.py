"""Exception hierarchy for i18nxy."""

from __future__ import annotations


class I18nError(Exception):
    """Base exception for all i18nxy errors."""


class ConfigError(I18nError):
    """Raised when the configuration is missing or invalid."""


class ConfigNotInitializedError(ConfigError):
    """Raised when configuration is read before it has been loaded."""


class ParseError(I18nError):
    """Raised when a source file cannot be parsed."""


class RewriteError(I18nError):
    """Raised when a single match cannot be replaced in the source."""


class KeyStoreError(I18nError):
    """Raised when a locale file cannot be read."""


class ProviderError(I18nError):
    """Raised when a translation provider call fails."""

    def __init__(self, message: str, code: str | int = "UNKNOWN_ERROR") -> None:
        super().__init__(message)
        self.code = code


class ProviderConfigurationError(I18nError):
    """Raised when a translation provider is unknown or misconfigured."""


class BatchTranslationError(I18nError):
    """Raised when some texts of a batch could not be translated.

    ``results`` holds the successful results (in input order, failures
    omitted) and ``errors`` the ``(text, exception)`` pairs of the failures.
    """

    def __init__(self, results: list, errors: list[tuple[str, BaseException]]) -> None:
        super().__init__(f"{len(errors)} of {len(results) + len(errors)} texts failed to translate")
        self.results = results
        self.errors = errors
