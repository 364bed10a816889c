"""i18nxy: extract Chinese text from JS/TS sources into i18n keys."""

__version__ = "0.3.0"
