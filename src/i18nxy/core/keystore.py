"""Key store: text → key assignment and per-locale key/value tables.

Keys for the primary locale are synthesized from the text itself, either by
romanizing it with pypinyin or, for long text, from an MD5 prefix. Both are
deterministic so repeated runs over the same sources produce identical
locale files.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from pypinyin import Style, lazy_pinyin

from i18nxy.errors import KeyStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from i18nxy.config import I18nConfig

logger = logging.getLogger(__name__)

_RE_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


class CollisionStrategy(str, Enum):
    HASH = "hash"
    COUNTER = "counter"


@dataclass(frozen=True)
class KeyGenerationPolicy:
    """How keys are synthesized and disambiguated."""
    max_primary_length: int = 10
    hash_length: int = 6
    reuse_existing_key: bool = True
    collision_strategy: CollisionStrategy = CollisionStrategy.HASH
    key_prefix: str = ""
    separator: str = "_"
    max_retry_count: int = 5


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def romanize(text: str) -> str:
    """Tone-less pinyin of *text*, lowercase, alphanumerics only."""
    syllables = lazy_pinyin(text, style=Style.NORMAL)
    return _RE_NON_ALNUM.sub("", "".join(syllables)).lower()


class KeyStore:
    """Owns every locale table plus the primary locale's value → key index.

    Not thread-safe: callers sharing one store must serialize ``add``.
    """

    def __init__(
        self,
        policy: KeyGenerationPolicy | None = None,
        *,
        locale: str = "zh-CN",
        fallback_locale: str = "en-US",
        output_dir: str | Path = "locales",
        file_name: str = "{locale}.json",
        pretty_json: bool = True,
    ) -> None:
        self.policy = policy or KeyGenerationPolicy()
        self.locale = locale
        self.fallback_locale = fallback_locale
        self.output_dir = Path(output_dir)
        self.file_name = file_name
        self.pretty_json = pretty_json
        self._tables: dict[str, dict[str, str]] = {}
        self._value_to_key: dict[str, str] = {}

    @classmethod
    def from_config(cls, config: I18nConfig) -> KeyStore:
        kg = config.key_generation
        policy = KeyGenerationPolicy(
            max_primary_length=kg.max_primary_length,
            hash_length=kg.hash_length,
            reuse_existing_key=kg.reuse_existing_key,
            collision_strategy=CollisionStrategy(kg.duplicate_key_suffix),
            key_prefix=kg.key_prefix,
            separator=kg.separator,
            max_retry_count=kg.max_retry_count,
        )
        return cls(
            policy,
            locale=config.locale,
            fallback_locale=config.fallback_locale,
            output_dir=config.output_dir,
            file_name=config.output.locale_file_name,
            pretty_json=config.output.pretty_json,
        )

    # ── persistence ──

    def locale_file(self, locale: str) -> Path:
        return self.output_dir / self.file_name.replace("{locale}", locale)

    def load_existing_data(self, locales: Iterable[str] | None = None) -> bool:
        """Load locale tables from disk; returns True if any file was found.

        A missing file initializes an empty table. A file that exists but is
        not a JSON object of strings raises :class:`KeyStoreError`.
        """
        targets = list(locales) if locales is not None else [self.locale, self.fallback_locale]
        loaded_any = False

        for locale in targets:
            path = self.locale_file(locale)
            if not path.exists():
                self._tables[locale] = {}
                logger.debug("No %s locale file, starting empty", locale)
                continue

            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                raise KeyStoreError(f"Cannot read locale file {path}: {e}") from e
            if not isinstance(data, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in data.items()
            ):
                raise KeyStoreError(f"Locale file {path} is not a flat object of strings")

            self._tables[locale] = dict(data)
            if locale == self.locale:
                for key, value in data.items():
                    self._value_to_key[value] = key
            loaded_any = True
            logger.debug("Loaded %s: %s (%d entries)", locale, path, len(data))

        return loaded_any

    def save_to_file(self, locales: Iterable[str] | None = None) -> list[Path]:
        """Write locale tables with sorted keys; returns the paths written."""
        targets = list(locales) if locales is not None else list(self._tables)
        if not targets:
            logger.warning("No locale data to save")
            return []

        self.output_dir.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for locale in targets:
            table = self._tables.get(locale)
            if table is None:
                continue
            path = self.locale_file(locale)
            content = json.dumps(
                dict(sorted(table.items())),
                ensure_ascii=False,
                indent=2 if self.pretty_json else None,
            )
            path.write_text(content + "\n", encoding="utf-8")
            written.append(path)
            logger.debug("Saved %s: %s (%d entries)", locale, path, len(table))
        return written

    # ── mutation ──

    def add(self, value: str, key: str | None = None, locale: str | None = None) -> str:
        """Record *value* and return its key.

        With no explicit *key*, an existing key for the same text is reused
        (when the policy allows it), otherwise a new one is synthesized.
        """
        target = locale or self.locale
        if not key:
            existing = self._value_to_key.get(value)
            if self.policy.reuse_existing_key and existing is not None:
                key = existing
            else:
                key = self.generate_key(value, target)
                logger.debug("New key %s => %s", key, value)

        self._store(target, key, value)
        return key

    def add_batch(
        self,
        entries: Iterable[tuple[str, str | None] | str],
        locale: str | None = None,
    ) -> int:
        """Add ``value`` or ``(value, key)`` entries; empty values are skipped."""
        count = 0
        for entry in entries:
            value, key = (entry, None) if isinstance(entry, str) else entry
            if value:
                self.add(value, key, locale)
                count += 1
        return count

    def merge(self, data: dict[str, str], locale: str | None = None) -> int:
        """Merge *data* into a locale table; returns how many keys were new."""
        target = locale or self.locale
        before = len(self._tables.setdefault(target, {}))
        for key, value in data.items():
            self._store(target, key, value)
        return len(self._tables[target]) - before

    def _store(self, locale: str, key: str, value: str) -> None:
        table = self._tables.setdefault(locale, {})
        if locale == self.locale:
            old = table.get(key)
            if old is not None and self._value_to_key.get(old) == key:
                del self._value_to_key[old]
            self._value_to_key[value] = key
        table[key] = value

    def remove(self, key: str, locale: str | None = None) -> bool:
        """Remove *key* from one locale, or from all locales when none is given."""
        targets = [locale] if locale else list(self._tables)
        removed = False
        for target in targets:
            table = self._tables.get(target)
            if table is None or key not in table:
                continue
            value = table.pop(key)
            if target == self.locale and self._value_to_key.get(value) == key:
                del self._value_to_key[value]
            removed = True
        return removed

    def clear(self, locale: str | None = None) -> None:
        if locale:
            self._tables[locale] = {}
            if locale == self.locale:
                self._value_to_key.clear()
        else:
            self._tables.clear()
            self._value_to_key.clear()

    # ── key synthesis ──

    def _prefixed(self, fragment: str) -> str:
        if self.policy.key_prefix:
            return f"{self.policy.key_prefix}{self.policy.separator}{fragment}"
        return fragment

    def _hash_key(self, value: str) -> str:
        return self._prefixed(_md5(value)[: self.policy.hash_length])

    def generate_key(self, value: str, locale: str | None = None) -> str:
        """Synthesize a key for *value*, unique within *locale*."""
        fragment = ""
        if len(value) <= self.policy.max_primary_length:
            fragment = romanize(value)
        # Long text, or text with nothing to romanize, gets the hash form.
        key = self._prefixed(fragment) if fragment else self._hash_key(value)
        return self._resolve_collision(key, value, locale or self.locale)

    def _conflicts(self, key: str, value: str, locale: str) -> bool:
        table = self._tables.get(locale, {})
        return key in table and table[key] != value

    def _resolve_collision(self, key: str, value: str, locale: str) -> str:
        policy = self.policy
        candidate = key
        retries = 0
        while self._conflicts(candidate, value, locale) and retries < policy.max_retry_count:
            if policy.collision_strategy is CollisionStrategy.HASH:
                suffix = _md5(f"{value}{retries}")[: policy.hash_length]
            else:
                suffix = str(retries + 1)
            candidate = f"{key}{policy.separator}{suffix}"
            retries += 1

        if self._conflicts(candidate, value, locale):
            candidate = f"{key}{policy.separator}{int(time.time() * 1000)}"
            logger.warning(
                "Key collision for %r not resolved after %d retries, using %s",
                value, retries, candidate,
            )
        return candidate

    # ── queries ──

    def get_key_by_value(self, value: str) -> str | None:
        return self._value_to_key.get(value)

    def get_value_by_key(self, key: str, locale: str | None = None) -> str | None:
        return self._tables.get(locale or self.locale, {}).get(key)

    def has_key(self, key: str, locale: str | None = None) -> bool:
        return key in self._tables.get(locale or self.locale, {})

    def has_value(self, value: str, locale: str | None = None) -> bool:
        target = locale or self.locale
        if target == self.locale:
            return value in self._value_to_key
        return value in self._tables.get(target, {}).values()

    def count(self, locale: str | None = None) -> int:
        return len(self._tables.get(locale or self.locale, {}))

    def get_all(self, locale: str | None = None) -> dict[str, str]:
        return dict(self._tables.get(locale or self.locale, {}))

    def get_all_keys(self, locale: str | None = None) -> list[str]:
        return list(self._tables.get(locale or self.locale, {}))

    def get_all_values(self, locale: str | None = None) -> list[str]:
        return list(self._tables.get(locale or self.locale, {}).values())

    @property
    def locales(self) -> list[str]:
        return list(self._tables)
