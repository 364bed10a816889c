"""Configuration: defaults, TOML loading, environment credentials and validation."""

from __future__ import annotations

import copy
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from i18nxy.errors import ConfigError, ConfigNotInitializedError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "i18nxy.toml"

DEFAULTS: dict[str, Any] = {
    "locale": "zh-CN",
    "fallback_locale": "en-US",
    "output_dir": "locales",
    "include": [
        "src/**/*.{js,jsx,ts,tsx}",
        "pages/**/*.{js,jsx,ts,tsx}",
        "components/**/*.{js,jsx,ts,tsx}",
    ],
    "exclude": [
        "node_modules/**",
        "dist/**",
        "build/**",
        "**/*.test.{js,jsx,ts,tsx}",
        "**/*.spec.{js,jsx,ts,tsx}",
    ],
    "key_generation": {
        "max_primary_length": 10,
        "hash_length": 6,
        "max_retry_count": 5,
        "reuse_existing_key": True,
        "duplicate_key_suffix": "hash",
        "key_prefix": "",
        "separator": "_",
    },
    "matching": {
        "mode": "any",
        "exclude_comments": True,
        "exclude_patterns": [],
    },
    "output": {
        "pretty_json": True,
        "locale_file_name": "{locale}.json",
    },
    "logging": {
        "enabled": True,
        "level": "normal",
    },
    "replacement": {
        "function_name": "$t",
        "quote": "single",
        "auto_import": {
            "enabled": False,
            "insert_position": "afterImports",
            "imports": {},
        },
    },
    "translation": {
        "enabled": False,
        "provider": "baidu",
        "default_source_lang": "zh",
        "default_target_lang": "en",
        "concurrency": 10,
        "retry_times": 3,
        "retry_delay": 0.0,
        "batch_delay": 0.0,
        "baidu": {"appid": "", "key": ""},
        "deepl": {"api_key": ""},
    },
}

# Environment variables that fill in empty provider credentials
ENV_CREDENTIALS = {
    ("baidu", "appid"): "BAIDU_TRANSLATE_APPID",
    ("baidu", "key"): "BAIDU_TRANSLATE_KEY",
    ("deepl", "api_key"): "DEEPL_API_KEY",
}

LOG_LEVELS = {"minimal": logging.WARNING, "normal": logging.INFO, "verbose": logging.DEBUG}

DEFAULT_CONFIG_TOML = """\
# i18nxy configuration
locale = "zh-CN"
fallback_locale = "en-US"
output_dir = "locales"
include = ["src/**/*.{js,jsx,ts,tsx}"]
exclude = ["node_modules/**", "dist/**", "build/**", "**/*.test.{js,jsx,ts,tsx}"]

[key_generation]
max_primary_length = 10
hash_length = 6
max_retry_count = 5
reuse_existing_key = true
duplicate_key_suffix = "hash"  # hash | counter
key_prefix = ""
separator = "_"

[matching]
mode = "any"  # any | all
exclude_comments = true
exclude_patterns = []

[output]
pretty_json = true
locale_file_name = "{locale}.json"

[logging]
enabled = true
level = "normal"  # minimal | normal | verbose

[replacement]
function_name = "$t"
quote = "single"

[replacement.auto_import]
enabled = false
insert_position = "afterImports"  # afterImports | beforeImports | topOfFile

[replacement.auto_import.imports]
"$t" = { import_statement = "import { $t } from '@/i18n';" }

[translation]
enabled = false
provider = "baidu"
default_source_lang = "zh"
default_target_lang = "en"
concurrency = 10
retry_times = 3
retry_delay = 0.0
batch_delay = 0.0

# Credentials can also come from BAIDU_TRANSLATE_APPID / BAIDU_TRANSLATE_KEY
[translation.baidu]
appid = ""
key = ""
"""


@dataclass
class KeyGenerationConfig:
    max_primary_length: int = 10
    hash_length: int = 6
    max_retry_count: int = 5
    reuse_existing_key: bool = True
    duplicate_key_suffix: str = "hash"
    key_prefix: str = ""
    separator: str = "_"


@dataclass
class MatchingConfig:
    mode: str = "any"
    exclude_comments: bool = True
    exclude_patterns: list[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    pretty_json: bool = True
    locale_file_name: str = "{locale}.json"


@dataclass
class LoggingConfig:
    enabled: bool = True
    level: str = "normal"


@dataclass
class ImportSpec:
    import_statement: str


@dataclass
class AutoImportConfig:
    enabled: bool = False
    insert_position: str = "afterImports"
    imports: dict[str, ImportSpec] = field(default_factory=dict)


@dataclass
class ReplacementConfig:
    function_name: str = "$t"
    quote: str = "single"
    auto_import: AutoImportConfig = field(default_factory=AutoImportConfig)


@dataclass
class TranslationConfig:
    enabled: bool = False
    provider: str = "baidu"
    default_source_lang: str = "zh"
    default_target_lang: str = "en"
    concurrency: int = 10
    retry_times: int = 3
    retry_delay: float = 0.0
    batch_delay: float = 0.0
    # provider name -> credential table, e.g. {"baidu": {"appid": ..., "key": ...}}
    credentials: dict[str, dict[str, str]] = field(default_factory=dict)

    def credentials_for(self, provider: str) -> dict[str, str]:
        return dict(self.credentials.get(provider, {}))


@dataclass
class I18nConfig:
    locale: str = "zh-CN"
    fallback_locale: str = "en-US"
    output_dir: str = "locales"
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    key_generation: KeyGenerationConfig = field(default_factory=KeyGenerationConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    replacement: ReplacementConfig = field(default_factory=ReplacementConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    source_path: Path | None = None

    @property
    def log_level(self) -> int:
        return LOG_LEVELS.get(self.logging.level, logging.INFO)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*. Lists are replaced, not joined."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _section(cls: type, data: dict[str, Any], name: str) -> Any:
    known = set(cls.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown %s option(s): %s", name, ", ".join(sorted(unknown)))
    try:
        return cls(**{k: v for k, v in data.items() if k in known})
    except TypeError as e:
        raise ConfigError(f"Invalid [{name}] section: {e}") from e


def _apply_env(data: dict[str, Any]) -> None:
    translation = data.setdefault("translation", {})
    for (provider, name), env_var in ENV_CREDENTIALS.items():
        table = translation.setdefault(provider, {})
        if not table.get(name) and os.environ.get(env_var):
            table[name] = os.environ[env_var]


def config_from_dict(raw: dict[str, Any], source_path: Path | None = None) -> I18nConfig:
    """Build an :class:`I18nConfig` from *raw* merged over the defaults."""
    data = deep_merge(DEFAULTS, raw)
    _apply_env(data)

    replacement = dict(data.pop("replacement"))
    auto = dict(replacement.pop("auto_import"))
    imports = {}
    for fn_name, spec in auto.pop("imports").items():
        if isinstance(spec, str):
            imports[fn_name] = ImportSpec(spec)
        elif isinstance(spec, dict) and "import_statement" in spec:
            imports[fn_name] = ImportSpec(spec["import_statement"])
        else:
            raise ConfigError(f"Invalid import spec for {fn_name!r}: expected import_statement")

    translation = dict(data.pop("translation"))
    scalar_fields = set(TranslationConfig.__dataclass_fields__) - {"credentials"}
    credentials = {
        name: {k: str(v) for k, v in table.items()}
        for name, table in translation.items()
        if name not in scalar_fields and isinstance(table, dict)
    }
    translation = {k: v for k, v in translation.items() if k in scalar_fields}

    config = I18nConfig(
        locale=data.pop("locale"),
        fallback_locale=data.pop("fallback_locale"),
        output_dir=data.pop("output_dir"),
        include=list(data.pop("include")),
        exclude=list(data.pop("exclude")),
        key_generation=_section(KeyGenerationConfig, data.pop("key_generation"), "key_generation"),
        matching=_section(MatchingConfig, data.pop("matching"), "matching"),
        output=_section(OutputConfig, data.pop("output"), "output"),
        logging=_section(LoggingConfig, data.pop("logging"), "logging"),
        replacement=_section(
            ReplacementConfig,
            {
                **replacement,
                "auto_import": _section(
                    AutoImportConfig, {**auto, "imports": imports}, "replacement.auto_import",
                ),
            },
            "replacement",
        ),
        translation=_section(
            TranslationConfig, {**translation, "credentials": credentials}, "translation",
        ),
        source_path=source_path,
    )
    if data:
        logger.warning("Ignoring unknown option(s): %s", ", ".join(sorted(data)))
    return config


def find_config_file(start: Path | None = None) -> Path | None:
    """Look for ``i18nxy.toml`` in *start* (default: cwd)."""
    candidate = (start or Path.cwd()) / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def load_config(path: str | Path | None = None) -> I18nConfig:
    """Load configuration from *path*, or from ``i18nxy.toml`` if present.

    Falls back to the built-in defaults when no file is found.

    Raises:
        ConfigError: If the file is missing (when given explicitly) or not valid TOML.
    """
    if path is not None:
        config_path: Path | None = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file()

    raw: dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
        logger.debug("Loaded config from %s", config_path)

    return config_from_dict(raw, config_path)


def validate_config(
    config: I18nConfig,
    *,
    provider_names: list[str] | None = None,
    create_output_dir: bool = True,
) -> None:
    """Check a configuration before a run.

    Raises:
        ConfigError: On the first problem found.
    """
    for name in ("locale", "fallback_locale", "output_dir"):
        if not getattr(config, name):
            raise ConfigError(f"Missing required option: {name}")
    if not config.include:
        raise ConfigError("include must be a non-empty list of patterns")

    kg = config.key_generation
    if kg.max_primary_length <= 0:
        raise ConfigError("key_generation.max_primary_length must be positive")
    if not 0 < kg.hash_length <= 32:
        raise ConfigError("key_generation.hash_length must be between 1 and 32")
    if kg.max_retry_count < 0:
        raise ConfigError("key_generation.max_retry_count must not be negative")
    if kg.duplicate_key_suffix not in ("hash", "counter"):
        raise ConfigError(
            f"key_generation.duplicate_key_suffix must be 'hash' or 'counter', "
            f"got {kg.duplicate_key_suffix!r}"
        )
    if not kg.separator:
        raise ConfigError("key_generation.separator must not be empty")

    if config.matching.mode not in ("any", "all"):
        raise ConfigError(f"matching.mode must be 'any' or 'all', got {config.matching.mode!r}")
    for pattern in config.matching.exclude_patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"matching.exclude_patterns: invalid regex {pattern!r}: {e}") from e
    if config.logging.level not in LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")
    if config.replacement.quote not in ("single", "double"):
        raise ConfigError("replacement.quote must be 'single' or 'double'")
    if "{locale}" not in config.output.locale_file_name:
        raise ConfigError("output.locale_file_name must contain {locale}")

    if create_output_dir:
        try:
            Path(config.output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Output directory {config.output_dir!r} cannot be created: {e}") from e

    if config.translation.enabled:
        validate_translation(config, provider_names)


def validate_translation(config: I18nConfig, provider_names: list[str] | None = None) -> None:
    translation = config.translation
    if provider_names is not None and translation.provider not in provider_names:
        raise ConfigError(f"Unsupported translation provider: {translation.provider!r}")
    if translation.provider == "baidu":
        creds = translation.credentials_for("baidu")
        if not creds.get("appid") or not creds.get("key"):
            raise ConfigError(
                "Baidu translation needs translation.baidu.appid and key "
                "(or BAIDU_TRANSLATE_APPID / BAIDU_TRANSLATE_KEY)"
            )
    elif translation.provider == "deepl":
        if not translation.credentials_for("deepl").get("api_key"):
            raise ConfigError("DeepL translation needs translation.deepl.api_key (or DEEPL_API_KEY)")
    if translation.concurrency <= 0:
        raise ConfigError("translation.concurrency must be greater than 0")
    if translation.retry_times < 0:
        raise ConfigError("translation.retry_times must not be negative")
    if translation.retry_delay < 0 or translation.batch_delay < 0:
        raise ConfigError("translation delays must not be negative")


class ConfigManager:
    """Holds the configuration loaded for this process."""

    def __init__(self) -> None:
        self._config: I18nConfig | None = None

    def init(self, path: str | Path | None = None, **validate_kwargs: Any) -> I18nConfig:
        config = load_config(path)
        validate_config(config, **validate_kwargs)
        self._config = config
        return config

    def set(self, config: I18nConfig) -> None:
        self._config = config

    def get(self) -> I18nConfig:
        if self._config is None:
            raise ConfigNotInitializedError("Configuration not initialized, call init() first")
        return self._config

    def get_or_default(self) -> I18nConfig:
        return self._config if self._config is not None else config_from_dict({})

    @property
    def initialized(self) -> bool:
        return self._config is not None

    def reset(self) -> None:
        self._config = None


# Process-wide instance for the CLI; library callers pass configs explicitly.
config_manager = ConfigManager()
