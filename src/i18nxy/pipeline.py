"""Orchestration: find files, scan, assign keys, rewrite, save, translate.

A :class:`Process` owns one configuration and the key store, classifier and
rewriter built from it. Files are handled one at a time; a file that fails
is recorded in the result and the run moves on.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from i18nxy.config import I18nConfig
from i18nxy.core.classifier import MatchPolicy, TextClassifier
from i18nxy.core.imports import ImportManager
from i18nxy.core.keystore import KeyStore
from i18nxy.core.parser import ParserOptions, infer_parser_options, parse_source
from i18nxy.core.replacement import ReplacementFormatter
from i18nxy.core.rewriter import RewriteResult, TreeRewriter
from i18nxy.core.scanner import TextMatch, TreeScanner
from i18nxy.errors import I18nError
from i18nxy.files import find_source_files
from i18nxy.providers.base import ProviderRegistry
from i18nxy.translation.processor import TranslateSummary, TranslationProcessor

logger = logging.getLogger(__name__)


@dataclass
class ProcessOptions:
    """Per-run overrides of the configuration."""
    extract_only: bool = False
    # Only replace texts that already have a key; never create keys.
    known_only: bool = False
    auto_import: bool | None = None
    dry_run: bool = False
    patterns: list[str] | None = None
    ignores: list[str] | None = None
    output_dir: str | None = None
    # Explicit files, bypassing include/exclude discovery.
    files: list[Path] | None = None


@dataclass
class FileOutcome:
    """Per-file state: pending, unchanged, replaced or error."""
    path: Path
    status: str = "pending"
    extracted: list[tuple[str, str]] = field(default_factory=list)
    error_message: str = ""


@dataclass
class ProcessResult:
    scanned_files: int = 0
    extracted_texts: int = 0
    replaced_files: int = 0
    success_files: int = 0
    failed_files: int = 0
    elapsed_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)
    files: list[FileOutcome] = field(default_factory=list)


def build_classifier(config: I18nConfig) -> TextClassifier:
    return TextClassifier(
        MatchPolicy(config.matching.mode),
        exclude_comments=config.matching.exclude_comments,
        exclude_patterns=config.matching.exclude_patterns,
    )


class Process:
    """Runs extraction, replacement and translation for one configuration."""

    def __init__(
        self,
        config: I18nConfig,
        *,
        keystore: KeyStore | None = None,
        registry: ProviderRegistry | None = None,
        root: str | Path = ".",
    ) -> None:
        self.config = config
        self.root = Path(root)
        self.keystore = keystore or KeyStore.from_config(config)
        self.registry = registry
        self.scanner = TreeScanner(build_classifier(config))
        self.rewriter = TreeRewriter(
            ReplacementFormatter(config.replacement.function_name, config.replacement.quote)
        )
        self.imports = ImportManager.from_config(config)

    # ── single file ──

    def scan_code(self, code: str, options: ParserOptions | None = None) -> list[TextMatch]:
        return self.scanner.scan(parse_source(code, options))

    def process_code(
        self,
        code: str,
        options: ParserOptions | None = None,
        *,
        replace: bool = True,
        known_only: bool = False,
        auto_import: bool = False,
    ) -> RewriteResult:
        """Scan *code*, resolve a key per match and rewrite it.

        Raises:
            ParseError: If *code* does not parse.
        """
        tree = parse_source(code, options)
        matches = self.scanner.scan(tree)
        if known_only:
            pairs = [(m, self.keystore.get_key_by_value(m.value)) for m in matches]
            matches = [m for m, key in pairs if key]
            keys = [key for _, key in pairs if key]
        else:
            keys = [self.keystore.add(m.value) for m in matches]

        result = self.rewriter.rewrite(tree, matches, keys, replace=replace)
        if auto_import and result.has_replaced:
            result.code = self.imports.add_import(
                result.code, self.config.replacement.function_name, tree.options,
            )
        return result

    def process_file(self, path: Path, options: ProcessOptions) -> FileOutcome:
        outcome = FileOutcome(path=path)
        replace = not options.extract_only
        auto_import = (
            options.auto_import
            if options.auto_import is not None
            else self.config.replacement.auto_import.enabled
        )
        try:
            code = path.read_text(encoding="utf-8")
            result = self.process_code(
                code,
                infer_parser_options(path),
                replace=replace,
                known_only=options.known_only,
                auto_import=replace and auto_import,
            )
            outcome.extracted = result.extracted
            if replace and result.has_replaced and result.code != code:
                if not options.dry_run:
                    path.write_text(result.code, encoding="utf-8")
                outcome.status = "replaced"
            else:
                outcome.status = "unchanged"
        except (I18nError, OSError, UnicodeDecodeError) as e:
            outcome.status = "error"
            outcome.error_message = f"{path}: {e}"
            logger.error("Failed to process %s: %s", path, e)
        return outcome

    # ── whole run ──

    def find_files(self, options: ProcessOptions) -> list[Path]:
        if options.files is not None:
            return list(options.files)
        return find_source_files(
            options.patterns or self.config.include,
            options.ignores if options.ignores is not None else self.config.exclude,
            self.root,
        )

    def execute(self, options: ProcessOptions | None = None) -> ProcessResult:
        """Extract (and by default replace) every matching file."""
        options = options or ProcessOptions()
        start = time.monotonic()
        result = ProcessResult()

        if options.output_dir:
            self.keystore.output_dir = Path(options.output_dir)
        self.keystore.load_existing_data()

        files = self.find_files(options)
        result.scanned_files = len(files)
        logger.info("Found %d matching files", len(files))

        for path in files:
            outcome = self.process_file(path, options)
            result.files.append(outcome)
            if outcome.status == "error":
                result.failed_files += 1
                result.errors.append(outcome.error_message)
                continue
            result.success_files += 1
            result.extracted_texts += len(outcome.extracted)
            if outcome.status == "replaced":
                result.replaced_files += 1
            for text, key in outcome.extracted:
                logger.debug("  %s => %s", text, key)

        if options.dry_run:
            logger.info("Dry run: %d texts found, nothing written", result.extracted_texts)
        elif result.extracted_texts and not options.known_only:
            self.keystore.save_to_file()
            logger.info(
                "Extracted %d texts into %s", result.extracted_texts, self.keystore.output_dir,
            )

        result.elapsed_seconds = time.monotonic() - start
        return result

    async def translate(
        self,
        locales: list[str],
        *,
        provider_name: str | None = None,
        concurrency: int | None = None,
    ) -> dict[str, TranslateSummary]:
        """Back-fill each locale in *locales* from the primary locale."""
        if self.registry is None:
            raise ValueError("translate needs a provider registry")
        processor = TranslationProcessor.from_config(
            self.config,
            self.registry,
            self.keystore,
            provider_name=provider_name,
            concurrency=concurrency,
        )
        summaries: dict[str, TranslateSummary] = {}
        for locale in locales:
            if locale == self.config.locale:
                logger.warning("Skipping source locale %s", locale)
                continue
            try:
                summaries[locale] = await processor.translate_locale(locale, self.config.locale)
            except (I18nError, OSError) as e:
                logger.error("Translating %s failed: %s", locale, e)
                summaries[locale] = TranslateSummary(errors=[(locale, e)])
        return summaries
