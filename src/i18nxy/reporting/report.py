"""Run report data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from i18nxy.pipeline import ProcessResult
    from i18nxy.translation.processor import TranslateSummary


@dataclass
class ProcessReport:
    """Collects statistics about an extract/replace/translate run."""

    command: str = ""
    config_file: str = ""
    output_dir: str = ""
    locale: str = ""

    scanned_files: int = 0
    success_files: int = 0
    failed_files: int = 0
    replaced_files: int = 0
    extracted_texts: int = 0

    # locale -> (translated, failed)
    translations: dict[str, tuple[int, int]] = field(default_factory=dict)
    # (text, key) pairs, in extraction order
    extracted: list[tuple[str, str]] = field(default_factory=list)

    dry_run: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    errors: list[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def finish(self) -> None:
        self.finished_at = datetime.now()

    def add_process_result(self, result: ProcessResult) -> None:
        self.scanned_files += result.scanned_files
        self.success_files += result.success_files
        self.failed_files += result.failed_files
        self.replaced_files += result.replaced_files
        self.extracted_texts += result.extracted_texts
        for outcome in result.files:
            self.extracted.extend(outcome.extracted)
        self.errors.extend(result.errors)

    def add_translation(self, locale: str, summary: TranslateSummary) -> None:
        self.translations[locale] = (summary.success_count, summary.fail_count)
        self.errors.extend(f"{locale}: {text}: {error}" for text, error in summary.errors)

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "config_file": self.config_file,
            "output_dir": self.output_dir,
            "locale": self.locale,
            "scanned_files": self.scanned_files,
            "success_files": self.success_files,
            "failed_files": self.failed_files,
            "replaced_files": self.replaced_files,
            "extracted_texts": self.extracted_texts,
            "translations": {
                locale: {"translated": ok, "failed": failed}
                for locale, (ok, failed) in self.translations.items()
            },
            "extracted": [{"text": text, "key": key} for text, key in self.extracted],
            "dry_run": self.dry_run,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors,
        }
