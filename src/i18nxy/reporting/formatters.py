"""Output formatters for run reports."""

from __future__ import annotations

import json
from pathlib import Path

from i18nxy.reporting.report import ProcessReport


def to_json(report: ProcessReport, indent: int = 2) -> str:
    """Format report as JSON string."""
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False, default=str)


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def to_markdown(report: ProcessReport) -> str:
    """Format report as Markdown."""
    lines = [
        "# i18n Report",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Command | {report.command} |",
        f"| Config | `{report.config_file or 'defaults'}` |",
        f"| Output dir | `{report.output_dir}` |",
        f"| Locale | {report.locale} |",
        f"| Dry run | {report.dry_run} |",
        "",
        "## Statistics",
        "",
        "| Metric | Count |",
        "|--------|-------|",
        f"| Files scanned | {report.scanned_files} |",
        f"| Files succeeded | {report.success_files} |",
        f"| Files failed | {report.failed_files} |",
        f"| Files replaced | {report.replaced_files} |",
        f"| Texts extracted | {report.extracted_texts} |",
        f"| Duration | {report.duration_seconds:.1f}s |",
    ]

    if report.translations:
        lines.extend([
            "",
            "## Translations",
            "",
            "| Locale | Translated | Failed |",
            "|--------|------------|--------|",
        ])
        for locale, (ok, failed) in report.translations.items():
            lines.append(f"| {locale} | {ok} | {failed} |")

    if report.extracted:
        lines.extend([
            "",
            "## Extracted texts",
            "",
            "| Key | Text |",
            "|-----|------|",
        ])
        for text, key in report.extracted:
            lines.append(f"| `{key}` | {_cell(text)} |")

    if report.errors:
        lines.extend([
            "",
            "## Errors",
            "",
        ])
        for err in report.errors:
            lines.append(f"- {err}")

    return "\n".join(lines) + "\n"


def save_report(report: ProcessReport, path: str | Path) -> None:
    """Save report to file, auto-detecting format from extension."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in (".md", ".markdown"):
        content = to_markdown(report)
    else:
        content = to_json(report)

    path.write_text(content, encoding="utf-8")
