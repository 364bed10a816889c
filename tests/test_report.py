"""Tests for run reports and their formatters."""

import json

from i18nxy.pipeline import FileOutcome, ProcessResult
from i18nxy.reporting.formatters import save_report, to_json, to_markdown
from i18nxy.reporting.report import ProcessReport
from i18nxy.translation.processor import TranslateSummary


def sample_report():
    report = ProcessReport(command="extract", output_dir="locales", locale="zh-CN")
    outcome = FileOutcome(path="src/App.jsx", status="replaced", extracted=[("你好", "nihao")])
    report.add_process_result(ProcessResult(
        scanned_files=2,
        extracted_texts=1,
        replaced_files=1,
        success_files=1,
        failed_files=1,
        errors=["src/bad.js: Syntax error at line 1, column 7"],
        files=[outcome],
    ))
    return report


class TestProcessReport:
    def test_add_process_result(self):
        report = sample_report()
        assert report.scanned_files == 2
        assert report.failed_files == 1
        assert report.extracted == [("你好", "nihao")]
        assert len(report.errors) == 1

    def test_add_translation(self):
        report = ProcessReport(command="translate")
        summary = TranslateSummary(count=2, errors=[("坏", RuntimeError("nope"))])
        report.add_translation("en-US", summary)
        assert report.translations == {"en-US": (0, 1)}
        assert report.errors == ["en-US: 坏: nope"]

    def test_duration(self):
        report = ProcessReport()
        assert report.duration_seconds == 0.0
        report.finish()
        assert report.duration_seconds >= 0.0
        assert report.finished_at is not None


class TestFormatters:
    def test_json(self):
        data = json.loads(to_json(sample_report()))
        assert data["command"] == "extract"
        assert data["extracted"] == [{"text": "你好", "key": "nihao"}]
        assert "你好" in to_json(sample_report())

    def test_markdown(self):
        report = sample_report()
        report.add_translation("ja", TranslateSummary(count=1))
        md = to_markdown(report)
        assert md.startswith("# i18n Report")
        assert "| Files scanned | 2 |" in md
        assert "| `nihao` | 你好 |" in md
        assert "| ja | 0 | 0 |" in md
        assert "## Errors" in md

    def test_markdown_escapes_pipes(self):
        report = ProcessReport(extracted=[("甲|乙", "k")])
        assert "甲\\|乙" in to_markdown(report)

    def test_save_by_suffix(self, tmp_path):
        report = sample_report()
        save_report(report, tmp_path / "r.md")
        save_report(report, tmp_path / "r.json")
        assert (tmp_path / "r.md").read_text(encoding="utf-8").startswith("# i18n Report")
        assert json.loads((tmp_path / "r.json").read_text(encoding="utf-8"))["locale"] == "zh-CN"
