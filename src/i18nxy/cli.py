"""Command-line interface: init, scan, extract, replace, translate."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from i18nxy import __version__
from i18nxy.config import (
    CONFIG_FILE_NAME,
    DEFAULT_CONFIG_TOML,
    I18nConfig,
    config_manager,
    load_config,
    validate_config,
)
from i18nxy.core.parser import infer_parser_options
from i18nxy.errors import ConfigError, I18nError, KeyStoreError
from i18nxy.files import collect_paths
from i18nxy.pipeline import Process, ProcessOptions, ProcessResult, build_classifier
from i18nxy.providers.registry import provider_registry
from i18nxy.reporting.formatters import save_report
from i18nxy.reporting.report import ProcessReport

app = typer.Typer(
    name="i18nxy",
    help="Extract Chinese text from JS/TS/JSX sources into i18n locale files.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

_verbose = False
_quiet = False
_config_path: Path | None = None


def _print(msg: str, *, verbose_only: bool = False) -> None:
    """Print respecting --verbose/--quiet flags. Errors bypass --quiet."""
    if _quiet:
        return
    if verbose_only and not _verbose:
        return
    console.print(msg)


def _setup_logging(config: I18nConfig) -> None:
    pkg_logger = logging.getLogger("i18nxy")
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, RichHandler):
            pkg_logger.removeHandler(handler)

    if _verbose:
        level = logging.DEBUG
    elif _quiet:
        level = logging.ERROR
    else:
        level = config.log_level
    if not config.logging.enabled:
        level = logging.CRITICAL + 1

    pkg_logger.addHandler(RichHandler(console=err_console, show_time=False, show_path=False))
    pkg_logger.setLevel(level)


def _load_config(**validate_kwargs: object) -> I18nConfig:
    """Load and validate the configuration, exiting with code 1 on error."""
    try:
        config = load_config(_config_path)
        validate_config(config, **validate_kwargs)  # type: ignore[arg-type]
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1) from None
    config_manager.set(config)
    _setup_logging(config)
    if config.source_path is not None:
        _print(f"Config: [dim]{config.source_path}[/dim]", verbose_only=True)
    return config


def _print_errors(errors: list[str]) -> None:
    if not errors:
        return
    err_table = Table(title="Errors", show_lines=False)
    err_table.add_column("Error", style="red")
    for err in errors:
        err_table.add_row(err)
    err_console.print(err_table)


def _print_result(result: ProcessResult, *, action: str, dry_run: bool) -> None:
    _print(
        f"Scanned [cyan]{result.scanned_files}[/cyan] files: "
        f"[green]{result.success_files}[/green] ok, "
        f"[red]{result.failed_files}[/red] failed"
    )
    if action == "extract":
        _print(f"Extracted [green]{result.extracted_texts}[/green] texts")
    if result.replaced_files:
        verb = "Would replace" if dry_run else "Replaced"
        _print(f"{verb} text in [green]{result.replaced_files}[/green] files")
    if _verbose:
        for outcome in result.files:
            if not outcome.extracted:
                continue
            console.print(f"\n[cyan]{outcome.path}[/cyan]")
            for index, (text, key) in enumerate(outcome.extracted, 1):
                console.print(f"  {index}. [yellow]{text}[/yellow] => [green]{key}[/green]")
    _print_errors(result.errors)
    if dry_run:
        _print("[dim]Dry run: no files were written.[/dim]")


def _save_report(report: ProcessReport, path: Path | None) -> None:
    if path is None:
        return
    report.finish()
    save_report(report, path)
    _print(f"Report saved: [cyan]{path}[/cyan]")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"i18nxy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help=f"Config file (default: ./{CONFIG_FILE_NAME}).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show every extracted text and debug logs.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show errors.",
    ),
) -> None:
    """i18nxy: pull Chinese text out of JS/TS sources into locale files."""
    global _verbose, _quiet, _config_path
    _verbose = verbose
    _quiet = quiet
    _config_path = config


@app.command()
def init(
    output: Path = typer.Option(
        Path(CONFIG_FILE_NAME), "--output", "-o", help="Where to write the config file.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config file.",
    ),
) -> None:
    """Write a default configuration file."""
    if output.exists() and not force:
        err_console.print(f"[red]Error:[/red] {output} already exists (use --force to overwrite)")
        raise typer.Exit(1)
    output.write_text(DEFAULT_CONFIG_TOML, encoding="utf-8")
    _print(f"Created [cyan]{output}[/cyan]")


@app.command()
def scan(
    paths: list[Path] | None = typer.Argument(
        None, help="Files or directories to scan. Defaults to the configured include patterns.",
    ),
) -> None:
    """List the Chinese texts found, without changing anything."""
    config = _load_config(create_output_dir=False)
    process = Process(config)
    classifier = build_classifier(config)
    files = collect_paths(paths) if paths else process.find_files(ProcessOptions())

    table = Table(title="Chinese text")
    table.add_column("File", style="dim")
    table.add_column("Line", justify="right")
    table.add_column("Kind")
    table.add_column("Text")
    table.add_column("Segments", style="dim")

    errors: list[str] = []
    total = 0
    for path in files:
        try:
            code = path.read_text(encoding="utf-8")
            matches = process.scan_code(code, infer_parser_options(path))
        except (I18nError, OSError, UnicodeDecodeError) as e:
            errors.append(f"{path}: {e}")
            continue
        for match in matches:
            total += 1
            table.add_row(
                str(path),
                str(match.line),
                match.kind.value,
                match.value[:60],
                " | ".join(classifier.extract_segments(match.value)),
            )

    if total:
        console.print(table)
    _print(f"Found [green]{total}[/green] texts in [cyan]{len(files)}[/cyan] files")
    _print_errors(errors)


@app.command()
def extract(
    pattern: list[str] | None = typer.Option(
        None, "--pattern", "-p", help="Include glob (overrides config, repeatable).",
    ),
    ignore: list[str] | None = typer.Option(
        None, "--ignore", "-i", help="Exclude glob (overrides config, repeatable).",
    ),
    output_dir: str | None = typer.Option(
        None, "--output-dir", "-o", help="Locale output directory (overrides config).",
    ),
    replace: bool = typer.Option(
        False, "--replace/--no-replace", help="Also rewrite the sources.",
    ),
    auto_import: bool | None = typer.Option(
        None, "--auto-import/--no-auto-import", help="Add the import for the function.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Scan only, write nothing.",
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Save report to file (json/md).",
    ),
) -> None:
    """Extract Chinese text into the primary locale file."""
    config = _load_config(create_output_dir=not dry_run)
    if output_dir:
        config.output_dir = output_dir

    options = ProcessOptions(
        extract_only=not replace,
        auto_import=auto_import,
        dry_run=dry_run,
        patterns=pattern or None,
        ignores=ignore or None,
        output_dir=output_dir,
    )
    run_report = ProcessReport(
        command="extract",
        config_file=str(config.source_path or ""),
        output_dir=config.output_dir,
        locale=config.locale,
        dry_run=dry_run,
    )

    try:
        with console.status("Extracting..."):
            result = Process(config).execute(options)
    except KeyStoreError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    run_report.add_process_result(result)
    _print_result(result, action="extract", dry_run=dry_run)
    if not replace and result.extracted_texts and not dry_run:
        _print("Run [cyan]i18nxy replace[/cyan] to rewrite the sources.", verbose_only=True)
    _save_report(run_report, report)


@app.command()
def replace(
    pattern: list[str] | None = typer.Option(
        None, "--pattern", "-p", help="Include glob (overrides config, repeatable).",
    ),
    ignore: list[str] | None = typer.Option(
        None, "--ignore", "-i", help="Exclude glob (overrides config, repeatable).",
    ),
    auto_import: bool | None = typer.Option(
        None, "--auto-import/--no-auto-import", help="Add the import for the function.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Scan only, write nothing.",
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Save report to file (json/md).",
    ),
) -> None:
    """Replace already-extracted text with translation-function calls."""
    config = _load_config(create_output_dir=False)
    process = Process(config)
    try:
        found = process.keystore.load_existing_data([config.locale])
    except KeyStoreError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None
    if not found:
        err_console.print(
            f"[red]Error:[/red] no {config.locale} locale file in {config.output_dir}. "
            "Run [cyan]i18nxy extract[/cyan] first."
        )
        raise typer.Exit(1)

    options = ProcessOptions(
        known_only=True,
        auto_import=auto_import,
        dry_run=dry_run,
        patterns=pattern or None,
        ignores=ignore or None,
    )
    run_report = ProcessReport(
        command="replace",
        config_file=str(config.source_path or ""),
        output_dir=config.output_dir,
        locale=config.locale,
        dry_run=dry_run,
    )
    with console.status("Replacing..."):
        result = process.execute(options)

    run_report.add_process_result(result)
    _print_result(result, action="replace", dry_run=dry_run)
    _save_report(run_report, report)


@app.command()
def translate(
    locales: list[str] | None = typer.Argument(
        None, help="Target locales. Defaults to the configured fallback locale.",
    ),
    provider: str | None = typer.Option(
        None, "--provider", "-p",
        help=f"Translation provider ({', '.join(provider_registry.names())}).",
    ),
    concurrency: int | None = typer.Option(
        None, "--concurrency", min=1, help="Parallel requests (overrides config).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Only count the keys that need translating.",
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r", help="Save report to file (json/md).",
    ),
) -> None:
    """Machine-translate missing keys into other locales."""
    config = _load_config(create_output_dir=False)
    if provider:
        config.translation.provider = provider
        config.translation.enabled = True
    if not config.translation.enabled:
        err_console.print(
            "[red]Error:[/red] translation is disabled. "
            "Set [cyan]translation.enabled = true[/cyan] or pass --provider."
        )
        raise typer.Exit(1)
    try:
        validate_config(config, provider_names=provider_registry.names(), create_output_dir=False)
    except ConfigError as e:
        err_console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(1) from None

    targets = locales or [config.fallback_locale]
    process = Process(config, registry=provider_registry)

    if dry_run:
        store = process.keystore
        try:
            store.load_existing_data([config.locale, *targets])
        except KeyStoreError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None
        source = store.get_all(config.locale)
        for locale in targets:
            target = store.get_all(locale)
            missing = sum(1 for key in source if not target.get(key))
            _print(f"{locale}: [yellow]{missing}[/yellow] keys to translate")
        return

    run_report = ProcessReport(
        command="translate",
        config_file=str(config.source_path or ""),
        output_dir=config.output_dir,
        locale=config.locale,
    )
    with console.status(f"Translating with {config.translation.provider}..."):
        summaries = asyncio.run(process.translate(targets, concurrency=concurrency))

    for locale, summary in summaries.items():
        run_report.add_translation(locale, summary)
        if summary.count == 0 and not summary.errors:
            _print(f"{locale}: [green]up to date[/green]")
            continue
        _print(
            f"{locale}: [green]{summary.success_count}[/green] translated, "
            f"[red]{summary.fail_count}[/red] failed"
        )
        if _verbose:
            for text, error in summary.errors:
                console.print(f"  [yellow]{text}[/yellow]: [red]{error}[/red]")
    _save_report(run_report, report)


if __name__ == "__main__":
    app()
