"""Command-line interface for tscatalog.

Commands:
    tscatalog translate: Resolve and format one message
    tscatalog check: Run consistency checks on a catalog
    tscatalog stats: Show message counts of catalogs
    tscatalog convert: Convert a catalog to JSON or YAML
    tscatalog locales: List the locales available in a directory
"""

from __future__ import annotations

import functools
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Callable, Optional, TypeVar

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tscatalog.config import TranslatorConfig, load_config
from tscatalog.exceptions import (
    CatalogError,
    ConfigError,
    IntegrityError,
    InvalidArgument,
    MissingArgument,
    ParseError,
)
from tscatalog.loader import CatalogLoader, IntegrityPolicy, available_locales
from tscatalog.log import configure_logging
from tscatalog.translator import LocaleCatalog, Translator
from tscatalog.validation import IssueSeverity, catalog_stats, check_catalog

logger = logging.getLogger("tscatalog.cli")

app = typer.Typer(
    name="tscatalog",
    help="Resolve, check and convert Qt translation catalogs.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Errors
# =============================================================================


class ErrorCode(Enum):
    """Exit codes of the command line."""

    GENERAL_ERROR = 1
    USAGE_ERROR = 2

    FILE_NOT_FOUND = 10
    INVALID_FILE_FORMAT = 13

    VALIDATION_FAILED = 20

    CONFIG_INVALID = 31

    DATA_CORRUPT = 52


class CLIError(Exception):
    """Error reported to the user with an exit code and an optional hint."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL_ERROR,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


def _to_cli_error(error: Exception) -> CLIError:
    if isinstance(error, CLIError):
        return error
    if isinstance(error, (FileNotFoundError, NotADirectoryError)):
        return CLIError(str(error), ErrorCode.FILE_NOT_FOUND, "Check that the path is correct.")
    if isinstance(error, ParseError):
        return CLIError(error.message, ErrorCode.INVALID_FILE_FORMAT)
    if isinstance(error, IntegrityError):
        return CLIError(
            error.message,
            ErrorCode.DATA_CORRUPT,
            "Fix the entry or load with --policy drop.",
        )
    if isinstance(error, ConfigError):
        return CLIError(error.message, ErrorCode.CONFIG_INVALID)
    if isinstance(error, (InvalidArgument, MissingArgument)):
        return CLIError(error.message, ErrorCode.USAGE_ERROR)
    if isinstance(error, CatalogError):
        return CLIError(error.message)
    raise error


F = TypeVar("F", bound=Callable[..., Any])


def error_boundary(func: F) -> F:
    """Convert exceptions raised by a command into an error message and exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except (CLIError, CatalogError, FileNotFoundError, NotADirectoryError) as e:
            error = _to_cli_error(e)
            typer.echo(typer.style(f"Error: {error.message}", fg="red"), err=True)
            if error.hint:
                typer.echo(typer.style(f"Hint: {error.hint}", fg="yellow"), err=True)
            raise typer.Exit(error.code.value)
        except Exception as e:
            logger.exception("Unexpected error")
            typer.echo(typer.style(f"Error: {e}", fg="red"), err=True)
            raise typer.Exit(ErrorCode.GENERAL_ERROR.value)

    return wrapper  # type: ignore


# =============================================================================
# Type Aliases
# =============================================================================

CatalogArg = Annotated[
    Path,
    typer.Argument(help="Catalog file (.ts, .json, .yaml)"),
]

PolicyOpt = Annotated[
    str,
    typer.Option(
        "--policy",
        help="Integrity policy: strict rejects an invalid catalog, drop skips invalid entries",
    ),
]

FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format (console, json)"),
]


def _policy(value: str) -> IntegrityPolicy:
    try:
        return IntegrityPolicy.from_string(value)
    except ValueError as e:
        raise CLIError(str(e), ErrorCode.USAGE_ERROR)


def _output_format(value: str) -> str:
    if value not in ("console", "json"):
        raise CLIError(
            f"Unknown output format: {value}",
            ErrorCode.USAGE_ERROR,
            "Use console or json.",
        )
    return value


# =============================================================================
# Global Options
# =============================================================================


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: Annotated[
        Optional[str],
        typer.Option(
            "--log-level",
            help="Log level (DEBUG, INFO, WARNING, ERROR); overrides log_level from configuration",
        ),
    ] = None,
    log_format: Annotated[
        str,
        typer.Option("--log-format", help="Log format (console, json)"),
    ] = "console",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Shortcut for --log-level INFO"),
    ] = False,
) -> None:
    """Resolve, check and convert Qt translation catalogs."""
    if verbose:
        log_level = "INFO"
    try:
        configure_logging(log_level or "WARNING", fmt=log_format)
    except ValueError as e:
        typer.echo(typer.style(f"Error: {e}", fg="red"), err=True)
        raise typer.Exit(ErrorCode.USAGE_ERROR.value)
    ctx.obj = {"log_level": log_level, "log_format": log_format}


def _apply_config_logging(ctx: typer.Context, config: TranslatorConfig) -> None:
    """Use the configured log level unless one was given on the command line."""
    options = ctx.obj or {}
    if options.get("log_level") is None:
        configure_logging(config.log_level, fmt=options.get("log_format", "console"))


# =============================================================================
# Translate Command
# =============================================================================


@app.command(name="translate")
@error_boundary
def translate_cmd(
    ctx: typer.Context,
    context: Annotated[str, typer.Argument(help="Message context, e.g. AddressBookPage")],
    source: Annotated[str, typer.Argument(help="Source text of the message")],
    count: Annotated[
        Optional[int],
        typer.Option("--count", "-n", help="Count for plural-sensitive messages"),
    ] = None,
    args: Annotated[
        Optional[list[str]],
        typer.Option("--arg", "-a", help="Positional argument for %1, %2, ... (repeatable)"),
    ] = None,
    comment: Annotated[
        str,
        typer.Option("--comment", help="Disambiguation comment"),
    ] = "",
    catalog: Annotated[
        Optional[Path],
        typer.Option("--catalog", help="Translate with this catalog file only"),
    ] = None,
    locale: Annotated[
        Optional[str],
        typer.Option("--locale", "-l", help="Locale to load from the catalog directories"),
    ] = None,
    catalog_dirs: Annotated[
        Optional[list[Path]],
        typer.Option("--dir", "-d", help="Catalog directory (repeatable)"),
    ] = None,
    domain: Annotated[
        Optional[str],
        typer.Option("--domain", help="Catalog file prefix, e.g. dash for dash_ja.ts"),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail on a placeholder without an argument"),
    ] = False,
) -> None:
    """Translate one message.

    Examples:

        tscatalog translate AddressBookPage "&Copy" --catalog locale/dash_ja.ts

        tscatalog translate BitcoinGUI "Processed %n block(s) of transaction history." -n 3 -l ja -d locale --domain dash
    """
    config = load_config(
        config_file,
        overrides={
            "locale": locale,
            "catalog_dirs": catalog_dirs or None,
            "domain": domain,
            "strict_placeholders": True if strict else None,
        },
    )
    _apply_config_logging(ctx, config)
    translator = Translator.from_config(config)

    if catalog is not None:
        loader = CatalogLoader(
            integrity_policy=config.integrity_policy,
            include_unfinished=config.include_unfinished,
        )
        store = loader.load_file(catalog)
        translator.activate(LocaleCatalog.create(store.language, [store]))

    typer.echo(translator.translate(context, source, count, args or (), disambiguation=comment))


# =============================================================================
# Check Command
# =============================================================================


@app.command(name="check")
@error_boundary
def check_cmd(
    catalog: CatalogArg,
    format: FormatOpt = "console",
    fail_on_warning: Annotated[
        bool,
        typer.Option("--fail-on-warning", help="Exit with an error on warnings too"),
    ] = False,
) -> None:
    """Check a catalog for placeholder, accelerator and numerus problems.

    Entries that cannot be loaded at all (wrong number of numerus forms,
    duplicates) are reported as errors alongside the other findings.
    """
    format = _output_format(format)
    dropped: list[IntegrityError] = []
    loader = CatalogLoader(integrity_policy=IntegrityPolicy.DROP, on_drop=dropped.append)
    store = loader.load_file(catalog)
    issues = check_catalog(store)

    errors = len(dropped) + sum(1 for i in issues if i.severity is IssueSeverity.ERROR)
    warnings = sum(1 for i in issues if i.severity is IssueSeverity.WARNING)

    if format == "json":
        payload = {
            "catalog": str(catalog),
            "language": store.language,
            "errors": errors,
            "warnings": warnings,
            "dropped": [e.message for e in dropped],
            "issues": [i.to_dict() for i in issues],
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        if dropped or issues:
            table = Table(title=f"Issues in {catalog.name}", show_header=True, header_style="bold magenta")
            table.add_column("Severity", justify="center")
            table.add_column("Code", style="cyan")
            table.add_column("Context")
            table.add_column("Message")
            for error in dropped:
                table.add_row("[red]error[/red]", "integrity", escape(error.context or ""), escape(error.message))
            for issue in issues:
                color = "red" if issue.severity is IssueSeverity.ERROR else "yellow"
                table.add_row(
                    f"[{color}]{issue.severity.value}[/{color}]",
                    issue.code.value,
                    escape(issue.context),
                    escape(f"{issue.source_key!r}: {issue.message}"),
                )
            console.print(table)
        typer.echo(f"{catalog}: {len(store)} messages, {errors} errors, {warnings} warnings")

    if errors or (fail_on_warning and warnings):
        raise typer.Exit(ErrorCode.VALIDATION_FAILED.value)


# =============================================================================
# Stats Command
# =============================================================================


@app.command(name="stats")
@error_boundary
def stats_cmd(
    catalogs: Annotated[list[Path], typer.Argument(help="Catalog files")],
    format: FormatOpt = "console",
    policy: PolicyOpt = "strict",
) -> None:
    """Show message counts for one or more catalogs."""
    format = _output_format(format)
    loader = CatalogLoader(integrity_policy=_policy(policy))
    results = [(path, catalog_stats(loader.load_file(path))) for path in catalogs]

    if format == "json":
        payload = [{"catalog": str(path), **stats.to_dict()} for path, stats in results]
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    table = Table(title="Catalog statistics", show_header=True, header_style="bold magenta")
    table.add_column("Catalog", style="cyan", no_wrap=True)
    table.add_column("Language", justify="center")
    table.add_column("Contexts", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Plural", justify="right")
    table.add_column("Unfinished", justify="right")
    for path, stats in results:
        table.add_row(
            escape(path.name),
            stats.language,
            str(stats.contexts),
            str(stats.messages),
            str(stats.plural_messages),
            f"[yellow]{stats.unfinished}[/yellow]" if stats.unfinished else "0",
        )
    console.print(table)


# =============================================================================
# Convert Command
# =============================================================================


@app.command(name="convert")
@error_boundary
def convert_cmd(
    catalog: CatalogArg,
    output: Annotated[Path, typer.Argument(help="Output file (.json, .yaml, .yml)")],
    policy: PolicyOpt = "strict",
    include_unfinished: Annotated[
        bool,
        typer.Option("--unfinished/--no-unfinished", help="Keep unfinished translations"),
    ] = True,
) -> None:
    """Convert a catalog to the JSON or YAML layout."""
    suffix = output.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise CLIError(
            f"Unsupported output format: {suffix or output.name}",
            ErrorCode.USAGE_ERROR,
            "Use a .json, .yaml or .yml output file.",
        )

    loader = CatalogLoader(
        integrity_policy=_policy(policy),
        include_unfinished=include_unfinished,
    )
    store = loader.load_file(catalog)
    data = store.to_dict()

    if suffix == ".json":
        content = json.dumps(data, ensure_ascii=False, indent=2)
    else:
        content = yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
    output.write_text(content, encoding="utf-8")
    typer.echo(f"Converted {len(store)} messages to {output}")


# =============================================================================
# Locales Command
# =============================================================================


@app.command(name="locales")
@error_boundary
def locales_cmd(
    directory: Annotated[Path, typer.Argument(help="Catalog directory")],
    domain: Annotated[
        Optional[str],
        typer.Option("--domain", help="Catalog file prefix, e.g. dash"),
    ] = None,
) -> None:
    """List the locales that have a catalog in a directory."""
    codes = available_locales(directory, domain)
    if not codes:
        console.print("[yellow]No catalogs found.[/yellow]")
        return
    for code in codes:
        typer.echo(code)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
