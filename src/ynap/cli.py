import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ynap.errors import YnapError
from ynap.logging_setup import configure_logging
from ynap.settings import get_banks_dir, load_settings, save_settings, DEFAULTS

app = typer.Typer(help="ynap — normalize bank CSV exports into YNAB import files.", invoke_without_command=True)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG or INFO"),
):
    """ynap — normalize bank CSV exports into YNAB import files."""
    configure_logging(log_level or load_settings().get("log_level"))


def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


@app.command()
def init(
    banks_dir: str = typer.Option(None, "--banks-dir", help="Directory holding bank and rule YAML files"),
):
    """Write settings and create the banks directory."""
    settings = load_settings()

    if banks_dir:
        settings["banks_dir"] = str(Path(banks_dir).expanduser().resolve())
    elif settings == DEFAULTS:
        chosen = typer.prompt("Banks directory", default=settings["banks_dir"])
        settings["banks_dir"] = str(Path(chosen).expanduser().resolve())

    save_settings(settings)
    resolved = Path(settings["banks_dir"])
    resolved.mkdir(parents=True, exist_ok=True)
    typer.echo(f"Bank schemas are read from {resolved}")


# --- Banks ---

from ynap.loader import load_rule_files, load_schema
from ynap.registry import SchemaRegistry


def _load_registry(banks_dir: Path | None = None) -> SchemaRegistry:
    registry = SchemaRegistry()
    directory = banks_dir or get_banks_dir()
    if directory.is_dir():
        registry.load_directory(directory)
    return registry


@app.command()
def banks(
    banks_dir: Path = typer.Option(None, "--banks-dir", help="Override the configured banks directory"),
):
    """List known bank schemas."""
    try:
        registry = _load_registry(banks_dir)
    except YnapError as e:
        _fail(str(e))

    table = Table(title="Banks")
    table.add_column("Name")
    table.add_column("File pattern")
    table.add_column("Columns", justify="right")
    table.add_column("Rule files")
    for schema in registry.list_all():
        table.add_row(
            schema.name,
            schema.file_pattern.pattern if schema.file_pattern else "",
            str(len(schema.columns)),
            ", ".join(p.name for p in schema.rule_files),
        )
    console.print(table)


# --- Convert ---

from ynap.models import BankSchema, Diagnostic, ParseResult
from ynap.pipeline import parse_file, parse_files
from ynap.writer import write_ynab_csv


def _resolve_schema(file: Path, bank: Path | None, banks_dir: Path | None) -> BankSchema:
    if bank is not None:
        return load_schema(bank)
    schema = _load_registry(banks_dir).get_for_file(file)
    if schema is None:
        _fail(f"No bank schema matches {file.name}; pass --bank")
    return schema


def _print_diagnostics(source: str, diagnostics: list[Diagnostic]) -> None:
    if not diagnostics:
        return
    table = Table(title=f"Diagnostics: {source}")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Kind")
    table.add_column("Cause")
    for d in diagnostics:
        style = "yellow" if d.kind.value == "dropped" else "red"
        table.add_row(str(d.line_number or ""), f"[{style}]{d.kind.value}[/{style}]", d.cause)
    err_console.print(table)


@app.command()
def convert(
    file: Path = typer.Argument(exists=True, dir_okay=False, help="Bank CSV export to convert"),
    bank: Path = typer.Option(None, "--bank", "-b", help="Bank schema YAML (default: detect by file name)"),
    rules: list[Path] = typer.Option(None, "--rules", "-r", help="Rule file(s); replaces the schema's rule files"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the YNAB CSV here instead of stdout"),
    banks_dir: Path = typer.Option(None, "--banks-dir", help="Override the configured banks directory"),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 if any row failed"),
):
    """Convert one bank export into a YNAB import CSV."""
    try:
        schema = _resolve_schema(file, bank, banks_dir)
        ruleset = load_rule_files(rules) if rules else None
        result = parse_file(file, schema, ruleset)
    except YnapError as e:
        _fail(str(e))

    if output:
        with open(output, "w", newline="", encoding="utf-8") as f:
            count = write_ynab_csv(result.transactions, f)
        typer.echo(f"{count} transactions written to {output}", err=True)
    else:
        write_ynab_csv(result.transactions, sys.stdout)

    _print_diagnostics(file.name, result.diagnostics)
    if strict and result.failed:
        raise typer.Exit(1)


# --- Check ---


def _summary_table(results: list[ParseResult]) -> Table:
    table = Table(title="Summary")
    table.add_column("File")
    table.add_column("Bank")
    table.add_column("Transactions", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Dropped", justify="right")
    for r in results:
        failed = len(r.failed)
        table.add_row(
            r.source or "",
            r.schema_name,
            str(len(r.transactions)),
            f"[red]{failed}[/red]" if failed else "0",
            str(len(r.dropped)),
        )
    return table


@app.command()
def check(
    files: list[Path] = typer.Argument(exists=True, dir_okay=False, help="Bank CSV exports to check"),
    bank: Path = typer.Option(None, "--bank", "-b", help="Bank schema YAML for every file"),
    banks_dir: Path = typer.Option(None, "--banks-dir", help="Override the configured banks directory"),
    workers: int = typer.Option(None, "--workers", help="Files parsed in parallel"),
):
    """Parse files without writing output and report every failed or dropped row."""
    try:
        schema = load_schema(bank) if bank else None
        registry = _load_registry(banks_dir) if schema is None else SchemaRegistry()
        results = parse_files(
            files, registry,
            workers=workers or int(load_settings()["workers"]),
            schema=schema,
        )
    except YnapError as e:
        _fail(str(e))

    console.print(_summary_table(results))
    for r in results:
        _print_diagnostics(r.source or r.schema_name, r.diagnostics)
    if any(r.failed for r in results):
        raise typer.Exit(1)
