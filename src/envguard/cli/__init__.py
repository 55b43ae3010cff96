"""
CLI for envguard.

Provides commands for checking env files against code, validating them
against a schema and generating or maintaining env files.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from envguard.core.config import EnvGuardConfig, load_config
from envguard.core.env_cleaner import clean_env_files
from envguard.core.env_diff import diff_env_files
from envguard.core.models import EnvFile
from envguard.core.reporter import ReportOptions, format_schema_report
from envguard.core.schema import SchemaValidator, load_schema
from envguard.core.schema.templates import TEMPLATES
from envguard.services import EnvAuditService

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="envguard",
    help="envguard - Audit environment variables used in code against .env files",
    add_completion=False,
)


def _setup_logging(config: Optional[EnvGuardConfig] = None, verbose: bool = False) -> None:
    """Configure the root logger once per invocation."""
    config = config or EnvGuardConfig()
    level = "DEBUG" if verbose else config.logging.level.upper()
    logging.basicConfig(level=level, format=config.logging.format)


def _print_diagnostics(env_file: EnvFile) -> None:
    if not env_file.diagnostics:
        return
    console.print(f"[yellow]Warnings in {env_file.path}:[/yellow]")
    for diagnostic in env_file.diagnostics:
        console.print(f"  Line {diagnostic.line}: {diagnostic.message}", markup=False)


def _write_output(path: Path, content: str, force: bool) -> bool:
    if path.exists() and not force:
        console.print(
            f"[yellow]File {path} already exists. Use --force to overwrite.[/yellow]"
        )
        return False
    path.write_text(content, encoding="utf-8")
    return True


@app.command()
def check(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config file"
    ),
    env: Optional[list[str]] = typer.Option(
        None, "--env", "-e", help="Env file to check (repeatable, later files win)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output the report as JSON"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show usage locations and debug logging"
    ),
    colors: bool = typer.Option(True, "--colors/--no-colors", help="Colorize the report"),
):
    """Check that env files match the variables used in code."""
    try:
        cfg = load_config(config_path)
        _setup_logging(cfg, verbose)
        if env:
            cfg.env_files = list(env)

        service = EnvAuditService(config=cfg)
        run = service.audit()
        if not json_output:
            for env_file in run.env_files:
                _print_diagnostics(env_file)

        options = ReportOptions(
            format="json" if json_output else cfg.report_format,
            colors=colors,
            verbose=verbose,
        )
        typer.echo(service.render_report(run, options, detailed=verbose))
        result = run.result

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)

    if result.summary.total_issues > 0:
        exit_code = 1 if result.missing else 2
    else:
        exit_code = 0
    if cfg.exit_on_error and exit_code != 0:
        raise typer.Exit(exit_code)


@app.command()
def validate(
    schema_path: Optional[Path] = typer.Option(
        None, "--schema", "-s", help="Path to schema file (default: .envschema.json)"
    ),
    env_file: Optional[Path] = typer.Option(
        None, "--env", "-e", help="Env file to validate (default: first configured env file)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output the result as JSON"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show field descriptions and debug logging"
    ),
    colors: bool = typer.Option(True, "--colors/--no-colors", help="Colorize the report"),
):
    """Validate an env file against a schema."""
    try:
        cfg = load_config()
        _setup_logging(cfg, verbose)

        schema = load_schema(schema_path)
        if not schema:
            console.print(
                "[bold red]Error:[/bold red] No schema found. "
                "Create a .envschema.json file or specify --schema path"
            )
            raise typer.Exit(1)

        service = EnvAuditService(config=cfg)
        result = service.validate_schema(schema, env_file)
        options = ReportOptions(
            format="json" if json_output else "table",
            colors=colors,
            verbose=verbose,
        )
        typer.echo(format_schema_report(result, options))

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.has_issues:
        raise typer.Exit(1)


@app.command()
def generate(
    schema_path: Optional[Path] = typer.Option(
        None, "--schema", "-s", help="Path to schema file (default: .envschema.json)"
    ),
    output: Path = typer.Option(
        Path(".env.example"), "--output", "-o", help="File to write"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Generate a .env.example file from a schema."""
    try:
        _setup_logging()
        schema = load_schema(schema_path)
        if not schema:
            console.print(
                "[bold red]Error:[/bold red] No schema found. "
                "Create a .envschema.json file or specify --schema path"
            )
            raise typer.Exit(1)

        content = SchemaValidator(schema).generate_env_example()
        if not _write_output(output, content, force):
            raise typer.Exit(1)

        console.print(f"[bold green]Generated {output} from schema[/bold green]")
        console.print(f"[dim]   {len(schema)} environment variables defined[/dim]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def init(
    output: Path = typer.Option(
        Path(".envschema.json"), "--output", "-o", help="Schema file to create"
    ),
    template: str = typer.Option(
        "basic", "--template", "-t", help="Starter template: basic or comprehensive"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
):
    """Create a starter schema file."""
    if template not in TEMPLATES:
        console.print(
            f"[bold red]Error:[/bold red] Unknown template '{template}'. "
            f"Choose from: {', '.join(TEMPLATES)}"
        )
        raise typer.Exit(1)

    try:
        _setup_logging()
        content = json.dumps(TEMPLATES[template], indent=2) + "\n"
        if not _write_output(output, content, force):
            raise typer.Exit(1)

        console.print(f"[bold green]Created {output}[/bold green] ({template} template)")
        console.print("\nNext steps:")
        console.print(f"  1. Edit {output} to describe your environment variables")
        console.print("  2. Run [bold]envguard validate[/bold] to check your .env file")
        console.print("  3. Run [bold]envguard generate[/bold] to create .env.example")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command("export")
def export_example(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config file"
    ),
    output: Path = typer.Option(
        Path(".env.example"), "--output", "-o", help="File to write"
    ),
    include_optional: bool = typer.Option(
        False, "--include-optional", help="Also list keys used with a fallback"
    ),
):
    """Generate a .env.example file from the variables used in code."""
    try:
        cfg = load_config(config_path)
        _setup_logging(cfg)
        if include_optional:
            cfg.include_optional = True

        content = EnvAuditService(config=cfg).generate_env_example()
        output.write_text(content, encoding="utf-8")

        console.print(f"[bold green]Generated {output}[/bold green]")
        console.print("[dim]Copy this file to .env and fill in the values[/dim]")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)


@app.command()
def clean(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config file"
    ),
    env: Optional[list[str]] = typer.Option(
        None, "--env", "-e", help="Env file to clean (repeatable)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be removed without modifying files"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Remove the unused keys"),
):
    """Remove keys that no code references from env files."""
    try:
        cfg = load_config(config_path)
        _setup_logging(cfg)
        if env:
            cfg.env_files = list(env)

        service = EnvAuditService(config=cfg)
        result = service.check()

        if not result.unused:
            console.print("[green]✓[/green] No unused keys found in environment files.")
            return

        console.print(f"Found {len(result.unused)} unused keys:")
        for key in result.unused:
            console.print(f"  - {key}")

        if dry_run:
            for cleaned in clean_env_files(service.env_file_paths, result.unused, dry_run=True):
                if cleaned.removed:
                    console.print(
                        f"[dim]Would remove from {cleaned.path}: {', '.join(cleaned.removed)}[/dim]"
                    )
            console.print("\n[cyan]Dry run mode - no files will be modified.[/cyan]")
            return

        if not force:
            console.print("\n[yellow]Use --force to actually remove these keys.[/yellow]")
            console.print("[dim]Use --dry-run to preview changes without modifying files.[/dim]")
            return

        for cleaned in clean_env_files(service.env_file_paths, result.unused):
            if cleaned.skipped:
                console.print(f"[yellow]Skipping {cleaned.path} (file not found)[/yellow]")
            elif cleaned.modified:
                console.print(f"[green]✓[/green] Cleaned {cleaned.path}")

        console.print("\n[bold green]Cleanup completed![/bold green]")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)


@app.command()
def diff(
    file1: Path = typer.Argument(..., help="First env file"),
    file2: Path = typer.Argument(..., help="Second env file"),
    json_output: bool = typer.Option(False, "--json", help="Output the comparison as JSON"),
):
    """Compare the keys and values of two env files."""
    try:
        _setup_logging()
        result, env1, env2 = diff_env_files(file1, file2)

        if json_output:
            typer.echo(
                json.dumps({"file1": str(file1), "file2": str(file2), **result.to_dict()}, indent=2)
            )
            return

        _print_diagnostics(env1)
        _print_diagnostics(env2)

        table = Table(title=f"{file1} vs {file2}", border_style="blue")
        table.add_column("Key", style="cyan")
        table.add_column("Status")
        table.add_column(str(file1))
        table.add_column(str(file2))

        for key in result.only_in_first:
            table.add_row(key, "[red]only in first[/red]", escape(env1.keys[key].value), "")
        for key in result.only_in_second:
            table.add_row(key, "[green]only in second[/green]", "", escape(env2.keys[key].value))
        for difference in result.different:
            table.add_row(
                difference.key,
                "[yellow]different[/yellow]",
                escape(difference.value1),
                escape(difference.value2),
            )

        if result.total_differences:
            console.print(table)
        else:
            console.print("[green]✓[/green] Files have identical keys and values")

        summary = Table.grid(padding=1)
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Only in first:", str(len(result.only_in_first)))
        summary.add_row("Only in second:", str(len(result.only_in_second)))
        summary.add_row("Different values:", str(len(result.different)))
        summary.add_row("Identical:", str(len(result.common)))
        console.print(Panel(summary, title="Summary", border_style="blue", expand=False))

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)


if __name__ == "__main__":
    app()
