"""
Report rendering for validation results.

Reports are produced as strings so they can be printed, written to a file or
asserted on in tests. Table reports are built with Rich and exported as text,
with or without ANSI styling.
"""

import io
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from rich.console import Console, RenderableType
from rich.table import Table
from rich.text import Text

from envguard.core.models import (
    CodeKey,
    EnvEntry,
    SchemaIssue,
    SchemaValidationResult,
    ValidationResult,
)


@dataclass
class ReportOptions:
    """
    Attributes:
        format: One of table, json, minimal
        colors: Emit ANSI styling in table reports
        verbose: Include descriptions and extra detail
    """

    format: str = "table"
    colors: bool = True
    verbose: bool = False


def _render(renderables: Iterable[RenderableType], colors: bool) -> str:
    console = Console(
        file=io.StringIO(),
        record=True,
        force_terminal=colors,
        no_color=not colors,
        width=100,
        highlight=False,
    )
    for renderable in renderables:
        # Plain lines carry file paths; keep them on one line
        console.print(renderable, soft_wrap=isinstance(renderable, Text))
    return console.export_text(styles=colors).rstrip("\n")


def _summary_grid(rows: list[tuple[str, str]]) -> Table:
    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="bold")
    grid.add_column()
    for label, value in rows:
        grid.add_row(label, value)
    return grid


def _result_table(result: ValidationResult) -> list[RenderableType]:
    renderables: list[RenderableType] = [Text("Environment Check Report", style="bold")]

    categories = [
        ("Missing", result.missing, "red"),
        ("Unused", result.unused, "yellow"),
        ("Empty", result.empty, "yellow"),
        ("Duplicates", result.duplicates, "yellow"),
        ("Uncertain", result.uncertain, "blue"),
    ]
    populated = [(label, keys, style) for label, keys, style in categories if keys]

    if populated:
        table = Table(border_style="blue")
        table.add_column("Category", style="bold", no_wrap=True)
        table.add_column("Count", justify="right")
        table.add_column("Keys")
        for label, keys, style in populated:
            table.add_row(Text(label, style=style), str(len(keys)), Text("\n".join(keys)))
        renderables.append(table)

    renderables.append(
        _summary_grid(
            [
                ("Keys in code:", str(result.summary.keys_in_code)),
                ("Keys in env:", str(result.summary.keys_in_env)),
                ("Total issues:", str(result.summary.total_issues)),
            ]
        )
    )

    if not result.has_issues:
        renderables.append(Text("✓ All environment variables are in sync", style="green"))

    return renderables


def _format_minimal(result: ValidationResult) -> str:
    lines = []
    for label, keys in (
        ("missing", result.missing),
        ("unused", result.unused),
        ("empty", result.empty),
        ("duplicate", result.duplicates),
        ("uncertain", result.uncertain),
    ):
        lines.extend(f"{label}: {key}" for key in keys)
    return "\n".join(lines) if lines else "OK"


def format_report(result: ValidationResult, options: ReportOptions | None = None) -> str:
    """Render a reconciliation result in the requested format."""
    options = options or ReportOptions()

    if options.format == "json":
        return json.dumps(result.to_dict(), indent=2)
    if options.format == "minimal":
        return _format_minimal(result)
    return _render(_result_table(result), options.colors)


def format_detailed_report(
    result: ValidationResult,
    missing_details: Mapping[str, CodeKey],
    unused_details: Mapping[str, EnvEntry],
    colors: bool = True,
) -> str:
    """Table report followed by usage sites of missing keys and lines of unused keys."""
    renderables = _result_table(result)

    if missing_details:
        renderables.append(Text("\nMissing keys:", style="bold red"))
        for name in sorted(missing_details):
            renderables.append(Text(f"  {name}", style="red"))
            for usage in missing_details[name].usages:
                renderables.append(
                    Text(f"    {usage.file}:{usage.line}:{usage.column}  {usage.raw_text}", style="dim")
                )

    if unused_details:
        renderables.append(Text("\nUnused keys:", style="bold yellow"))
        for name in sorted(unused_details):
            renderables.append(
                Text(f"  {name} (line {unused_details[name].source_line})", style="yellow")
            )

    return _render(renderables, colors)


def _issue_lines(title: str, issues: list[SchemaIssue], style: str, verbose: bool) -> list[RenderableType]:
    if not issues:
        return []
    lines: list[RenderableType] = [Text(title, style=f"bold {style}")]
    for issue in issues:
        lines.append(Text(f"  ✗ {issue.key}: {issue.issue}", style=style))
        if verbose and issue.description:
            lines.append(Text(f"    {issue.description}", style="dim"))
    return lines


def format_schema_report(result: SchemaValidationResult, options: ReportOptions | None = None) -> str:
    """Render a schema validation result."""
    options = options or ReportOptions()

    if options.format == "json":
        return json.dumps(result.to_dict(), indent=2)

    if options.format == "minimal":
        lines = [f"missing: {key}" for key in result.missing]
        for label, issues in (
            ("invalid-type", result.invalid_type),
            ("invalid-format", result.invalid_format),
            ("invalid-enum", result.invalid_enum),
            ("sensitive-default", result.sensitive_defaults),
        ):
            lines.extend(f"{label}: {issue.key}" for issue in issues)
        lines.extend(f"unused: {key}" for key in result.unused)
        return "\n".join(lines) if lines else "OK"

    renderables: list[RenderableType] = [Text("Schema Validation Report", style="bold")]

    if not result.has_issues:
        renderables.append(Text("✓ All environment variables are valid!", style="green"))
    else:
        renderables.append(Text(f"Found {result.summary.total_issues} issues:", style="yellow"))
        if result.missing:
            renderables.append(Text("Missing required variables:", style="bold red"))
            renderables.extend(Text(f"  ✗ {key}", style="red") for key in result.missing)
        renderables.extend(_issue_lines("Type validation errors:", result.invalid_type, "red", options.verbose))
        renderables.extend(_issue_lines("Format validation errors:", result.invalid_format, "red", options.verbose))
        renderables.extend(_issue_lines("Enum validation errors:", result.invalid_enum, "red", options.verbose))
        renderables.extend(_issue_lines("Security warnings:", result.sensitive_defaults, "yellow", options.verbose))
        if result.unused:
            renderables.append(Text("Unused variables (not in schema):", style="bold yellow"))
            renderables.extend(Text(f"  ? {key}", style="yellow") for key in result.unused)

    renderables.append(
        _summary_grid(
            [
                ("Variables in schema:", str(result.summary.keys_in_code)),
                ("Variables in env:", str(result.summary.keys_in_env)),
                ("Total issues:", str(result.summary.total_issues)),
            ]
        )
    )
    return _render(renderables, options.colors)


def generate_env_example_from_keys(code_keys: Iterable[CodeKey], include_optional: bool = False) -> str:
    """
    Render a .env.example listing every static key referenced in code.

    Keys are sorted by name, each preceded by a comment with its first usage
    site. Optional keys are listed only when ``include_optional`` is set.
    """
    lines = [
        "# Environment variables referenced in code",
        "# Generated by envguard; copy to .env and fill in the values",
        "",
    ]

    for key in sorted(code_keys, key=lambda k: k.name):
        if key.is_dynamic or (key.is_optional and not include_optional):
            continue
        if key.usages:
            first = key.usages[0]
            suffix = " (optional)" if key.is_optional else ""
            lines.append(f"# Used in {first.file}:{first.line}{suffix}")
        lines.append(f"{key.name}=")
        lines.append("")

    return "\n".join(lines)
