"""Click CLI entry point for the Sigil notation interpreter."""

from __future__ import annotations

from pathlib import Path

import click

from sigil import __version__
from sigil.ast import Node
from sigil.document import parse_declaration, split_document
from sigil.errors import SigilError
from sigil.expanded_yaml import render_expanded_yaml
from sigil.formatter import format_node, is_fully_resolved
from sigil.models import DEFAULT_MAX_PASSES, MAX_PASSES_LIMIT, ResolveOptions
from sigil.parser import parse_expression
from sigil.registry import BUILTINS, Registry, build_registry
from sigil.resolver import resolve
from sigil.schema import load_schema
from sigil.warning_policy import WarningPolicy, parse_code_list

_EXIT_WORDS = frozenset({"exit", "quit"})


def _code_list(ctx: click.Context, param: click.Parameter, value: str) -> frozenset[str]:
    try:
        return parse_code_list(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e


_warn_as_error_option = click.option(
    "--warn-as-error",
    "warn_as_error",
    default="",
    callback=_code_list,
    help="Comma-separated W-codes to raise as errors (W01 budget, W02 cycle).",
)
_suppress_warning_option = click.option(
    "--suppress-warning",
    "suppress_warning",
    default="",
    callback=_code_list,
    help="Comma-separated W-codes to silence.",
)


def _render(node: Node, output_format: str) -> str:
    if output_format == "yaml":
        return render_expanded_yaml(node)
    return format_node(node) + "\n"


def _schema_entries(schema: Path | None) -> dict[str, str]:
    if schema is None:
        return {}
    try:
        return load_schema(schema)
    except SigilError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="sigil")
def main() -> None:
    """Sigil: expand symbolic notation against a table of definitions."""


@main.command()
@click.argument("expression", type=str)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tagged", "yaml"]),
    default="tagged",
    show_default=True,
    help="Output format for the parse tree.",
)
def parse(expression: str, output_format: str = "tagged") -> None:
    """Parse EXPRESSION and print its tree without resolving anything."""
    try:
        node = parse_expression(expression)
    except SigilError as e:
        raise click.ClickException(str(e)) from e
    click.echo(_render(node, output_format), nl=False)


@main.command("resolve")
@click.argument("expression", type=str, required=False)
@click.option(
    "-f",
    "--file",
    "document",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read declarations and the expression from a document file.",
)
@click.option(
    "-s",
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="External schema YAML file with named definitions.",
)
@click.option(
    "--mode",
    type=click.Choice(["flat", "deep"]),
    default="deep",
    show_default=True,
    help="Expand one layer (flat) or to a fixed point (deep).",
)
@click.option(
    "--max-passes",
    type=click.IntRange(min=1, max=MAX_PASSES_LIMIT),
    default=DEFAULT_MAX_PASSES,
    show_default=True,
    help="Pass budget for deep resolution.",
)
@click.option(
    "--on-budget",
    "on_budget",
    type=click.Choice(["partial", "fail"]),
    default="partial",
    show_default=True,
    help="What to do when the pass budget runs out.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tagged", "yaml"]),
    default="tagged",
    show_default=True,
    help="Output format for the resolved tree.",
)
@_warn_as_error_option
@_suppress_warning_option
def resolve_command(
    expression: str | None,
    document: Path | None = None,
    schema: Path | None = None,
    mode: str = "deep",
    max_passes: int = DEFAULT_MAX_PASSES,
    on_budget: str = "partial",
    output_format: str = "tagged",
    warn_as_error: frozenset[str] = frozenset(),
    suppress_warning: frozenset[str] = frozenset(),
) -> None:
    """Resolve EXPRESSION (or the expression in --file) against the registry."""
    if (expression is None) == (document is None):
        raise click.UsageError("Provide exactly one of EXPRESSION or --file")

    options = ResolveOptions(
        mode=mode,
        max_passes=max_passes,
        on_budget_exhausted=on_budget,
        warning_policy=WarningPolicy(warn_as_error, suppress_warning),
    )
    schema_entries = _schema_entries(schema)

    try:
        if document is not None:
            try:
                text = document.read_text(encoding="utf-8")
            except OSError as e:
                raise click.ClickException(f"Cannot read {document}: {e}") from e
            doc = split_document(text)
            registry = build_registry(BUILTINS, schema_entries, doc.inline, doc.user_types)
            expression = doc.expression
        else:
            registry = build_registry(BUILTINS, schema_entries)

        node = parse_expression(expression)
        result = resolve(node, registry, options=options)
    except SigilError as e:
        raise click.ClickException(str(e)) from e

    click.echo(_render(result, output_format), nl=False)


@main.command()
@click.argument("expression", type=str)
@click.option(
    "--check",
    is_flag=True,
    default=False,
    help="Exit with code 1 if the expression still contains references or actions.",
)
def fmt(expression: str, check: bool = False) -> None:
    """Print EXPRESSION in canonical tagged form."""
    try:
        node = parse_expression(expression)
    except SigilError as e:
        raise click.ClickException(str(e)) from e

    if check:
        if not is_fully_resolved(node):
            raise SystemExit(1)
        return
    click.echo(format_node(node))


@main.command()
@click.option(
    "-s",
    "--schema",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="External schema YAML file with named definitions.",
)
@click.option(
    "--mode",
    type=click.Choice(["flat", "deep"]),
    default="deep",
    show_default=True,
    help="Resolution mode for each input line.",
)
@_warn_as_error_option
@_suppress_warning_option
def repl(
    schema: Path | None = None,
    mode: str = "deep",
    warn_as_error: frozenset[str] = frozenset(),
    suppress_warning: frozenset[str] = frozenset(),
) -> None:
    """Read expressions line by line and print parsed and resolved forms.

    ``name = text`` and ``type name = text`` lines add definitions for the
    rest of the session.
    """
    registry: Registry = build_registry(BUILTINS, _schema_entries(schema))
    options = ResolveOptions(
        mode=mode, warning_policy=WarningPolicy(warn_as_error, suppress_warning)
    )

    while True:
        try:
            line = click.prompt("Input (or 'exit' to quit)", default="", show_default=False)
        except click.Abort:
            line = "exit"
        line = line.strip()
        if line in _EXIT_WORDS:
            click.echo("Goodbye!")
            return
        if not line:
            continue

        declaration = parse_declaration(line)
        if declaration is not None:
            is_type, name, definition = declaration
            if not definition:
                click.echo(f"Error: declaration of {name!r} has no definition", err=True)
                continue
            entry = {name: definition}
            if is_type:
                registry = build_registry(registry, user_types=entry)
            else:
                registry = build_registry(registry, inline=entry)
            click.echo(f"Defined: {name}")
            continue

        try:
            node = parse_expression(line)
            click.echo(f"Parsed:   {format_node(node)}")
            click.echo(f"Resolved: {format_node(resolve(node, registry, options=options))}")
        except SigilError as e:
            click.echo(f"Error: {e}", err=True)
