"""CLI commands for template operations."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..templates import (
    BUILTIN_FILTERS,
    TemplateEngine,
    TemplateValidator,
    ValidationLevel,
)

console = Console()

FILTER_EXAMPLES = {
    "date": '{{published|date:"YYYY-MM-DD"}}',
    "replace": '{{title|replace:" ":"-"}}',
    "slice": "{{title|slice:0,10}}",
    "wikilink": "{{tags|wikilink}}",
    "link": '{{url|link:"source"}}',
    "join": '{{tags|join:" "}}',
    "split": '{{keywords|split:","}}',
    "list": '{{highlights|list:"task"}}',
    "default": '{{author|default:"Unknown"}}',
}


def load_context(context: Optional[str], context_file: Optional[Path]) -> Dict[str, Any]:
    """Build a render context from a JSON string and/or a JSON file.

    Values from ``context`` override values from ``context_file``.
    """
    ctx: Dict[str, Any] = {}
    if context_file:
        with open(context_file, "r", encoding="utf-8") as f:
            ctx.update(_context_object(json.load(f), str(context_file)))
    if context:
        ctx.update(_context_object(json.loads(context), "--context"))
    return ctx


def _context_object(data: Any, source: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(
            f"Context from {source} must be a JSON object, got {type(data).__name__}"
        )
    return data


@click.command("render")
@click.argument("template", type=str)
@click.option("--context", type=str, help="JSON string with template context variables")
@click.option(
    "--context-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with template context variables",
)
@click.option(
    "--file", "from_file", is_flag=True, help="Treat TEMPLATE as a path to a template file"
)
def render_template(
    template: str, context: Optional[str], context_file: Optional[Path], from_file: bool
) -> None:
    """Render a template against a JSON context."""
    try:
        if from_file:
            template = Path(template).read_text(encoding="utf-8")
        ctx = load_context(context, context_file)

        result = TemplateEngine().render_with_diagnostics(template, ctx)
        click.echo(result.output)

        for warning in result.warnings:
            console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]", highlight=False)

    except (OSError, ValueError) as e:
        console.print(f"❌ [red]Error:[/red] {escape(str(e))}")
        raise click.Abort()


@click.command("validate")
@click.argument("template", type=str)
@click.option(
    "--level",
    type=click.Choice(["permissive", "standard", "strict"]),
    default="standard",
    help="Validation strictness level",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option(
    "--file", "from_file", is_flag=True, help="Treat TEMPLATE as a path to a template file"
)
def validate_template(
    template: str, level: str, output_format: str, from_file: bool
) -> None:
    """Validate template placeholders and filters."""
    try:
        if from_file:
            template = Path(template).read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"❌ [red]Error reading template:[/red] {escape(str(e))}")
        raise click.Abort()

    validator = TemplateValidator(level=ValidationLevel(level))
    result = validator.validate(template)

    if output_format == "json":
        output = {
            "is_valid": result.is_valid,
            "errors": result.errors,
            "warnings": result.warnings,
            "variables": sorted(result.variables),
            "metadata": result.metadata,
        }
        click.echo(json.dumps(output, indent=2))
    else:
        if result.is_valid:
            console.print("✅ [green]Template is valid[/green]")
        else:
            console.print("❌ [red]Template validation failed[/red]")

        if result.errors:
            console.print("\n[red]Errors:[/red]")
            for error in result.errors:
                console.print(f"  • {error}", markup=False)

        if result.warnings:
            console.print("\n[yellow]Warnings:[/yellow]")
            for warning in result.warnings:
                console.print(f"  • {warning}", markup=False)

        console.print(
            f"\n[dim]Template variables:[/dim] {', '.join(sorted(result.variables))}",
            highlight=False,
        )
        console.print(
            f"[dim]Placeholders:[/dim] {result.metadata.get('placeholder_count', 0)}"
        )

    if not result.is_valid:
        raise click.exceptions.Exit(1)


@click.command("filters")
def list_filters() -> None:
    """List available template filters."""
    console.print("🔧 [bold]Available Filters[/bold]")
    console.print()

    filters_table = Table()
    filters_table.add_column("Filter", style="cyan")
    filters_table.add_column("Description", style="white")
    filters_table.add_column("Example", style="green")

    for name, fn in BUILTIN_FILTERS.items():
        description = (fn.__doc__ or "").strip().split("\n")[0]
        example = FILTER_EXAMPLES.get(name, f"{{{{value|{name}}}}}")
        filters_table.add_row(name, description, example)

    console.print(filters_table)

    console.print("\n[dim]Variable namespaces:[/dim]")
    console.print("  • [cyan]meta:name:description[/cyan] - Page meta tags")
    console.print("  • [cyan]selector:h1[/cyan] - Text of a CSS selector match")
    console.print("  • [cyan]selectorHtml:article[/cyan] - HTML of a CSS selector match")
    console.print("  • [cyan]schema:@Recipe:name[/cyan] - Schema.org JSON-LD data")
    console.print('  • [cyan]"summarize this page"[/cyan] - Prompt for an interpreter')

    example_template = """
# {{title}}

> [!info] {{site|default:"Unknown site"}}
> Published {{published|date:"YYYY-MM-DD"}}

{{content}}

Tags: {{meta:name:keywords|split:","|wikilink|join:" "}}
""".strip()

    console.print(
        Panel(
            Syntax(example_template, "markdown", theme="monokai"),
            title="Example Template",
            expand=False,
        )
    )
