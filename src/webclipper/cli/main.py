import json
import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax

from ..clip import NoteBuilder, build_context, insert_into_note
from ..config import DEFAULT_TEMPLATE, ExtractedContent, load_clip_template
from .templates import list_filters, render_template, validate_template

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def parse_variables(pairs: Tuple[str, ...]) -> dict:
    """Parse ``KEY=VALUE`` pairs given on the command line."""
    variables = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(
                f"Expected KEY=VALUE, got '{pair}'", param_hint="--var"
            )
        variables[key.strip()] = value
    return variables


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def webclipper(verbose):
    """webclipper - render web clippings into Markdown notes."""
    configure_logging(verbose)


@webclipper.command()
@click.argument("content_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--template",
    "-t",
    "template_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Clip template YAML file (uses the default template if omitted)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Vault directory to write the note into",
)
@click.option("--var", "variables", multiple=True, help="Extra variable as KEY=VALUE")
def clip(
    content_json: Path,
    template_path: Optional[Path],
    output: Optional[Path],
    variables: Tuple[str, ...],
):
    """Build a note from extracted page content (JSON) and a clip template."""
    extra = parse_variables(variables)

    try:
        with open(content_json, "r", encoding="utf-8") as f:
            content = ExtractedContent.model_validate(json.load(f))

        template = load_clip_template(template_path) if template_path else DEFAULT_TEMPLATE
        note = NoteBuilder().build(template, build_context(content, extra))

    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise click.Abort()

    for warning in note.warnings:
        console.print(f"[yellow]⚠️  {escape(warning)}[/yellow]", highlight=False)

    if output:
        note_path = output / note.path
        if not note_path.resolve().is_relative_to(output.resolve()):
            console.print(
                f"[bold red]Error:[/bold red] Note path {escape(note.path)} "
                f"resolves outside {escape(str(output))}"
            )
            raise click.Abort()

        if note.behavior != "create" and note_path.exists():
            existing = note_path.read_text(encoding="utf-8")
            text = insert_into_note(
                existing, note.body, at_top=note.behavior.endswith("top")
            )
        else:
            text = note.markdown

        note_path.parent.mkdir(parents=True, exist_ok=True)
        note_path.write_text(text, encoding="utf-8")
        console.print(f"[green]✓ Note saved to {escape(str(note_path))}[/green]")
    else:
        console.print(f"[bold blue]{escape(note.path)}[/bold blue]")
        console.print(Syntax(note.markdown, "markdown", theme="monokai"))


webclipper.add_command(render_template)
webclipper.add_command(validate_template)
webclipper.add_command(list_filters)


if __name__ == "__main__":
    webclipper()
