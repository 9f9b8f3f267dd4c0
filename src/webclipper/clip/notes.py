"""Build Markdown notes from clip templates and extracted page content."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..config.models import ClipTemplate, ExtractedContent, TemplateProperty
from ..templates import TemplateEngine, get_default_engine

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 200

FRONTMATTER = re.compile(r"\A---\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

TRUE_VALUES = {"true", "yes", "on", "1"}


def generate_filename(title: str, extension: str = ".md") -> str:
    """Generate a safe file name from a page title.

    Characters that are invalid on common file systems are removed,
    whitespace is collapsed and the stem is capped at 200 characters.
    """
    stem = re.sub(r'[<>:"/\\|?*]', "", title or "")
    stem = re.sub(r"\s+", " ", stem).strip()[:MAX_FILENAME_LENGTH].strip()
    return f"{stem or 'Untitled'}{extension}"


def clean_folder(folder: str) -> str:
    """Normalize a rendered note folder to a relative vault path.

    Both slash styles separate segments; empty, ``.`` and ``..``
    segments are dropped.
    """
    segments = [segment.strip() for segment in re.split(r"[\\/]+", folder)]
    return "/".join(s for s in segments if s and s not in (".", ".."))


def insert_into_note(existing: str, body: str, at_top: bool = False) -> str:
    """Add ``body`` to the text of an existing note.

    At the top, the body goes below the note's frontmatter block, if any.
    """
    if not at_top:
        return existing.rstrip("\n") + "\n" + body

    match = FRONTMATTER.match(existing)
    split = match.end() if match else 0
    head = existing[:split]
    if head and not head.endswith("\n"):
        head += "\n"
    return head + body + "\n" + existing[split:]


def build_context(
    content: Union[ExtractedContent, Mapping[str, Any]],
    variables: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Merge extracted page content and user variables into a render context.

    User variables win over extracted fields. When the page has no
    ``date`` the clip time is used, so ``{{date}}`` always means "when
    this was clipped" unless the page says otherwise.

    Args:
        content: Extracted page data
        variables: Extra variables supplied by the caller
        now: Clip time (defaults to the current local time)

    Returns:
        A new context dictionary
    """
    if isinstance(content, ExtractedContent):
        context = content.model_dump(by_alias=True)
    else:
        context = dict(content)

    if not context.get("date"):
        context["date"] = (now or datetime.now()).isoformat(timespec="seconds")

    if variables:
        context.update(variables)
    return context


def coerce_property(prop: TemplateProperty, text: str) -> Any:
    """Convert a rendered property string to its frontmatter value."""
    if prop.type == "number":
        text = text.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return text
        return int(number) if number.is_integer() else number

    if prop.type == "checkbox":
        return text.strip().lower() in TRUE_VALUES

    if prop.type in ("tags", "aliases"):
        return [item.strip() for item in text.split(",") if item.strip()]

    return text


@dataclass
class Note:
    """A rendered note ready to be written to a vault."""

    filename: str
    path: str
    properties: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    behavior: str = "create"
    warnings: List[str] = field(default_factory=list)

    @property
    def frontmatter(self) -> str:
        """YAML frontmatter block, or an empty string without properties."""
        if not self.properties:
            return ""
        dumped = yaml.safe_dump(
            self.properties,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
        return f"---\n{dumped}---\n"

    @property
    def markdown(self) -> str:
        """Full note text: frontmatter followed by the body."""
        return self.frontmatter + self.body


class NoteBuilder:
    """Render every part of a clip template into a Note."""

    def __init__(self, engine: Optional[TemplateEngine] = None) -> None:
        self.engine = engine if engine is not None else get_default_engine()

    def build(self, template: ClipTemplate, context: Mapping[str, Any]) -> Note:
        """Render a clip template against a context.

        Args:
            template: Clip template to render
            context: Render context, usually from build_context()

        Returns:
            The rendered Note
        """
        warnings: List[str] = []

        def render(text: str) -> str:
            result = self.engine.render_with_diagnostics(text, context)
            warnings.extend(result.warnings)
            return result.output

        name = render(template.note_name_format)
        filename = generate_filename(name)
        folder = clean_folder(render(template.note_path))
        path = f"{folder}/{filename}" if folder else filename

        properties = {
            prop.name: coerce_property(prop, render(prop.value))
            for prop in template.properties
        }

        note = Note(
            filename=filename,
            path=path,
            properties=properties,
            body=render(template.note_content),
            behavior=template.behavior,
            warnings=warnings,
        )
        logger.debug(f"Built note '{note.path}' from template '{template.id}'")
        return note


@dataclass
class ClipResult:
    """Outcome of a clip: rendered text plus where it should be saved."""

    success: bool
    content: str
    filename: str
    path: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def clip(
    content: Union[ExtractedContent, Mapping[str, Any]],
    template: Union[ClipTemplate, str, None] = None,
    variables: Optional[Mapping[str, Any]] = None,
    engine: Optional[TemplateEngine] = None,
) -> ClipResult:
    """Turn extracted page content into note text.

    Args:
        content: Extracted page data
        template: A ClipTemplate, a raw template string, or None to use
            the page's Markdown as is
        variables: Extra variables, overriding extracted fields
        engine: Template engine (uses the default engine if None)

    Returns:
        ClipResult; failures are reported with ``success=False``
    """
    try:
        context = build_context(content, variables)
        title = str(context.get("title") or "")

        if isinstance(template, ClipTemplate):
            note = NoteBuilder(engine).build(template, context)
            return ClipResult(
                success=True,
                content=note.markdown,
                filename=note.filename,
                path=note.path,
                metadata=context,
                warnings=note.warnings,
            )

        if template is not None:
            if engine is None:
                engine = get_default_engine()
            result = engine.render_with_diagnostics(template, context)
            output, warnings = result.output, result.warnings
        else:
            output, warnings = str(context.get("markdown") or ""), []

        return ClipResult(
            success=True,
            content=output,
            filename=generate_filename(title),
            metadata=context,
            warnings=warnings,
        )
    except (TypeError, ValueError) as e:
        logger.error(f"Clip failed: {e}")
        return ClipResult(success=False, content="", filename="", error=str(e))
