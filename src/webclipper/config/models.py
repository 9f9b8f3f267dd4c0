"""Configuration models for clip templates and extracted page content."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PropertyType = Literal[
    "text", "number", "checkbox", "date", "datetime", "tags", "aliases"
]

NoteBehavior = Literal[
    "create", "append-top", "append-bottom", "daily-top", "daily-bottom"
]


class TemplateProperty(BaseModel):
    """A frontmatter property rendered from a template string.

    Attributes:
        name: Frontmatter key.
        value: Template string, e.g. ``{{published|date:"YYYY-MM-DD"}}``.
        type: How the rendered text is coerced before it is written.
            ``number`` becomes an int or float, ``checkbox`` a boolean,
            ``tags`` and ``aliases`` a list split on commas.

    Example:
        TemplateProperty(name="source", value="{{url}}", type="text")
    """

    name: str = Field(min_length=1)
    value: str = ""
    type: PropertyType = "text"


class ClipTemplate(BaseModel):
    """A clip template: how a captured page becomes a note.

    Keys may be written in snake_case or in the camelCase used by
    browser clipper exports (``noteNameFormat``, ``noteContent``, ...).

    Attributes:
        id: Unique template identifier.
        name: Human readable name.
        behavior: Whether to create a new note or append to an existing one.
        note_name_format: Template string for the note's file name.
        note_path: Folder (itself a template string) the note is saved to.
        properties: Frontmatter properties, in output order.
        note_content: Template string for the note body.
        triggers: URL prefixes or patterns that select this template.
        interpreter_context: Extra context handed to a prompt interpreter.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    behavior: NoteBehavior = "create"
    note_name_format: str = Field(
        default="{{title|safe_name}}", alias="noteNameFormat"
    )
    note_path: str = Field(default="", alias="notePath")
    properties: List[TemplateProperty] = []
    note_content: str = Field(default="{{content}}", alias="noteContent")
    triggers: List[str] = []
    interpreter_context: Optional[str] = Field(default=None, alias="interpreterContext")

    @field_validator("properties")
    @classmethod
    def validate_unique_properties(
        cls, v: List[TemplateProperty]
    ) -> List[TemplateProperty]:
        names = [prop.name for prop in v]
        if len(set(names)) != len(names):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise ValueError(
                f"Property names must be unique. Found duplicates: {duplicates}. "
                f"Suggestion: Rename or remove the duplicate properties."
            )
        return v


class Highlight(BaseModel):
    """A passage the user highlighted on the page."""

    text: str
    html: str = ""
    timestamp: float = 0
    color: Optional[str] = None
    note: Optional[str] = None


class ExtractedContent(BaseModel):
    """Page data produced by the extraction pipeline.

    ``content`` holds the cleaned HTML and ``markdown`` its Markdown
    conversion; both are produced upstream. Selector results and
    Schema.org data travel under their context keys (``_selectors``,
    ``_selectorsHtml``, ``_schema``).
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    author: str = ""
    date: str = ""
    description: str = ""
    content: str = ""
    markdown: str = ""
    url: str = ""
    domain: str = ""
    favicon: str = ""
    image: str = ""
    published: str = ""
    site: str = ""
    words: int = 0
    metadata: Dict[str, Any] = {}
    highlights: Optional[List[Highlight]] = None
    selection: Optional[str] = None
    selectors: Dict[str, Any] = Field(default={}, alias="_selectors")
    selectors_html: Dict[str, Any] = Field(default={}, alias="_selectorsHtml")
    schema_org: Dict[str, Any] = Field(default={}, alias="_schema")


DEFAULT_TEMPLATE = ClipTemplate(
    id="default",
    name="Default",
    behavior="create",
    note_name_format="{{title|safe_name}}",
    note_path="",
    properties=[
        TemplateProperty(name="source", value="{{url}}", type="text"),
        TemplateProperty(name="author", value="{{author}}", type="text"),
        TemplateProperty(
            name="published", value='{{published|date:"YYYY-MM-DD"}}', type="date"
        ),
        TemplateProperty(name="created", value='{{date|date:"YYYY-MM-DD"}}', type="date"),
    ],
    note_content="{{content}}",
)
