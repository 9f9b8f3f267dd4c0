"""Tests for building notes from clip templates."""

from datetime import datetime

import pytest
import yaml

from webclipper.clip import (
    ClipResult,
    Note,
    NoteBuilder,
    build_context,
    clean_folder,
    clip,
    coerce_property,
    generate_filename,
    insert_into_note,
)
from webclipper.config import DEFAULT_TEMPLATE, ClipTemplate, ExtractedContent, TemplateProperty
from webclipper.templates import render

CLIP_TIME = datetime(2024, 6, 1, 9, 30, 0)


@pytest.fixture
def article_template():
    return ClipTemplate(
        id="article",
        name="Article",
        note_name_format="{{title}}",
        note_path="Clippings/{{site}}/",
        properties=[
            TemplateProperty(name="source", value="{{url}}"),
            TemplateProperty(name="words", value="{{words}}", type="number"),
            TemplateProperty(name="tags", value="{{meta:name:keywords}}", type="tags"),
            TemplateProperty(name="read", value="false", type="checkbox"),
        ],
        note_content="# {{title}}\n\n{{markdown}}\n",
    )


class TestGenerateFilename:
    def test_unsafe_characters_removed(self):
        assert generate_filename("How to Brew Coffee: A Guide") == "How to Brew Coffee A Guide.md"
        assert generate_filename('a/b\\c*d?e"f<g>h|i') == "abcdefghi.md"

    def test_whitespace_collapsed(self):
        assert generate_filename("  lots   of\tspace  ") == "lots of space.md"

    def test_empty_title(self):
        assert generate_filename("") == "Untitled.md"
        assert generate_filename("???") == "Untitled.md"

    def test_long_title_is_capped(self):
        assert generate_filename("x" * 300) == "x" * 200 + ".md"

    def test_extension(self):
        assert generate_filename("Note", extension=".txt") == "Note.txt"


class TestCleanFolder:
    def test_relative_segments_are_dropped(self):
        assert clean_folder("Clippings/../../escaped") == "Clippings/escaped"
        assert clean_folder("/abs/./path/") == "abs/path"
        assert clean_folder("..\\..\\win") == "win"

    def test_whitespace_and_empty_segments(self):
        assert clean_folder("  a // b  ") == "a/b"
        assert clean_folder("") == ""


class TestInsertIntoNote:
    def test_bottom(self):
        assert insert_into_note("# Log\n\n", "- new") == "# Log\n- new"

    def test_top_without_frontmatter(self):
        assert insert_into_note("OLD\n", "NEW", at_top=True) == "NEW\nOLD\n"

    def test_top_keeps_frontmatter_first(self):
        existing = "---\nsource: old\n---\nOLD\n"
        assert insert_into_note(existing, "NEW", at_top=True) == (
            "---\nsource: old\n---\nNEW\nOLD\n"
        )

    def test_top_with_frontmatter_only(self):
        assert insert_into_note("---\na: 1\n---", "NEW", at_top=True) == "---\na: 1\n---\nNEW\n"


class TestBuildContext:
    def test_from_extracted_content(self, extracted_content):
        context = build_context(extracted_content, now=CLIP_TIME)
        assert context["title"] == "How to Brew Coffee: A Guide"
        assert context["metadata"] == {"meta_name_keywords": "coffee, brewing"}
        assert context["date"] == "2024-06-01T09:30:00"

    def test_side_channels_keep_their_context_keys(self):
        content = ExtractedContent.model_validate(
            {"title": "T", "_schema": {"Recipe": {"name": "Pour Over"}}}
        )
        context = build_context(content, now=CLIP_TIME)
        assert context["_schema"] == {"Recipe": {"name": "Pour Over"}}
        assert context["_selectors"] == {}
        assert render("{{schema:@Recipe:name}}", context) == "Pour Over"

    def test_page_date_is_kept(self):
        context = build_context({"date": "2020-01-01"}, now=CLIP_TIME)
        assert context["date"] == "2020-01-01"

    def test_variables_override(self, extracted_content):
        context = build_context(extracted_content, {"title": "Custom", "extra": 1}, now=CLIP_TIME)
        assert context["title"] == "Custom"
        assert context["extra"] == 1

    def test_input_mapping_is_not_modified(self):
        content = {"title": "T"}
        build_context(content, {"title": "U"}, now=CLIP_TIME)
        assert content == {"title": "T"}


class TestCoerceProperty:
    def test_text(self):
        assert coerce_property(TemplateProperty(name="a"), " x ") == " x "

    def test_number(self):
        prop = TemplateProperty(name="a", type="number")
        assert coerce_property(prop, "42") == 42
        assert coerce_property(prop, "2.5") == 2.5
        assert coerce_property(prop, "") is None
        assert coerce_property(prop, "many") == "many"

    def test_checkbox(self):
        prop = TemplateProperty(name="a", type="checkbox")
        assert coerce_property(prop, "true") is True
        assert coerce_property(prop, "Yes") is True
        assert coerce_property(prop, "false") is False
        assert coerce_property(prop, "") is False

    def test_tags(self):
        prop = TemplateProperty(name="a", type="tags")
        assert coerce_property(prop, "coffee, brewing,, ") == ["coffee", "brewing"]


class TestNote:
    def test_markdown_with_frontmatter(self):
        note = Note(filename="a.md", path="a.md", properties={"source": "x", "n": 1}, body="Body")
        assert note.frontmatter == "---\nsource: x\nn: 1\n---\n"
        assert note.markdown == "---\nsource: x\nn: 1\n---\nBody"

    def test_markdown_without_properties(self):
        note = Note(filename="a.md", path="a.md", body="Body")
        assert note.frontmatter == ""
        assert note.markdown == "Body"


class TestNoteBuilder:
    def test_build(self, article_template, extracted_content):
        context = build_context(extracted_content, now=CLIP_TIME)
        note = NoteBuilder().build(article_template, context)

        assert note.filename == "How to Brew Coffee A Guide.md"
        assert note.path == "Clippings/Example/How to Brew Coffee A Guide.md"
        assert note.properties == {
            "source": "https://example.com/coffee",
            "words": 1200,
            "tags": ["coffee", "brewing"],
            "read": False,
        }
        assert note.body == "# How to Brew Coffee: A Guide\n\nGrind the beans.\n"
        assert note.warnings == []

    def test_frontmatter_round_trips_through_yaml(self, article_template, extracted_content):
        note = NoteBuilder().build(article_template, build_context(extracted_content, now=CLIP_TIME))
        front = note.markdown.split("---\n")[1]
        assert yaml.safe_load(front)["tags"] == ["coffee", "brewing"]

    def test_default_template(self, extracted_content):
        note = NoteBuilder().build(DEFAULT_TEMPLATE, build_context(extracted_content, now=CLIP_TIME))
        assert note.path == "How to Brew Coffee A Guide.md"
        assert note.properties["published"] == "2024-03-05"
        assert note.properties["created"] == "2024-06-01"
        assert note.body == "<p>Grind the beans.</p>"

    def test_folder_cannot_leave_the_vault(self):
        template = ClipTemplate(
            id="t", name="T", note_name_format="T", note_path="Clippings/{{site}}"
        )
        note = NoteBuilder().build(template, {"site": "../../escaped"})
        assert note.path == "Clippings/escaped/T.md"

    def test_warnings_are_collected(self, extracted_content):
        template = ClipTemplate(id="t", name="T", note_content="{{title|nosuch}}")
        note = NoteBuilder().build(template, build_context(extracted_content, now=CLIP_TIME))
        assert note.warnings == ["Unknown filter: nosuch"]


class TestClip:
    def test_with_clip_template(self, article_template, extracted_content):
        result = clip(extracted_content, article_template)
        assert isinstance(result, ClipResult)
        assert result.success
        assert result.path == "Clippings/Example/How to Brew Coffee A Guide.md"
        assert result.content.startswith("---\nsource: https://example.com/coffee\n")

    def test_with_template_string(self, extracted_content):
        result = clip(extracted_content, "{{title|upper}} by {{author}}")
        assert result.success
        assert result.content == "HOW TO BREW COFFEE: A GUIDE by Jane Doe"
        assert result.filename == "How to Brew Coffee A Guide.md"
        assert result.path is None

    def test_without_template_uses_markdown(self, extracted_content):
        result = clip(extracted_content)
        assert result.content == "Grind the beans."

    def test_variables(self, extracted_content):
        result = clip(extracted_content, "{{who}}", variables={"who": "me"})
        assert result.content == "me"
        assert result.metadata["who"] == "me"

    def test_failure_is_reported(self):
        result = clip({"title": "x"}, 42)
        assert not result.success
        assert result.content == ""
        assert "Template must be a string" in result.error
