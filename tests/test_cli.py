"""Tests for the webclipper command line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from webclipper.cli import webclipper

PAGE = {
    "title": "How to Brew Coffee: A Guide",
    "author": "Jane Doe",
    "url": "https://example.com/coffee",
    "published": "2024-03-05T14:07:09",
    "content": "Grind the beans.",
    "markdown": "Grind the beans.",
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def page_json(tmp_path):
    path = tmp_path / "page.json"
    path.write_text(json.dumps(PAGE), encoding="utf-8")
    return path


class TestCLI:
    """Test the top-level command group."""

    def test_help(self, runner):
        result = runner.invoke(webclipper, ["--help"])
        assert result.exit_code == 0
        for command in ("render", "validate", "filters", "clip"):
            assert command in result.output


class TestRenderCommand:
    def test_render(self, runner):
        result = runner.invoke(
            webclipper, ["render", "Hello {{name|upper}}", "--context", '{"name": "world"}']
        )
        assert result.exit_code == 0
        assert "Hello WORLD" in result.output

    def test_render_context_file(self, runner, page_json):
        result = runner.invoke(
            webclipper, ["render", "{{title|safe_name}}", "--context-file", str(page_json)]
        )
        assert result.exit_code == 0
        assert "How to Brew Coffee A Guide" in result.output

    def test_context_overrides_context_file(self, runner, page_json):
        result = runner.invoke(
            webclipper,
            ["render", "{{author}}", "--context-file", str(page_json), "--context", '{"author": "Me"}'],
        )
        assert result.exit_code == 0
        assert result.output.startswith("Me")

    def test_render_from_file(self, runner, tmp_path):
        template = tmp_path / "note.md"
        template.write_text("# {{title}}", encoding="utf-8")
        result = runner.invoke(
            webclipper, ["render", str(template), "--file", "--context", '{"title": "T"}']
        )
        assert result.exit_code == 0
        assert "# T" in result.output

    def test_unknown_filter_warning(self, runner):
        result = runner.invoke(webclipper, ["render", "{{a|nosuch}}", "--context", '{"a": "z"}'])
        assert result.exit_code == 0
        assert "Unknown filter: nosuch" in result.output

    def test_context_must_be_an_object(self, runner):
        result = runner.invoke(webclipper, ["render", "{{a}}", "--context", "[1]"])
        assert result.exit_code == 1
        assert "must be a JSON object" in result.output
        assert not isinstance(result.exception, TypeError)

    def test_context_file_must_be_an_object(self, runner, tmp_path):
        path = tmp_path / "ctx.json"
        path.write_text("\"text\"", encoding="utf-8")
        result = runner.invoke(webclipper, ["render", "{{a}}", "--context-file", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output
        assert not isinstance(result.exception, TypeError)

    def test_invalid_context(self, runner):
        result = runner.invoke(webclipper, ["render", "{{a}}", "--context", "{not json"])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestValidateCommand:
    def test_valid(self, runner):
        result = runner.invoke(webclipper, ["validate", '{{published|date:"YYYY"}}'])
        assert result.exit_code == 0
        assert "Template is valid" in result.output
        assert "published" in result.output

    def test_invalid(self, runner):
        result = runner.invoke(webclipper, ["validate", "Hello {{name"])
        assert result.exit_code == 1
        assert "Template validation failed" in result.output
        assert "Unbalanced variable delimiters" in result.output

    def test_strict_level(self, runner):
        result = runner.invoke(webclipper, ["validate", "{{a|nosuch}}", "--level", "strict"])
        assert result.exit_code == 1
        assert "Unknown filter: nosuch" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(webclipper, ["validate", "{{a|nosuch}}", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["is_valid"] is True
        assert data["warnings"] == ["Unknown filter: nosuch"]
        assert data["variables"] == ["a"]

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(webclipper, ["validate", str(tmp_path / "none.md"), "--file"])
        assert result.exit_code == 1
        assert "Error reading template" in result.output


class TestFiltersCommand:
    def test_lists_filters(self, runner):
        result = runner.invoke(webclipper, ["filters"])
        assert result.exit_code == 0
        assert "Available Filters" in result.output
        assert "Example Template" in result.output


class TestClipCommand:
    def test_prints_note(self, runner, page_json):
        result = runner.invoke(webclipper, ["clip", str(page_json)])
        assert result.exit_code == 0
        assert "author: Jane Doe" in result.output
        assert "Grind the beans." in result.output

    def test_writes_note(self, runner, page_json, tmp_path):
        vault = tmp_path / "vault"
        result = runner.invoke(webclipper, ["clip", str(page_json), "--output", str(vault)])
        assert result.exit_code == 0
        assert "Note saved" in result.output

        text = (vault / "How to Brew Coffee A Guide.md").read_text(encoding="utf-8")
        assert text.startswith("---\nsource: https://example.com/coffee\n")
        assert text.endswith("Grind the beans.")

    def test_template_and_variables(self, runner, page_json, tmp_path):
        template = tmp_path / "t.yaml"
        template.write_text(
            "id: t\nname: T\nnoteNameFormat: '{{who}}'\nnotePath: Inbox\n"
            "noteContent: '{{title|upper}} for {{who}}'\n",
            encoding="utf-8",
        )
        vault = tmp_path / "vault"
        result = runner.invoke(
            webclipper,
            ["clip", str(page_json), "-t", str(template), "-o", str(vault), "--var", "who=Sam"],
        )
        assert result.exit_code == 0
        assert (vault / "Inbox" / "Sam.md").read_text(encoding="utf-8") == (
            "HOW TO BREW COFFEE: A GUIDE for Sam"
        )

    def test_append_behavior(self, runner, page_json, tmp_path):
        template = tmp_path / "log.yaml"
        template.write_text(
            "id: log\nname: Log\nbehavior: append-bottom\n"
            "noteNameFormat: Reading log\nnoteContent: '- {{title}}'\n",
            encoding="utf-8",
        )
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "Reading log.md").write_text("# Log\n", encoding="utf-8")

        result = runner.invoke(
            webclipper, ["clip", str(page_json), "-t", str(template), "-o", str(vault)]
        )
        assert result.exit_code == 0
        assert (vault / "Reading log.md").read_text(encoding="utf-8") == (
            "# Log\n- How to Brew Coffee: A Guide"
        )

    def test_example_recipe(self, runner, tmp_path):
        examples = Path(__file__).parent.parent / "examples"
        vault = tmp_path / "vault"
        result = runner.invoke(
            webclipper,
            [
                "clip",
                str(examples / "recipe_page.json"),
                "-t",
                str(examples / "recipe_template.yaml"),
                "-o",
                str(vault),
            ],
        )
        assert result.exit_code == 0

        text = (vault / "Recipes" / "Pour Over Coffee.md").read_text(encoding="utf-8")
        assert "author: Jane Doe\n" in text
        assert "tags:\n- recipe\n- coffee\n- brewing\n" in text
        assert "# Pour Over Coffee\n" in text
        assert "- 20 g coffee\n- 320 g water" in text

    def test_prepend_keeps_frontmatter_first(self, runner, page_json, tmp_path):
        template = tmp_path / "inbox.yaml"
        template.write_text(
            "id: inbox\nname: Inbox\nbehavior: append-top\n"
            "noteNameFormat: Inbox\nnoteContent: NEW\n",
            encoding="utf-8",
        )
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "Inbox.md").write_text("---\nsource: old\n---\nOLD\n", encoding="utf-8")

        result = runner.invoke(
            webclipper, ["clip", str(page_json), "-t", str(template), "-o", str(vault)]
        )
        assert result.exit_code == 0
        assert (vault / "Inbox.md").read_text(encoding="utf-8") == (
            "---\nsource: old\n---\nNEW\nOLD\n"
        )

    def test_refuses_to_write_outside_output(self, runner, page_json, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "linked").symlink_to(outside, target_is_directory=True)

        template = tmp_path / "t.yaml"
        template.write_text(
            "id: t\nname: T\nnoteNameFormat: T\nnotePath: linked\n", encoding="utf-8"
        )
        result = runner.invoke(
            webclipper, ["clip", str(page_json), "-t", str(template), "-o", str(vault)]
        )
        assert result.exit_code == 1
        assert "outside" in result.output
        assert not (outside / "T.md").exists()

    def test_bad_variable(self, runner, page_json):
        result = runner.invoke(webclipper, ["clip", str(page_json), "--var", "novalue"])
        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output

    def test_invalid_content(self, runner, tmp_path):
        path = tmp_path / "page.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(webclipper, ["clip", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output
