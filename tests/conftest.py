"""Shared pytest fixtures and configuration."""

from typing import Any, Dict

from pytest import fixture

from webclipper.config import ExtractedContent
from webclipper.templates import TemplateEngine


@fixture
def engine() -> TemplateEngine:
    """Provide a fresh template engine with only the built-in filters."""
    return TemplateEngine()


@fixture
def page_context() -> Dict[str, Any]:
    """A render context shaped like the output of the extraction pipeline."""
    return {
        "title": "How to Brew Coffee: A Guide",
        "author": "Jane Doe",
        "url": "https://example.com/coffee",
        "published": "2024-03-05T14:07:09",
        "content": "<p>Grind the <b>beans</b>.</p>",
        "markdown": "Grind the **beans**.",
        "tags": ["coffee", "brewing", "coffee"],
        "words": 1200,
        "author_info": {"name": "Jane Doe", "links": ["https://a.example", "https://b.example"]},
        "metadata": {
            "meta_name_description": "A guide to coffee",
            "meta_property_og:title": "Coffee Guide",
            "meta_name_keywords": "coffee,brewing",
            "canonical": "https://example.com/coffee",
        },
        "_selectors": {"h1": "Brew Coffee", ".byline": ""},
        "_selectorsHtml": {"h1": "<h1>Brew Coffee</h1>"},
        "_schema": {
            "Article": {"headline": "Coffee", "author": {"name": "Jane Doe"}},
            "Recipe": {"name": "Pour Over", "recipeIngredient": ["beans", "water"]},
        },
    }


@fixture
def extracted_content() -> ExtractedContent:
    """Provide extracted page content for note building."""
    return ExtractedContent(
        title="How to Brew Coffee: A Guide",
        author="Jane Doe",
        url="https://example.com/coffee",
        published="2024-03-05T14:07:09",
        content="<p>Grind the beans.</p>",
        markdown="Grind the beans.",
        site="Example",
        words=1200,
        metadata={"meta_name_keywords": "coffee, brewing"},
    )
