"""Configuration management for webclipper."""

from .loader import load_clip_template, load_clip_templates, parse_clip_template
from .models import (
    DEFAULT_TEMPLATE,
    ClipTemplate,
    ExtractedContent,
    Highlight,
    TemplateProperty,
)

__all__ = [
    # Models
    "ClipTemplate",
    "TemplateProperty",
    "ExtractedContent",
    "Highlight",
    "DEFAULT_TEMPLATE",
    # Loaders
    "load_clip_template",
    "load_clip_templates",
    "parse_clip_template",
]
