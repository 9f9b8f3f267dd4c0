"""Template rendering system for clipper notes."""

from .engine import (
    RenderResult,
    TemplateEngine,
    get_default_engine,
    register_filter,
    render,
)
from .filters import BUILTIN_FILTERS, FilterRegistry, stringify
from .parser import Expression, FilterCall, parse_expression
from .renderer import BatchRenderer, BatchRenderResult
from .validator import TemplateValidator, ValidationLevel, ValidationResult
from .variables import VariableResolver, resolve_property

__all__ = [
    "TemplateEngine",
    "RenderResult",
    "render",
    "register_filter",
    "get_default_engine",
    "FilterRegistry",
    "BUILTIN_FILTERS",
    "stringify",
    "Expression",
    "FilterCall",
    "parse_expression",
    "VariableResolver",
    "resolve_property",
    "BatchRenderer",
    "BatchRenderResult",
    "TemplateValidator",
    "ValidationResult",
    "ValidationLevel",
]
