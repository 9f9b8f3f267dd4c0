"""Template engine for clipper templates."""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from .filters import FilterFunction, FilterRegistry, stringify
from .parser import Expression, parse_expression
from .variables import VariableResolver

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


@dataclass
class RenderResult:
    """Rendered output together with the warnings raised while rendering."""

    output: str
    warnings: List[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


class TemplateEngine:
    """Render ``{{variable|filter:"arg"}}`` templates against a context."""

    def __init__(
        self,
        filters: Optional[FilterRegistry] = None,
        resolver: Optional[VariableResolver] = None,
        cache_size: int = 256,
    ) -> None:
        """Initialize the template engine.

        Args:
            filters: Filter registry (creates one with the built-ins if None)
            resolver: Variable resolver (creates the default one if None)
            cache_size: Number of parsed placeholder bodies to keep
        """
        self.filters = filters if filters is not None else FilterRegistry()
        self.resolver = resolver if resolver is not None else VariableResolver()
        self.cache_size = cache_size

        self._expression_cache: Dict[str, Expression] = {}
        self._cache_lock = threading.Lock()

    def register_filter(self, name: str, fn: FilterFunction) -> None:
        """Register a custom filter, replacing any filter of the same name."""
        self.filters.register(name, fn)

    def parse(self, body: str) -> Expression:
        """Parse a placeholder body with caching.

        Args:
            body: Trimmed text between ``{{`` and ``}}``

        Returns:
            The parsed expression
        """
        with self._cache_lock:
            expression = self._expression_cache.get(body)
            if expression is not None:
                return expression

            expression = parse_expression(body)

            if self._expression_cache and len(self._expression_cache) >= self.cache_size:
                # Remove oldest entry (simple FIFO)
                oldest_key = next(iter(self._expression_cache))
                del self._expression_cache[oldest_key]

            self._expression_cache[body] = expression
            return expression

    def evaluate(
        self,
        body: str,
        context: Mapping[str, Any],
        diagnostics: Optional[List[str]] = None,
    ) -> Any:
        """Resolve a placeholder body and run its filter chain.

        Returns:
            The filtered value, before stringification
        """
        expression = self.parse(body)
        value = self.resolver.resolve(expression.variable, context)

        for call in expression.filters:
            value = self.filters.apply(
                call.name, value, *call.args, diagnostics=diagnostics
            )

        return value

    def render_with_diagnostics(
        self, template: str, context: Mapping[str, Any]
    ) -> RenderResult:
        """Render a template and collect warnings.

        Args:
            template: Template text
            context: Mapping of variables

        Returns:
            RenderResult with the output and any warnings

        Raises:
            TypeError: If template is not a string or context is not a mapping
        """
        if not isinstance(template, str):
            raise TypeError(
                f"Template must be a string, got {type(template).__name__}"
            )
        if not isinstance(context, Mapping):
            raise TypeError(
                f"Context must be a mapping, got {type(context).__name__}"
            )

        warnings: List[str] = []

        def substitute(match: "re.Match[str]") -> str:
            value = self.evaluate(match.group(1).strip(), context, warnings)
            return stringify(value)

        output = PLACEHOLDER.sub(substitute, template)
        if warnings:
            logger.debug(f"Rendered template with {len(warnings)} warning(s)")

        return RenderResult(output=output, warnings=warnings)

    def render(self, template: str, context: Mapping[str, Any]) -> str:
        """Render a template with the given context.

        Missing variables render as empty strings and unknown filters
        leave their input unchanged, so this only fails on bad arguments.

        Raises:
            TypeError: If template is not a string or context is not a mapping
        """
        return self.render_with_diagnostics(template, context).output

    def find_placeholders(self, template: str) -> List[str]:
        """Return the trimmed body of every placeholder in order."""
        return [match.group(1).strip() for match in PLACEHOLDER.finditer(template)]

    def extract_variables(self, template: str) -> Set[str]:
        """Extract all variable names from a template.

        Args:
            template: The template string to analyze

        Returns:
            Set of variable names (namespaced names included as written)
        """
        variables = set()
        for body in self.find_placeholders(template):
            variable = self.parse(body).variable
            if variable:
                variables.add(variable)
        return variables


_default_engine = TemplateEngine()


def get_default_engine() -> TemplateEngine:
    """Return the engine used by the module-level helpers."""
    return _default_engine


def render(template: str, context: Mapping[str, Any]) -> str:
    """Render ``template`` with the default engine."""
    return _default_engine.render(template, context)


def register_filter(name: str, fn: FilterFunction) -> None:
    """Register a filter on the default engine."""
    _default_engine.register_filter(name, fn)
