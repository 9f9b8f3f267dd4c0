"""Variable resolution for clipper templates.

A variable name is dispatched by its prefix, in this order:

1. ``"..."`` prompt literal, returned as the untouched placeholder
2. ``meta:`` page meta tags from ``context["metadata"]``
3. ``selector:`` pre-resolved CSS selector text from ``context["_selectors"]``
4. ``selectorHtml:`` pre-resolved CSS selector HTML from ``context["_selectorsHtml"]``
5. ``schema:`` Schema.org JSON-LD data from ``context["_schema"]``
6. anything else is a dotted property path such as ``author.name`` or
   ``highlights[0].text``
"""

import re
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

INDEXED_SEGMENT = re.compile(r"^(\w+)\[(\d+|\*)\]$")

META_TAG_TYPES = ("name", "property")


def _lookup(container: Any, key: str) -> Any:
    """Read ``key`` from a mapping, or a numeric key from a list."""
    if isinstance(container, Mapping):
        return container.get(key)
    if isinstance(container, (list, tuple)) and key.isdecimal():
        index = int(key)
        return container[index] if index < len(container) else None
    return None


def resolve_property(path: str, data: Any) -> Any:
    """Resolve a dotted, optionally indexed, property path.

    ``key[N]`` indexes into a list; ``key[*]`` returns the whole list and
    ignores the rest of the path. Walking through a missing value at any
    step yields an empty string.

    Args:
        path: Dotted path, e.g. ``author.name`` or ``tags[*]``
        data: Object to walk

    Returns:
        The resolved value, or ``""`` if any step is missing
    """
    current = data

    for part in path.split("."):
        if current is None:
            return ""

        match = INDEXED_SEGMENT.match(part)
        if match:
            key, index = match.groups()
            current = _lookup(current, key)
            if isinstance(current, (list, tuple)):
                if index == "*":
                    return current
                position = int(index)
                current = current[position] if position < len(current) else None
        else:
            current = _lookup(current, part)

    return "" if current is None else current


def _is_prompt(name: str) -> bool:
    return len(name) >= 2 and name.startswith('"') and name.endswith('"')


def _resolve_prompt(name: str, context: Mapping[str, Any]) -> Any:
    # Left for an interpreter to fill in after rendering.
    return "{{" + name + "}}"


def _resolve_meta(name: str, context: Mapping[str, Any]) -> Any:
    metadata = context.get("metadata")
    if not isinstance(metadata, Mapping):
        return ""

    expression = name[len("meta:") :]
    parts = expression.split(":")
    if len(parts) >= 2 and parts[0] in META_TAG_TYPES:
        value = metadata.get(f"meta_{parts[0]}_{parts[1]}")
    else:
        value = metadata.get(expression)

    return "" if value is None else value


def _selector_resolver(prefix: str, key: str) -> Callable[[str, Mapping[str, Any]], Any]:
    def resolve(name: str, context: Mapping[str, Any]) -> Any:
        results = context.get(key)
        if not isinstance(results, Mapping):
            return ""
        return results.get(name[len(prefix) :]) or ""

    return resolve


def _resolve_schema(name: str, context: Mapping[str, Any]) -> Any:
    schema = context.get("_schema")
    if not isinstance(schema, Mapping):
        return ""

    expression = name[len("schema:") :]

    if expression.startswith("@"):
        type_name, sep, path = expression[1:].partition(":")
        if not sep:
            return ""
        schema_type = schema.get(type_name)
        if schema_type is None:
            return ""
        return resolve_property(path, schema_type)

    for schema_type in schema.values():
        if isinstance(schema_type, Mapping):
            value = resolve_property(expression, schema_type)
            if value != "":
                return value

    return ""


def _resolve_path(name: str, context: Mapping[str, Any]) -> Any:
    return resolve_property(name, context)


Resolver = Callable[[str, Mapping[str, Any]], Any]

NAMESPACES: Tuple[Tuple[str, Callable[[str], bool], Resolver], ...] = (
    ("prompt", _is_prompt, _resolve_prompt),
    ("meta", lambda name: name.startswith("meta:"), _resolve_meta),
    (
        "selector",
        lambda name: name.startswith("selector:"),
        _selector_resolver("selector:", "_selectors"),
    ),
    (
        "selectorHtml",
        lambda name: name.startswith("selectorHtml:"),
        _selector_resolver("selectorHtml:", "_selectorsHtml"),
    ),
    ("schema", lambda name: name.startswith("schema:"), _resolve_schema),
    ("path", lambda name: True, _resolve_path),
)


def namespace_of(name: str) -> str:
    """Return the namespace a variable name is resolved in."""
    for namespace, matches, _ in NAMESPACES:
        if matches(name):
            return namespace
    return "path"


class VariableResolver:
    """Resolve variable names against a render context."""

    def __init__(
        self,
        namespaces: Optional[Sequence[Tuple[str, Callable[[str], bool], Resolver]]] = None,
    ) -> None:
        self.namespaces = tuple(namespaces) if namespaces is not None else NAMESPACES

    def resolve(self, name: str, context: Mapping[str, Any]) -> Any:
        """Resolve ``name`` against ``context``.

        Args:
            name: Variable name, possibly namespaced
            context: Render context

        Returns:
            The resolved value, or ``""`` when nothing matches
        """
        for _, matches, resolver in self.namespaces:
            if matches(name):
                return resolver(name, context)
        return ""
