"""Built-in filters for clipper templates.

Every filter is a plain function ``(value, *args) -> value``. Arguments
arrive as strings straight from the template; each filter coerces them
itself. Filters never mutate their input and pass through values of a
type they do not handle.
"""

import json
import logging
import math
import re
from datetime import date, datetime
from email.utils import parsedate_to_datetime
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

logger = logging.getLogger(__name__)

FilterFunction = Callable[..., Any]

DATE_TOKENS = re.compile(r"YYYY|MM|DD|HH|mm|ss")

FALLBACK_DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)

UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')

STRIP_MD_PASSES = (
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"^#+\s*", re.MULTILINE), ""),
    (re.compile(r"^>\s*", re.MULTILINE), ""),
    (re.compile(r"^[-*+]\s*", re.MULTILINE), ""),
    (re.compile(r"^\d+\.\s*", re.MULTILINE), ""),
)

LIST_STYLES = {
    "bullet": "- {item}",
    "numbered": "{index}. {item}",
    "task": "- [ ] {item}",
    "numbered-task": "{index}. [ ] {item}",
}


def stringify(value: Any) -> str:
    """Convert a template value to its output text.

    ``None`` becomes an empty string, lists are joined with ``", "``,
    mappings are serialized as compact JSON and booleans are lower-case.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _to_number(text: Optional[str], default: float = 0) -> float:
    try:
        number = float(text)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


# Date


def parse_date(value: Any) -> Optional[datetime]:
    """Parse ``value`` into a local, naive datetime.

    Accepts datetime/date objects, ISO 8601 strings, RFC 2822 strings and
    a handful of common human formats. Timezone-aware values are
    converted to the machine's local time.

    Returns:
        The parsed datetime, or None if the value is not a date
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        parsed = _parse_date_string(value.strip())
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse_date_string(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None


def date_filter(value: Any, fmt: str = "YYYY-MM-DD") -> Any:
    """Format a date using YYYY, MM, DD, HH, mm and ss tokens."""
    parsed = parse_date(value)
    if parsed is None:
        return value

    fields = {
        "YYYY": f"{parsed.year:04d}",
        "MM": f"{parsed.month:02d}",
        "DD": f"{parsed.day:02d}",
        "HH": f"{parsed.hour:02d}",
        "mm": f"{parsed.minute:02d}",
        "ss": f"{parsed.second:02d}",
    }
    return DATE_TOKENS.sub(lambda match: fields[match.group(0)], fmt)


# Case


def lower(value: Any) -> str:
    """Lower-case the text."""
    return stringify(value).lower()


def upper(value: Any) -> str:
    """Upper-case the text."""
    return stringify(value).upper()


def capitalize(value: Any) -> str:
    """Upper-case the first character only."""
    text = stringify(value)
    return text[:1].upper() + text[1:]


def title(value: Any) -> str:
    """Upper-case the first letter of every word."""
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), stringify(value))


# Text


def trim(value: Any) -> str:
    """Strip surrounding whitespace."""
    return stringify(value).strip()


def _expand_replacement(template: str) -> Callable[["re.Match[str]"], str]:
    def expand(match: "re.Match[str]") -> str:
        groups = match.re.groups or 0

        def reference(ref: "re.Match[str]") -> str:
            token = ref.group(1)
            if token == "$":
                return "$"
            if token == "&":
                return match.group(0)
            if token == "`":
                return match.string[: match.start()]
            if token == "'":
                return match.string[match.end() :]
            # $nn falls back to $n followed by a literal digit
            if len(token) == 2 and 1 <= int(token) <= groups:
                return match.group(int(token)) or ""
            if 1 <= int(token[0]) <= groups:
                return (match.group(int(token[0])) or "") + token[1:]
            return ref.group(0)

        return re.sub(r"\$([$&`']|\d{1,2})", reference, template)

    return expand


def replace(value: Any, search: str = "", replacement: str = "") -> str:
    """Replace every match of the regular expression ``search``.

    The replacement may use ``$1`` to ``$99``, ``$&`` for the whole
    match and ``$$`` for a dollar sign. A dollar sign followed by a
    backtick or a quote inserts the text before or after the match.
    """
    text = stringify(value)
    if not search:
        return text
    return re.sub(search, _expand_replacement(replacement), text)


def slice_filter(value: Any, start: str = "0", end: Optional[str] = None) -> str:
    """Slice the text between numeric bounds; negative bounds count from the end."""
    text = stringify(value)
    stop = int(_to_number(end)) if end else None
    return text[int(_to_number(start)) : stop]


# Identifier case


def camel(value: Any) -> str:
    """Convert to camelCase."""
    text = re.sub(
        r"[-_\s]+(.)?",
        lambda match: match.group(1).upper() if match.group(1) else "",
        stringify(value),
    )
    return text[:1].lower() + text[1:]


def pascal(value: Any) -> str:
    """Convert to PascalCase."""
    text = camel(value)
    return text[:1].upper() + text[1:]


def snake(value: Any) -> str:
    """Convert to snake_case."""
    text = re.sub(r"([a-z])([A-Z])", r"\1_\2", stringify(value))
    return re.sub(r"[-\s]+", "_", text).lower()


def kebab(value: Any) -> str:
    """Convert to kebab-case."""
    text = re.sub(r"([a-z])([A-Z])", r"\1-\2", stringify(value))
    return re.sub(r"[_\s]+", "-", text).lower()


def safe_name(value: Any) -> str:
    """Remove characters that are not allowed in file names."""
    text = UNSAFE_FILENAME_CHARS.sub("", stringify(value))
    return re.sub(r"\s+", " ", text).strip()


# Markdown


def blockquote(value: Any) -> str:
    """Prefix every line with ``> ``."""
    return "\n".join(f"> {line}" for line in stringify(value).split("\n"))


def wikilink(value: Any, alias: Optional[str] = None) -> Any:
    """Wrap in ``[[ ]]``; lists are linked element by element."""
    if _is_sequence(value):
        return [f"[[{stringify(item)}]]" for item in value]
    if alias:
        return f"[[{stringify(value)}|{alias}]]"
    return f"[[{stringify(value)}]]"


def link(value: Any, text: Optional[str] = None) -> str:
    """Build a Markdown link, using the value as text when none is given."""
    target = stringify(value)
    return f"[{text or target}]({target})"


# Arrays


def join(value: Any, separator: str = ", ") -> Any:
    """Join list items with ``separator``."""
    if _is_sequence(value):
        return separator.join(stringify(item) for item in value)
    return value


def split(value: Any, separator: str = ",") -> List[str]:
    """Split the text on ``separator``."""
    text = stringify(value)
    if separator == "":
        return list(text)
    return text.split(separator)


def first(value: Any) -> Any:
    """First list item."""
    if _is_sequence(value):
        return value[0] if value else None
    return value


def last(value: Any) -> Any:
    """Last list item."""
    if _is_sequence(value):
        return value[-1] if value else None
    return value


def unique(value: Any) -> Any:
    """Drop repeated list items, keeping the first occurrence."""
    if not _is_sequence(value):
        return value

    # True and 1 compare equal but are different items
    seen: List[Any] = []
    items: List[Any] = []
    for item in value:
        key = (isinstance(item, bool), item)
        if key not in seen:
            seen.append(key)
            items.append(item)
    return items


def list_filter(value: Any, style: str = "bullet") -> Any:
    """Render a list as bullet, numbered, task or numbered-task lines."""
    if not _is_sequence(value):
        return value

    line = LIST_STYLES.get(style, LIST_STYLES["bullet"])
    return "\n".join(
        line.format(index=index, item=stringify(item))
        for index, item in enumerate(value, 1)
    )


# Misc


def length(value: Any) -> int:
    """Length of a list or string, or key count of a mapping."""
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value)
    return 0


def default(value: Any, fallback: str = "") -> Any:
    """Use ``fallback`` when the value is missing or an empty string."""
    if value is None or value == "":
        return fallback
    return value


def json_filter(value: Any) -> str:
    """Serialize the value as indented JSON."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def parse_json(value: Any) -> Any:
    """Parse JSON text; invalid JSON is returned unchanged."""
    try:
        return json.loads(stringify(value))
    except ValueError:
        return value


def strip_html(value: Any) -> str:
    """Remove every tag-like substring."""
    return re.sub(r"<[^>]*>", "", stringify(value))


def strip_md(value: Any) -> str:
    """Remove common Markdown emphasis, link, heading and list syntax."""
    text = stringify(value)
    for pattern, replacement in STRIP_MD_PASSES:
        text = pattern.sub(replacement, text)
    return text


BUILTIN_FILTERS: Dict[str, FilterFunction] = {
    "date": date_filter,
    "lower": lower,
    "upper": upper,
    "capitalize": capitalize,
    "title": title,
    "trim": trim,
    "replace": replace,
    "slice": slice_filter,
    "camel": camel,
    "pascal": pascal,
    "snake": snake,
    "kebab": kebab,
    "safe_name": safe_name,
    "blockquote": blockquote,
    "wikilink": wikilink,
    "link": link,
    "join": join,
    "split": split,
    "first": first,
    "last": last,
    "unique": unique,
    "list": list_filter,
    "length": length,
    "default": default,
    "json": json_filter,
    "parse_json": parse_json,
    "strip_html": strip_html,
    "strip_md": strip_md,
}


class FilterRegistry:
    """Name to function table used by the template engine.

    Filters must be registered before any render that uses them; the
    table is not locked against concurrent modification.
    """

    def __init__(self, include_builtins: bool = True) -> None:
        self._filters: Dict[str, FilterFunction] = (
            dict(BUILTIN_FILTERS) if include_builtins else {}
        )

    def register(self, name: str, fn: FilterFunction) -> None:
        """Register ``fn`` under ``name``, replacing any existing filter."""
        if not callable(fn):
            raise TypeError(f"Filter '{name}' must be callable, got {type(fn).__name__}")
        self._filters[name] = fn

    def get(self, name: str) -> Optional[FilterFunction]:
        return self._filters.get(name)

    def names(self) -> List[str]:
        return sorted(self._filters)

    def __contains__(self, name: object) -> bool:
        return name in self._filters

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._filters)

    def apply(
        self,
        name: str,
        value: Any,
        *args: str,
        diagnostics: Optional[List[str]] = None,
    ) -> Any:
        """Apply the filter ``name`` to ``value``.

        Unknown filters and filters that raise leave the value unchanged;
        the problem is logged and, if given, appended to ``diagnostics``.

        Args:
            name: Filter name
            value: Input value
            *args: Filter arguments as parsed from the template
            diagnostics: Optional list collecting warning messages

        Returns:
            The filtered value
        """
        fn = self._filters.get(name)
        if fn is None:
            message = f"Unknown filter: {name}"
            logger.warning(message)
            if diagnostics is not None:
                diagnostics.append(message)
            return value

        try:
            return fn(value, *args)
        except Exception as e:
            message = f"Filter '{name}' failed: {e}"
            logger.warning(message)
            if diagnostics is not None:
                diagnostics.append(message)
            return value
