"""Expression parser for clipper template placeholders.

A placeholder body such as ``title|replace:"-":" "|upper`` is split into
a variable path and an ordered chain of filter calls. Splitting is aware
of single and double quotes (a quote preceded by a backslash does not
open or close a quoted run) and of nested parentheses.

Malformed input is never rejected: an unterminated quote or unbalanced
parenthesis simply leaves the scanner in its open state at the end of
the string and whatever was accumulated is still emitted.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

QUOTE_CHARS = ('"', "'")


@dataclass(frozen=True)
class FilterCall:
    """A single ``name:arg1,arg2`` step of a filter chain."""

    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Expression:
    """Parsed placeholder body."""

    variable: str
    filters: Tuple[FilterCall, ...] = ()


@dataclass
class ScanState:
    """Scanner state left over after splitting a string.

    The validator uses it to report unterminated quotes and unbalanced
    parentheses that the parser itself tolerates.
    """

    quote_char: Optional[str] = None
    depth: int = 0

    @property
    def in_quotes(self) -> bool:
        return self.quote_char is not None

    @property
    def balanced(self) -> bool:
        return self.quote_char is None and self.depth == 0


def _is_quoted(text: str) -> bool:
    text = text.strip()
    return len(text) >= 2 and text[0] in QUOTE_CHARS and text[-1] == text[0]


def split_top_level(
    text: str, separator: str, quoted_colon: bool = False
) -> Tuple[List[str], ScanState]:
    """Split ``text`` on ``separator`` outside quotes and parentheses.

    Args:
        text: The string to split
        separator: Single split character (``|`` or ``,``)
        quoted_colon: Also split on a ``:`` that directly follows a fully
            quoted piece, as in ``replace:"a":"b"``

    Returns:
        Tuple of (trimmed non-empty pieces, final scanner state)
    """
    pieces: List[str] = []
    current: List[str] = []
    state = ScanState()

    for i, char in enumerate(text):
        escaped = i > 0 and text[i - 1] == "\\"

        if char in QUOTE_CHARS and not escaped:
            if state.quote_char is None:
                state.quote_char = char
            elif char == state.quote_char:
                state.quote_char = None
            current.append(char)
        elif char == "(" and not state.in_quotes:
            state.depth += 1
            current.append(char)
        elif char == ")" and not state.in_quotes:
            state.depth -= 1
            current.append(char)
        elif (
            not state.in_quotes
            and state.depth == 0
            and (
                char == separator
                or (char == ":" and quoted_colon and _is_quoted("".join(current)))
            )
        ):
            piece = "".join(current).strip()
            if piece:
                pieces.append(piece)
            current = []
        else:
            current.append(char)

    piece = "".join(current).strip()
    if piece:
        pieces.append(piece)

    return pieces, state


def unquote(text: str) -> str:
    """Remove one matching pair of wrapping quotes, if present.

    Escaped quotes inside the string are left untouched.
    """
    if _is_quoted(text):
        return text[1:-1]
    return text


def find_name_separator(segment: str) -> int:
    """Return the index of the first unescaped ``:`` outside quotes, or -1."""
    quote_char = None

    for i, char in enumerate(segment):
        if i > 0 and segment[i - 1] == "\\":
            continue
        if char in QUOTE_CHARS:
            if quote_char is None:
                quote_char = char
            elif char == quote_char:
                quote_char = None
        elif char == ":" and quote_char is None:
            return i

    return -1


def parse_filter_args(raw: str) -> Tuple[str, ...]:
    """Parse the argument text of a filter call.

    Args:
        raw: Text after the ``name:`` separator, e.g. ``"-",""`` or
            ``("a":"b")``

    Returns:
        Tuple of unquoted argument strings
    """
    raw = raw.strip()
    if raw.startswith("(") and raw.endswith(")"):
        raw = raw[1:-1]

    pieces, _ = split_top_level(raw, ",", quoted_colon=True)
    return tuple(unquote(piece) for piece in pieces)


def parse_filter(segment: str) -> FilterCall:
    """Parse one ``name`` or ``name:args`` segment into a FilterCall."""
    index = find_name_separator(segment)
    if index == -1:
        return FilterCall(name=segment.strip())

    name = segment[:index].strip()
    return FilterCall(name=name, args=parse_filter_args(segment[index + 1 :]))


def parse_expression(body: str) -> Expression:
    """Parse a trimmed placeholder body into an Expression.

    Args:
        body: Text between ``{{`` and ``}}``

    Returns:
        Expression with the variable path and filter chain
    """
    segments, _ = split_top_level(body, "|")
    if not segments:
        return Expression(variable="")

    return Expression(
        variable=segments[0],
        filters=tuple(parse_filter(segment) for segment in segments[1:]),
    )


def scan_state(body: str) -> ScanState:
    """Return the scanner state at the end of a placeholder body."""
    _, state = split_top_level(body, "|")
    return state
