"""
Conduit - Tool-call syntax embedded in model output.

The model asks for a tool by writing a call anywhere in its reply::

    @file_operations(operation: "write", path: "/tmp/t.txt", content: "X")

Grammar:

    call     := '@' IDENT '(' params ')'
    IDENT    := word characters
    params   := [ segment ( ',' segment )* ]
    segment  := piece*              (split into key/value on the first top-level ':')
    piece    := QUOTED | GROUP | ESCAPE | CHAR
    QUOTED   := '"' ( '\\' ANY | [^"\\] )* '"'
    GROUP    := '(' piece* ')'      (parentheses nest and must balance)
    ESCAPE   := '\\' ANY

A call ends at the ``)`` matching its opening parenthesis. Commas, colons
and parentheses inside a quoted string or a nested group are literal. A
candidate whose parentheses or quotes never close is not a call; scanning
resumes right after its ``@``.
"""

import re
from typing import Mapping, Optional

from .models import ToolInvocation

_IDENT = re.compile(r"\w+")

# Characters a backslash escapes in unquoted text. Any other backslash is
# kept literally so Windows paths survive unquoted.
_BARE_ESCAPABLE = frozenset('()",:\\')
_QUOTED_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def _skip_quoted(text: str, start: int) -> Optional[int]:
    """Return the index just past the quoted string opening at ``start``."""
    i = start + 1
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
        elif c == '"':
            return i + 1
        else:
            i += 1
    return None


def _scan_call(text: str, at: int) -> Optional[tuple[str, str, int]]:
    """
    Try to read a call whose ``@`` sits at ``at``.

    Returns (name, raw_parameters, end_index) or None.
    """
    match = _IDENT.match(text, at + 1)
    if match is None:
        return None
    name = match.group(0)
    i = match.end()
    n = len(text)
    if i >= n or text[i] != "(":
        return None

    params_start = i + 1
    depth = 1
    i = params_start
    while i < n:
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            end = _skip_quoted(text, i)
            if end is None:
                return None
            i = end
            continue
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return name, text[params_start:i], i + 1
        i += 1
    return None


def extract_tool_calls(text: str) -> list[ToolInvocation]:
    """Find every tool call in ``text``, in left-to-right order."""
    invocations: list[ToolInvocation] = []
    if not text:
        return invocations

    i = 0
    while True:
        at = text.find("@", i)
        if at < 0:
            break
        scanned = _scan_call(text, at)
        if scanned is None:
            i = at + 1
            continue
        name, raw, end = scanned
        invocations.append(
            ToolInvocation(tool_name=name, raw_parameters=raw, parameters=parse_parameters(raw))
        )
        i = end
    return invocations


def extract(text: str) -> list[tuple[str, str]]:
    """(tool name, raw parameter string) pairs in source order."""
    return [(inv.tool_name, inv.raw_parameters) for inv in extract_tool_calls(text)]


# ---------------------------------------------------------------------------
# Parameter decoding
# ---------------------------------------------------------------------------


def _split_top_level(raw: str, separator: str, maxsplit: int = -1) -> list[str]:
    """Split on ``separator`` outside quotes, groups and escapes."""
    parts: list[str] = []
    depth = 0
    last = 0
    i = 0
    n = len(raw)
    while i < n:
        c = raw[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            end = _skip_quoted(raw, i)
            i = n if end is None else end
            continue
        if c == "(":
            depth += 1
        elif c == ")" and depth > 0:
            depth -= 1
        elif c == separator and depth == 0:
            parts.append(raw[last:i])
            last = i + 1
            if maxsplit > 0 and len(parts) >= maxsplit:
                break
        i += 1
    parts.append(raw[last:])
    return parts


def _unescape(text: str, quoted: bool) -> str:
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\" and i + 1 < n:
            nxt = text[i + 1]
            if quoted:
                out.append(_QUOTED_ESCAPES.get(nxt, nxt))
                i += 2
                continue
            if nxt in _BARE_ESCAPABLE:
                out.append(nxt)
                i += 2
                continue
        out.append(c)
        i += 1
    return "".join(out)


def _clean(token: str) -> str:
    """Trim a key or value and remove one layer of double quotes."""
    token = token.strip()
    if token.startswith('"'):
        end = _skip_quoted(token, 0)
        if end == len(token):
            return _unescape(token[1:-1], quoted=True)
        if len(token) >= 2 and token.endswith('"'):
            return token[1:-1]
    return _unescape(token, quoted=False)


def parse_parameters(raw: str) -> dict[str, str]:
    """
    Decode a raw parameter string into a string-to-string mapping.

    Segments without a top-level colon, or with an empty key, are dropped.
    Later duplicates of a key win. Values are never coerced; numeric or
    boolean interpretation is up to the tool.
    """
    parameters: dict[str, str] = {}
    if not raw or not raw.strip():
        return parameters
    for segment in _split_top_level(raw, ","):
        pieces = _split_top_level(segment, ":", maxsplit=1)
        if len(pieces) < 2:
            continue
        key = _clean(pieces[0])
        if not key:
            continue
        parameters[key] = _clean(pieces[1])
    return parameters


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_parameters(parameters: Mapping[str, str]) -> str:
    """Render parameters so that ``parse_parameters`` gives them back."""
    rendered = []
    for key, value in parameters.items():
        key_text = key if _IDENT.fullmatch(key) else _quote(key)
        rendered.append(f"{key_text}: {_quote(str(value))}")
    return ", ".join(rendered)


def format_tool_call(name: str, parameters: Mapping[str, str]) -> str:
    """Render the canonical ``@name(key: "value", ...)`` form."""
    if not _IDENT.fullmatch(name):
        raise ValueError(f"Invalid tool name: {name!r}")
    return f"@{name}({format_parameters(parameters)})"
