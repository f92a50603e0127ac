#!/usr/bin/env python3
"""
directives.py

Compile-time conditional blocks:

    ---@if NAME [literal]
    ...code kept when the build variable NAME matches...
    ---@else
    ...code kept otherwise...
    ---@end

The literal is a JSON scalar (true, 42, "prod"); anything that does not parse
as one is compared as plain text. Without a literal the block tests NAME for
truthiness. Blocks do not nest.
"""
import json
import re
from typing import Mapping, Optional

from .errors import DirectiveError
from .project import Variable

DIRECTIVE_BLOCK = re.compile(
    r"^[ \t]*---@if[ \t]+(\w+)([^\n]*)\n(?:(.*?)\n)??[ \t]*---@end\b[^\n]*",
    re.M | re.S,
)
ELSE_SEPARATOR = re.compile(r"^[ \t]*---@else\b[^\n]*$", re.M)
IF_OPENER = re.compile(r"^[ \t]*---@if\b", re.M)


def parse_literal(text: str) -> Optional[Variable]:
    """None when no literal is given; a bool, number or string otherwise."""
    text = text.strip()
    if not text:
        return None
    try:
        value = json.loads(text)
    except ValueError:
        return text
    if isinstance(value, (bool, int, float, str)):
        return value
    return text


def matches(expected: Optional[Variable], actual: Optional[Variable]) -> bool:
    if expected is None:
        return bool(actual)
    if isinstance(expected, bool) or isinstance(actual, bool):
        return isinstance(expected, bool) and isinstance(actual, bool) and expected == actual
    if isinstance(expected, (int, float)):
        return isinstance(actual, (int, float)) and expected == actual
    return isinstance(actual, str) and expected == actual


def expand_directives(source: str, variables: Mapping[str, Variable]) -> str:
    def replace(m):
        name, literal, body = m.group(1), m.group(2), m.group(3) or ""
        if IF_OPENER.search(body):
            line = source.count("\n", 0, m.start()) + 1
            raise DirectiveError(
                f"---@if {name} contains another ---@if block; directives cannot be nested",
                pos=(line, 1),
            )
        parts = ELSE_SEPARATOR.split(body, maxsplit=1)
        when_true = parts[0]
        when_false = parts[1] if len(parts) > 1 else ""

        if matches(parse_literal(literal), variables.get(name)):
            return when_true.strip()
        return when_false.strip()

    return DIRECTIVE_BLOCK.sub(replace, source)
