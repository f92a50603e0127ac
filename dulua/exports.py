#!/usr/bin/env python3
"""
exports.py

`--export` declarations expose a variable to the in-game editor:

    local speed = 100 --export: Maximum speed

Minifiers strip comments and rename locals, so the compiler re-encodes the
declaration with a marker carrying the symbol name:

    local speed = 100 --[[@export:speed]] --export: Maximum speed

The output loader reads the marker back with `find_exports`.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .lexer import classify

EXPORT_DECLARATION = re.compile(r"^(\s*)(local\s+)?([A-Za-z_]\w*)\s*=\s*(.+?)\s*$")
EXPORT_COMMENT = re.compile(r"^--\s*export\b\s*(?::\s*(.*?))?\s*$")
ENCODED_EXPORT = re.compile(
    r"^\s*(?:local\s+)?([A-Za-z_]\w*)\s*=\s*(.+?)\s*--\[\[@export:(\w+)\]\]\s*--export(?::\s*(.*))?$"
)


@dataclass(frozen=True)
class Export:
    name: str
    value: str
    description: str = ""


def _split_export(line: str) -> Optional[Tuple[str, ...]]:
    """
    (indent, local, name, value, description) of an export statement. The
    marker must be the line's first comment, so `--export` inside a string
    literal never counts.
    """
    comment = next((s for s in classify(line) if s.kind == "comment"), None)
    if comment is None:
        return None
    declaration = EXPORT_DECLARATION.match(line[:comment.start])
    marker = EXPORT_COMMENT.match(line[comment.start:comment.stop])
    if not declaration or not marker:
        return None
    return declaration.groups() + marker.groups()


def has_export_statement(line: str) -> bool:
    return _split_export(line) is not None


def encode_export_statement(line: str) -> str:
    parts = _split_export(line)
    if parts is None:
        return line
    indent, local, name, value, description = parts
    encoded = f"{indent}{local or ''}{name} = {value} --[[@export:{name}]] --export"
    if description:
        encoded += f": {description}"
    return encoded


def find_exports(source: str) -> List[Export]:
    exports = []
    for line in source.split("\n"):
        m = ENCODED_EXPORT.match(line)
        if m:
            name, value, _, description = m.groups()
            exports.append(Export(name, value, description or ""))
    return exports
