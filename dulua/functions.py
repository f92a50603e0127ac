#!/usr/bin/env python3
"""
functions.py

Compile-time helper functions. A call such as

    local html = library.embedFile("ui/panel.html")

is replaced, before the script ever runs, by a Lua string literal holding the
file's content. Expansion is purely textual, so every argument must be a
literal (string, number, true, false or nil).
"""
import inspect
import re
from dataclasses import dataclass
from typing import Callable, Dict, List

from .context import Frame
from .errors import HelperArgumentError, MissingFileError
from .lexer import Lexer, Span, in_code

LUA_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t",
    "v": "\v", "\\": "\\", '"': '"', "'": "'", "\n": "\n",
}


@dataclass
class HelperCall:
    frame: Frame
    line: int
    name: str


def lua_string_value(literal: str) -> str:
    """Decode the source text of a Lua string literal."""
    if literal.startswith("["):
        level = literal.index("[", 1) - 1
        body = literal[level + 2:-(level + 2)]
        if body.startswith("\r\n"):
            return body[2:]
        if body.startswith(("\n", "\r")):
            return body[1:]
        return body

    body = literal[1:-1]
    out = []
    i = 0
    while i < len(body):
        c = body[i]
        if c != "\\":
            out.append(c)
            i += 1
            continue
        esc = body[i + 1]
        if esc in LUA_ESCAPES:
            out.append(LUA_ESCAPES[esc])
            i += 2
        elif esc == "z":
            i += 2
            while i < len(body) and body[i] in " \t\r\n\v\f":
                i += 1
        elif esc == "x":
            out.append(chr(int(body[i + 2:i + 4], 16)))
            i += 4
        elif esc == "u":
            end = body.index("}", i)
            out.append(chr(int(body[i + 3:end], 16)))
            i = end + 1
        elif esc.isdigit():
            digits = re.match(r"\d{1,3}", body[i + 1:]).group()
            out.append(chr(int(digits)))
            i += 1 + len(digits)
        else:
            out.append(esc)
            i += 2
    return "".join(out)


def lua_long_string(content: str) -> str:
    """Quote `content` as a Lua long string, picking a bracket level it cannot close early."""
    level = 0
    while True:
        close = "]" + "=" * level + "]"
        if (content + close).find(close) == len(content):
            break
        level += 1
    opener = "[" + "=" * level + "["
    prefix = "\n" if content.startswith(("\n", "\r")) else ""
    return f"{opener}{prefix}{content}{close}"


def embed_file(call: HelperCall, path) -> str:
    if not isinstance(path, str):
        raise HelperArgumentError(
            f"library.embedFile expects a file path string, got {path!r}",
            pos=(call.line, 1),
        )
    target = (call.frame.directory / path).resolve()
    if not target.is_file():
        raise MissingFileError(f"Embedded file not found: {target}", pos=(call.line, 1))
    return lua_long_string(target.read_text(encoding="utf-8"))


HELPERS: Dict[str, Callable[..., str]] = {
    "embedFile": embed_file,
}

HELPER_CALL = re.compile(r"\blibrary\.(" + "|".join(HELPERS) + r")\s*\(")


def _literal_value(text: str, kind: str):
    if kind == "string":
        return lua_string_value(text)
    if kind == "number":
        try:
            return int(text, 0)
        except ValueError:
            return float(text)
    return {"true": True, "false": False, "nil": None}[text]


def _parse_arguments(line: str, start: int, call: HelperCall):
    """
    Read the literal arguments of a helper call whose '(' ends just before
    `start`. Returns (values, index just past the closing ')').
    """
    args: List[list] = [[]]
    depth = 0
    lexer = Lexer(line[start:], strict=False)
    for kind, lo, hi in lexer.lexemes():
        text = line[start + lo:start + hi]
        if kind == "comment":
            break
        if depth == 0 and text == ")":
            if args == [[]]:
                args = []
            values = []
            for arg in args:
                if len(arg) != 1 or not _is_literal(*arg[0]):
                    source = " ".join(t for t, _ in arg) or "<nothing>"
                    raise HelperArgumentError(
                        f"library.{call.name} only accepts literal arguments, got '{source}'",
                        pos=(call.line, 1),
                    )
                values.append(_literal_value(*arg[0]))
            return values, start + hi
        if text in ("(", "[", "{"):
            depth += 1
        elif text in (")", "]", "}"):
            depth -= 1
        if depth == 0 and text == ",":
            args.append([])
        else:
            args[-1].append((text, kind))
    raise HelperArgumentError(
        f"library.{call.name} call must be closed on the same line",
        pos=(call.line, 1),
    )


def _is_literal(text: str, kind: str) -> bool:
    return kind in ("string", "number") or text in ("true", "false", "nil")


def expand_helpers(line: str, spans: List[Span], frame: Frame, line_number: int) -> str:
    out = []
    cursor = 0
    for m in HELPER_CALL.finditer(line):
        if m.start() < cursor or not in_code(spans, m.start()):
            continue
        call = HelperCall(frame, line_number, m.group(1))
        values, end = _parse_arguments(line, m.end(), call)
        out.append(line[cursor:m.start()])
        helper = HELPERS[call.name]
        try:
            inspect.signature(helper).bind(call, *values)
        except TypeError:
            raise HelperArgumentError(
                f"library.{call.name} called with {len(values)} argument(s)",
                pos=(line_number, 1),
            ) from None
        out.append(helper(call, *values))
        cursor = end
    out.append(line[cursor:])
    return "".join(out)

