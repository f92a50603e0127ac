#!/usr/bin/env python3
"""
transformer.py

Runs one Lua file through the compiler pipeline: directive expansion, the
trailing-decimal fix, syntax validation, then a line-by-line rewrite of export
statements, require calls and compile-time helper calls.
"""
import logging
import re
from typing import TYPE_CHECKING

from .directives import expand_directives
from .errors import DirectiveError, HelperArgumentError, LuaSyntaxError, MissingFileError
from .exports import encode_export_statement, has_export_statement
from .functions import expand_helpers
from .lexer import Lexer, classify, in_code, line_states
from .parser import validate

if TYPE_CHECKING:
    from .compiler import BuildSession

INLINE_REQUIRE_GLOBAL = "_REQ"

REQUIRE_CALL = re.compile(r"\brequire\s*\(\s*(['\"])([^'\"\n]+)\1\s*\)")
INLINE_REQUIRE_LINE = re.compile(r"^\s*" + INLINE_REQUIRE_GLOBAL + r"\['[^']*'\]\s*$")
TRAILING_QUESTION_MARK = re.compile(r"([0-9])\?$")


def ends_with_question_marked_number(line: str, state) -> bool:
    """True when `line` ends in a numeric literal in code followed by '?'."""
    if not TRAILING_QUESTION_MARK.search(line):
        return False
    for kind, start, stop in Lexer(line, strict=False).lexemes(state):
        if kind == "number" and stop == len(line) - 1:
            return True
    return False


class SourceTransformer:
    def __init__(self, session: "BuildSession"):
        self.session = session

    def transform(self, source: str) -> str:
        source = source.replace("\r\n", "\n").replace("\r", "\n")
        try:
            source = expand_directives(source, self.session.variables)
        except DirectiveError as e:
            raise self._in_file(e) from None

        # completing a decimal leaves every line's lexer state unchanged
        states = line_states(source)
        lines = source.split("\n")
        for index, line in enumerate(lines):
            lines[index] = self.complete_decimal(line, states[index], index + 1)
        source = "\n".join(lines)

        try:
            validate(source)
        except LuaSyntaxError as e:
            raise self._parse_error(e, source) from None

        for index, line in enumerate(lines):
            lines[index] = self.transform_line(line, states[index], index + 1)
        return "\n".join(lines)

    def complete_decimal(self, line: str, state, line_number: int) -> str:
        if not ends_with_question_marked_number(line, state):
            return line
        logging.warning(
            "Undefined behavior: '?' directly before a line break on a numeric "
            f"value at {self._where()}:{line_number}. Completing decimal with zero."
        )
        return TRAILING_QUESTION_MARK.sub(r"\1.0", line)

    def transform_line(self, line: str, state, line_number: int) -> str:
        if state is None and has_export_statement(line):
            line = encode_export_statement(line)

        line = self.rewrite_requires(line, state)

        try:
            line = expand_helpers(line, classify(line, state), self.session.context.current(), line_number)
        except (HelperArgumentError, MissingFileError) as e:
            raise self._in_file(e) from None

        if not self.session.build.options.preload and INLINE_REQUIRE_LINE.match(line):
            return ""
        return line

    def rewrite_requires(self, line: str, state) -> str:
        spans = classify(line, state)

        def replace(m):
            if not in_code(spans, m.start()):
                return m.group(0)
            entry = self.session.require(m.group(2))
            if entry is None:
                return m.group(0)
            if not self.session.build.options.preload:
                return f"{INLINE_REQUIRE_GLOBAL}['{entry.full_name_with_project}']"
            return f"require('{entry.full_name_with_project}')"

        return REQUIRE_CALL.sub(replace, line)

    def _where(self) -> str:
        return str(self.session.context.current().file)

    def _in_file(self, error):
        return type(error)(f"{error.message} (in file {self._where()})", pos=error.pos)

    def _parse_error(self, error: LuaSyntaxError, source: str) -> LuaSyntaxError:
        lines = source.split("\n")
        offending = lines[error.line - 1] if 0 < error.line <= len(lines) else ""
        message = "\n".join([
            f"Error parsing file {self._where()} at line {error.line}, column {error.col}:",
            error.message,
            "Problematic line:",
            offending,
        ])
        return LuaSyntaxError(message, error.line, error.col, source_line=offending)
