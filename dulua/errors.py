#!/usr/bin/env python3
"""
errors.py

Exception types raised by the dulua compiler. Every fatal condition derives
from CompileError, so callers can abort a build with a single except clause.
"""


class CompileError(Exception):
    def __init__(self, message, pos=None):
        super().__init__(message)
        self.message = message
        self.pos = pos

    def __str__(self):
        if self.pos:
            return f"{self.pos[0]}:{self.pos[1]}: {self.message}"
        return self.message


class LuaSyntaxError(CompileError):
    """Source text is not valid Lua. `pos` is the 1-based (line, col)."""

    def __init__(self, message, line, col, source_line=None):
        super().__init__(message, pos=(line, col))
        self.line = line
        self.col = col
        self.source_line = source_line


class DirectiveError(CompileError):
    pass


class LibraryNotFoundError(CompileError):
    pass


class CircularRequireError(CompileError):
    pass


class MissingFileError(CompileError):
    pass


class HelperArgumentError(CompileError):
    pass


class NameCollisionError(CompileError):
    pass


class ProjectConfigError(CompileError):
    pass
