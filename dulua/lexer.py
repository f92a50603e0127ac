#!/usr/bin/env python3
"""
lexer.py

Lua tokenizer. Besides producing the token stream consumed by the syntax
validator, it classifies source text into code, string and comment spans so
the rewriting passes can tell a real `require(...)` call from one that only
appears inside a comment or a string literal.
"""
import bisect
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import LuaSyntaxError

KEYWORDS = {
    "and", "break", "do", "else", "elseif", "end", "false", "for",
    "function", "goto", "if", "in", "local", "nil", "not", "or",
    "repeat", "return", "then", "true", "until", "while",
}

PUNCTUATION = {
    "(": "LPAREN", ")": "RPAREN",
    "{": "LBRACE", "}": "RBRACE",
    "[": "LBRACKET", "]": "RBRACKET",
    ";": "SEMI", ",": "COMMA",
    ".": "DOT", ":": "COLON", "::": "DCOLON",
    "=": "ASSIGN", "...": "ELLIPSIS",
}

OPERATORS = {
    "+", "-", "*", "/", "//", "%", "^", "#", "&", "~", "|", "<<", ">>",
    "..", "==", "~=", "<", "<=", ">", ">=",
}

# longest first, so "..." wins over ".." and "."
SYMBOLS = sorted(set(PUNCTUATION) | OPERATORS, key=len, reverse=True)

DEC_NUMBER = re.compile(r"(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
HEX_NUMBER = re.compile(r"0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)([pP][+-]?\d+)?")

# A lexer state at the start of a line:
#   None                          plain code
#   ("long", kind, level)         inside a [==[ ... ]==] string or comment
#   ("short", quote)              inside a quoted string continued with \ or \z
LexState = Optional[tuple]


@dataclass
class Token:
    kind: str
    text: str
    line: int
    col: int
    pos: int

    def __str__(self):
        return f"{self.kind}({self.text!r})@{self.line}:{self.col}"


@dataclass
class Span:
    kind: str  # "string" or "comment"
    start: int
    stop: int


class Lexer:
    def __init__(self, source: str, strict: bool = True):
        self.src = source
        self.strict = strict
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        # set when the text ends inside an unclosed string or comment
        self.open_state: LexState = None

    def position(self, offset: int) -> Tuple[int, int]:
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def error(self, message: str, offset: int):
        line, col = self.position(offset)
        raise LuaSyntaxError(message, line, col)

    def _long_level(self, i: int) -> Optional[int]:
        """Level of a long bracket opening at i ('[', '=' * level, '['), if any."""
        j = i + 1
        while j < len(self.src) and self.src[j] == "=":
            j += 1
        if j < len(self.src) and self.src[j] == "[":
            return j - i - 1
        return None

    def _read_long(self, i: int, level: int, kind: str, opened_at: int) -> int:
        close = "]" + "=" * level + "]"
        end = self.src.find(close, i)
        if end < 0:
            if self.strict:
                what = "comment" if kind == "comment" else "long string"
                self.error(f"unfinished {what}", opened_at)
            self.open_state = ("long", kind, level)
            return len(self.src)
        return end + len(close)

    def _read_short(self, i: int, quote: str, opened_at: int) -> int:
        src, n = self.src, len(self.src)
        while i < n:
            c = src[i]
            if c == quote:
                return i + 1
            if c == "\\":
                if i + 1 < n and src[i + 1] == "z":
                    i += 2
                    while i < n and src[i] in " \t\r\n\v\f":
                        i += 1
                else:
                    i += 2
                continue
            if c == "\n":
                if self.strict:
                    self.error("unfinished string", opened_at)
                return i
            i += 1
        if self.strict:
            self.error("unfinished string", opened_at)
        self.open_state = ("short", quote)
        return n

    def _read_number(self, i: int) -> int:
        src, n = self.src, len(self.src)
        start = i
        exponents = "pP" if src.startswith(("0x", "0X"), i) else "eE"
        while i < n:
            c = src[i]
            if c in exponents and i + 1 < n and src[i + 1] in "+-":
                i += 2
            elif c.isalnum() or c in "._":
                i += 1
            else:
                break
        text = src[start:i]
        pattern = HEX_NUMBER if exponents == "pP" else DEC_NUMBER
        if self.strict and not pattern.fullmatch(text):
            self.error(f"malformed number near '{text}'", start)
        return i

    def lexemes(self, state: LexState = None):
        """
        Yield (kind, start, stop) for every lexeme, whitespace excluded.

        kind is one of "comment", "string", "number", "name" or "symbol".
        `state` resumes scanning inside a construct left open by a previous
        line (see line_states).
        """
        src, n = self.src, len(self.src)
        i = 0
        self.open_state = None
        if state is not None:
            if state[0] == "long":
                i = self._read_long(0, state[2], state[1], 0)
                yield state[1], 0, i
            else:
                i = self._read_short(0, state[1], 0)
                yield "string", 0, i

        while i < n:
            c = src[i]
            if c in " \t\r\n\v\f":
                i += 1
                continue
            start = i
            if src.startswith("--", i):
                level = self._long_level(i + 2) if src.startswith("[", i + 2) else None
                if level is not None:
                    i = self._read_long(i + level + 4, level, "comment", start)
                else:
                    end = src.find("\n", i)
                    i = n if end < 0 else end
                yield "comment", start, i
                continue
            if c == "[":
                level = self._long_level(i)
                if level is not None:
                    i = self._read_long(i + level + 2, level, "string", start)
                    yield "string", start, i
                    continue
            if c in "'\"":
                i = self._read_short(i + 1, c, start)
                yield "string", start, i
                continue
            if c.isdigit() or (c == "." and i + 1 < n and src[i + 1].isdigit()):
                i = self._read_number(i)
                yield "number", start, i
                continue
            if c.isalpha() or c == "_":
                while i < n and (src[i].isalnum() or src[i] == "_"):
                    i += 1
                yield "name", start, i
                continue
            for sym in SYMBOLS:
                if src.startswith(sym, i):
                    i += len(sym)
                    yield "symbol", start, i
                    break
            else:
                if self.strict:
                    self.error(f"unexpected symbol near '{c}'", start)
                i += 1
                yield "symbol", start, i

    def tokenize(self) -> List[Token]:
        tokens = []
        for kind, start, stop in self.lexemes():
            if kind == "comment":
                continue
            text = self.src[start:stop]
            if kind == "name":
                kind = f"{text.upper()}_KW" if text in KEYWORDS else "IDENT"
            elif kind == "number":
                kind = "NUMBER"
            elif kind == "string":
                kind = "STRING"
            else:
                kind = PUNCTUATION.get(text, "OP")
            line, col = self.position(start)
            tokens.append(Token(kind, text, line, col, start))
        line, col = self.position(len(self.src))
        tokens.append(Token("EOF", "", line, col, len(self.src)))
        return tokens


def tokenize(source: str) -> List[Token]:
    return Lexer(source).tokenize()


def classify(text: str, state: LexState = None) -> List[Span]:
    """String and comment spans of `text`; everything else is code."""
    lexer = Lexer(text, strict=False)
    return [
        Span(kind, start, stop)
        for kind, start, stop in lexer.lexemes(state)
        if kind in ("string", "comment")
    ]


def in_code(spans: List[Span], offset: int) -> bool:
    return not any(span.start <= offset < span.stop for span in spans)


def _bracket_level(opener: str) -> int:
    rest = opener[1:]
    return len(rest) - len(rest.lstrip("="))


def line_states(source: str) -> List[LexState]:
    """The lexer state at the start of every line of `source`."""
    lexer = Lexer(source, strict=False)
    states: List[LexState] = [None] * len(lexer._line_starts)
    for kind, start, stop in lexer.lexemes():
        if kind not in ("string", "comment"):
            continue
        first = bisect.bisect_right(lexer._line_starts, start)
        last = bisect.bisect_left(lexer._line_starts, stop)
        if last <= first:
            continue
        text = source[start:stop]
        if text.startswith("--"):
            state = ("long", "comment", _bracket_level(text[2:]))
        elif text.startswith("["):
            state = ("long", "string", _bracket_level(text))
        else:
            state = ("short", text[0])
        for index in range(first, last):
            states[index] = state
    return states
