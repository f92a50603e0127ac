from .errors import LuaSyntaxError
from .lexer import tokenize


class Parser:
    """
    Recursive-descent recognizer for Lua 5.4 chunks.

    It builds no tree: the compiler only needs to know that a chunk is
    syntactically valid, and where the first error is when it is not.
    """

    # (left, right) binding power, as in lparser.c
    OP_PRECEDENCE = {
        "or":  (1, 1),
        "and": (2, 2),
        "<":   (3, 3), ">":  (3, 3), "<=": (3, 3),
        ">=":  (3, 3), "~=": (3, 3), "==": (3, 3),
        "|":   (4, 4),
        "~":   (5, 5),
        "&":   (6, 6),
        "<<":  (7, 7), ">>": (7, 7),
        "..":  (9, 8),
        "+":   (10, 10), "-": (10, 10),
        "*":   (11, 11), "/": (11, 11), "//": (11, 11), "%": (11, 11),
        "^":   (14, 13),
    }
    UNARY_PRIORITY = 12

    BLOCK_END = ("EOF", "END_KW", "ELSE_KW", "ELSEIF_KW", "UNTIL_KW")

    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0
        self._last_was_call = False

    def peek(self):
        return self.tokens[self.pos].kind

    def peek_token(self):
        return self.tokens[self.pos]

    def next(self):
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def error(self, message, tok=None):
        tok = tok or self.peek_token()
        near = tok.text if tok.kind != "EOF" else "<eof>"
        raise LuaSyntaxError(f"{message} near '{near}'", tok.line, tok.col)

    def expect(self, kind, what=None):
        if self.peek() != kind:
            self.error(f"'{what or kind}' expected")
        return self.next()

    def expect_match(self, kind, what, opener, opener_tok):
        """Closing keyword/bracket, reporting where the opener was when missing."""
        if self.peek() != kind:
            if opener_tok.line == self.peek_token().line:
                self.error(f"'{what}' expected")
            self.error(f"'{what}' expected (to close '{opener}' at line {opener_tok.line})")
        return self.next()

    def parse(self):
        self.parse_block()
        if self.peek() != "EOF":
            self.error("'<eof>' expected")

    def parse_block(self):
        while self.peek() not in self.BLOCK_END:
            if self.peek() == "RETURN_KW":
                self.parse_return()
                return
            self.parse_stmt()

    def parse_return(self):
        self.expect("RETURN_KW")
        if self.peek() not in self.BLOCK_END and self.peek() != "SEMI":
            self.parse_exprlist()
        if self.peek() == "SEMI":
            self.next()
        if self.peek() not in self.BLOCK_END:
            self.error("'<eof>' expected")

    def parse_stmt(self):
        tok = self.peek_token()
        kind = tok.kind

        if kind == "SEMI":
            self.next()
            return
        if kind == "IF_KW":
            return self.parse_if()
        if kind == "WHILE_KW":
            self.next()
            self.parse_expr()
            self.expect("DO_KW", "do")
            self.parse_block()
            self.expect_match("END_KW", "end", "while", tok)
            return
        if kind == "DO_KW":
            self.next()
            self.parse_block()
            self.expect_match("END_KW", "end", "do", tok)
            return
        if kind == "FOR_KW":
            return self.parse_for()
        if kind == "REPEAT_KW":
            self.next()
            self.parse_block()
            self.expect_match("UNTIL_KW", "until", "repeat", tok)
            self.parse_expr()
            return
        if kind == "FUNCTION_KW":
            self.next()
            # funcname: Name {'.' Name} [':' Name]
            self.expect("IDENT", "<name>")
            while self.peek() == "DOT":
                self.next()
                self.expect("IDENT", "<name>")
            if self.peek() == "COLON":
                self.next()
                self.expect("IDENT", "<name>")
            self.parse_funcbody(tok)
            return
        if kind == "LOCAL_KW":
            self.next()
            if self.peek() == "FUNCTION_KW":
                fn_tok = self.next()
                self.expect("IDENT", "<name>")
                self.parse_funcbody(fn_tok)
                return
            self.parse_local_names()
            if self.peek() == "ASSIGN":
                self.next()
                self.parse_exprlist()
            return
        if kind == "DCOLON":
            self.next()
            self.expect("IDENT", "<name>")
            self.expect("DCOLON", "::")
            return
        if kind == "BREAK_KW":
            self.next()
            return
        if kind == "GOTO_KW":
            self.next()
            self.expect("IDENT", "<name>")
            return

        self.parse_expr_stmt()

    def parse_local_names(self):
        # attnamelist: Name attrib {',' Name attrib}
        while True:
            self.expect("IDENT", "<name>")
            if self.peek() == "OP" and self.peek_token().text == "<":
                self.next()
                attrib = self.expect("IDENT", "<name>")
                if attrib.text not in ("const", "close"):
                    self.error(f"unknown attribute '{attrib.text}'", attrib)
                if not (self.peek() == "OP" and self.peek_token().text == ">"):
                    self.error("'>' expected")
                self.next()
            if self.peek() != "COMMA":
                return
            self.next()

    def parse_if(self):
        tok = self.expect("IF_KW")
        self.parse_expr()
        self.expect("THEN_KW", "then")
        self.parse_block()
        while self.peek() == "ELSEIF_KW":
            self.next()
            self.parse_expr()
            self.expect("THEN_KW", "then")
            self.parse_block()
        if self.peek() == "ELSE_KW":
            self.next()
            self.parse_block()
        self.expect_match("END_KW", "end", "if", tok)

    def parse_for(self):
        tok = self.expect("FOR_KW")
        self.expect("IDENT", "<name>")
        if self.peek() == "ASSIGN":
            # numeric for: Name '=' exp ',' exp [',' exp]
            self.next()
            self.parse_expr()
            self.expect("COMMA", ",")
            self.parse_expr()
            if self.peek() == "COMMA":
                self.next()
                self.parse_expr()
        elif self.peek() in ("COMMA", "IN_KW"):
            # generic for: namelist 'in' explist
            while self.peek() == "COMMA":
                self.next()
                self.expect("IDENT", "<name>")
            self.expect("IN_KW", "in")
            self.parse_exprlist()
        else:
            self.error("'=' or 'in' expected")
        self.expect("DO_KW", "do")
        self.parse_block()
        self.expect_match("END_KW", "end", "for", tok)

    def parse_funcbody(self, fn_tok):
        self.expect("LPAREN", "(")
        if self.peek() != "RPAREN":
            while True:
                if self.peek() == "ELLIPSIS":
                    self.next()
                    break
                self.expect("IDENT", "<name>")
                if self.peek() != "COMMA":
                    break
                self.next()
        self.expect("RPAREN", ")")
        self.parse_block()
        self.expect_match("END_KW", "end", "function", fn_tok)

    def parse_expr_stmt(self):
        # exprstat: func | assignment
        assignable = self.parse_suffixed()
        if self.peek() in ("ASSIGN", "COMMA"):
            while True:
                if not assignable:
                    self.error("syntax error")
                if self.peek() != "COMMA":
                    break
                self.next()
                assignable = self.parse_suffixed()
            self.expect("ASSIGN", "=")
            self.parse_exprlist()
            return
        if not self._last_was_call:
            self.error("syntax error")

    def parse_exprlist(self):
        self.parse_expr()
        while self.peek() == "COMMA":
            self.next()
            self.parse_expr()

    def parse_expr(self, limit=0):
        tok = self.peek_token()
        if tok.kind == "NOT_KW" or (tok.kind == "OP" and tok.text in ("-", "#", "~")):
            self.next()
            self.parse_expr(self.UNARY_PRIORITY)
        else:
            self.parse_simple()

        while True:
            op = self._binop()
            if op is None:
                return
            left, right = self.OP_PRECEDENCE[op]
            if left <= limit:
                return
            self.next()
            self.parse_expr(right)

    def _binop(self):
        tok = self.peek_token()
        if tok.kind == "AND_KW":
            return "and"
        if tok.kind == "OR_KW":
            return "or"
        if tok.kind == "OP" and tok.text in self.OP_PRECEDENCE:
            return tok.text
        return None

    def parse_simple(self):
        kind = self.peek()
        if kind in ("NUMBER", "STRING", "NIL_KW", "TRUE_KW", "FALSE_KW", "ELLIPSIS"):
            self.next()
            return
        if kind == "LBRACE":
            self.parse_table()
            return
        if kind == "FUNCTION_KW":
            self.parse_funcbody(self.next())
            return
        self.parse_suffixed()

    def parse_primary(self):
        tok = self.peek_token()
        if tok.kind == "IDENT":
            self.next()
            return
        if tok.kind == "LPAREN":
            self.next()
            self.parse_expr()
            self.expect_match("RPAREN", ")", "(", tok)
            return
        self.error("unexpected symbol")

    def parse_suffixed(self):
        """
        Parse a prefix expression followed by any field, index or call suffixes.

        Returns True when the expression can be assigned to (a name, field or
        index) and records in `_last_was_call` whether it ended with a call.
        """
        self.parse_primary()
        assignable = self.tokens[self.pos - 1].kind == "IDENT"
        self._last_was_call = False
        while True:
            kind = self.peek()
            if kind == "DOT":
                self.next()
                self.expect("IDENT", "<name>")
                assignable, self._last_was_call = True, False
            elif kind == "LBRACKET":
                self.next()
                self.parse_expr()
                self.expect("RBRACKET", "]")
                assignable, self._last_was_call = True, False
            elif kind == "COLON":
                self.next()
                self.expect("IDENT", "<name>")
                self.parse_args()
                assignable, self._last_was_call = False, True
            elif kind in ("LPAREN", "STRING", "LBRACE"):
                self.parse_args()
                assignable, self._last_was_call = False, True
            else:
                return assignable

    def parse_args(self):
        tok = self.peek_token()
        if tok.kind == "STRING":
            self.next()
        elif tok.kind == "LBRACE":
            self.parse_table()
        elif tok.kind == "LPAREN":
            self.next()
            if self.peek() != "RPAREN":
                self.parse_exprlist()
            self.expect_match("RPAREN", ")", "(", tok)
        else:
            self.error("function arguments expected")

    def parse_table(self):
        tok = self.expect("LBRACE", "{")
        while self.peek() != "RBRACE":
            if self.peek() == "LBRACKET":
                self.next()
                self.parse_expr()
                self.expect("RBRACKET", "]")
                self.expect("ASSIGN", "=")
                self.parse_expr()
            elif self.peek() == "IDENT" and self.tokens[self.pos + 1].kind == "ASSIGN":
                self.next()
                self.next()
                self.parse_expr()
            else:
                self.parse_expr()
            if self.peek() in ("COMMA", "SEMI"):
                self.next()
                continue
            break
        self.expect_match("RBRACE", "}", "{", tok)


def validate(source: str) -> None:
    """Raise LuaSyntaxError if `source` is not a valid Lua chunk."""
    Parser(tokenize(source)).parse()
