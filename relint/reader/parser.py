"""
  Emacs Lisp Reader, Lexer and Parser

- Streaming, lazy parsing starting at any offset
- Emits Python primitives instead of Cons cells:

    - nil, () -> Nil
    - lists -> Python list
    - dotted lists -> (list_part, tail)
    - symbols -> Symbol
    - strings -> str
    - integers and characters -> int
    - floats -> float
    - vectors, records, byte-code, char-tables -> Vector
    - quote forms -> [quote, expr], [function, expr], [`, expr] etc.
    - propertized strings #("abc" 0 1 (face bold)) -> the plain string

Forms carry no positions. Each top-level form is returned together with its
start offset; relint.reader.positions recovers positions of subforms on
demand by re-scanning the source text.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterator, NamedTuple, Optional

from relint import SExpression
from relint.types.errors import RelintReadError, RelintUnknownSyntax
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol
from relint.types.vector import Vector
from relint.reader.reader_macros import QUOTE_FORMS


WHITESPACE = " \t\n\r\f\v "
# Characters that end a symbol or number
DELIMITERS = frozenset(WHITESPACE + "()[]\";'`,")

INTEGER_RE = re.compile(r"[+-]?[0-9]+\.?\Z")
FLOAT_RE = re.compile(
    r"[+-]?(?:[0-9]*\.[0-9]+(?:e[+-]?[0-9]+)?"
    r"|[0-9]+(?:\.[0-9]*)?e(?:[+-]?[0-9]+|\+INF|\+NaN))\Z"
)
RADIX_RE = re.compile(r"#(?:([xXoObB])|([0-9]+)[rR])([+-]?[0-9A-Za-z]+)")
LABEL_RE = re.compile(r"#([0-9]+)([=#])")

SIMPLE_ESCAPES: dict[str, int] = {
    "a": 7,
    "b": 8,
    "t": 9,
    "n": 10,
    "v": 11,
    "f": 12,
    "r": 13,
    "e": 27,
    "d": 127,
}

MODIFIER_BITS: dict[str, int] = {
    "A": 1 << 22,
    "s": 1 << 23,
    "H": 1 << 24,
    "S": 1 << 25,
    "C": 1 << 26,
    "M": 1 << 27,
}

# Token types that open a structure closed by `rparen` or `rbracket`
OPENERS = frozenset({"lparen", "lbracket", "hash_paren", "record", "hash_bracket"})
CLOSERS = frozenset({"rparen", "rbracket"})
# Token types that attach to the datum that follows them
PREFIXES = frozenset({"quote", "label_def", "bool_vector", "hash_prefix"})


class Token(NamedTuple):
    type: str
    value: object
    start: int
    end: int


def _control(code: int) -> int:
    """Apply the control modifier the way the Emacs reader does."""
    base = code & ~(0x3F << 22)
    mods = code & (0x3F << 22)
    if base == ord("?"):
        return 127 | mods
    if ord("@") <= base <= ord("_") or ord("a") <= base <= ord("z"):
        return (base & 31) | mods
    return code | MODIFIER_BITS["C"]


def read_char_body(source: str, pos: int, in_string: bool) -> tuple[Optional[int], int]:
    """Read one (possibly escaped) character starting at `pos`."""
    if pos >= len(source):
        raise RelintReadError(pos, "End of file during parsing")
    if source[pos] == "\\":
        return read_escape(source, pos, in_string)
    return ord(source[pos]), pos + 1


def read_escape(source: str, pos: int, in_string: bool) -> tuple[Optional[int], int]:
    """Decode the escape sequence whose backslash is at source[pos].

    Returns (code, end). In strings, `\\<newline>` and `\\<space>` produce
    no character and return a code of None.
    """
    n = len(source)
    if pos + 1 >= n:
        raise RelintReadError(pos, "End of file during parsing")
    c = source[pos + 1]
    i = pos + 2

    if in_string and c in "\n ":
        return None, i
    if in_string and c == "s":
        return 32, i
    if c in MODIFIER_BITS and i < n and source[i] == "-":
        code, end = read_char_body(source, i + 1, in_string)
        if code is None:
            raise RelintReadError(pos, "Invalid modifier in string")
        if c == "C":
            return _control(code), end
        if c == "M" and in_string and code < 128:
            return code | 0x80, end
        return code | MODIFIER_BITS[c], end
    if c == "^":
        code, end = read_char_body(source, i, in_string)
        if code is None:
            raise RelintReadError(pos, "Invalid modifier in string")
        return _control(code), end
    if c == "s":
        return 32, i
    if c in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[c], i
    if c == "x":
        j = i
        if j < n and source[j] == "{":
            close = source.find("}", j)
            if close < 0:
                raise RelintReadError(pos, "Invalid escape character syntax")
            digits, end = source[j + 1:close], close + 1
        else:
            while j < n and source[j] in "0123456789abcdefABCDEF":
                j += 1
            digits, end = source[i:j], j
        if not digits:
            raise RelintReadError(pos, "Invalid escape character syntax")
        return int(digits, 16), end
    if c in "01234567":
        j = i
        while j < n and j < i + 2 and source[j] in "01234567":
            j += 1
        return int(source[i - 1:j], 8), j
    if c in "uU":
        width = 4 if c == "u" else 8
        digits = source[i:i + width]
        if len(digits) != width or any(d not in "0123456789abcdefABCDEF" for d in digits):
            raise RelintReadError(pos, "Non-hex character used for Unicode escape")
        return int(digits, 16), i + width
    if c == "N" and i < n and source[i] == "{":
        close = source.find("}", i)
        if close < 0:
            raise RelintReadError(pos, "Invalid character name")
        name = source[i + 1:close]
        if name.startswith("U+"):
            try:
                return int(name[2:], 16), close + 1
            except ValueError:
                raise RelintReadError(pos, f"Invalid character name {name}")
        try:
            return ord(unicodedata.lookup(name)), close + 1
        except KeyError:
            raise RelintReadError(pos, f"Invalid character name {name}")
    return ord(c), i


def _code_to_str(code: int) -> str:
    if 0 <= code <= 0x10FFFF:
        return chr(code)
    return "�"


def skip_whitespace(source: str, pos: int) -> int:
    """Skip whitespace, `;` comments and `#@N` skip-markers."""
    n = len(source)
    while pos < n:
        c = source[pos]
        if c in WHITESPACE:
            pos += 1
        elif c == ";":
            nl = source.find("\n", pos)
            pos = n if nl < 0 else nl + 1
        elif source.startswith("#@", pos):
            j = pos + 2
            while j < n and source[j].isdigit():
                j += 1
            digits = source[pos + 2:j]
            if digits == "00" or not digits:
                return n
            # The count includes the single separator after the digits.
            pos = min(n, j + int(digits))
        else:
            break
    return pos


def _scan_atom(source: str, pos: int) -> tuple[str, bool, int]:
    """Scan a symbol or number token; return (text, had_escape, end)."""
    n = len(source)
    chars: list[str] = []
    escaped = False
    while pos < n:
        c = source[pos]
        if c == "\\":
            if pos + 1 >= n:
                raise RelintReadError(pos, "End of file during parsing")
            chars.append(source[pos + 1])
            escaped = True
            pos += 2
            continue
        if c in DELIMITERS:
            break
        chars.append(c)
        pos += 1
    return "".join(chars), escaped, pos


def _scan_string(source: str, pos: int) -> tuple[str, int]:
    """Scan a string literal whose opening quote is at `pos`."""
    n = len(source)
    start = pos
    pos += 1
    chars: list[str] = []
    while True:
        if pos >= n:
            raise RelintReadError(start, "End of file during parsing")
        c = source[pos]
        if c == '"':
            return "".join(chars), pos + 1
        if c == "\\":
            code, pos = read_escape(source, pos, True)
            if code is not None:
                chars.append(_code_to_str(code))
            continue
        chars.append(c)
        pos += 1


def lex(source: str, pos: int = 0, tolerant: bool = False) -> Iterator[Token]:
    """Token generator starting at `pos`.

    With `tolerant`, an unknown `#` syntax is yielded as a `hash_prefix`
    token instead of raising, so structural skipping can step over it.
    """
    n = len(source)
    while True:
        pos = skip_whitespace(source, pos)
        if pos >= n:
            return
        start = pos
        c = source[pos]

        # ----------------------
        # Structure
        # ----------------------
        if c == "(":
            yield Token("lparen", c, start, pos + 1)
            pos += 1
            continue
        if c == ")":
            yield Token("rparen", c, start, pos + 1)
            pos += 1
            continue
        if c == "[":
            yield Token("lbracket", c, start, pos + 1)
            pos += 1
            continue
        if c == "]":
            yield Token("rbracket", c, start, pos + 1)
            pos += 1
            continue

        # ----------------------
        # Quote / backquote / unquote
        # ----------------------
        if c in "'`":
            yield Token("quote", c, start, pos + 1)
            pos += 1
            continue
        if c == ",":
            if source.startswith(",@", pos):
                yield Token("quote", ",@", start, pos + 2)
                pos += 2
            else:
                yield Token("quote", ",", start, pos + 1)
                pos += 1
            continue

        if c == '"':
            value, pos = _scan_string(source, pos)
            yield Token("string", value, start, pos)
            continue

        if c == "?":
            if pos + 1 >= n:
                raise RelintReadError(start, "End of file during parsing")
            code, pos = read_char_body(source, pos + 1, False)
            yield Token("char", code, start, pos)
            continue

        if c == "#":
            token = _lex_hash(source, pos, tolerant)
            yield token
            pos = token.end
            continue

        text, escaped, pos = _scan_atom(source, pos)
        if text == "." and not escaped:
            yield Token("dot", text, start, pos)
        else:
            yield Token("atom", (text, escaped), start, pos)


def _lex_hash(source: str, pos: int, tolerant: bool) -> Token:
    """Lex a `#` reader extension starting at `pos`."""
    n = len(source)
    nxt = source[pos + 1] if pos + 1 < n else ""
    if nxt == "'":
        return Token("quote", "#'", pos, pos + 2)
    if nxt == "(":
        return Token("hash_paren", "#(", pos, pos + 2)
    if nxt == "[":
        return Token("hash_bracket", "#[", pos, pos + 2)
    if source.startswith("#s(", pos):
        return Token("record", "#s(", pos, pos + 3)
    if source.startswith("#^[", pos):
        return Token("hash_bracket", "#^[", pos, pos + 3)
    if source.startswith("#^^[", pos):
        return Token("hash_bracket", "#^^[", pos, pos + 4)
    if nxt == "#":
        return Token("atom", ("", True), pos, pos + 2)
    if nxt in ":_":
        text, _, end = _scan_atom(source, pos + 2)
        return Token("atom", (text, True), pos, end)
    if nxt == "&":
        j = pos + 2
        while j < n and source[j].isdigit():
            j += 1
        return Token("bool_vector", source[pos:j], pos, j)
    m = LABEL_RE.match(source, pos)
    if m:
        kind = "label_def" if m.group(2) == "=" else "label_ref"
        return Token(kind, int(m.group(1)), pos, m.end())
    m = RADIX_RE.match(source, pos)
    if m:
        letter, radix_digits, digits = m.groups()
        radix = {"x": 16, "o": 8, "b": 2}[letter.lower()] if letter else int(radix_digits)
        try:
            value = int(digits, radix)
        except ValueError:
            raise RelintReadError(pos, f"Invalid radix number {m.group(0)}")
        return Token("number", value, pos, m.end())
    if tolerant:
        return Token("hash_prefix", "#", pos, pos + 1)
    raise RelintUnknownSyntax(pos, f"Invalid read syntax: #{nxt}")


def make_list(items: list, tail: SExpression = Nil) -> SExpression:
    """Build a proper or dotted list from `items` and a final `tail`."""
    if isinstance(tail, list):
        items = items + tail
        tail = Nil
    elif isinstance(tail, tuple):
        items = items + tail[0]
        tail = tail[1]
    if is_nil(tail):
        return list(items) if items else Nil
    if not items:
        return tail
    return list(items), tail


def _atom_value(text: str, escaped: bool) -> SExpression:
    if not escaped:
        if text == "nil":
            return Nil
        if INTEGER_RE.match(text):
            return int(text.rstrip("."))
        if FLOAT_RE.match(text):
            if text.endswith("INF"):
                return float("-inf") if text.startswith("-") else float("inf")
            if text.endswith("NaN"):
                return float("nan")
            return float(text)
    return Symbol(text)


class TokenStream:
    def __init__(self, token_iter: Iterator[Token]):
        self.tokens = iter(token_iter)
        self.buffer: list[Token] = []
        self.shared_table: dict[int, SExpression] = {}
        self.position: int = 0

    def peek(self) -> Optional[Token]:
        if not self.buffer:
            try:
                self.buffer.append(next(self.tokens))
            except StopIteration:
                return None
        return self.buffer[0]

    def advance(self) -> Token:
        if self.buffer:
            tok = self.buffer.pop(0)
        else:
            tok = next(self.tokens, None)
        if tok is None:
            raise RelintReadError(self.position, "End of file during parsing")
        self.position = tok.end
        return tok

    def _parse_sequence(self, start: Token, closer: str) -> list[SExpression]:
        items: list[SExpression] = []
        while True:
            tok = self.peek()
            if tok is None:
                raise RelintReadError(start.start, "End of file during parsing")
            if tok.type == closer:
                self.advance()
                return items
            if tok.type in CLOSERS:
                raise RelintReadError(tok.start, f"Invalid read syntax: {tok.value}")
            items.append(self.parse_expr())

    def parse_expr(self) -> SExpression:
        tok = self.advance()
        tok_type = tok.type

        if tok_type == "atom":
            text, escaped = tok.value
            return _atom_value(text, escaped)

        if tok_type in ("string", "char", "number"):
            return tok.value

        # Quote forms
        if tok_type == "quote":
            expr = self.parse_expr()
            return [QUOTE_FORMS[tok.value], expr]

        # List or dotted list
        if tok_type == "lparen":
            items: list[SExpression] = []
            while True:
                nxt = self.peek()
                if nxt is None:
                    raise RelintReadError(tok.start, "End of file during parsing")
                if nxt.type == "rparen":
                    self.advance()
                    return make_list(items)
                if nxt.type == "rbracket":
                    raise RelintReadError(nxt.start, "Invalid read syntax: ]")
                if nxt.type == "dot":
                    self.advance()
                    if not items:
                        raise RelintReadError(nxt.start, "Invalid read syntax: .")
                    cdr_expr = self.parse_expr()
                    close = self.peek()
                    if close is None or close.type != "rparen":
                        raise RelintReadError(nxt.start, "Invalid read syntax: . in wrong context")
                    self.advance()
                    return make_list(items, cdr_expr)
                items.append(self.parse_expr())

        if tok_type in ("lbracket", "hash_bracket"):
            return Vector(self._parse_sequence(tok, "rbracket"))

        if tok_type == "record":
            return Vector(self._parse_sequence(tok, "rparen"))

        # Propertized string: only the string itself matters
        if tok_type == "hash_paren":
            items = self._parse_sequence(tok, "rparen")
            if not items or not isinstance(items[0], str):
                raise RelintReadError(tok.start, "Invalid string property list")
            return items[0]

        if tok_type == "bool_vector":
            value = self.parse_expr()
            if not isinstance(value, str):
                raise RelintReadError(tok.start, "Invalid bool-vector syntax")
            return Vector()

        # Shared structures
        if tok_type == "label_def":
            expr = self.parse_expr()
            self.shared_table[tok.value] = expr
            return expr

        if tok_type == "label_ref":
            if tok.value not in self.shared_table:
                raise RelintReadError(tok.start, f"Undefined shared object #{tok.value}#")
            return self.shared_table[tok.value]

        if tok_type == "dot":
            raise RelintReadError(tok.start, "Invalid read syntax: .")

        raise RelintReadError(tok.start, f"Invalid read syntax: {tok.value}")


def forward_sexp(source: str, pos: int) -> int:
    """Return the offset just past the datum starting at or after `pos`.

    Works at the token level and tolerates unknown `#` syntax, so it can be
    used to step over forms the parser rejects.
    """
    depth = 0
    for tok in lex(source, pos, tolerant=True):
        if tok.type in OPENERS:
            depth += 1
        elif tok.type in CLOSERS:
            depth -= 1
            if depth < 0:
                raise RelintReadError(tok.start, f"Invalid read syntax: {tok.value}")
            if depth == 0:
                return tok.end
        elif tok.type in PREFIXES or tok.type == "dot":
            continue
        elif depth == 0:
            return tok.end
    raise RelintReadError(pos, "End of file during parsing")


def read_toplevel_forms(source: str) -> Iterator[tuple[SExpression, int]]:
    """Yield (form, start-offset) for each top-level form in `source`.

    A form using an unknown `#` extension is skipped as one structural unit.
    Any other read error propagates as RelintReadError and ends the stream.
    """
    pos = 0
    n = len(source)
    while True:
        pos = skip_whitespace(source, pos)
        if pos >= n:
            return
        stream = TokenStream(lex(source, pos))
        try:
            form = stream.parse_expr()
        except RelintUnknownSyntax:
            pos = forward_sexp(source, pos)
            continue
        yield form, pos
        pos = stream.position


def read_from_string(source: str) -> SExpression:
    """Read the first datum in `source`."""
    for form, _ in read_toplevel_forms(source):
        return form
    raise RelintReadError(0, "End of file during parsing")
