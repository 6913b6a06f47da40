"""Translation of `rx' forms to Emacs regexp strings.

`translate` works on plain data: dynamic clauses (`eval', `literal' and
`regexp' with non-constant arguments) must already have been replaced by
their values. Every translation carries a precedence so that operands are
bracketed only where needed:

    ATOM  can take a postfix operator        a  [ab]  \\(...\\)
    SEQ   can be concatenated                ab  a*
    ALT   only safe on its own               a\\|b
"""

from __future__ import annotations

from typing import Iterable

from relint import SExpression
from relint.evaluation.primitives import regexp_opt, regexp_quote
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol, T

ALT, SEQ, ATOM = 0, 1, 2

UNMATCHABLE = "\\`a\\`"


class RxError(Exception):
    """Raised for an rx form that cannot be translated."""


SYMBOLS = {
    "nonl": (".", ATOM),
    "not-newline": (".", ATOM),
    "any": (".", ATOM),
    "anychar": ("[^z-a]", ATOM),
    "anything": ("[^z-a]", ATOM),
    "unmatchable": (UNMATCHABLE, SEQ),
    "bol": ("^", SEQ),
    "line-start": ("^", SEQ),
    "eol": ("$", SEQ),
    "line-end": ("$", SEQ),
    "bos": ("\\`", ATOM),
    "string-start": ("\\`", ATOM),
    "bot": ("\\`", ATOM),
    "buffer-start": ("\\`", ATOM),
    "eos": ("\\'", ATOM),
    "string-end": ("\\'", ATOM),
    "eot": ("\\'", ATOM),
    "buffer-end": ("\\'", ATOM),
    "point": ("\\=", ATOM),
    "bow": ("\\<", ATOM),
    "word-start": ("\\<", ATOM),
    "eow": ("\\>", ATOM),
    "word-end": ("\\>", ATOM),
    "word-boundary": ("\\b", ATOM),
    "not-word-boundary": ("\\B", ATOM),
    "symbol-start": ("\\_<", ATOM),
    "symbol-end": ("\\_>", ATOM),
    "not-wordchar": ("\\W", ATOM),
}

CHAR_CLASSES = {
    "digit": "digit", "numeric": "digit", "num": "digit",
    "control": "cntrl", "cntrl": "cntrl",
    "hex-digit": "xdigit", "hex": "xdigit", "xdigit": "xdigit",
    "blank": "blank",
    "graphic": "graph", "graph": "graph",
    "printing": "print", "print": "print",
    "alphanumeric": "alnum", "alnum": "alnum",
    "letter": "alpha", "alphabetic": "alpha", "alpha": "alpha",
    "ascii": "ascii", "nonascii": "nonascii",
    "lower": "lower", "lower-case": "lower",
    "punctuation": "punct", "punct": "punct",
    "space": "space", "whitespace": "space", "white": "space",
    "upper": "upper", "upper-case": "upper",
    "word": "word", "wordchar": "word",
    "unibyte": "unibyte", "multibyte": "multibyte",
}

SYNTAX_CODES = {
    "whitespace": "-",
    "punctuation": ".",
    "word": "w",
    "symbol": "_",
    "open-parenthesis": "(",
    "close-parenthesis": ")",
    "expression-prefix": "'",
    "string-quote": '"',
    "paired-delimiter": "$",
    "escape": "\\",
    "character-quote": "/",
    "comment-start": "<",
    "comment-end": ">",
    "string-delimiter": "|",
    "comment-delimiter": "!",
}

# Repetition operators: name -> (operator, follows the greedy mode)
REPEAT_OPERATORS = {
    "*": ("*", True), "zero-or-more": ("*", True), "0+": ("*", True),
    "+": ("+", True), "one-or-more": ("+", True), "1+": ("+", True),
    "?": ("?", True), "opt": ("?", True), "optional": ("?", True), "zero-or-one": ("?", True),
    "*?": ("*", False), "+?": ("+", False), "??": ("?", False),
}

# `?\s' and `??' read as characters
CHAR_OPERATORS = {ord(" "): "?", ord("?"): "??"}

SEQ_NAMES = frozenset({"seq", ":", "and", "sequence"})
OR_NAMES = frozenset({"or", "|"})
ANY_NAMES = frozenset({"any", "in", "char"})
GROUP_NAMES = frozenset({"group", "submatch"})
GROUP_N_NAMES = frozenset({"group-n", "submatch-n"})


def _bracket(regexp: str) -> str:
    return f"\\(?:{regexp}\\)"


def _at_least(item: tuple[str, int], precedence: int) -> str:
    regexp, prec = item
    return regexp if prec >= precedence else _bracket(regexp)


def _literal(text: str) -> tuple[str, int]:
    return regexp_quote(text), ATOM if len(text) == 1 else SEQ


def _sequence(forms: Iterable[SExpression], greedy: bool) -> tuple[str, int]:
    items = [_translate(form, greedy) for form in forms]
    items = [item for item in items if item[0]]
    if not items:
        return "", SEQ
    if len(items) == 1:
        return items[0]
    return "".join(_at_least(item, SEQ) for item in items), SEQ


def _alternatives(forms: list, greedy: bool) -> tuple[str, int]:
    if not forms:
        return UNMATCHABLE, SEQ
    if all(isinstance(f, str) for f in forms):
        unique = list(dict.fromkeys(forms))
        if len(unique) == 1:
            return _literal(unique[0])
        regexp = regexp_opt(list(forms), Nil, T)
        return regexp, ATOM
    items = [_translate(form, greedy) for form in forms]
    if len(items) == 1:
        return items[0]
    return "\\|".join(regexp for regexp, _ in items), ALT


def _char_code(value) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and len(value) == 1:
        return ord(value)
    raise RxError(f"Invalid character {value!r}")


def _parse_set(args: list) -> tuple[list[tuple[int, int]], list[str]]:
    """Intervals and character class names of an `any' form."""
    intervals: list[tuple[int, int]] = []
    classes: list[str] = []
    for arg in args:
        if isinstance(arg, str):
            i = 0
            while i < len(arg):
                if i + 2 < len(arg) and arg[i + 1] == "-":
                    lo, hi = ord(arg[i]), ord(arg[i + 2])
                    if lo > hi:
                        raise RxError(f"Invalid rx `any' range: {arg[i:i + 3]}")
                    intervals.append((lo, hi))
                    i += 3
                else:
                    intervals.append((ord(arg[i]), ord(arg[i])))
                    i += 1
        elif isinstance(arg, int):
            intervals.append((arg, arg))
        elif isinstance(arg, tuple) and len(arg[0]) == 1:
            lo, hi = _char_code(arg[0][0]), _char_code(arg[1])
            if lo > hi:
                raise RxError("Invalid rx `any' range")
            intervals.append((lo, hi))
        elif isinstance(arg, Symbol) and arg.id in CHAR_CLASSES:
            name = CHAR_CLASSES[arg.id]
            if name not in classes:
                classes.append(name)
        else:
            raise RxError(f"Invalid rx `any' argument: {arg!r}")
    intervals.sort()
    merged: list[tuple[int, int]] = []
    for lo, hi in intervals:
        if merged and lo <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(hi, merged[-1][1]))
        else:
            merged.append((lo, hi))
    return merged, classes


def _render_set(intervals: list[tuple[int, int]], classes: list[str], negated: bool) -> tuple[str, int]:
    if not classes:
        if not intervals:
            return ("[^z-a]", ATOM) if negated else (UNMATCHABLE, SEQ)
        if not negated and len(intervals) == 1 and intervals[0][0] == intervals[0][1]:
            return regexp_quote(chr(intervals[0][0])), ATOM
    # `]' goes first, `-' last, and `^' anywhere but first
    first = last = caret = ""
    middle: list[str] = []
    pieces: list[tuple[int, int]] = []
    for lo, hi in intervals:
        if lo <= ord("]") <= hi:
            first = "]"
            pieces.extend(p for p in ((lo, ord("]") - 1), (ord("]") + 1, hi)) if p[0] <= p[1])
        else:
            pieces.append((lo, hi))
    for lo, hi in pieces:
        if lo == ord("-"):
            last = "-"
            lo += 1
        if lo == ord("^"):
            caret = "^"
            lo += 1
        if lo > hi:
            continue
        if lo == hi:
            middle.append(chr(lo))
        elif hi == lo + 1:
            middle.append(chr(lo) + chr(hi))
        else:
            middle.append(f"{chr(lo)}-{chr(hi)}")
    body = first + "".join(middle) + "".join(f"[:{c}:]" for c in classes)
    if not body and not negated:
        if not last:
            return "\\^", ATOM
        return "[-^]", ATOM
    body += caret + last
    return f"[{'^' if negated else ''}{body}]", ATOM


def _syntax_code(arg) -> str:
    if isinstance(arg, Symbol) and arg.id in SYNTAX_CODES:
        return SYNTAX_CODES[arg.id]
    raise RxError(f"Unknown rx syntax name: {arg!r}")


def _category_code(arg) -> str:
    if isinstance(arg, int) and 32 < arg < 127:
        return chr(arg)
    raise RxError(f"Unknown rx category: {arg!r}")


def _negate(arg, greedy: bool) -> tuple[str, int]:
    if isinstance(arg, list) and arg and isinstance(arg[0], Symbol):
        name, args = arg[0].id, arg[1:]
        if name in ANY_NAMES:
            return _render_set(*_parse_set(args), negated=True)
        if name == "not" and len(args) == 1:
            return _translate(args[0], greedy)
        if name == "syntax" and len(args) == 1:
            return "\\S" + _syntax_code(args[0]), ATOM
        if name == "category" and len(args) == 1:
            return "\\C" + _category_code(args[0]), ATOM
    if isinstance(arg, Symbol):
        if arg.id in CHAR_CLASSES:
            return f"[^[:{CHAR_CLASSES[arg.id]}:]]", ATOM
        if arg.id == "word-boundary":
            return "\\B", ATOM
    if isinstance(arg, int) or (isinstance(arg, str) and len(arg) == 1):
        return _render_set([(_char_code(arg), _char_code(arg))], [], negated=True)
    raise RxError(f"Illegal argument to rx `not': {arg!r}")


def _count(value) -> int:
    if isinstance(value, int) and value >= 0:
        return value
    raise RxError(f"Invalid repetition count: {value!r}")


def _repeat(op: str, greedy: bool, body: list, mode: bool) -> tuple[str, int]:
    operand = _sequence(body, mode)
    if not operand[0]:
        return operand
    return _at_least(operand, ATOM) + op + ("" if greedy else "?"), SEQ


def _bounded(low: int, high, body: list, greedy: bool) -> tuple[str, int]:
    operand = _sequence(body, greedy)
    if high is None:
        bound = f"\\{{{low},\\}}"
    elif high == low:
        bound = f"\\{{{low}\\}}"
    else:
        if high < low:
            raise RxError("rx repetition with reversed bounds")
        bound = f"\\{{{low},{high}\\}}"
    if not operand[0]:
        return operand
    return _at_least(operand, ATOM) + bound, SEQ


def _translate_form(form: list, greedy: bool) -> tuple[str, int]:
    head, args = form[0], form[1:]
    if isinstance(head, int) and head in CHAR_OPERATORS:
        op, follows_mode = REPEAT_OPERATORS[CHAR_OPERATORS[head]]
        return _repeat(op, greedy if follows_mode else False, args, greedy)
    if not isinstance(head, Symbol):
        raise RxError(f"Bad rx operator: {head!r}")
    name = head.id
    if name in SEQ_NAMES:
        return _sequence(args, greedy)
    if name in OR_NAMES:
        return _alternatives(args, greedy)
    if name in ANY_NAMES:
        return _render_set(*_parse_set(args), negated=False)
    if name == "not" and len(args) == 1:
        return _negate(args[0], greedy)
    if name in REPEAT_OPERATORS:
        op, follows_mode = REPEAT_OPERATORS[name]
        return _repeat(op, greedy if follows_mode else False, args, greedy)
    if name == "=" and args:
        n = _count(args[0])
        return _bounded(n, n, args[1:], greedy)
    if name == ">=" and args:
        return _bounded(_count(args[0]), None, args[1:], greedy)
    if name == "**" and len(args) >= 2:
        return _bounded(_count(args[0]), _count(args[1]), args[2:], greedy)
    if name == "repeat" and args:
        # (repeat N RX...) or (repeat N M RX...)
        if len(args) >= 2 and isinstance(args[1], int):
            return _bounded(_count(args[0]), _count(args[1]), args[2:], greedy)
        n = _count(args[0])
        return _bounded(n, n, args[1:], greedy)
    if name in GROUP_NAMES:
        return "\\(" + _sequence(args, greedy)[0] + "\\)", ATOM
    if name in GROUP_N_NAMES and args:
        n = _count(args[0])
        if n == 0:
            raise RxError("rx group number must be positive")
        return f"\\(?{n}:" + _sequence(args[1:], greedy)[0] + "\\)", ATOM
    if name == "backref" and len(args) == 1:
        n = _count(args[0])
        if not 1 <= n <= 9:
            raise RxError("rx `backref' requires an argument in the range 1..9")
        return f"\\{n}", ATOM
    if name == "syntax" and len(args) == 1:
        return "\\s" + _syntax_code(args[0]), ATOM
    if name == "category" and len(args) == 1:
        return "\\c" + _category_code(args[0]), ATOM
    if name == "literal" and len(args) == 1 and isinstance(args[0], str):
        return _literal(args[0])
    if name in ("regexp", "regex") and len(args) == 1 and isinstance(args[0], str):
        regexp = args[0]
        return regexp, ALT if "\\|" in regexp else (ATOM if len(regexp) == 1 else SEQ)
    if name == "minimal-match" and len(args) == 1:
        return _translate(args[0], False)
    if name == "maximal-match" and len(args) == 1:
        return _translate(args[0], True)
    raise RxError(f"Unknown rx form `{name}'")


def _translate(form: SExpression, greedy: bool = True) -> tuple[str, int]:
    if isinstance(form, str):
        return ("", SEQ) if not form else _literal(form)
    if isinstance(form, int):
        return regexp_quote(chr(form)), ATOM
    if isinstance(form, Symbol):
        if form.id in SYMBOLS:
            return SYMBOLS[form.id]
        if form.id in CHAR_CLASSES:
            return f"[[:{CHAR_CLASSES[form.id]}:]]", ATOM
        raise RxError(f"Unknown rx symbol `{form.id}'")
    if isinstance(form, list) and form:
        return _translate_form(form, greedy)
    if is_nil(form):
        raise RxError("Empty rx form")
    raise RxError(f"Bad rx form: {form!r}")


def translate(forms: list[SExpression]) -> str:
    """Regexp for `(rx FORMS...)`."""
    return _sequence(forms, True)[0]


def translate_to_string(form: SExpression, no_group: bool = False) -> str:
    """Regexp for `(rx-to-string FORM NO-GROUP)`."""
    item = _translate(form)
    if no_group or not item[0]:
        return item[0]
    return _at_least(item, ATOM)
