from __future__ import annotations

from relint.types.symbol import Symbol


QUOTE = Symbol("quote")
FUNCTION = Symbol("function")
BACKQUOTE = Symbol("`")
UNQUOTE = Symbol(",")
SPLICE = Symbol(",@")

# Reader sugar and the symbol each one expands to: 'x => (quote x)
QUOTE_FORMS: dict[str, Symbol] = {
    "'": QUOTE,
    "#'": FUNCTION,
    "`": BACKQUOTE,
    ",": UNQUOTE,
    ",@": SPLICE,
}

# Longest first, so ",@" is tried before ","
SUGAR_PREFIXES: tuple[str, ...] = tuple(sorted(QUOTE_FORMS, key=len, reverse=True))
