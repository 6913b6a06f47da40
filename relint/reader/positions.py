"""Position recovery for subforms.

Forms are read once without per-node positions. When a diagnostic needs a
location, the source is re-scanned from the start of the enclosing top-level
form, following a path of structural indices down to the subform.

A path is a tuple of indices, innermost first: in `(a (b c))` the path to
`c` is (1, 1). Reader sugar counts as one element, so in `'(x y)`, read as
`(quote (x y))`, the path to `y` is (1, 1).
"""

from __future__ import annotations

from relint import Path
from relint.types.errors import RelintReadError
from relint.reader.parser import WHITESPACE, forward_sexp, read_escape, skip_whitespace
from relint.reader.reader_macros import SUGAR_PREFIXES


def _at_dot(source: str, pos: int) -> bool:
    return (
        source.startswith(".", pos)
        and (pos + 1 >= len(source) or source[pos + 1] in WHITESPACE or source[pos + 1] in "()")
    )


def _enter(source: str, pos: int, index: int) -> int:
    """Step from the datum at `pos` to its element number `index`."""
    for sugar in SUGAR_PREFIXES:
        if source.startswith(sugar, pos):
            pos += len(sugar)
            index -= 1
            break
    else:
        if source.startswith("#s(", pos):
            pos += 3
        elif source.startswith("#(", pos) or source.startswith("#[", pos):
            pos += 2
        elif pos < len(source) and source[pos] in "([":
            pos += 1
        else:
            raise RelintReadError(pos, "Path does not match source")

    for _ in range(index):
        pos = skip_whitespace(source, pos)
        if _at_dot(source, pos):
            pos += 1
        pos = forward_sexp(source, pos)
    pos = skip_whitespace(source, pos)
    # A dotted tail takes no index of its own
    if _at_dot(source, pos):
        pos = skip_whitespace(source, pos + 1)
    return pos


def line_column(source: str, pos: int) -> tuple[int, int]:
    """Return (line, column) for `pos`: 1-based line, 0-based column."""
    line = source.count("\n", 0, pos) + 1
    last_nl = source.rfind("\n", 0, pos)
    return line, pos - last_nl - 1


def resolve_offset(source: str, offset: int, path: Path) -> int:
    """Absolute offset of the subform at `path` in the form starting at `offset`.

    If the text does not have the expected shape, the deepest position
    reached is returned.
    """
    pos = skip_whitespace(source, offset)
    for index in reversed(path):
        try:
            pos = _enter(source, pos, index)
        except RelintReadError:
            break
    return pos


def resolve_position(source: str, offset: int, path: Path) -> tuple[int, int, int]:
    """Return (absolute offset, line, column) of the subform at `path`."""
    pos = resolve_offset(source, offset, path)
    line, column = line_column(source, pos)
    return pos, line, column


def string_position(source: str, literal_pos: int, index: int) -> int:
    """Offset of the source character producing character `index` of a string.

    `literal_pos` is where the string literal starts. If no string literal
    starts there (the string was computed), `literal_pos` is returned.
    """
    if literal_pos >= len(source) or source[literal_pos] != '"':
        return literal_pos
    n = len(source)
    pos = literal_pos + 1
    count = 0
    while pos < n:
        c = source[pos]
        if c == '"':
            return pos
        if c == "\\":
            try:
                code, end = read_escape(source, pos, True)
            except RelintReadError:
                return pos
            if code is None:
                pos = end
                continue
            if count == index:
                return pos
            pos = end
        else:
            if count == index:
                return pos
            pos += 1
        count += 1
    return literal_pos
