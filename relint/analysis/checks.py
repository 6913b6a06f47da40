"""Checks on individual strings, and the splice hazards of concat and format.

A Site says where a checked value came from: the top-level form offset, the
path to the expression, and the expression itself. When the value is a
string literal somewhere inside that expression, complaints point at the
offending character of the literal; otherwise at the expression.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from relint import Path, SExpression
from relint.analysis.context import AnalysisContext, Checker
from relint.analysis.provenance import find_generators
from relint.evaluation.primitives import PrimitiveError, format_conversions, prin1_string
from relint.types.vector import Vector

logger = logging.getLogger(__name__)

# A `[' that is not closed by the end of the string
UNTERMINATED_BRACKET_RE = re.compile(r"(?:\A|[^\\])(?:\\\\)*\[\^?\]?[^\]]*\Z")

# Syntax class designators accepted by skip-syntax-forward/backward
SYNTAX_CLASSES = {
    "-": "whitespace", " ": "whitespace",
    ".": "punctuation",
    "w": "word", "W": "word",
    "_": "symbol",
    "(": "open parenthesis",
    ")": "close parenthesis",
    "'": "expression prefix",
    '"': "string quote",
    "$": "paired delimiter",
    "\\": "escape",
    "/": "character quote",
    "<": "comment start",
    ">": "comment end",
    "|": "string delimiter",
    "!": "comment delimiter",
}


@dataclass(frozen=True)
class Site:
    offset: int
    path: Path
    expr: SExpression = None

    def child(self, index: int) -> Site:
        """Site of element `index` of this site's expression."""
        expr = self.expr
        if isinstance(expr, list) and index < len(expr):
            sub = expr[index]
        else:
            sub = None
        return Site(self.offset, (index,) + self.path, sub)


def find_string_path(form: SExpression, string: str) -> Optional[Path]:
    """Path inside `form` to a string literal equal to `string`, or None."""
    if isinstance(form, str):
        return () if form == string else None
    if isinstance(form, list):
        items = form
    elif isinstance(form, tuple):
        items = form[0] + [form[1]]
    elif isinstance(form, Vector):
        items = form.items
    else:
        return None
    for i, item in enumerate(items):
        sub = find_string_path(item, string)
        if sub is not None:
            return sub + (i,)
    return None


def report_at(ctx: AnalysisContext, site: Site, value: str, message: str, index: Optional[int] = None) -> None:
    """Report `message` about string `value` found at `site`."""
    sub = find_string_path(site.expr, value)
    if sub is None:
        ctx.report(message, site.offset, site.path)
    else:
        ctx.report(message, site.offset, sub + site.path, index)


def _run_checker(ctx: AnalysisContext, checker: Checker, string: str, name: str, site: Site) -> None:
    try:
        complaints = list(checker(string))
    except Exception as e:
        details = getattr(e, "message", None) or str(e) or type(e).__name__
        logger.debug("Checker failed on %r: %s", string, details)
        report_at(ctx, site, string, f"In {name}: Error: {details}: {prin1_string(string)}",
                  getattr(e, "offset", None))
        return
    for pos, message in complaints:
        report_at(ctx, site, string, f"In {name}: {message} (pos {pos})", pos)


def check_regexp(ctx: AnalysisContext, regexp: str, name: str, site: Site) -> None:
    _run_checker(ctx, ctx.regexp_checker, regexp, name, site)


def check_skip_set(ctx: AnalysisContext, skip_set: str, name: str, site: Site) -> None:
    _run_checker(ctx, ctx.skip_set_checker, skip_set, name, site)


def check_syntax_string(ctx: AnalysisContext, syntax: str, name: str, site: Site) -> None:
    """Check the argument of skip-syntax-forward/backward.

    An optional leading `^' negates the set. Every other character must
    name a syntax class, and each class should be mentioned only once.
    """
    start = 1 if syntax.startswith("^") else 0
    if start == len(syntax):
        report_at(ctx, site, syntax, f"In {name}: Empty syntax string (pos {start})", start)
        return
    seen = set()
    for i in range(start, len(syntax)):
        c = syntax[i]
        syntax_class = SYNTAX_CLASSES.get(c)
        if syntax_class is None:
            report_at(ctx, site, syntax, f"In {name}: Invalid char `{c}' in syntax string (pos {i})", i)
        elif syntax_class in seen:
            report_at(ctx, site, syntax, f"In {name}: Duplicated syntax code `{c}' (pos {i})", i)
        else:
            seen.add(syntax_class)


def _report_splices(ctx: AnalysisContext, arg: SExpression, site: Site) -> None:
    for name in sorted(find_generators(ctx, arg)):
        ctx.report(f"Value from `{name}' cannot be spliced into `[...]'", site.offset, site.path)


def check_concat(ctx: AnalysisContext, form: list, site: Site) -> None:
    """Flag regexp values appended right after an unclosed `[' in a concat."""
    for i in range(1, len(form) - 1):
        piece = form[i]
        if isinstance(piece, str) and UNTERMINATED_BRACKET_RE.search(piece):
            _report_splices(ctx, form[i + 1], site.child(i + 1))


def check_format(ctx: AnalysisContext, form: list, site: Site) -> None:
    """Flag regexp values formatted with %s right after an unclosed `['."""
    if len(form) < 2 or not isinstance(form[1], str):
        return
    fmt = form[1]
    try:
        conversions = list(format_conversions(fmt))
    except PrimitiveError:
        return
    for start, _, index, spec in conversions:
        if index is None or spec.group(5) != "s":
            continue
        arg_pos = index + 2
        if arg_pos < len(form) and UNTERMINATED_BRACKET_RE.search(fmt[:start]):
            _report_splices(ctx, form[arg_pos], site.child(arg_pos))
