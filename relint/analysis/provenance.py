"""Where a value may have come from.

`find_generators` names the known regexp producers an expression may take
its value from. It is used to spot regexps used where a skip set or a
syntax string is expected, and regexps spliced into a character
alternative. An empty result means nothing is known, not that the value
is certainly not a regexp.
"""

from __future__ import annotations

from typing import FrozenSet, Set

from relint import SExpression
from relint.analysis.heuristics import REGEXP, classify_name
from relint.reader.reader_macros import FUNCTION, QUOTE
from relint.types.symbol import Symbol

GENERATORS = frozenset(Symbol(name) for name in (
    "regexp-quote", "regexp-opt", "regexp-opt-charset", "rx", "rx-to-string",
    "wildcard-to-regexp",
))

# Functions that take a regexp and return something else
CONSUMERS = frozenset(Symbol(name) for name in (
    "looking-at", "looking-at-p", "looking-back", "re-search-forward",
    "re-search-backward", "search-forward-regexp", "search-backward-regexp",
    "string-match", "string-match-p", "posix-looking-at", "posix-search-forward",
    "posix-search-backward", "posix-string-match", "replace-regexp-in-string",
    "replace-regexp", "query-replace-regexp", "keep-lines", "flush-lines",
    "how-many", "delete-matching-lines", "delete-non-matching-lines",
    "count-matches", "highlight-regexp", "unhighlight-regexp",
    "kill-matching-buffers", "split-string", "split-string-and-unquote",
    "string-trim", "string-trim-left", "string-trim-right", "directory-files",
    "directory-files-and-attributes", "directory-files-recursively",
    "sort-regexp-fields", "skip-chars-forward", "skip-chars-backward",
    "skip-syntax-forward", "skip-syntax-backward", "regexp-opt-depth",
    "length", "equal", "string=", "string-equal", "match-string",
    "match-beginning", "match-end",
))


def find_generators(ctx, expr: SExpression, expanded: FrozenSet[Symbol] = frozenset()) -> Set[Symbol]:
    """Names of the regexp generators `expr` may get its value from."""
    if isinstance(expr, Symbol):
        shape = ctx.checked_variables.get(expr) or classify_name(str(expr))
        return {expr} if shape == REGEXP else set()
    if not isinstance(expr, list) or not expr or not isinstance(expr[0], Symbol):
        return set()
    head = expr[0]
    if head in (QUOTE, FUNCTION):
        return set()
    name = ctx.resolve(head)
    if name in GENERATORS or name in ctx.regexp_returning:
        return {name}
    if name in CONSUMERS:
        return set()
    defn = ctx.functions.get(name)
    if defn is not None:
        if name in expanded or not defn.body:
            return set()
        return find_generators(ctx, defn.body[-1], expanded | {name})
    found: Set[Symbol] = set()
    for arg in expr[1:]:
        found |= find_generators(ctx, arg, expanded)
    return found
