"""Extraction of pattern strings from structured values.

Each shape from `relint.analysis.heuristics` has a documented layout:
font-lock keyword lists, alists keyed by regexps, align rules and so on.
The functions here walk an already evaluated value of that shape and pass
every pattern string found to the regexp checker.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator

from relint import LispValue
from relint.analysis.checks import Site, check_regexp
from relint.analysis.context import AnalysisContext
from relint.analysis.heuristics import (
    ALIST,
    ALIST_VALUES,
    COMPILATION,
    CONS,
    FONT_LOCK,
    IMENU,
    LIST,
    REGEXP,
    RULES,
)
from relint.types.symbol import Symbol

REGEXP_KEY = Symbol("regexp")


def _elements(value: LispValue) -> Iterator[LispValue]:
    """Elements of a list value; the tail of a dotted list is left out."""
    if isinstance(value, list):
        yield from value
    elif isinstance(value, tuple):
        yield from value[0]


def _car(value: LispValue) -> LispValue:
    if isinstance(value, list) and value:
        return value[0]
    if isinstance(value, tuple):
        return value[0][0]
    return None


def _nth(value: LispValue, n: int) -> LispValue:
    if isinstance(value, list) and n < len(value):
        return value[n]
    if isinstance(value, tuple):
        items, tail = value
        if n < len(items):
            return items[n]
    return None


def _check_string(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    if isinstance(value, str):
        check_regexp(ctx, value, name, site)


def check_list(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """A list of regexps."""
    for element in _elements(value):
        _check_string(ctx, element, name, site)


def check_alist_keys(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """An alist whose keys are regexps."""
    for element in _elements(value):
        _check_string(ctx, _car(element), name, site)


def check_alist_values(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """An alist of (KEY . REGEXP) entries."""
    for element in _elements(value):
        if isinstance(element, tuple):
            _check_string(ctx, element[1], name, site)


def check_cons(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """A (REGEXP . ANYTHING) pair."""
    _check_string(ctx, _car(value), name, site)


def check_font_lock(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """A font-lock keyword list.

    Each element is a MATCHER or (MATCHER . HIGHLIGHT); a HIGHLIGHT may be
    an anchored (MATCHER PRE-FORM POST-FORM HIGHLIGHT...) whose MATCHER is
    also a regexp when it is a string.
    """
    for element in _elements(value):
        if isinstance(element, str):
            check_regexp(ctx, element, name, site)
            continue
        matcher = _car(element)
        if not isinstance(matcher, str):
            continue
        check_regexp(ctx, matcher, name, site)
        highlights = element[1:] if isinstance(element, list) else element[0][1:]
        for highlight in highlights:
            anchored = _car(highlight)
            if isinstance(anchored, str):
                check_regexp(ctx, anchored, name, site)


def check_second(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """A list of (KEY REGEXP ...) entries.

    Covers imenu-generic-expression and the entries of
    compilation-error-regexp-alist-alist.
    """
    for element in _elements(value):
        _check_string(ctx, _nth(element, 1), name, site)


def check_rules(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    """An align-rules-list: (TITLE (regexp . REGEXP) (ATTR . VALUE) ...)."""
    for rule in _elements(value):
        for attribute in _elements(rule):
            if _car(attribute) != REGEXP_KEY:
                continue
            if isinstance(attribute, tuple):
                _check_string(ctx, attribute[1], name, site)
            else:
                _check_string(ctx, _nth(attribute, 1), name, site)


def check_regexp_value(ctx: AnalysisContext, value: LispValue, name: str, site: Site) -> None:
    _check_string(ctx, value, name, site)


SHAPE_CHECKS: Dict[str, Callable[[AnalysisContext, LispValue, str, Site], None]] = {
    REGEXP: check_regexp_value,
    LIST: check_list,
    ALIST: check_alist_keys,
    ALIST_VALUES: check_alist_values,
    CONS: check_cons,
    FONT_LOCK: check_font_lock,
    COMPILATION: check_second,
    IMENU: check_second,
    RULES: check_rules,
}


def check_shaped(ctx: AnalysisContext, shape: str, value: LispValue, name: str, site: Site) -> None:
    """Check every pattern in `value`, laid out according to `shape`."""
    SHAPE_CHECKS[shape](ctx, value, name, site)


def check_element(ctx: AnalysisContext, shape: str, element: LispValue, name: str, site: Site) -> None:
    """Check one element added to a list-valued variable of `shape`."""
    if shape in (REGEXP, CONS):
        return
    check_shaped(ctx, shape, [element], name, site)
