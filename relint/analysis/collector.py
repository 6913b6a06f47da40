"""Pass 1: collect the function, macro and alias definitions of a file.

The walk visits every list inside every top-level form, so definitions
nested in `eval-and-compile', `with-eval-after-load' and the like are
found too. Quoted data is not entered.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from relint import SExpression
from relint.analysis.context import AnalysisContext
from relint.analysis.heuristics import regexp_argument_positions, returns_regexp
from relint.evaluation.evaluator import evaluate
from relint.reader.reader_macros import QUOTE
from relint.types.definitions import LocalDefinition
from relint.types.lambda_fn import Lambda
from relint.types.symbol import Symbol

logger = logging.getLogger(__name__)

FUNCTION_DEFINERS = frozenset(Symbol(name) for name in (
    "defun", "defsubst", "cl-defun", "cl-defsubst", "define-inline",
))
MACRO_DEFINERS = frozenset(Symbol(name) for name in ("defmacro", "cl-defmacro"))
ALIAS_DEFINERS = frozenset(Symbol(name) for name in (
    "defalias", "fset", "define-obsolete-function-alias",
))

DECLARE = Symbol("declare")
INTERACTIVE = Symbol("interactive")


def split_body(body: list) -> tuple[Optional[str], list]:
    """Split a definition body into its doc string and the code proper.

    A lone string is the return value, not a doc string. Leading
    `declare' and `interactive' forms are dropped.
    """
    doc = None
    if len(body) > 1 and isinstance(body[0], str):
        doc, body = body[0], body[1:]
    while len(body) > 1 and isinstance(body[0], list) and body[0] and body[0][0] in (DECLARE, INTERACTIVE):
        body = body[1:]
    return doc, list(body)


def _collect_definition(ctx: AnalysisContext, form: list) -> None:
    if len(form) < 3 or not isinstance(form[1], Symbol):
        return
    head, name, formals = form[0], form[1], form[2]
    doc, body = split_body(form[3:])
    defn = LocalDefinition(name, formals, body)
    if head in MACRO_DEFINERS:
        ctx.macros[name] = defn
    else:
        ctx.functions[name] = defn
    if returns_regexp(name, doc):
        ctx.regexp_returning.add(name)
    positions = regexp_argument_positions(formals, doc)
    if positions:
        ctx.regexp_functions[name] = positions


def _collect_alias(ctx: AnalysisContext, form: list) -> None:
    if len(form) < 3:
        return
    name = evaluate(form[1], None, ctx)
    if not isinstance(name, Symbol):
        return
    target = evaluate(form[2], None, ctx)
    if isinstance(target, Symbol):
        if target != name:
            logger.debug("Alias %s -> %s", name, target)
            ctx.aliases[name] = target
    elif isinstance(target, Lambda):
        ctx.functions[name] = LocalDefinition(name, target.formals, list(target.body))


def _collect_form(ctx: AnalysisContext, form: SExpression) -> None:
    if not isinstance(form, list) or not form:
        return
    head = form[0]
    if head == QUOTE:
        return
    if not isinstance(head, Symbol):
        pass
    elif head in FUNCTION_DEFINERS or head in MACRO_DEFINERS:
        _collect_definition(ctx, form)
    elif head in ALIAS_DEFINERS:
        _collect_alias(ctx, form)
    for sub in form:
        _collect_form(ctx, sub)


def collect(ctx: AnalysisContext, forms: Iterable[SExpression]) -> None:
    """Fill the definition tables of `ctx` from the top-level `forms`."""
    for form in forms:
        _collect_form(ctx, form)
