from __future__ import annotations

import logging

from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.rx import RxError, translate, translate_to_string
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import is_nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

logger = logging.getLogger(__name__)

EVAL = Symbol("eval")
LITERAL = Symbol("literal")
REGEXP = Symbol("regexp")
REGEX = Symbol("regex")

DYNAMIC_CLAUSES = frozenset({EVAL, LITERAL, REGEXP, REGEX})

# Clauses whose arguments are characters, never rx subforms
CHARSET_CLAUSES = frozenset(
    Symbol(name) for name in ("any", "in", "char", "not-char", "syntax", "not-syntax", "category")
)


def rx_safe(form: SExpression, env: Environment, state: EvalState, evaluate_fn: EvaluatorFn) -> SExpression:
    """Replace dynamic clauses in an rx form by their values.

    `(literal X)' and `(regexp X)' are kept only if X evaluates to a string.
    `(eval X)' is replaced by the value of X, unless that value is itself a
    dynamic clause. Returns UNKNOWN when either rule fails.
    """
    if not isinstance(form, list) or not form:
        return form
    head = form[0]
    if isinstance(head, Symbol) and head in CHARSET_CLAUSES:
        return form
    if head == EVAL:
        if len(form) != 2:
            return UNKNOWN
        value = evaluate_fn(form[1], env, state)
        if isinstance(value, list) and value and isinstance(value[0], Symbol) and value[0] in DYNAMIC_CLAUSES:
            return UNKNOWN
        return value
    if head in (LITERAL, REGEXP, REGEX):
        if len(form) != 2:
            return UNKNOWN
        value = evaluate_fn(form[1], env, state)
        if not isinstance(value, str):
            return UNKNOWN
        return [head, value]
    result = [head]
    for item in form[1:]:
        safe = rx_safe(item, env, state, evaluate_fn)
        if safe is UNKNOWN:
            return UNKNOWN
        result.append(safe)
    return result


def rx_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    forms = []
    for item in tail:
        safe = rx_safe(item, env, state, evaluate_fn)
        if safe is UNKNOWN:
            return UNKNOWN
        forms.append(safe)
    try:
        return translate(forms)
    except RxError as e:
        logger.debug("Cannot translate rx form: %s", e)
        return UNKNOWN


def rx_to_string_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(rx-to-string FORM [NO-GROUP]): both arguments are evaluated."""
    if not 1 <= len(tail) <= 2:
        return UNKNOWN
    values = [evaluate_fn(arg, env, state) for arg in tail]
    if any(value is UNKNOWN for value in values):
        return UNKNOWN
    form = rx_safe(values[0], env, state, evaluate_fn)
    if form is UNKNOWN:
        return UNKNOWN
    no_group = len(values) == 2 and not is_nil(values[1])
    try:
        return translate_to_string(form, no_group)
    except RxError as e:
        logger.debug("Cannot translate rx form: %s", e)
        return UNKNOWN
