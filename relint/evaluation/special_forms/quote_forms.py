from __future__ import annotations

from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.primitives import PrimitiveError, as_list
from relint.evaluation.state import EvalState
from relint.reader.parser import make_list
from relint.reader.reader_macros import BACKQUOTE, SPLICE, UNQUOTE
from relint.types.environment import Environment
from relint.types.lambda_fn import LAMBDA, Lambda
from relint.types.nil import Nil, is_nil
from relint.types.unknown import UNKNOWN
from relint.types.vector import Vector


def _is_unquote(form: SExpression) -> bool:
    return isinstance(form, list) and len(form) == 2 and form[0] in (UNQUOTE, SPLICE)


def quote_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if len(tail) != 1:
        return UNKNOWN
    # `',x' inside a backquote: the quoted form is not plain data
    if _is_unquote(tail[0]):
        return UNKNOWN
    return tail[0]


def function_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if len(tail) != 1:
        return UNKNOWN
    fn = tail[0]
    if isinstance(fn, list) and len(fn) >= 2 and fn[0] == LAMBDA:
        return Lambda(fn[1], fn[2:], env)
    if _is_unquote(fn):
        return UNKNOWN
    return fn


def lambda_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if not tail:
        return UNKNOWN
    return Lambda(tail[0], tail[1:], env)


def expand_template(
    template: SExpression, env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Fill in a backquote template.

    `,x' and `,@x' are evaluated with `evaluate_fn`; any UNKNOWN makes the
    whole result UNKNOWN. Nested backquotes are not supported.
    """
    if isinstance(template, Vector):
        items = expand_template(list(template.items), env, state, evaluate_fn)
        if items is UNKNOWN:
            return UNKNOWN
        return Vector(as_list(items))
    if isinstance(template, tuple):
        items, tail = template
        head = expand_template(list(items), env, state, evaluate_fn)
        rest = expand_template(tail, env, state, evaluate_fn)
        if head is UNKNOWN or rest is UNKNOWN:
            return UNKNOWN
        return make_list(as_list(head), rest)
    if not isinstance(template, list) or not template:
        return template

    if template[0] == UNQUOTE and len(template) == 2:
        return evaluate_fn(template[1], env, state)
    if template[0] in (BACKQUOTE, SPLICE):
        return UNKNOWN

    result: list = []
    for i, item in enumerate(template):
        if item == UNQUOTE and i == len(template) - 2:
            # `(a . ,b)' reads as `(a \, b)'
            tail = evaluate_fn(template[i + 1], env, state)
            if tail is UNKNOWN:
                return UNKNOWN
            return make_list(result, tail)
        if isinstance(item, list) and len(item) == 2 and item[0] == SPLICE:
            value = evaluate_fn(item[1], env, state)
            if value is UNKNOWN:
                return UNKNOWN
            try:
                result.extend(as_list(value))
            except PrimitiveError:
                return UNKNOWN
            continue
        value = expand_template(item, env, state, evaluate_fn)
        if value is UNKNOWN:
            return UNKNOWN
        result.append(value)
    return make_list(result)


def backquote_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if len(tail) != 1:
        return UNKNOWN
    value = expand_template(tail[0], env, state, evaluate_fn)
    if value is not UNKNOWN and is_nil(value):
        return Nil
    return value
