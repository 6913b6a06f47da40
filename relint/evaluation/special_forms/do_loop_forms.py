from __future__ import annotations

import logging

from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.apply import evaluate_body
from relint.evaluation.primitives import MAX_SEQUENCE, PrimitiveError, as_sequence
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

logger = logging.getLogger(__name__)


def _run_body(body: list, env: Environment, state: EvalState, evaluate_fn: EvaluatorFn) -> bool:
    """Run loop body forms for effect; False if any cannot be evaluated."""
    for form in body:
        if evaluate_fn(form, env, state) is UNKNOWN:
            return False
    return True


def while_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(while TEST BODY...), simulated for at most `state.loop_limit` rounds.

    A loop still running at the ceiling is treated as having completed.
    """
    if not tail:
        return UNKNOWN
    test, body = tail[0], tail[1:]
    for _ in range(state.loop_limit):
        cond = evaluate_fn(test, env, state)
        if cond is UNKNOWN:
            return UNKNOWN
        if is_nil(cond):
            return Nil
        if not _run_body(body, env, state, evaluate_fn):
            return UNKNOWN
    logger.debug("Loop stopped after %d iterations", state.loop_limit)
    return Nil


def _loop_spec(tail: list[SExpression]):
    if not tail or not isinstance(tail[0], list) or not 2 <= len(tail[0]) <= 3:
        return None
    spec = tail[0]
    if not isinstance(spec[0], Symbol):
        return None
    return spec[0], spec[1], spec[2] if len(spec) == 3 else None


def dolist_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(dolist (VAR LIST [RESULT]) BODY...), run once per element."""
    spec = _loop_spec(tail)
    if spec is None:
        return UNKNOWN
    var, list_expr, result_expr = spec
    seq = evaluate_fn(list_expr, env, state)
    if seq is UNKNOWN:
        return UNKNOWN
    try:
        items = as_sequence(seq)
    except PrimitiveError:
        return UNKNOWN
    frame = Environment(env)
    inner = state.binding(var)
    for item in items:
        frame.define(var, item)
        if not _run_body(tail[1:], frame, inner, evaluate_fn):
            return UNKNOWN
    frame.define(var, Nil)
    return evaluate_body([result_expr] if result_expr is not None else [], frame, inner, evaluate_fn)


def dotimes_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(dotimes (VAR COUNT [RESULT]) BODY...)."""
    spec = _loop_spec(tail)
    if spec is None:
        return UNKNOWN
    var, count_expr, result_expr = spec
    count = evaluate_fn(count_expr, env, state)
    if not isinstance(count, int) or count > MAX_SEQUENCE:
        return UNKNOWN
    frame = Environment(env)
    inner = state.binding(var)
    for i in range(count):
        frame.define(var, i)
        if not _run_body(tail[1:], frame, inner, evaluate_fn):
            return UNKNOWN
    frame.define(var, max(count, 0))
    return evaluate_body([result_expr] if result_expr is not None else [], frame, inner, evaluate_fn)
