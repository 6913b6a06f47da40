from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.apply import evaluate_body
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.unknown import UNKNOWN


def if_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if len(tail) < 2:
        return UNKNOWN
    cond = evaluate_fn(tail[0], env, state)
    if cond is UNKNOWN:
        return UNKNOWN
    if not is_nil(cond):
        return evaluate_fn(tail[1], env, state)
    return evaluate_body(tail[2:], env, state, evaluate_fn)


def when_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if not tail:
        return UNKNOWN
    cond = evaluate_fn(tail[0], env, state)
    if cond is UNKNOWN:
        return UNKNOWN
    if is_nil(cond):
        return Nil
    return evaluate_body(tail[1:], env, state, evaluate_fn)


def unless_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if not tail:
        return UNKNOWN
    cond = evaluate_fn(tail[0], env, state)
    if cond is UNKNOWN:
        return UNKNOWN
    if not is_nil(cond):
        return Nil
    return evaluate_body(tail[1:], env, state, evaluate_fn)


def cond_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(cond (TEST BODY...) ...): the first clause whose TEST is non-nil wins.

    A clause without a body returns the value of its test. A test that
    cannot be evaluated makes the whole form UNKNOWN.
    """
    for clause in tail:
        if is_nil(clause):
            continue
        if not isinstance(clause, list):
            return UNKNOWN
        value = evaluate_fn(clause[0], env, state)
        if value is UNKNOWN:
            return UNKNOWN
        if not is_nil(value):
            if len(clause) == 1:
                return value
            return evaluate_body(clause[1:], env, state, evaluate_fn)
    return Nil
