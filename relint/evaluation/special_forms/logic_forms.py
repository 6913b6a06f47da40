from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.symbol import T
from relint.types.unknown import UNKNOWN


def and_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Short-circuiting AND.

    Returns nil at the first nil operand, otherwise the last value; t with no
    operands. An unknown operand reached before a nil one gives UNKNOWN.
    """
    result: LispValue = T
    for expr in tail:
        result = evaluate_fn(expr, env, state)
        if result is UNKNOWN:
            return UNKNOWN
        if is_nil(result):
            return Nil
    return result


def or_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Short-circuiting OR: the first non-nil operand, or nil."""
    for expr in tail:
        value = evaluate_fn(expr, env, state)
        if value is UNKNOWN:
            return UNKNOWN
        if not is_nil(value):
            return value
    return Nil
