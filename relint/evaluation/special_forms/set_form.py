from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.primitives import PrimitiveError, car, cdr, cons
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN


def assign(name: Symbol, value: LispValue, env: Environment, state: EvalState) -> None:
    """Give `name` a new value for the rest of this evaluation.

    Names bound by the evaluator are updated in place. Names the caller
    declared mutable are shadowed in the overlay frame. Any other name is
    shadowed by UNKNOWN, since its binding belongs to someone else.
    """
    if name in state.mutables and env.find(name) is not None:
        env.set(name, value)
    elif name in state.outer_mutables or name in state.mutables:
        state.root.define(name, value)
    else:
        state.root.define(name, UNKNOWN)


def setq_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    if len(tail) % 2 != 0:
        return UNKNOWN
    value: LispValue = Nil
    for i in range(0, len(tail), 2):
        name = tail[i]
        if not isinstance(name, Symbol):
            return UNKNOWN
        value = evaluate_fn(tail[i + 1], env, state)
        assign(name, value, env, state)
    return value


def push_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(push ELEMENT PLACE) for a variable PLACE."""
    if len(tail) != 2 or not isinstance(tail[1], Symbol):
        return UNKNOWN
    element = evaluate_fn(tail[0], env, state)
    old = evaluate_fn(tail[1], env, state)
    if element is UNKNOWN or old is UNKNOWN:
        new = UNKNOWN
    else:
        new = cons(element, old)
    assign(tail[1], new, env, state)
    return new


def pop_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(pop PLACE) for a variable PLACE."""
    if len(tail) != 1 or not isinstance(tail[0], Symbol):
        return UNKNOWN
    old = evaluate_fn(tail[0], env, state)
    if old is UNKNOWN:
        assign(tail[0], UNKNOWN, env, state)
        return UNKNOWN
    try:
        head, rest = car(old), cdr(old)
    except PrimitiveError:
        assign(tail[0], UNKNOWN, env, state)
        return UNKNOWN
    assign(tail[0], rest, env, state)
    return head
