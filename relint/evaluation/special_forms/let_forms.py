from __future__ import annotations

from typing import Optional

from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.apply import evaluate_body
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN


def parse_binding(binding: SExpression) -> Optional[tuple[Symbol, SExpression]]:
    """Split a let binding into (name, init-form); None if malformed."""
    if isinstance(binding, Symbol):
        return binding, Nil
    if isinstance(binding, list) and binding and isinstance(binding[0], Symbol) and len(binding) <= 2:
        return binding[0], binding[1] if len(binding) == 2 else Nil
    return None


def parse_bindings(bindings: SExpression) -> Optional[list[tuple[Symbol, SExpression]]]:
    if is_nil(bindings):
        return []
    if not isinstance(bindings, list):
        return None
    parsed = []
    for binding in bindings:
        pair = parse_binding(binding)
        if pair is None:
            return None
        parsed.append(pair)
    return parsed


def let_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(let ((VAR INIT)...) BODY...): all INITs are evaluated in the outer scope."""
    if not tail:
        return UNKNOWN
    bindings = parse_bindings(tail[0])
    if bindings is None:
        return UNKNOWN
    values = [(name, evaluate_fn(init, env, state)) for name, init in bindings]
    frame = Environment.extend(env, values)
    inner = state.binding(*(name for name, _ in bindings))
    return evaluate_body(tail[1:], frame, inner, evaluate_fn)


def let_star_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(let* ((VAR INIT)...) BODY...): each INIT sees the preceding bindings."""
    if not tail:
        return UNKNOWN
    bindings = parse_bindings(tail[0])
    if bindings is None:
        return UNKNOWN
    frame = Environment(env)
    inner = state
    for name, init in bindings:
        frame.define(name, evaluate_fn(init, frame, inner))
        inner = inner.binding(name)
    return evaluate_body(tail[1:], frame, inner, evaluate_fn)
