"""Higher-order functions whose function argument the evaluator applies itself.

The function argument must designate something the evaluator may call: a
lambda, a local function, or an allow-listed primitive. Anything else makes
the whole form UNKNOWN.
"""

from __future__ import annotations

from typing import Callable, Optional

from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.apply import apply_function, as_function
from relint.evaluation.primitives import PrimitiveError, append, as_list, as_sequence, concat, from_items
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

INITIAL_VALUE = Symbol(":initial-value")


def _evaluate_args(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> Optional[list[LispValue]]:
    values = []
    for arg in tail:
        value = evaluate_fn(arg, env, state)
        if value is UNKNOWN:
            return None
        values.append(value)
    if not values or as_function(values[0], state) is None:
        return None
    return values


def _map(
    fn: LispValue, seq: LispValue, state: EvalState, evaluate_fn: EvaluatorFn
) -> Optional[list[LispValue]]:
    """Results of calling `fn` on each element, or None if any is unknown."""
    try:
        items = as_sequence(seq)
    except PrimitiveError:
        return None
    results = []
    for item in items:
        value = apply_function(fn, [item], state, evaluate_fn)
        if value is UNKNOWN:
            return None
        results.append(value)
    return results


def _higher_order(arity: int, combine: Callable[[list, list], LispValue]):
    """Build a form evaluating `(FN FUNCTION SEQ ...)` through `combine`."""

    def form(
        tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
    ) -> LispValue:
        if len(tail) < arity:
            return UNKNOWN
        values = _evaluate_args(tail, env, state, evaluate_fn)
        if values is None:
            return UNKNOWN
        results = _map(values[0], values[1], state, evaluate_fn)
        if results is None:
            return UNKNOWN
        try:
            return combine(values, results)
        except PrimitiveError:
            return UNKNOWN

    return form


def _filter(keep: bool):
    def combine(values: list, results: list) -> LispValue:
        items = as_sequence(values[1])
        return from_items(x for x, r in zip(items, results) if is_nil(r) != keep)

    return combine


def _mapconcat(values: list, results: list) -> LispValue:
    separator = values[2] if len(values) > 2 else ""
    parts: list = []
    for i, r in enumerate(results):
        if i:
            parts.append(separator)
        parts.append(r)
    return concat(*parts)


mapcar_form = _higher_order(2, lambda values, results: from_items(results))
mapcan_form = _higher_order(2, lambda values, results: append(*results, Nil))
mapconcat_form = _higher_order(2, _mapconcat)
remove_if_form = _higher_order(2, _filter(False))
remove_if_not_form = _higher_order(2, _filter(True))


def cl_mapcar_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(cl-mapcar FUNCTION SEQ...), stopping at the shortest sequence."""
    if len(tail) < 2:
        return UNKNOWN
    values = _evaluate_args(tail, env, state, evaluate_fn)
    if values is None:
        return UNKNOWN
    try:
        seqs = [as_sequence(seq) for seq in values[1:]]
    except PrimitiveError:
        return UNKNOWN
    results = []
    for args in zip(*seqs):
        value = apply_function(values[0], list(args), state, evaluate_fn)
        if value is UNKNOWN:
            return UNKNOWN
        results.append(value)
    return from_items(results)


def funcall_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    values = _evaluate_args(tail, env, state, evaluate_fn)
    if values is None:
        return UNKNOWN
    return apply_function(values[0], values[1:], state, evaluate_fn)


def apply_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(apply FUNCTION ARG... LIST)."""
    if len(tail) < 2:
        return UNKNOWN
    values = _evaluate_args(tail, env, state, evaluate_fn)
    if values is None:
        return UNKNOWN
    try:
        args = values[1:-1] + as_list(values[-1])
    except PrimitiveError:
        return UNKNOWN
    return apply_function(values[0], args, state, evaluate_fn)


def cl_reduce_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """(cl-reduce FUNCTION SEQ [:initial-value INIT])."""
    if len(tail) not in (2, 4):
        return UNKNOWN
    values = _evaluate_args(tail, env, state, evaluate_fn)
    if values is None:
        return UNKNOWN
    try:
        items = as_sequence(values[1])
    except PrimitiveError:
        return UNKNOWN
    if len(values) == 4:
        if values[2] != INITIAL_VALUE:
            return UNKNOWN
        items = [values[3]] + items
    if not items:
        return apply_function(values[0], [], state, evaluate_fn)
    acc = items[0]
    for item in items[1:]:
        acc = apply_function(values[0], [acc, item], state, evaluate_fn)
        if acc is UNKNOWN:
            return UNKNOWN
    return acc
