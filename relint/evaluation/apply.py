"""Application engine for the abstract evaluator.

This module centralizes how the evaluator calls things:
- allow-listed primitives, with any Python-level failure becoming UNKNOWN,
- local functions and macros from the definition tables, inlined with a
  guard against recursive expansion,
- closures created by `lambda', and function designators passed to
  higher-order forms (`#'name', `'name', `(lambda ...)').

Keeping this in one place lets the evaluator and the higher-order special
forms share the same rules about what may be called.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from relint import EvaluatorFn, LispValue
from relint.evaluation.primitives import PRIMITIVES, PrimitiveError
from relint.evaluation.state import EvalState
from relint.types.bind import bind_arguments, formal_names
from relint.types.definitions import LocalDefinition, follow_aliases
from relint.types.environment import Environment
from relint.types.lambda_fn import LAMBDA, Lambda
from relint.types.nil import Nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

logger = logging.getLogger(__name__)


def resolve_alias(name: Symbol, state: EvalState) -> Symbol:
    """Follow local aliases from `name` to the final target."""
    return follow_aliases(state.table("aliases"), name)


def call_primitive(
    fn: Callable[..., LispValue], args: list[LispValue], name: object = None
) -> LispValue:
    """Invoke an allow-listed primitive; failures yield UNKNOWN."""
    if any(arg is UNKNOWN for arg in args):
        return UNKNOWN
    try:
        return fn(*args)
    except (PrimitiveError, TypeError, ValueError, LookupError, ArithmeticError, RecursionError) as e:
        logger.debug("Primitive %s failed: %s", name, e)
        return UNKNOWN


def evaluate_body(
    forms: list, env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Evaluate a body for its last value.

    Every form but the last is only run for effect, so if any of them
    cannot be evaluated the result is UNKNOWN.
    """
    if not forms:
        return Nil
    for form in forms[:-1]:
        if evaluate_fn(form, env, state) is UNKNOWN:
            return UNKNOWN
    return evaluate_fn(forms[-1], env, state)


def apply_local(
    name: Symbol,
    defn: LocalDefinition,
    args: list[LispValue],
    state: EvalState,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    """Inline a call to a function defined in the scanned file."""
    if name in state.expanding:
        logger.debug("Not expanding recursive call to %s", name)
        return UNKNOWN
    root = Environment()
    env = bind_arguments(defn.formals, args, root)
    inner = state.entering(name, root, formal_names(defn.formals))
    return evaluate_body(defn.body, env, inner, evaluate_fn)


def expand_macro(
    name: Symbol,
    defn: LocalDefinition,
    arg_forms: list,
    env: Environment,
    state: EvalState,
    evaluate_fn: EvaluatorFn,
) -> LispValue:
    """Expand a local macro once, then evaluate the expansion in place."""
    if name in state.expanding:
        logger.debug("Not expanding recursive use of macro %s", name)
        return UNKNOWN
    root = Environment()
    macro_env = bind_arguments(defn.formals, arg_forms, root)
    inner = state.entering(name, root, formal_names(defn.formals))
    expansion = evaluate_body(defn.body, macro_env, inner, evaluate_fn)
    if expansion is UNKNOWN:
        return UNKNOWN
    outer = replace(state, expanding=state.expanding | {name})
    return evaluate_fn(expansion, env, outer)


def apply_lambda(
    fn: Lambda, args: list[LispValue], state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    env = bind_arguments(fn.formals, args, fn.env if fn.env is not None else state.root)
    inner = state.binding(*formal_names(fn.formals))
    return evaluate_body(fn.body, env, inner, evaluate_fn)


def as_function(designator: LispValue, state: EvalState) -> Optional[object]:
    """Return something `apply_function` can call, or None.

    Accepts a Lambda, a `(lambda ARGS . BODY)` list, or a symbol naming a
    local function or a primitive.
    """
    if isinstance(designator, Lambda):
        return designator
    if isinstance(designator, list) and len(designator) >= 2 and designator[0] == LAMBDA:
        return Lambda(designator[1], designator[2:], None)
    if isinstance(designator, Symbol):
        name = resolve_alias(designator, state)
        if name in state.table("functions") or name in PRIMITIVES:
            return name
    return None


def apply_function(
    designator: LispValue, args: list[LispValue], state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Call a function value with already-evaluated `args`."""
    fn = as_function(designator, state)
    if fn is None:
        return UNKNOWN
    if isinstance(fn, Lambda):
        return apply_lambda(fn, args, state, evaluate_fn)
    defn = state.table("functions").get(fn)
    if defn is not None:
        return apply_local(fn, defn, args, state, evaluate_fn)
    return call_primitive(PRIMITIVES[fn], args, fn)
