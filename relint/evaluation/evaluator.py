"""Core of the abstract evaluator.

Evaluation is bounded and side-effect free: only special forms from
SPECIAL_FORMS, local functions and macros from the definition tables, and
allow-listed primitives are ever run. Everything else evaluates to UNKNOWN,
which propagates through every combinator.
"""

from __future__ import annotations

import logging
from typing import Optional

from relint import LispValue, SExpression
from relint.evaluation.apply import (
    apply_lambda,
    apply_local,
    call_primitive,
    expand_macro,
    resolve_alias,
)
from relint.evaluation.primitives import PRIMITIVES, PrimitiveError, append, cons, from_items
from relint.evaluation.special_forms import SPECIAL_FORMS
from relint.evaluation.special_forms.quote_forms import expand_template
from relint.evaluation.state import EvalState
from relint.reader.reader_macros import BACKQUOTE
from relint.types.environment import Environment
from relint.types.lambda_fn import LAMBDA, Lambda
from relint.types.nil import Nil
from relint.types.symbol import Symbol, T
from relint.types.unknown import UNKNOWN

logger = logging.getLogger(__name__)

NIL_SYMBOL = Symbol("nil")

# Constructors whose list structure survives unknown elements
LIST = Symbol("list")
CONS = Symbol("cons")
APPEND = Symbol("append")
NCONC = Symbol("nconc")
PURECOPY = Symbol("purecopy")
IDENTITY = Symbol("identity")


def _initial_state(
    env: Optional[Environment], ctx, mutables: frozenset
) -> tuple[Environment, EvalState]:
    root = Environment(outer=env)
    if ctx is not None and getattr(ctx, "loop_limit", None):
        state = EvalState(ctx=ctx, root=root, outer_mutables=frozenset(mutables),
                          loop_limit=ctx.loop_limit)
    else:
        state = EvalState(ctx=ctx, root=root, outer_mutables=frozenset(mutables))
    return root, state


def evaluate(
    expr: SExpression,
    env: Optional[Environment] = None,
    ctx=None,
    mutables: frozenset = frozenset(),
) -> LispValue:
    """Evaluate `expr` as far as can be done safely.

    Returns the value, or UNKNOWN. `env` is never modified; assignments made
    by the evaluated code are kept in a private overlay frame.
    """
    root, state = _initial_state(env, ctx, mutables)
    try:
        return evaluate_form(expr, root, state)
    except RecursionError:
        logger.debug("Evaluation too deep; giving up")
        return UNKNOWN


def evaluate_list(
    expr: SExpression,
    env: Optional[Environment] = None,
    ctx=None,
    mutables: frozenset = frozenset(),
) -> LispValue:
    """Evaluate `expr` keeping its list structure where possible.

    Unlike `evaluate`, an unknown element of a `list`, `cons`, `append` or
    backquote construction does not make the whole value unknown; it is
    replaced by nil. Never returns UNKNOWN.
    """
    root, state = _initial_state(env, ctx, mutables)
    try:
        return _structural(expr, root, state)
    except RecursionError:
        logger.debug("Evaluation too deep; giving up")
        return Nil


def _structural(expr: SExpression, env: Environment, state: EvalState) -> LispValue:
    if isinstance(expr, list) and expr and isinstance(expr[0], Symbol):
        head, args = expr[0], expr[1:]
        if head == LIST:
            return from_items(_structural(arg, env, state) for arg in args)
        if head == CONS and len(args) == 2:
            return cons(_structural(args[0], env, state), _structural(args[1], env, state))
        if head in (APPEND, NCONC):
            try:
                return append(*(_structural(arg, env, state) for arg in args))
            except PrimitiveError:
                return Nil
        if head in (PURECOPY, IDENTITY) and len(args) == 1:
            return _structural(args[0], env, state)
        if head == BACKQUOTE and len(args) == 1:
            value = expand_template(args[0], env, state, _structural)
            return Nil if value is UNKNOWN else value
    value = evaluate_form(expr, env, state)
    return Nil if value is UNKNOWN else value


def global_value(name: Symbol, state: EvalState) -> LispValue:
    """Value of a global variable defined in the scanned file, or UNKNOWN."""
    binding = state.table("variables").get(name)
    if binding is None:
        return UNKNOWN
    if binding.evaluated:
        return binding.value
    if binding.in_progress:
        return UNKNOWN
    binding.in_progress = True
    try:
        value = evaluate(binding.expr, None, state.ctx)
    finally:
        binding.in_progress = False
    binding.value = value
    binding.evaluated = True
    return value


def lookup(name: Symbol, env: Environment, state: EvalState) -> LispValue:
    if name == NIL_SYMBOL:
        return Nil
    if name == T or name.is_keyword:
        return name
    frame = env.find(name)
    if frame is not None:
        return frame.vars[name]
    return global_value(name, state)


def evaluate_form(expr: SExpression, env: Environment, state: EvalState) -> LispValue:
    """Single evaluation step, recursing through `evaluate_form` itself."""
    if isinstance(expr, Symbol):
        return lookup(expr, env, state)
    if isinstance(expr, tuple):
        # Dotted list in code position
        return UNKNOWN
    if not isinstance(expr, list) or not expr:
        # Atoms, vectors and nil evaluate to themselves
        return expr

    head, args = expr[0], expr[1:]
    if isinstance(head, list) and len(head) >= 2 and head[0] == LAMBDA:
        values = [evaluate_form(arg, env, state) for arg in args]
        return apply_lambda(Lambda(head[1], head[2:], env), values, state, evaluate_form)
    if not isinstance(head, Symbol):
        return UNKNOWN

    if head in SPECIAL_FORMS:
        return SPECIAL_FORMS[head](args, env, state, evaluate_form)

    name = resolve_alias(head, state)
    macro = state.table("macros").get(name)
    if macro is not None:
        return expand_macro(name, macro, args, env, state, evaluate_form)

    function = state.table("functions").get(name)
    if function is not None:
        values = [evaluate_form(arg, env, state) for arg in args]
        return apply_local(name, function, values, state, evaluate_form)

    if name != head and name in SPECIAL_FORMS:
        return SPECIAL_FORMS[name](args, env, state, evaluate_form)

    primitive = PRIMITIVES.get(name)
    if primitive is None:
        return UNKNOWN
    values = []
    for arg in args:
        value = evaluate_form(arg, env, state)
        if value is UNKNOWN:
            return UNKNOWN
        values.append(value)
    return call_primitive(primitive, values, name)
