from __future__ import annotations

from typing import List

from relint import LispValue
from relint.types.environment import Environment
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

OPTIONAL = Symbol("&optional")
REST = Symbol("&rest")
BODY = Symbol("&body")
KEY = Symbol("&key")
AUX = Symbol("&aux")
ALLOW_OTHER_KEYS = Symbol("&allow-other-keys")

LAMBDA_LIST_KEYWORDS = frozenset({OPTIONAL, REST, BODY, KEY, AUX, ALLOW_OTHER_KEYS})


def _spec_name(spec) -> Symbol | None:
    """Name bound by a parameter spec: `x` or `(x default)`."""
    if isinstance(spec, Symbol):
        return spec
    if isinstance(spec, list) and spec and isinstance(spec[0], Symbol):
        return spec[0]
    return None


def formal_names(formals: LispValue) -> list[Symbol]:
    """All names bound by a lambda list, in order."""
    if is_nil(formals) or not isinstance(formals, list):
        return []
    names = []
    for spec in formals:
        if isinstance(spec, Symbol) and spec in LAMBDA_LIST_KEYWORDS:
            continue
        name = _spec_name(spec)
        if name is not None:
            names.append(name)
    return names


def bind_arguments(
    formals: LispValue,
    supplied_args: List[LispValue],
    closure_env: Environment | None,
) -> Environment:
    """
    Lambda-list binding for inlined local functions, macros and lambdas.

    Arity is never an error here: the callee body is only being evaluated
    abstractly, so missing positional and optional arguments are bound to
    nil like the slot of an absent argument, and surplus arguments are
    dropped.

    Supports:
    - Positional parameters
    - &optional: a missing argument binds nil (defaults are not evaluated)
    - &rest / &body capturing the remaining arguments as a list
    - &key / &aux: names are bound to UNKNOWN

    Returns a new Environment whose outer is `closure_env`.
    """
    local_env = Environment(outer=closure_env)
    if is_nil(formals) or not isinstance(formals, list):
        return local_env

    supplied = list(supplied_args)
    mode = None
    for spec in formals:
        if isinstance(spec, Symbol) and spec in LAMBDA_LIST_KEYWORDS:
            mode = spec
            continue
        name = _spec_name(spec)
        if name is None:
            # Destructuring patterns are not modelled
            continue
        if mode in (REST, BODY):
            local_env.define(name, supplied if supplied else Nil)
            supplied = []
        elif mode in (KEY, AUX, ALLOW_OTHER_KEYS):
            local_env.define(name, UNKNOWN)
        elif isinstance(spec, list) and mode is None:
            # cl-style destructuring of a required argument
            local_env.define(name, UNKNOWN)
            if supplied:
                supplied.pop(0)
        else:
            local_env.define(name, supplied.pop(0) if supplied else Nil)
    return local_env
