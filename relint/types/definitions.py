"""Records kept in the per-file definition tables."""

from __future__ import annotations

from dataclasses import dataclass

from relint import LispValue, SExpression
from relint.types.unknown import UNKNOWN


@dataclass(frozen=True)
class LocalDefinition:
    """A function or macro defined in the file being scanned.

    `body` excludes the doc string and any `declare`/`interactive` forms.
    """
    name: object
    formals: SExpression
    body: list


@dataclass
class GlobalBinding:
    """A global variable: its defining expression, evaluated at most once."""
    expr: SExpression = None
    value: LispValue = UNKNOWN
    evaluated: bool = False
    in_progress: bool = False

    @classmethod
    def of_value(cls, value: LispValue) -> GlobalBinding:
        return cls(value=value, evaluated=True)


# Longest chain of alias links that is followed
MAX_ALIAS_DEPTH = 16


def follow_aliases(aliases: dict, name):
    """Follow `aliases` from `name` to the final target, stopping at cycles."""
    seen = {name}
    for _ in range(MAX_ALIAS_DEPTH):
        target = aliases.get(name)
        if target is None or target in seen:
            return name
        seen.add(target)
        name = target
    return name
