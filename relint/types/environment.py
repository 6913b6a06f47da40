"""Lexical binding environment used by both analysis passes.

An Environment is one frame of name -> value bindings with an `outer` link.
Values may be UNKNOWN when a name is bound but its value cannot be tracked.
Lookup walks outward, so the most recent binding of a name wins.
"""

from __future__ import annotations

from io import StringIO
from typing import Iterable, Optional

from relint import LispValue
from relint.types.errors import RelintError
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN


class Environment:
    """Hierarchical mapping from Symbols to abstract values."""

    __slots__ = ("vars", "outer")

    def __init__(self, outer: Optional[Environment] = None):
        self.vars: dict[Symbol, LispValue] = {}
        self.outer: Environment | None = outer

    @classmethod
    def extend(
        cls, outer: Optional[Environment], bindings: Iterable[tuple[Symbol, LispValue]]
    ) -> Environment:
        """Return a new frame on top of `outer` holding `bindings`."""
        env = cls(outer)
        for name, value in bindings:
            env.define(name, value)
        return env

    def define(self, name: Symbol, value: LispValue = UNKNOWN) -> None:
        """Bind `name` to `value` in this frame."""
        if not isinstance(name, Symbol):
            raise RelintError(f"Cannot define {name!r} as a symbol")
        self.vars[name] = value

    def find(self, symbol: Symbol) -> Optional[Environment]:
        """Find the nearest environment in the chain that contains `symbol`."""
        env: Optional[Environment] = self
        while env is not None:
            if symbol in env.vars:
                return env
            env = env.outer
        return None

    def is_bound(self, name: Symbol) -> bool:
        return self.find(name) is not None

    def set(self, name: Symbol, value: LispValue) -> bool:
        """Update the nearest binding of `name`; return False if unbound."""
        env = self.find(name)
        if env is None:
            return False
        env.vars[name] = value
        return True

    def lookup(self, name: Symbol, default: LispValue = None) -> LispValue:
        """Return the value bound to `name`, or `default` when unbound."""
        env = self.find(name)
        if env is None:
            return default
        return env.vars[name]

    def _write_vars(self, buffer: StringIO) -> None:
        buffer.write("{")
        buffer.write(", ".join(f"{k}: {v!r}" for k, v in self.vars.items()))
        buffer.write("}")

    def __repr__(self) -> str:
        with StringIO() as buffer:
            buffer.write("<Environment chain: ")
            env = self
            chain = []
            while env is not None:
                env_buf = StringIO()
                env._write_vars(env_buf)
                chain.append(env_buf.getvalue())
                env = env.outer
            buffer.write(" -> ".join(chain))
            buffer.write(">")
            return buffer.getvalue()
