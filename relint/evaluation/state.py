from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from relint.config import get_loop_limit
from relint.types.environment import Environment
from relint.types.symbol import Symbol


@dataclass(frozen=True)
class EvalState:
    """Per-evaluation bookkeeping threaded through every evaluation step.

    `root` is the overlay frame at the bottom of the evaluator's own
    bindings; assignments to names the evaluator does not own land there so
    caller frames are never modified. `mutables` are names bound by the
    evaluator itself (let, loops, parameters), `outer_mutables` are names the
    caller allows to be reassigned. `expanding` holds the local functions
    and macros currently being inlined.
    """
    ctx: Any
    root: Environment
    mutables: frozenset = frozenset()
    outer_mutables: frozenset = frozenset()
    expanding: frozenset = frozenset()
    loop_limit: int = field(default_factory=get_loop_limit)

    def binding(self, *names: Symbol) -> EvalState:
        """State after `names` have been bound by the evaluator."""
        return replace(self, mutables=self.mutables | frozenset(names))

    def entering(self, name: Symbol, root: Environment, names=()) -> EvalState:
        """State for the body of local function or macro `name`."""
        return replace(
            self,
            root=root,
            mutables=frozenset(names),
            outer_mutables=frozenset(),
            expanding=self.expanding | {name},
        )

    def table(self, attr: str) -> dict:
        if self.ctx is None:
            return {}
        return getattr(self.ctx, attr)
