"""Per-file analysis state.

One AnalysisContext is created for every scanned file and threaded through
both passes and the evaluator. Nothing in it outlives the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from relint import Path, SExpression
from relint.checkers import DEFAULT_REGEXP_CHECKER, DEFAULT_SKIP_SET_CHECKER
from relint.config import get_loop_limit
from relint.diagnostics import Diagnostic, SuppressionIndex
from relint.evaluation.evaluator import evaluate
from relint.reader.positions import line_column, resolve_offset, string_position
from relint.types.definitions import GlobalBinding, LocalDefinition, follow_aliases
from relint.types.symbol import Symbol

logger = logging.getLogger(__name__)

# A pattern-syntax checker: string -> [(position, message), ...]
Checker = Callable[[str], List[Tuple[int, str]]]


@dataclass
class AnalysisContext:
    filename: str
    source: str
    regexp_checker: Checker = DEFAULT_REGEXP_CHECKER
    skip_set_checker: Checker = DEFAULT_SKIP_SET_CHECKER
    loop_limit: int = field(default_factory=get_loop_limit)

    # Definition tables, filled by the collector
    functions: Dict[Symbol, LocalDefinition] = field(default_factory=dict)
    macros: Dict[Symbol, LocalDefinition] = field(default_factory=dict)
    aliases: Dict[Symbol, Symbol] = field(default_factory=dict)
    regexp_functions: Dict[Symbol, Tuple[int, ...]] = field(default_factory=dict)
    regexp_returning: Set[Symbol] = field(default_factory=set)

    # Filled by the dispatcher as definitions are met
    variables: Dict[Symbol, GlobalBinding] = field(default_factory=dict)
    checked_variables: Dict[Symbol, str] = field(default_factory=dict)

    diagnostics: List[Diagnostic] = field(default_factory=list)
    suppressed: int = 0
    _seen: Set[Tuple[int, str]] = field(default_factory=set, repr=False)
    _suppression: Optional[SuppressionIndex] = field(default=None, repr=False)

    def __post_init__(self):
        self._suppression = SuppressionIndex(self.source)

    def resolve(self, name: Symbol) -> Symbol:
        return follow_aliases(self.aliases, name)

    def define_global(self, name: Symbol, expr: SExpression) -> None:
        """Record the defining expression of global variable `name`.

        A first definition is evaluated lazily on first use. A redefinition
        is evaluated right away, while the previous value is still visible,
        so that `(setq x (concat x "..."))` works.
        """
        if name in self.variables:
            value = evaluate(expr, None, self)
            self.variables[name] = GlobalBinding.of_value(value)
        else:
            self.variables[name] = GlobalBinding(expr=expr)

    def report(self, message: str, offset: int, path: Path = (), string_index: Optional[int] = None) -> None:
        """Report `message` at the subform `path` of the form at `offset`.

        With `string_index`, the position is moved to that character of the
        string literal found there.
        """
        pos = resolve_offset(self.source, offset, path)
        if string_index is not None:
            pos = string_position(self.source, pos, string_index)
        key = (pos, message)
        if key in self._seen:
            return
        self._seen.add(key)
        line, column = line_column(self.source, pos)
        if self._suppression.is_suppressed(line, message):
            logger.debug("%s:%d: suppressed: %s", self.filename, line, message)
            self.suppressed += 1
            return
        self.diagnostics.append(Diagnostic(self.filename, pos, line, column, message))
