"""Pass 2: walk every form and check the pattern strings it contains.

The walk carries the lexical environment built so far and the set of
names that may safely be reassigned at the current point ("mutables"):
names bound by the innermost scope, along a path that runs exactly once.
Handlers for the recognized operators live in HANDLERS; every form is
then walked generically, with no mutables, unless its handler has already
visited the subforms itself.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet, Iterable, Optional, Tuple

from relint import Path, SExpression
from relint.analysis.checks import (
    Site,
    check_concat,
    check_format,
    check_regexp,
    check_skip_set,
    check_syntax_string,
)
from relint.analysis.collector import collect
from relint.analysis.context import AnalysisContext
from relint.analysis.heuristics import FONT_LOCK, LIST, REGEXP, classify_name, classify_variable
from relint.analysis.provenance import find_generators
from relint.analysis.tables import check_element, check_shaped
from relint.evaluation.evaluator import evaluate, evaluate_list
from relint.evaluation.special_forms.let_forms import parse_bindings
from relint.evaluation.special_forms.rx_forms import CHARSET_CLAUSES
from relint.reader.reader_macros import BACKQUOTE, QUOTE
from relint.types.bind import formal_names
from relint.types.environment import Environment
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN

logger = logging.getLogger(__name__)

Mutables = FrozenSet[Symbol]
Handler = Callable[["Dispatcher", list, Path, Environment, Mutables], Optional[bool]]

NO_MUTABLES: Mutables = frozenset()

LET_STAR = Symbol("let*")
DEFCUSTOM = Symbol("defcustom")
TYPE = Symbol(":type")
CDR = Symbol("cdr")
MAKE_LOCAL_VARIABLE = Symbol("make-local-variable")
MAKE_VARIABLE_BUFFER_LOCAL = Symbol("make-variable-buffer-local")
RX_REGEXP_CLAUSES = (Symbol("regexp"), Symbol("regex"))


def _positions(table: Dict[str, Tuple[int, ...]]) -> Dict[Symbol, Tuple[int, ...]]:
    return {Symbol(name): positions for name, positions in table.items()}


# Functions taking a regexp, and the zero-based positions of those arguments
REGEXP_ARGUMENTS = _positions({
    **{name: (0,) for name in (
        "looking-at", "looking-at-p", "looking-back", "re-search-forward",
        "re-search-backward", "search-forward-regexp", "search-backward-regexp",
        "string-match", "string-match-p", "posix-looking-at", "posix-search-forward",
        "posix-search-backward", "posix-string-match", "replace-regexp-in-string",
        "replace-regexp", "query-replace-regexp", "keep-lines", "flush-lines",
        "how-many", "delete-matching-lines", "delete-non-matching-lines",
        "count-matches", "highlight-regexp", "unhighlight-regexp",
        "kill-matching-buffers",
    )},
    "split-string": (1, 3),
    "split-string-and-unquote": (1,),
    "string-trim": (1, 2),
    "string-trim-left": (1,),
    "string-trim-right": (1,),
    "directory-files": (2,),
    "directory-files-and-attributes": (2,),
    "directory-files-recursively": (1,),
    "sort-regexp-fields": (1,),
})

HANDLERS: Dict[Symbol, Handler] = {}


def handles(*names: str):
    """Register the decorated function as the handler of `names`."""
    def register(fn: Handler) -> Handler:
        for name in names:
            HANDLERS[Symbol(name)] = fn
        return fn
    return register


class Dispatcher:
    def __init__(self, ctx: AnalysisContext):
        self.ctx = ctx
        self.offset = 0

    def check_toplevel(self, form: SExpression, offset: int) -> None:
        self.offset = offset
        try:
            self.visit(form, (), Environment(), NO_MUTABLES)
        except RecursionError:
            logger.debug("%s: form at %d nested too deeply", self.ctx.filename, offset)

    def site(self, path: Path, expr: SExpression) -> Site:
        return Site(self.offset, path, expr)

    def visit(self, form: SExpression, path: Path, env: Environment, mutables: Mutables) -> None:
        if isinstance(form, tuple):
            self.visit_elements(form[0] + [form[1]], path, env, 0)
            return
        if not isinstance(form, list) or not form:
            return
        head = form[0]
        if not isinstance(head, Symbol):
            self.visit_elements(form, path, env, 0)
            return
        handler = HANDLERS.get(head)
        name = head
        if handler is None:
            name = self.ctx.resolve(head)
            handler = HANDLERS.get(name)
        if handler is None:
            self.check_call(head, name, form, path, env, mutables)
        elif handler(self, form, path, env, mutables):
            return
        self.visit_elements(form, path, env, 1)

    def visit_elements(self, items: Iterable, path: Path, env: Environment, start: int) -> None:
        for i, sub in enumerate(items):
            if i >= start:
                self.visit(sub, (i,) + path, env, NO_MUTABLES)

    def visit_body(self, form: list, start: int, path: Path, env: Environment, mutables: Mutables) -> None:
        for i in range(start, len(form)):
            self.visit(form[i], (i,) + path, env, mutables)

    def value(self, expr: SExpression, env: Environment, mutables: Mutables):
        return evaluate(expr, env, self.ctx, mutables)

    def variable_shape(self, name: SExpression) -> Optional[str]:
        """How global variable `name` holds patterns, if it does."""
        if not isinstance(name, Symbol):
            return None
        return self.ctx.checked_variables.get(name) or classify_name(str(name))

    def check_expr(
        self, shape: str, expr: SExpression, name: str, path: Path, env: Environment, mutables: Mutables
    ) -> None:
        """Evaluate `expr` and check the patterns in it, laid out as `shape`."""
        if shape == REGEXP:
            value = self.value(expr, env, mutables)
        else:
            value = evaluate_list(expr, env, self.ctx, mutables)
        if value is UNKNOWN:
            return
        check_shaped(self.ctx, shape, value, name, self.site(path, expr))

    def check_call(
        self, head: Symbol, name: Symbol, form: list, path: Path, env: Environment, mutables: Mutables
    ) -> None:
        """Check the regexp arguments of a call to a known regexp consumer."""
        positions = REGEXP_ARGUMENTS.get(name) or self.ctx.regexp_functions.get(name)
        if not positions:
            return
        for position in positions:
            index = position + 1
            if index >= len(form):
                continue
            arg = form[index]
            if isinstance(arg, Symbol) and arg in self.ctx.checked_variables:
                continue
            value = self.value(arg, env, mutables)
            if isinstance(value, str):
                check_regexp(self.ctx, value, f"call to {head}", self.site((index,) + path, arg))

    def check_provenance(self, form: list, path: Path) -> None:
        """Complain about regexps passed where something else is expected."""
        if len(form) < 2:
            return
        for generator in sorted(find_generators(self.ctx, form[1])):
            self.ctx.report(
                f"`{generator}' cannot be used for arguments to `{form[0]}'", self.offset, (1,) + path
            )

    def enter_scope(
        self, form: list, start: int, formals: SExpression, path: Path, env: Environment
    ) -> None:
        """Walk a function body; its parameters are the only mutables."""
        names = formal_names(formals)
        inner = Environment.extend(env, ((name, UNKNOWN) for name in names))
        self.visit_body(form, start, path, inner, frozenset(names))


@handles("quote")
def _quote(d: Dispatcher, form, path, env, mutables):
    return True


@handles("defun", "defsubst", "defmacro", "cl-defun", "cl-defsubst", "cl-defmacro", "define-inline")
def _definition(d: Dispatcher, form, path, env, mutables):
    if len(form) < 3:
        return False
    d.enter_scope(form, 3, form[2], path, env)
    return True


@handles("lambda")
def _lambda(d: Dispatcher, form, path, env, mutables):
    if len(form) < 2:
        return False
    d.enter_scope(form, 2, form[1], path, env)
    return True


@handles("let", "let*")
def _let(d: Dispatcher, form, path, env, mutables):
    if len(form) < 2:
        return False
    bindings = parse_bindings(form[1])
    if bindings is None:
        return False
    sequential = form[0] == LET_STAR
    frame = Environment(env)
    names = []
    for j, (name, init) in enumerate(bindings):
        init_env = frame if sequential else env
        init_mutables = mutables | frozenset(names) if sequential else mutables
        if isinstance(form[1][j], list):
            d.visit(init, (1, j, 1) + path, init_env, init_mutables)
        frame.define(name, d.value(init, init_env, init_mutables))
        names.append(name)
    d.visit_body(form, 2, path, frame, frozenset(names))
    return True


@handles("dolist", "dotimes")
def _loop(d: Dispatcher, form, path, env, mutables):
    if len(form) < 2 or not isinstance(form[1], list) or not form[1] or not isinstance(form[1][0], Symbol):
        return False
    spec = form[1]
    for k in range(1, len(spec)):
        d.visit(spec[k], (k, 1) + path, env, mutables if k == 1 else NO_MUTABLES)
    inner = Environment.extend(env, [(spec[0], UNKNOWN)])
    d.visit_body(form, 2, path, inner, NO_MUTABLES)
    return True


@handles("setq", "setq-local", "setq-default")
def _setq(d: Dispatcher, form, path, env, mutables):
    for i in range(1, len(form) - 1, 2):
        name, expr = form[i], form[i + 1]
        expr_path = (i + 1,) + path
        d.visit(expr, expr_path, env, mutables)
        if not isinstance(name, Symbol):
            continue
        if env.is_bound(name):
            env.set(name, d.value(expr, env, mutables) if name in mutables else UNKNOWN)
            continue
        shape = d.variable_shape(name)
        if shape is not None:
            d.check_expr(shape, expr, str(name), expr_path, env, mutables)
        if not path:
            d.ctx.define_global(name, expr)
    return True


@handles("push")
def _push(d: Dispatcher, form, path, env, mutables):
    if len(form) != 3:
        return False
    element, place = form[1], form[2]
    d.visit(element, (1,) + path, env, mutables)
    if not isinstance(place, Symbol):
        d.visit(place, (2,) + path, env, NO_MUTABLES)
        return True
    if env.is_bound(place):
        env.set(place, d.value(form, env, mutables) if place in mutables else UNKNOWN)
        return True
    shape = d.variable_shape(place)
    if shape is not None:
        value = evaluate_list(element, env, d.ctx, mutables)
        check_element(d.ctx, shape, value, str(place), d.site((1,) + path, element))
    return True


@handles("pop")
def _pop(d: Dispatcher, form, path, env, mutables):
    if len(form) != 2 or not isinstance(form[1], Symbol):
        return False
    place = form[1]
    if env.is_bound(place):
        env.set(place, d.value([CDR, place], env, mutables) if place in mutables else UNKNOWN)
    return True


@handles("add-to-list")
def _add_to_list(d: Dispatcher, form, path, env, mutables):
    if len(form) >= 3:
        variable = d.value(form[1], env, mutables)
        shape = d.variable_shape(variable)
        if shape is not None:
            value = evaluate_list(form[2], env, d.ctx, mutables)
            check_element(d.ctx, shape, value, str(variable), d.site((2,) + path, form[2]))
    return False


@handles("set")
def _set(d: Dispatcher, form, path, env, mutables):
    """(set 'VAR EXPR) and (set (make-local-variable 'VAR) EXPR)."""
    if len(form) != 3:
        return False
    target = form[1]
    if isinstance(target, list) and len(target) == 2 and target[0] in (
        MAKE_LOCAL_VARIABLE, MAKE_VARIABLE_BUFFER_LOCAL
    ):
        target = target[1]
    name = d.value(target, env, mutables)
    shape = d.variable_shape(name)
    if shape is not None:
        d.check_expr(shape, form[2], str(name), (2,) + path, env, mutables)
    return False


@handles("if", "when", "unless", "and", "or")
def _conditional(d: Dispatcher, form, path, env, mutables):
    # Only the first operand is certain to run exactly once
    for i in range(1, len(form)):
        d.visit(form[i], (i,) + path, env, mutables if i == 1 else NO_MUTABLES)
    return True


@handles("cond")
def _cond(d: Dispatcher, form, path, env, mutables):
    for j in range(1, len(form)):
        clause = form[j]
        if not isinstance(clause, list):
            continue
        for k, sub in enumerate(clause):
            first = j == 1 and k == 0
            d.visit(sub, (k, j) + path, env, mutables if first else NO_MUTABLES)
    return True


@handles(
    "progn", "prog1", "prog2", "save-excursion", "save-restriction", "save-match-data",
    "ignore-errors", "with-no-warnings", "eval-when-compile", "eval-and-compile",
    "with-temp-buffer",
)
def _progn(d: Dispatcher, form, path, env, mutables):
    d.visit_body(form, 1, path, env, mutables)
    return True


@handles("defvar", "defconst", "defcustom", "defvar-local")
def _defvar(d: Dispatcher, form, path, env, mutables):
    if len(form) < 2 or not isinstance(form[1], Symbol):
        return False
    if len(form) < 3:
        return True
    name, expr = form[1], form[2]
    d.visit(expr, (2,) + path, env, NO_MUTABLES)
    doc = form[3] if len(form) > 3 and isinstance(form[3], str) else None
    type_form = None
    if form[0] == DEFCUSTOM:
        options = form[4:]
        for k in range(0, len(options) - 1, 2):
            if options[k] == TYPE:
                type_form = d.value(options[k + 1], env, NO_MUTABLES)
                if type_form is UNKNOWN:
                    type_form = None
    shape = classify_variable(name, type_form, doc)
    if shape is not None:
        d.check_expr(shape, expr, str(name), (2,) + path, env, NO_MUTABLES)
        d.ctx.checked_variables[name] = shape
    d.ctx.define_global(name, expr)
    return True


@handles("skip-chars-forward", "skip-chars-backward")
def _skip_chars(d: Dispatcher, form, path, env, mutables):
    if len(form) >= 2:
        value = d.value(form[1], env, mutables)
        if isinstance(value, str):
            check_skip_set(d.ctx, value, f"call to {form[0]}", d.site((1,) + path, form[1]))
        d.check_provenance(form, path)
    return False


@handles("skip-syntax-forward", "skip-syntax-backward")
def _skip_syntax(d: Dispatcher, form, path, env, mutables):
    if len(form) >= 2:
        value = d.value(form[1], env, mutables)
        if isinstance(value, str):
            check_syntax_string(d.ctx, value, f"call to {form[0]}", d.site((1,) + path, form[1]))
        d.check_provenance(form, path)
    return False


@handles("concat")
def _concat(d: Dispatcher, form, path, env, mutables):
    check_concat(d.ctx, form, d.site(path, form))
    return False


@handles("format", "format-message")
def _format(d: Dispatcher, form, path, env, mutables):
    check_format(d.ctx, form, d.site(path, form))
    return False


@handles("font-lock-add-keywords", "font-lock-remove-keywords")
def _font_lock_keywords(d: Dispatcher, form, path, env, mutables):
    if len(form) >= 3:
        d.check_expr(FONT_LOCK, form[2], f"call to {form[0]}", (2,) + path, env, mutables)
    return False


@handles("define-generic-mode")
def _generic_mode(d: Dispatcher, form, path, env, mutables):
    """(define-generic-mode MODE COMMENTS KEYWORDS FONT-LOCK AUTO-MODE FUNCTIONS)

    KEYWORDS are plain words, quoted by the macro itself.
    """
    name = f"call to {form[0]}"
    if len(form) >= 5:
        d.check_expr(FONT_LOCK, form[4], name, (4,) + path, env, mutables)
    if len(form) >= 6:
        d.check_expr(LIST, form[5], name, (5,) + path, env, mutables)
    return False


@handles("syntax-propertize-rules")
def _syntax_propertize_rules(d: Dispatcher, form, path, env, mutables):
    for j in range(1, len(form)):
        rule = form[j]
        if isinstance(rule, list) and rule:
            d.check_expr(REGEXP, rule[0], f"call to {form[0]}", (0, j) + path, env, mutables)
    return False


def _rx_regexps(d: Dispatcher, rx: SExpression, name: str, path: Path, env, mutables) -> None:
    """Check the `(regexp X)' clauses of an rx form."""
    if not isinstance(rx, list) or not rx:
        return
    head = rx[0]
    if head in RX_REGEXP_CLAUSES and len(rx) == 2:
        d.check_expr(REGEXP, rx[1], name, (1,) + path, env, mutables)
        return
    if isinstance(head, Symbol) and head in CHARSET_CLAUSES:
        return
    for i in range(1, len(rx)):
        _rx_regexps(d, rx[i], name, (i,) + path, env, mutables)


@handles("rx")
def _rx(d: Dispatcher, form, path, env, mutables):
    for i in range(1, len(form)):
        _rx_regexps(d, form[i], "call to rx", (i,) + path, env, mutables)
    return True


@handles("rx-to-string")
def _rx_to_string(d: Dispatcher, form, path, env, mutables):
    if len(form) >= 2:
        arg = form[1]
        if isinstance(arg, list) and len(arg) == 2 and arg[0] in (QUOTE, BACKQUOTE):
            _rx_regexps(d, arg[1], "call to rx-to-string", (1, 1) + path, env, mutables)
            return True
    return False


def analyze(ctx: AnalysisContext, forms: list) -> None:
    """Run both passes over `forms`, a list of (form, offset) pairs."""
    collect(ctx, (form for form, _ in forms))
    dispatcher = Dispatcher(ctx)
    for form, offset in forms:
        dispatcher.check_toplevel(form, offset)
