import pytest

from relint.analysis.collector import collect, split_body
from relint.analysis.context import AnalysisContext
from relint.reader.parser import read_toplevel_forms
from relint.types.symbol import Symbol

SOURCE = """
(eval-and-compile
  (defun my-match (regexp string)
    "Match REGEXP against STRING."
    (interactive)
    (string-match regexp string)))
(defalias 'my-alias #'my-match)
(defalias 'my-fn (lambda (s) (concat s "!")))
(fset 'my-self 'my-self)
(defmacro my-mac (x) x)
(defun my-word-regexp () "[a-z]+")
(defun my-thing () "Return a regexp for things." (my-word-regexp))
(defvar my-data '(defun not-collected () nil))
"""


@pytest.fixture
def ctx():
    ctx = AnalysisContext(filename="test.el", source=SOURCE)
    collect(ctx, (form for form, _ in read_toplevel_forms(SOURCE)))
    return ctx


def test_functions_and_macros(ctx):
    assert set(ctx.functions) == {
        Symbol("my-match"), Symbol("my-fn"), Symbol("my-word-regexp"), Symbol("my-thing"),
    }
    assert set(ctx.macros) == {Symbol("my-mac")}


def test_definition_body_drops_doc_and_interactive(ctx, read):
    defn = ctx.functions[Symbol("my-match")]
    assert defn.formals == [Symbol("regexp"), Symbol("string")]
    assert defn.body == [read("(string-match regexp string)")]


def test_lambda_alias_becomes_function(ctx, read):
    defn = ctx.functions[Symbol("my-fn")]
    assert defn.formals == [Symbol("s")]
    assert defn.body == [read('(concat s "!")')]


def test_aliases(ctx):
    assert ctx.aliases == {Symbol("my-alias"): Symbol("my-match")}
    assert ctx.resolve(Symbol("my-alias")) == Symbol("my-match")


def test_regexp_parameters_and_results(ctx):
    assert ctx.regexp_functions == {Symbol("my-match"): (0,)}
    assert ctx.regexp_returning == {Symbol("my-word-regexp"), Symbol("my-thing")}


def test_alias_cycle_resolves_to_a_name():
    ctx = AnalysisContext(filename="test.el", source="")
    ctx.aliases[Symbol("a")] = Symbol("b")
    ctx.aliases[Symbol("b")] = Symbol("a")
    assert ctx.resolve(Symbol("a")) in (Symbol("a"), Symbol("b"))


@pytest.mark.parametrize(
    "body, doc, code",
    [
        (["Doc.", 1], "Doc.", [1]),
        (["only"], None, ["only"]),
        ([[Symbol("interactive")], 1], None, [1]),
        (["Doc.", [Symbol("declare"), [Symbol("indent"), 1]], [Symbol("interactive")], 2], "Doc.", [2]),
        ([], None, []),
    ]
)
def test_split_body(body, doc, code):
    assert split_body(body) == (doc, code)
