import pytest

from relint.analysis.collector import collect
from relint.analysis.context import AnalysisContext
from relint.evaluation.evaluator import evaluate
from relint.reader.parser import read_toplevel_forms
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN


def eval_source(source: str):
    """Collect the macros in `source`, then evaluate its last form."""
    forms = [form for form, _ in read_toplevel_forms(source)]
    ctx = AnalysisContext(filename="test.el", source=source)
    collect(ctx, forms)
    return evaluate(forms[-1], None, ctx)


# -------------------------
# Expansion then evaluation
# -------------------------

@pytest.mark.parametrize(
    "source, expected",
    [
        ("(defmacro m (x) (list 'concat x \"!\")) (m \"a\")", "a!"),
        ("(defmacro m (x) `(concat ,x \"b\")) (m \"a\")", "ab"),
        ("(defmacro m (&rest parts) (cons 'concat parts)) (m \"a\" \"b\")", "ab"),
        ("(defmacro m (x) (list 'quote x)) (m (foo bar))", [Symbol("foo"), Symbol("bar")]),
        (
            "(defmacro inner (x) `(concat ,x \"1\"))\n"
            "(defmacro outer (x) `(inner ,x))\n"
            "(outer \"a\")",
            "a1",
        ),
        (
            "(defmacro m (x) `(concat ,x \"!\"))\n"
            "(let ((v \"z\")) (m v))",
            "z!",
        ),
    ]
)
def test_macro_expansion(source, expected):
    assert eval_source(source) == expected


# -------------------------
# Expansions that cannot be followed
# -------------------------

@pytest.mark.parametrize(
    "source",
    [
        "(defmacro m (x) (foo x)) (m 1)",
        "(defmacro m () '(m)) (m)",
        "(defmacro m (x) `(concat ,x (buffer-name))) (m \"a\")",
    ]
)
def test_unknown_expansion(source):
    assert eval_source(source) is UNKNOWN


def test_macro_arguments_are_not_evaluated():
    # `x' is unbound; only its expansion would need a value
    assert eval_source("(defmacro m (x) (list 'quote (list x))) (m x)") == [Symbol("x")]
