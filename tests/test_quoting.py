import pytest

from relint.evaluation.evaluator import evaluate
from relint.types.lambda_fn import Lambda
from relint.types.nil import Nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN
from relint.types.vector import Vector


def test_quote_returns_form_unevaluated(env, read):
    assert evaluate(read("'(x y)"), env) == [Symbol("x"), Symbol("y")]
    assert evaluate(read("'x"), env) == Symbol("x")
    assert evaluate(read("'()"), env) is Nil


def test_function_quote(env, read):
    assert evaluate(read("#'car"), env) == Symbol("car")
    assert isinstance(evaluate(read("#'(lambda (a) a)"), env), Lambda)


@pytest.mark.parametrize(
    "source, expected",
    [
        ("`(1 2 3)", [1, 2, 3]),
        ("`(a ,x)", [Symbol("a"), "A"]),
        ("`(,x ,@(list y y))", ["A", "B", "B"]),
        ("`(,@nil)", Nil),
        ("`(a . ,x)", ([Symbol("a")], "A")),
        ("`[,x b]", Vector(["A", Symbol("b")])),
        ("`((,x . ,y))", [(["A"], "B")]),
        ("`,x", "A"),
    ]
)
def test_backquote(env, read, source, expected):
    assert evaluate(read(source), env) == expected


@pytest.mark.parametrize(
    "source",
    [
        "`(a ,(foo))",
        "`(a ,@(foo))",
        "`(a `(b ,c))",
        "`(a ',(foo))",
    ]
)
def test_backquote_with_unknown_parts(env, read, source):
    assert evaluate(read(source), env) is UNKNOWN
