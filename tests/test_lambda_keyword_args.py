import pytest

from relint.analysis.collector import collect
from relint.analysis.context import AnalysisContext
from relint.evaluation.evaluator import evaluate
from relint.reader.parser import read_toplevel_forms
from relint.types.bind import bind_arguments, formal_names
from relint.types.environment import Environment
from relint.types.nil import Nil
from relint.types.symbol import Symbol
from relint.types.unknown import UNKNOWN


def eval_source(source: str):
    """Collect the definitions in `source`, then evaluate its last form."""
    forms = [form for form, _ in read_toplevel_forms(source)]
    ctx = AnalysisContext(filename="test.el", source=source)
    collect(ctx, forms)
    return evaluate(forms[-1], None, ctx)


@pytest.mark.parametrize(
    "source, expected",
    [
        ("(defun f (a &optional b) (list a b)) (f 1 2)", [1, 2]),
        ("(defun f (a &rest more) more) (f 1 2 3)", [2, 3]),
        ("(defun f (a &rest more) (length more)) (f 1)", 0),
        ("(defun f (a) a) (f 1 2)", 1),
        ("(cl-defun f ((a b) c) c) (f '(1 2) 3)", 3),
        ("((lambda (x &rest r) r) 1 2)", [2]),
        ("(funcall (lambda (&optional x) (list x)) 4)", [4]),
    ]
)
def test_lambda_list_binding(source, expected):
    assert eval_source(source) == expected


def test_missing_arguments_bind_nil():
    assert eval_source("(defun f (a &optional b) b) (f 1)") is Nil
    assert eval_source("(defun f (a) a) (f)") is Nil
    assert eval_source("(defun f (a &rest more) more) (f 1)") is Nil


def test_key_and_aux_arguments_are_unknown():
    assert eval_source("(cl-defun f (a &key b) b) (f 1 :b 2)") is UNKNOWN
    assert eval_source("(cl-defun f (&aux (c 3)) c) (f)") is UNKNOWN


def test_optional_default_is_not_evaluated():
    assert eval_source("(cl-defun f (&optional (b \"x\")) b) (f)") is Nil


def test_formal_names(read):
    assert formal_names(read("(a &optional (b 2) &rest c)")) == [Symbol("a"), Symbol("b"), Symbol("c")]
    assert formal_names(read("(&key k &allow-other-keys)")) == [Symbol("k")]
    assert formal_names(read("nil")) == []


def test_bind_arguments_extends_closure():
    closure = Environment()
    closure.define(Symbol("z"), "Z")
    env = bind_arguments([Symbol("a")], ["A"], closure)
    assert env.lookup(Symbol("a")) == "A"
    assert env.lookup(Symbol("z")) == "Z"
    assert not closure.is_bound(Symbol("a"))
