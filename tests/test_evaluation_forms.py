import pytest

from relint.evaluation.evaluator import evaluate
from relint.types.nil import Nil
from relint.types.symbol import Symbol, T
from relint.types.unknown import UNKNOWN


@pytest.mark.parametrize(
    "source, expected",
    [
        # conditionals
        ('(if t "a" "b")', "a"),
        ('(if nil "a" "b" "c")', "c"),
        ('(if nil "a")', Nil),
        ('(when (string= x "A") "yes")', "yes"),
        ('(unless (string= x "A") "yes")', Nil),
        ('(cond ((string= x "B") 1) ((string= y "B") 2) (t 3))', 2),
        ('(cond (nil 1) ("v"))', "v"),
        ("(cond (nil 1))", Nil),
        # logic
        ("(and)", T),
        ('(and x y)', "B"),
        ("(and nil (foo))", Nil),
        ('(or nil x)', "A"),
        ("(or nil nil)", Nil),
        # sequencing
        ("(progn 1 2 3)", 3),
        ("(prog1 1 2 3)", 1),
        ("(prog2 1 2 3)", 2),
        ('(save-match-data (concat x "!"))', "A!"),
        ('(eval-when-compile (concat "a" "b"))', "ab"),
        # bindings
        ('(let* ((y "^") (z (concat x y))) z)', "A^"),
        ('(let ((y "^") (z (concat x y))) z)', "AB"),
        ("(let (a (b 2)) (list a b))", [Nil, 2]),
        ("(let ((n 1)) (let ((n 2)) n))", 2),
        # loops
        ("(let ((i 0)) (while (< i 5) (setq i (1+ i))) i)", 5),
        ("(let ((i 0)) (while t (setq i (1+ i))) i)", 100),
        ('(let ((r nil)) (dolist (c (list "a" "b")) (push c r)) r)', ["b", "a"]),
        ('(let ((s "")) (dolist (c (list "a" "b") s) (setq s (concat s c))))', "ab"),
        ("(let ((sum 0)) (dotimes (i n) (setq sum (+ sum i))) sum)", 3),
        ("(dotimes (i 3 i))", 3),
        ("(let ((l (list 1 2))) (list (pop l) l))", [1, [2]]),
    ]
)
def test_special_forms(env, read, source, expected):
    assert evaluate(read(source), env) == expected


@pytest.mark.parametrize(
    "source",
    [
        '(if (foo) "a" "b")',
        "(when (foo) 1)",
        "(cond ((foo) 1) (t 2))",
        "(and x (foo) nil)",
        "(or (foo) x)",
        "(progn (foo) 1)",
        "(let ((i 0)) (while (foo) (setq i 1)) i)",
        "(dolist (c (foo)) c)",
        "(let x 1)",
        "(setq x)",
    ]
)
def test_forms_with_unknown_parts(env, read, source):
    assert evaluate(read(source), env) is UNKNOWN


def test_loop_limit_from_environment(monkeypatch, read):
    monkeypatch.setenv("RELINT_LOOP_LIMIT", "7")
    assert evaluate(read("(let ((i 0)) (while t (setq i (1+ i))) i)")) == 7


def test_bad_loop_limit_falls_back_to_default(monkeypatch, read):
    monkeypatch.setenv("RELINT_LOOP_LIMIT", "many")
    assert evaluate(read("(let ((i 0)) (while t (setq i (1+ i))) i)")) == 100


def test_assignment_inside_loop_body_to_outer_name(read):
    form = read('(progn (dolist (c (list "a" "b")) (setq acc c)) acc)')
    assert evaluate(form, mutables=frozenset({Symbol("acc")})) == "b"
