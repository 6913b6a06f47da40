import pytest
from hypothesis import assume, given, strategies as st

from relint.evaluation.evaluator import evaluate
from relint.reader.parser import read_from_string
from relint.types.nil import Nil
from relint.types.symbol import T
from relint.types.unknown import UNKNOWN


@pytest.mark.parametrize(
    "source, expected",
    [
        ("(+)", 0),
        ("(+ 1 2 3)", 6),
        ("(- 10 4)", 6),
        ("(- 5)", -5),
        ("(* 2 3 4)", 24),
        ("(/ 7 2)", 3),
        ("(/ -7 2)", -3),
        ("(/ 7 2.0)", 3.5),
        ("(% -7 2)", -1),
        ("(mod -7 2)", 1),
        ("(1+ n)", 4),
        ("(1- n)", 2),
        ("(max 1 5 2)", 5),
        ("(min 4 2 8)", 2),
        ("(abs -3)", 3),
        ("(= 1 1 1)", T),
        ("(< 1 2 3)", T),
        ("(< 1 3 2)", Nil),
        ("(>= 3 3 1)", T),
        ("(zerop 0)", T),
    ]
)
def test_arithmetic(env, read, source, expected):
    assert evaluate(read(source), env) == expected


@pytest.mark.parametrize("source", ['(+ 1 "a")', "(/ 5 0)", "(% 1.5 2)", "(1+ x)"])
def test_arithmetic_type_errors_are_unknown(env, read, source):
    assert evaluate(read(source), env) is UNKNOWN


@given(st.integers(min_value=-1000, max_value=1000), st.integers(min_value=-1000, max_value=1000))
def test_integer_division_truncates_towards_zero(a, b):
    assume(b != 0)
    q = evaluate(read_from_string(f"(/ {a} {b})"))
    assert q * b + evaluate(read_from_string(f"(% {a} {b})")) == a
    assert abs(q * b) <= abs(a)


# -------------------------
# Integers wider than Emacs allows
# -------------------------

@pytest.mark.parametrize(
    "source",
    [
        "(let ((v 2)) (while t (setq v (* v v))) v)",
        "(let ((v 2)) (dotimes (i 16) (setq v (* v v))) v)",
        "(string-to-number (make-string 20000 102) 16)",
    ]
)
def test_integer_overflow_is_unknown(read, source):
    assert evaluate(read(source)) is UNKNOWN


def test_wide_integers_below_the_limit_are_kept(read):
    assert evaluate(read("(let ((v 2)) (dotimes (i 15) (setq v (* v v))) v)")) == 2 ** 32768


def test_scan_of_a_runaway_product_terminates(messages):
    source = (
        "(defvar big (let ((v 2)) (while t (setq v (* v v))) v))\n"
        '(looking-at (format "%d" big))\n'
    )
    assert messages(source) == []
