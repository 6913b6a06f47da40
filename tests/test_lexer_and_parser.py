import pytest
from hypothesis import given, strategies as st

from relint.reader.parser import lex, read_from_string, read_toplevel_forms, forward_sexp
from relint.types.errors import RelintReadError
from relint.types.nil import Nil
from relint.types.symbol import Symbol
from relint.types.vector import Vector


def _tokens(source):
    return [(t.type, t.value) for t in lex(source)]


@pytest.mark.parametrize(
    "source,expected",
    [
        ("a", [("atom", ("a", False))]),
        ("'a", [("quote", "'"), ("atom", ("a", False))]),
        ("(a . b)", [("lparen", "("), ("atom", ("a", False)), ("dot", "."),
                     ("atom", ("b", False)), ("rparen", ")")]),
        ("[x]", [("lbracket", "["), ("atom", ("x", False)), ("rbracket", "]")]),
        ('"hi\\n"', [("string", "hi\n")]),
        ("?a", [("char", 97)]),
        ("?\\C-a", [("char", 1)]),
        ("?\\^I", [("char", 9)]),
        ("#x1F", [("number", 31)]),
        ("#b101", [("number", 5)]),
        ("#24r1k", [("number", 44)]),
        ("#'f", [("quote", "#'"), ("atom", ("f", False))]),
        ("`(a ,b ,@c)", [("quote", "`"), ("lparen", "("), ("atom", ("a", False)),
                         ("quote", ","), ("atom", ("b", False)),
                         ("quote", ",@"), ("atom", ("c", False)), ("rparen", ")")]),
        ("; comment\n a", [("atom", ("a", False))]),
        ("a\\ b", [("atom", ("a b", True))]),
    ]
)
def test_lexer_basic(source, expected):
    assert _tokens(source) == expected


@pytest.mark.parametrize(
    "source, expected",
    [
        ("nil", Nil),
        ("()", Nil),
        ("123", 123),
        ("-45", -45),
        ("1.", 1),
        ("3.14", 3.14),
        ("1e3", 1000.0),
        ("'a", [Symbol("quote"), Symbol("a")]),
        ("#'car", [Symbol("function"), Symbol("car")]),
        ("(a b c)", [Symbol("a"), Symbol("b"), Symbol("c")]),
        ("(a . b)", ([Symbol("a")], Symbol("b"))),
        ("(a b . (c))", [Symbol("a"), Symbol("b"), Symbol("c")]),
        ("(a . nil)", [Symbol("a")]),
        ("[1 \"x\"]", Vector([1, "x"])),
        ('#("abc" 0 1 (face bold))', "abc"),
        ("#s(point 1)", Vector([Symbol("point"), 1])),
        ("#:foo", Symbol("foo")),
        ("##", Symbol("")),
        ("\\123", Symbol("123")),
        ('"\\x41\\ B"', "AB"),
        ('"a\\\nb"', "ab"),
        ("(#1=(x) #1#)", [[Symbol("x")], [Symbol("x")]]),
    ]
)
def test_parse_atoms_and_lists(source, expected):
    assert read_from_string(source) == expected


@pytest.mark.parametrize("source", ["(a", "(a))", "(. a)", "\"abc", "#1#"])
def test_parse_errors(source):
    with pytest.raises(RelintReadError):
        list(read_toplevel_forms(source))


def test_toplevel_forms_carry_offsets():
    forms = list(read_toplevel_forms("(a)\n;; x\n(b c)"))
    assert forms == [([Symbol("a")], 0), ([Symbol("b"), Symbol("c")], 9)]


def test_unknown_hash_syntax_skips_the_form():
    forms = list(read_toplevel_forms("(a) #<foo> (b)"))
    assert forms == [([Symbol("a")], 0), ([Symbol("b")], 11)]


def test_unknown_hash_syntax_inside_list_skips_whole_list():
    forms = list(read_toplevel_forms("(a #<buffer x>) (b)"))
    assert [form for form, _ in forms] == [[Symbol("b")]]


def test_skip_marker_skips_text():
    # `#@5` skips the separator plus four more characters
    forms = list(read_toplevel_forms("#@5 junk(a)"))
    assert [form for form, _ in forms] == [[Symbol("a")]]


def test_forward_sexp_steps_over_nested_structure():
    source = "(a (b [c]) 'd) e"
    assert forward_sexp(source, 0) == source.index(" e")
    assert forward_sexp(source, 3) == source.index(" 'd")


def _render(expr):
    if isinstance(expr, list):
        return "(" + " ".join(_render(e) for e in expr) + ")"
    return expr


_words = st.from_regex(r"[a-z][a-z0-9-]{0,6}", fullmatch=True).filter(lambda w: w != "nil")
_trees = st.recursive(_words, lambda children: st.lists(children, min_size=1, max_size=4), max_leaves=20)


@given(_trees)
def test_read_of_rendered_tree_matches_structure(tree):
    def expected(t):
        if isinstance(t, list):
            return [expected(e) for e in t]
        return Symbol(t)

    assert read_from_string(_render(tree)) == expected(tree)
