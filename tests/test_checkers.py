import pytest
from hypothesis import given, strategies as st

from relint.checkers import regexp_lint, skip_set_lint
from relint.evaluation.primitives import regexp_quote
from relint.types.errors import PatternSyntaxError


# ----------------------------------------
# Regexps
# ----------------------------------------
@pytest.mark.parametrize(
    "regexp, expected",
    [
        ("[AA]", [(2, "Duplicated `A' inside character alternative")]),
        ("[a-zx]", [(4, "Character `x' included in range `a-z'")]),
        ("[xa-z]", [(2, "Range `a-z' includes character `x'")]),
        ("[a-mk-z]", [(4, "Ranges `a-m' and `k-z' overlap")]),
        ("[z-a]", [(1, "Reversed range `z-a' matches nothing")]),
        ("\\q", [(0, "Escaped non-special character `q'")]),
        ("a**", [(2, "Repetition of repetition")]),
        ("*a", [(0, "Unescaped literal `*'")]),
        ("\\(+a\\)", [(2, "Unescaped literal `+'")]),
        ("\\{2\\}", [(0, "Repetition of nothing")]),
        ("a+\\{2\\}", [(2, "Repetition of repetition")]),
        ("a^", [(1, "Unescaped literal `^'")]),
        ("a$b", [(1, "Unescaped literal `$'")]),
    ]
)
def test_regexp_complaints(regexp, expected):
    assert regexp_lint.lint(regexp) == expected


@pytest.mark.parametrize(
    "regexp",
    [
        "",
        "^a$",
        "a*?b+?",
        "[b-a]",
        "[]a]",
        "[^]a]",
        "[a-]",
        "[[:alpha:]_]",
        "\\(^a\\|^b\\)",
        "\\(?:^a$\\)",
        "\\(?2:^a\\)",
        "\\`\\_<foo\\_>\\'",
        "\\sw\\s-\\cg",
        "\\(a\\)\\1",
        "x\\{2,3\\}",
        "a$\\|b",
    ]
)
def test_clean_regexps(regexp):
    assert regexp_lint.lint(regexp) == []


@pytest.mark.parametrize(
    "regexp, message, offset",
    [
        ("a\\", "Backslash at end of regexp", 1),
        ("[ab", "Unterminated character alternative", 0),
        ("x\\(a", "Missing \\)", 1),
        ("a\\)", "Unmatched \\)", 1),
        ("a\\{2,1\\}", "Invalid \\{\\} syntax", 1),
        ("a\\{2", "Invalid \\{\\} syntax", 1),
        ("\\s", "Invalid \\s syntax", 0),
        ("\\0", "Invalid back reference", 0),
        ("\\_a", "Invalid \\_ sequence", 0),
        ("\\(?x\\)", "Invalid \\(? syntax", 0),
        ("[[:foo:]]", "Invalid character class `foo'", 1),
    ]
)
def test_regexp_syntax_errors(regexp, message, offset):
    with pytest.raises(PatternSyntaxError) as exc:
        regexp_lint.lint(regexp)
    assert exc.value.message == message
    assert exc.value.offset == offset


def test_complaints_are_ordered_by_position():
    complaints = regexp_lint.lint("\\q[aa]")
    assert [pos for pos, _ in complaints] == [0, 4]


@given(st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126)))
def test_quoted_text_is_a_clean_regexp(text):
    assert regexp_lint.lint(regexp_quote(text)) == []


# ----------------------------------------
# Skip sets
# ----------------------------------------
@pytest.mark.parametrize(
    "skip_set, expected",
    [
        ("", [(0, "Empty set matches nothing")]),
        ("^", [(0, "Negated empty set matches anything")]),
        ("[a-z]", [(0, "Suspect skip set framed in `[...]'")]),
        ("^[a-z]", [(1, "Suspect skip set framed in `[...]'")]),
        ("aba", [(2, "Duplicated character `a'")]),
        ("a-zx", [(3, "Character `x' included in range `a-z'")]),
        ("xa-z", [(1, "Range `a-z' includes character `x'")]),
        ("a-mk-z", [(3, "Ranges `a-m' and `k-z' overlap")]),
        ("z-a", [(0, "Reversed range `z-a'")]),
        ("\\a", [(0, "Unnecessarily escaped `a'")]),
        ("[:space:][:space:]", [(9, "Duplicated class `[:space:]'")]),
    ]
)
def test_skip_set_complaints(skip_set, expected):
    assert skip_set_lint.lint(skip_set) == expected


@pytest.mark.parametrize("skip_set", ["a-z_", "^ \t\n", "\\^\\-\\\\", "[:alpha:]", "b-a", "-a", "a-"])
def test_clean_skip_sets(skip_set):
    assert skip_set_lint.lint(skip_set) == []


@pytest.mark.parametrize(
    "skip_set, message",
    [
        ("a\\", "Stray `\\' at end of string"),
        ("[:nope:]", "No character class `[:nope:]'"),
    ]
)
def test_skip_set_errors(skip_set, message):
    with pytest.raises(PatternSyntaxError) as exc:
        skip_set_lint.lint(skip_set)
    assert exc.value.message == message
