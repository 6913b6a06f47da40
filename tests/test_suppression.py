import pytest

from relint.diagnostics import Diagnostic, SuppressionIndex, summary_line


def test_comment_above_suppresses(scan):
    result = scan(
        ";; relint suppression: Duplicated `A'\n"
        '(defvar my-regexp "[AA]")\n'
    )
    assert result.diagnostics == []
    assert result.suppressed == 1


def test_stacked_suppressions_with_comments_and_blank_lines(scan):
    result = scan(
        ";; relint suppression: Duplicated `A'\n"
        ";; relint suppression: Duplicated `B'\n"
        ";; The two patterns are kept as written.\n"
        "\n"
        "(defvar my-regexps '(\"[AA]\" \"[BB]\"))\n"
    )
    assert result.diagnostics == []
    assert result.suppressed == 2


def test_indented_suppression_inside_function(scan):
    result = scan(
        "(defun f ()\n"
        "  ;; relint suppression: Duplicated `A'\n"
        '  (looking-at "[AA]"))\n'
    )
    assert result.diagnostics == []
    assert result.suppressed == 1


@pytest.mark.parametrize(
    "source",
    [
        # Text that does not occur in the message
        ';; relint suppression: Something else\n(defvar my-regexp "[AA]")\n',
        # Code between the comment and the reported line
        ';; relint suppression: Duplicated\n(defvar other 1)\n(defvar my-regexp "[AA]")\n',
        # The comment applies to the next line only
        ";; relint suppression: Duplicated\n(defvar my-regexps\n  '(\"[AA]\"))\n",
        # Suppression comments below the reported line do nothing
        '(defvar my-regexp "[AA]")\n;; relint suppression: Duplicated\n',
    ]
)
def test_not_suppressed(scan, source):
    result = scan(source)
    assert len(result.diagnostics) == 1
    assert result.suppressed == 0


def test_duplicates_are_counted_once(scan):
    result = scan(
        ";; relint suppression: Duplicated\n"
        "(defvar my-regexps '(\"[AA]\" \"[AA]\"))\n"
    )
    assert result.suppressed == 1


def test_suppression_index():
    index = SuppressionIndex(";;; relint suppression:   `x' \n\n(foo)\n;; relint suppression: y\n(bar)")
    assert index.is_suppressed(3, "a `x' here")
    assert not index.is_suppressed(3, "a `y' here")
    assert index.is_suppressed(5, "y")
    assert not index.is_suppressed(1, "`x'")


@pytest.mark.parametrize(
    "errors, suppressed, expected",
    [
        (0, 0, "0 errors"),
        (1, 0, "1 error"),
        (3, 2, "3 errors (2 suppressed)"),
        (0, 1, "0 errors (1 suppressed)"),
    ]
)
def test_summary_line(errors, suppressed, expected):
    assert summary_line(errors, suppressed) == expected


def test_diagnostic_format():
    d = Diagnostic("a.el", 10, 2, 4, "In x: bad (pos 0)")
    assert d.format() == "a.el:2:4: In x: bad (pos 0)"
    assert str(d) == d.format()
