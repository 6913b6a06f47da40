import pytest

DUP = "Duplicated `{0}' inside character alternative (pos {1})"


def dup(name, char, pos=2):
    return f"In {name}: " + DUP.format(char, pos)


# -----------------------------------------------------
# Locations
# -----------------------------------------------------

def test_variable_definition_points_at_offending_character(scan):
    result = scan('(defvar my-regexp "[AA]")')
    assert [d.format() for d in result.diagnostics] == [
        "test.el:1:21: In my-regexp: Duplicated `A' inside character alternative (pos 2)",
    ]


def test_call_argument_points_into_nested_literal(scan):
    result = scan('(defun f () (looking-at "[a-zx]"))')
    [d] = result.diagnostics
    assert (d.line, d.column) == (1, 29)
    assert d.message == "In call to looking-at: Character `x' included in range `a-z' (pos 4)"


def test_location_on_later_line(scan):
    source = ';; header\n\n(defun f ()\n  (string-match "[bb]" s))\n'
    [d] = scan(source).diagnostics
    assert (d.line, d.column) == (4, 19)


def test_quoted_alist_key_location(scan):
    source = (
        "(defcustom my-alist '((\"[aa]\" . \"[bb]\"))\n"
        '  "Doc."\n'
        "  :type '(alist :key-type regexp :value-type symbol))"
    )
    [d] = scan(source).diagnostics
    assert d.message == dup("my-alist", "a")
    assert (d.line, d.column) == (1, 26)


# -----------------------------------------------------
# Variables
# -----------------------------------------------------

@pytest.mark.parametrize(
    "source, expected",
    [
        ('(defconst my-re "[AA]")', [dup("my-re", "A")]),
        ('(defvar my-thing "[AA]" "Regexp matching things.")', [dup("my-thing", "A")]),
        ('(defvar my-thing "[AA]" "Not a regexp.")', []),
        ('(defvar my-thing "[AA]")', []),
        ('(defcustom my-thing "[AA]" "Doc." :type \'regexp)', [dup("my-thing", "A")]),
        ("(defvar my-regexps '(\"a\" \"[bb]\"))", [dup("my-regexps", "b")]),
        ("(defvar my-regexps '(\"[aa]\" \"[aa]\"))", [dup("my-regexps", "a")]),
        ("(defvar my-regexp-alist '((\"[cc]\" . x) (\"ok\" . y)))", [dup("my-regexp-alist", "c")]),
        (
            "(defcustom my-thing '((a . \"[dd]\")) \"Doc.\""
            " :type '(alist :key-type symbol :value-type regexp))",
            [dup("my-thing", "d")],
        ),
        (
            "(defcustom my-thing '(\"[ee]\" . 3) \"Doc.\" :type '(cons regexp integer))",
            [dup("my-thing", "e")],
        ),
        (
            "(defvar my-font-lock-keywords\n"
            "  '((\"[dd]\" . font-lock-keyword-face)\n"
            "    (\"\\\\(?:x\\\\)\" (1 face) (\"[ee]\" nil nil (0 face)))))",
            [dup("my-font-lock-keywords", "d"), dup("my-font-lock-keywords", "e")],
        ),
        (
            "(defvar my-rules-list '((my-rule (regexp . \"[hh]\") (group . 1))))",
            [dup("my-rules-list", "h")],
        ),
        (
            "(setq-local imenu-generic-expression '((\"Functions\" \"[ff]\" 1)))",
            [dup("imenu-generic-expression", "f")],
        ),
        ('(setq page-delimiter "[ii]")', [dup("page-delimiter", "i")]),
        ("(set (make-local-variable 'paragraph-start) \"[zz]\")", [dup("paragraph-start", "z")]),
        ("(defvar my-re (concat \"a\" \"[jj]\"))", [dup("my-re", "j", 3)]),
    ]
)
def test_variable_values(messages, source, expected):
    assert messages(source) == expected


def test_list_variables_grow_by_push_and_add_to_list(messages):
    source = (
        "(defvar my-regexps nil)\n"
        '(push "[xx]" my-regexps)\n'
        "(add-to-list 'my-regexps \"[yy]\")\n"
        "(add-to-list 'compilation-error-regexp-alist-alist '(my-tool \"[gg]\" 1 2))\n"
    )
    assert messages(source) == [
        dup("my-regexps", "x"),
        dup("my-regexps", "y"),
        dup("compilation-error-regexp-alist-alist", "g"),
    ]


def test_global_redefinition_uses_previous_value(messages):
    source = (
        '(defvar my-base-re "a")\n'
        '(setq my-base-re (concat my-base-re "[ss]"))\n'
        "(looking-at my-base-re)\n"
    )
    assert messages(source) == [dup("my-base-re", "s", 3)]


def test_global_read_before_its_definition_is_unknown(messages):
    source = (
        "(defun f () (looking-at my-pattern-part))\n"
        '(defvar my-pattern-part "[kk]")\n'
        "(defun g () (looking-at my-pattern-part))\n"
    )
    # Only the call in g, after the definition, sees the value
    assert messages(source) == [dup("call to looking-at", "k")]


# -----------------------------------------------------
# Calls
# -----------------------------------------------------

@pytest.mark.parametrize(
    "source, expected",
    [
        ('(re-search-forward "[aa]" nil t)', [dup("call to re-search-forward", "a")]),
        ('(split-string s "[aa]")', [dup("call to split-string", "a")]),
        ('(replace-regexp-in-string "[aa]" "" s)', [dup("call to replace-regexp-in-string", "a")]),
        ('(directory-files "." nil "[aa]")', [dup("call to directory-files", "a")]),
        ('(looking-at (concat "[" "aa" "]"))', [dup("call to looking-at", "a")]),
        ("(looking-at (rx (any \"a\") \"[bb]\"))", []),
        ('(rx (regexp "[uu]") "a")', [dup("call to rx", "u")]),
        ("(rx-to-string '(seq (regex \"[uu]\")))", [dup("call to rx-to-string", "u")]),
        ('(syntax-propertize-rules ("[tt]" (0 "_")))', [dup("call to syntax-propertize-rules", "t")]),
        ("(font-lock-add-keywords nil '((\"[vv]\" . 'bold)))", [dup("call to font-lock-add-keywords", "v")]),
        (
            "(define-generic-mode my-mode '(\";\") '(\"if\" \"[no]\") '((\"[ww]\" . 'bold))"
            " '(\"\\\\.my\\\\'\") nil)",
            [dup("call to define-generic-mode", "w")],
        ),
        ('(looking-at "ok")', []),
        ('(message "[aa]")', []),
        ("(looking-at (buffer-string))", []),
    ]
)
def test_calls(messages, source, expected):
    assert messages(source) == expected


def test_checker_error_is_reported_with_the_string(messages):
    assert messages('(looking-at "a\\\\")') == [
        'In call to looking-at: Error: Backslash at end of regexp: "a\\\\"',
    ]


def _crashing_checker(string):
    raise RuntimeError("checker crashed")


def _lazy_crashing_checker(string):
    yield 0, "first"
    raise KeyError


@pytest.mark.parametrize(
    "checker, details",
    [
        (_crashing_checker, "checker crashed"),
        (_lazy_crashing_checker, "KeyError"),
    ]
)
def test_any_checker_failure_is_reported_and_scanning_continues(messages, checker, details):
    source = '(looking-at "abc")\n(looking-at "[AA]")'
    assert messages(source, regexp_checker=checker) == [
        f'In call to looking-at: Error: {details}: "abc"',
        f'In call to looking-at: Error: {details}: "[AA]"',
    ]


def test_local_regexp_function(messages):
    source = (
        "(defun my-find (regexp)\n"
        "  (re-search-forward regexp nil t))\n"
        '(my-find "[bb]")\n'
    )
    assert messages(source) == [dup("call to my-find", "b")]


def test_alias_of_regexp_function(messages):
    source = "(defalias 'my-look 'looking-at)\n(my-look \"[cc]\")\n"
    assert messages(source) == [dup("call to my-look", "c")]


def test_argument_built_by_local_function(messages):
    source = (
        '(defun my-wrap (s) (concat "[" s "]"))\n'
        '(looking-at (my-wrap "aa"))\n'
    )
    assert messages(source) == [dup("call to looking-at", "a")]


def test_argument_built_by_local_macro(messages):
    source = (
        "(defmacro my-bracket (s) `(concat \"[\" ,s \"]\"))\n"
        '(looking-at (my-bracket "aa"))\n'
    )
    assert messages(source) == [dup("call to looking-at", "a")]


# -----------------------------------------------------
# Local bindings and assignment
# -----------------------------------------------------

def test_let_binding_value_is_used(messages):
    assert messages('(let ((r "[qq]")) (looking-at r))') == [dup("call to looking-at", "q")]


def test_let_star_sees_earlier_bindings(messages):
    source = '(let* ((a "[") (b (concat a "rr]"))) (looking-at b))'
    assert messages(source) == [dup("call to looking-at", "r")]


def test_straight_line_setq_is_followed(messages):
    source = '(let ((r "x")) (setq r "[qq]") (looking-at r))'
    assert messages(source) == [dup("call to looking-at", "q")]


def test_setq_in_first_operand_of_if_is_followed(messages):
    source = (
        "(defun f ()\n"
        '  (let ((r "x"))\n'
        '    (if (setq r "[qq]") (looking-at r))))\n'
    )
    assert messages(source) == [dup("call to looking-at", "q")]


def test_conditional_setq_makes_value_unknown(messages):
    source = (
        "(defun g (c)\n"
        '  (let ((r "x"))\n'
        '    (when c (setq r "[qq]"))\n'
        "    (looking-at r)))\n"
    )
    assert messages(source) == []


def test_setq_in_loop_body_makes_value_unknown(messages):
    source = (
        '(let ((r "x"))\n'
        "  (dolist (c '(1 2))\n"
        '    (setq r "[qq]"))\n'
        "  (looking-at r))\n"
    )
    assert messages(source) == []


def test_parameters_are_unknown(messages):
    assert messages("(defun f (r) (looking-at r))") == []


def test_lambda_body_is_checked(messages):
    assert messages('(mapcar (lambda (s) (string-match "[aa]" s)) l)') == [dup("call to string-match", "a")]


# -----------------------------------------------------
# Skip sets, syntax strings and provenance
# -----------------------------------------------------

def test_skip_set(messages):
    assert messages('(skip-chars-forward "aba")') == [
        "In call to skip-chars-forward: Duplicated character `a' (pos 2)",
    ]


def test_regexp_generator_passed_as_skip_set(messages):
    assert messages('(skip-chars-forward (regexp-quote "a"))') == [
        "`regexp-quote' cannot be used for arguments to `skip-chars-forward'",
    ]


def test_regexp_returning_function_passed_as_skip_set(messages):
    source = (
        '(defun my-chars-regexp () (regexp-quote "abc"))\n'
        "(skip-chars-forward (my-chars-regexp))\n"
    )
    assert messages(source) == [
        "`my-chars-regexp' cannot be used for arguments to `skip-chars-forward'",
    ]


def test_regexp_variable_passed_as_syntax_string(messages):
    source = '(defvar my-re "w")\n(skip-syntax-backward my-re)\n'
    assert messages(source) == ["`my-re' cannot be used for arguments to `skip-syntax-backward'"]


def test_splice_into_bracket_by_concat(messages):
    assert messages('(defun f (x) (concat "[" (regexp-quote x) "]"))') == [
        "Value from `regexp-quote' cannot be spliced into `[...]'",
    ]


@pytest.mark.parametrize(
    "source",
    [
        '(defun f (x) (concat "[a]" (regexp-quote x)))',
        '(defun f (x) (concat "\\\\[" (regexp-quote x)))',
        '(defun f (x) (concat "[" (upcase x) "]"))',
        '(defun f (x) (format "%s[" (regexp-quote x)))',
        '(defun f (x) (format "[%d]" (length (regexp-quote x))))',
    ]
)
def test_no_splice_hazard(messages, source):
    assert messages(source) == []


def test_splice_into_bracket_by_format(messages):
    source = "(defun f () (format \"[^%s]\" (regexp-opt '(\"a\" \"b\"))))"
    assert messages(source) == ["Value from `regexp-opt' cannot be spliced into `[...]'"]


def test_regexp_variable_spliced_by_format(messages):
    source = '(defvar my-re "a")\n(defun f () (format "[%s" my-re))\n'
    assert messages(source) == ["Value from `my-re' cannot be spliced into `[...]'"]


# -----------------------------------------------------
# Robustness
# -----------------------------------------------------

def test_read_error_is_reported_after_earlier_forms(scan):
    result = scan('(defvar my-regexp "[AA]")\n(foo')
    assert [d.format() for d in result.diagnostics] == [
        "test.el:1:21: In my-regexp: Duplicated `A' inside character alternative (pos 2)",
        "test.el:2:0: Read error: End of file during parsing",
    ]


def test_unknown_hash_syntax_does_not_stop_the_scan(messages):
    assert messages('(a #<marker>)\n(looking-at "[AA]")') == [dup("call to looking-at", "A")]


def test_quoted_code_is_not_checked(messages):
    assert messages("(defvar my-data '(looking-at \"[aa]\"))") == []


def test_custom_checkers(messages):
    assert messages('(looking-at "abc")', regexp_checker=lambda s: [(0, "custom")]) == [
        "In call to looking-at: custom (pos 0)",
    ]
    assert messages('(skip-chars-forward "abc")', skip_set_checker=lambda s: [(1, "odd")]) == [
        "In call to skip-chars-forward: odd (pos 1)",
    ]


def test_recursive_definitions_terminate(messages):
    source = (
        "(defun my-a () (concat (my-b) \"x\"))\n"
        "(defun my-b () (concat (my-a) \"y\"))\n"
        "(defmacro my-m () '(my-m))\n"
        "(looking-at (my-a))\n"
        "(looking-at (my-m))\n"
    )
    assert messages(source) == []
