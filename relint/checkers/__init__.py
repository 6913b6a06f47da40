from relint.checkers import regexp_lint, skip_set_lint

DEFAULT_REGEXP_CHECKER = regexp_lint.lint
DEFAULT_SKIP_SET_CHECKER = skip_set_lint.lint
