import pytest

from relint.reader.parser import read_from_string
from relint.scanner import scan_source
from relint.types.environment import Environment
from relint.types.symbol import Symbol

# Tests build forms from Lisp source text with `read`, and run whole files
# through the scanner with `scan`/`messages`. Every scan gets a fresh
# analysis context, so nothing leaks between tests.


@pytest.fixture(autouse=True)
def _default_loop_limit(monkeypatch):
    monkeypatch.delenv("RELINT_LOOP_LIMIT", raising=False)
    monkeypatch.delenv("RELINT_FILE_SUFFIXES", raising=False)


@pytest.fixture
def read():
    return read_from_string


@pytest.fixture
def scan():
    def run(source, **checkers):
        return scan_source(source, "test.el", **checkers)
    return run


@pytest.fixture
def messages(scan):
    def run(source, **checkers):
        return [d.message for d in scan(source, **checkers).diagnostics]
    return run


@pytest.fixture
def env():
    env = Environment()
    env.define(Symbol("x"), "A")
    env.define(Symbol("y"), "B")
    env.define(Symbol("n"), 3)
    return env
