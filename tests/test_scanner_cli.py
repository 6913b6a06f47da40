import os

import pytest

from relint import __version__
from relint.cli import main
from relint.scanner import ScanResult, scan_file, scan_paths, scan_source, source_files

BAD = '(looking-at "[AA]")\n'
BAD_MESSAGE = "In call to looking-at: Duplicated `A' inside character alternative (pos 2)"


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "a.el").write_text(BAD)
    (tmp_path / "notes.txt").write_text(BAD)
    (tmp_path / ".dir-locals.el").write_text(BAD)
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.el").write_text("(looking-at \"ok\")\n")
    (tmp_path / "sub" / "d.lisp").write_text(BAD)
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "e.el").write_text(BAD)
    return tmp_path


def test_read_error_at_start():
    result = scan_source("(", "x.el")
    assert [d.format() for d in result.diagnostics] == ["x.el:1:0: Read error: End of file during parsing"]


def test_unterminated_string_is_a_read_error():
    result = scan_source('(looking-at "[AA]")\n(foo "bar', "x.el")
    assert [d.message for d in result.diagnostics] == [
        BAD_MESSAGE,
        "Read error: End of file during parsing",
    ]


def test_scan_result_addition():
    a = scan_source(BAD, "a.el")
    b = scan_source("(foo)", "b.el")
    total = a + b
    assert total.files == 2
    assert total.errors == 1
    assert total.diagnostics[0].file == "a.el"
    assert sum([a, b], ScanResult()).errors == 1


def test_scan_file(tmp_path):
    path = tmp_path / "x.el"
    path.write_text(BAD)
    result = scan_file(str(path))
    [d] = result.diagnostics
    assert d.file == str(path)
    assert (d.line, d.column, d.message) == (1, 15, BAD_MESSAGE)


def test_scan_missing_file(tmp_path):
    path = str(tmp_path / "missing.el")
    result = scan_file(path)
    [d] = result.diagnostics
    assert d.file == path
    assert d.message.startswith("Cannot read file:")


def test_source_files_skip_dot_files(tree):
    assert source_files(str(tree), [".el"]) == [
        os.path.join(str(tree), "a.el"),
        os.path.join(str(tree), "sub", "c.el"),
    ]


def test_scan_paths_uses_configured_suffixes(tree, monkeypatch):
    assert scan_paths([str(tree)]).files == 2
    monkeypatch.setenv("RELINT_FILE_SUFFIXES", ".lisp")
    result = scan_paths([str(tree)])
    assert result.files == 1
    assert result.diagnostics[0].file == os.path.join(str(tree), "sub", "d.lisp")


def test_scan_paths_takes_files_with_any_suffix(tree):
    result = scan_paths([str(tree / "notes.txt")])
    assert [d.message for d in result.diagnostics] == [BAD_MESSAGE]


def test_cli_reports_and_fails(tree, capsys):
    path = str(tree / "a.el")
    assert main([path]) == 1
    out = capsys.readouterr().out
    assert out.splitlines() == [f"{path}:1:15: {BAD_MESSAGE}", "1 error"]


def test_cli_clean_run(tree, capsys):
    assert main([str(tree / "sub" / "c.el")]) == 0
    assert capsys.readouterr().out == "0 errors\n"


def test_cli_quiet(tree, capsys):
    assert main(["-q", str(tree / "sub" / "c.el")]) == 0
    assert capsys.readouterr().out == ""


def test_cli_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out.strip() == f"relint {__version__}"
