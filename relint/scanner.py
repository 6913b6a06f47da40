"""Scanning of source text, files and directory trees."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from relint.analysis.context import AnalysisContext, Checker
from relint.analysis.dispatcher import analyze
from relint.config import get_file_suffixes
from relint.diagnostics import Diagnostic
from relint.reader.parser import read_toplevel_forms
from relint.types.errors import RelintReadError

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Diagnostics and counters from one or more scanned files.

    Results add up with `+`, so per-file results can be combined in any order.
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    suppressed: int = 0
    files: int = 0

    @property
    def errors(self) -> int:
        return len(self.diagnostics)

    def __add__(self, other: ScanResult) -> ScanResult:
        if not isinstance(other, ScanResult):
            return NotImplemented
        return ScanResult(
            self.diagnostics + other.diagnostics,
            self.suppressed + other.suppressed,
            self.files + other.files,
        )


def scan_source(
    source: str,
    filename: str = "<string>",
    regexp_checker: Optional[Checker] = None,
    skip_set_checker: Optional[Checker] = None,
) -> ScanResult:
    """Analyze `source`, the text of one file."""
    ctx = AnalysisContext(filename, source)
    if regexp_checker is not None:
        ctx.regexp_checker = regexp_checker
    if skip_set_checker is not None:
        ctx.skip_set_checker = skip_set_checker

    forms = []
    try:
        for form, offset in read_toplevel_forms(source):
            forms.append((form, offset))
    except RelintReadError as e:
        logger.debug("%s: read error at %d: %s", filename, e.offset, e.message)
        ctx.report(f"Read error: {e.message}", e.offset)

    analyze(ctx, forms)
    diagnostics = sorted(ctx.diagnostics, key=lambda d: d.offset)
    return ScanResult(diagnostics, ctx.suppressed, 1)


def scan_file(path: str, **checkers) -> ScanResult:
    logger.debug("Scanning %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except (OSError, UnicodeDecodeError) as e:
        return ScanResult([Diagnostic(path, 0, 1, 0, f"Cannot read file: {e}")], 0, 1)
    return scan_source(source, path, **checkers)


def source_files(directory: str, suffixes: Iterable[str]) -> List[str]:
    """Files under `directory` with one of `suffixes`, skipping dot-files."""
    suffixes = tuple(suffixes)
    found = []
    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if not d.startswith("."))
        for name in sorted(files):
            if not name.startswith(".") and name.endswith(suffixes):
                found.append(os.path.join(root, name))
    return found


def scan_paths(paths: Iterable[str], **checkers) -> ScanResult:
    """Scan files, and source files in directories, recursively."""
    result = ScanResult()
    suffixes = get_file_suffixes()
    for path in paths:
        if os.path.isdir(path):
            for file in source_files(path, suffixes):
                result = result + scan_file(file, **checkers)
        else:
            result = result + scan_file(path, **checkers)
    return result
