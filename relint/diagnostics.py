"""Diagnostics and suppression comments.

A diagnostic is suppressed by a comment line of the form

    ;; relint suppression: SUBSTRING

placed directly above the reported line, where SUBSTRING occurs in the
message. Several such lines may be stacked; blank lines and other comment
lines may sit between them and the reported line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from relint.config import SUPPRESSION_PREFIX

SUPPRESSION_RE = re.compile(r"[ \t]*;+[ \t]*" + re.escape(SUPPRESSION_PREFIX) + r"[ \t]*(.*[^ \t])")
COMMENT_LINE_RE = re.compile(r"[ \t]*(?:;.*)?\Z")


@dataclass(frozen=True)
class Diagnostic:
    file: str
    offset: int
    line: int
    column: int
    message: str

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.message}"

    def __str__(self) -> str:
        return self.format()


class SuppressionIndex:
    """Answers whether a message on a given line is suppressed."""

    def __init__(self, source: str):
        self.lines: List[str] = source.split("\n")

    def is_suppressed(self, line: int, message: str) -> bool:
        """`line` is 1-based."""
        i = line - 2
        while i >= 0:
            text = self.lines[i]
            m = SUPPRESSION_RE.match(text)
            if m and m.group(1) in message:
                return True
            if not COMMENT_LINE_RE.match(text):
                return False
            i -= 1
        return False


def summary_line(errors: int, suppressed: int) -> str:
    """E.g. `1 error', `3 errors (2 suppressed)'."""
    text = f"{errors} error{'' if errors == 1 else 's'}"
    if suppressed:
        text += f" ({suppressed} suppressed)"
    return text
