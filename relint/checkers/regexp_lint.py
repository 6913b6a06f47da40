"""A linter for Emacs regexp strings.

`lint(regexp)` returns a list of (position, message) complaints, ordered by
position. A regexp that Emacs itself would reject raises PatternSyntaxError.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from relint.types.errors import PatternSyntaxError

CHAR_CLASSES = frozenset({
    "alnum", "alpha", "ascii", "blank", "cntrl", "digit", "graph", "lower",
    "multibyte", "nonascii", "print", "punct", "space", "unibyte", "upper",
    "word", "xdigit",
})

SYNTAX_CHARS = frozenset("-.w_()'\"$\\/<>|! ")

# Characters that may follow a backslash in a regexp
BACKSLASH_SPECIALS = frozenset("()|{}`'=bB<>wWsScC_123456789.*+?[^$\\")


class _Linter:
    def __init__(self, regexp: str):
        self.regexp = regexp
        self.pos = 0
        self.complaints: List[Tuple[int, str]] = []
        self.groups: List[int] = []
        # What a postfix operator here would apply to:
        # None (nothing), "item" or "repeat"
        self.last: Optional[str] = None

    def warn(self, pos: int, message: str) -> None:
        self.complaints.append((pos, message))

    def run(self) -> List[Tuple[int, str]]:
        r = self.regexp
        n = len(r)
        while self.pos < n:
            c = r[self.pos]
            if c == "\\":
                self._backslash()
            elif c == "[":
                self._bracket()
                self.last = "item"
            elif c in "*+?":
                self._postfix(c)
            elif c == "^":
                if self.pos != 0 and not self._after_open():
                    self.warn(self.pos, "Unescaped literal `^'")
                    self.last = "item"
                else:
                    self.last = None
                self.pos += 1
            elif c == "$":
                if self.pos != n - 1 and not r.startswith("\\)", self.pos + 1) and not r.startswith("\\|", self.pos + 1):
                    self.warn(self.pos, "Unescaped literal `$'")
                    self.last = "item"
                else:
                    self.last = None
                self.pos += 1
            else:
                self.last = "item"
                self.pos += 1
        if self.groups:
            raise PatternSyntaxError("Missing \\)", self.groups[-1])
        self.complaints.sort(key=lambda item: item[0])
        return self.complaints

    def _after_open(self) -> bool:
        """Whether the current position starts a group or alternative."""
        before = self.regexp[:self.pos]
        if before.endswith("\\(") or before.endswith("\\|"):
            return True
        if before.endswith(":") and "\\(?" in before:
            head = before.rsplit("\\(?", 1)[1]
            return head[:-1].isdigit() or head == ":"
        return False

    def _postfix(self, c: str) -> None:
        start = self.pos
        self.pos += 1
        if self.last is None:
            self.warn(start, f"Unescaped literal `{c}'")
            self.last = "item"
            return
        if self.last == "repeat":
            self.warn(start, "Repetition of repetition")
        # Non-greedy suffix
        if self.pos < len(self.regexp) and self.regexp[self.pos] == "?":
            self.pos += 1
        self.last = "repeat"

    def _backslash(self) -> None:
        r = self.regexp
        start = self.pos
        if start + 1 >= len(r):
            raise PatternSyntaxError("Backslash at end of regexp", start)
        c = r[start + 1]
        self.pos = start + 2
        if c == "(":
            if r.startswith("?", self.pos):
                end = self.pos + 1
                while end < len(r) and r[end].isdigit():
                    end += 1
                if end >= len(r) or r[end] != ":":
                    raise PatternSyntaxError("Invalid \\(? syntax", start)
                self.pos = end + 1
            self.groups.append(start)
            self.last = None
        elif c == ")":
            if not self.groups:
                raise PatternSyntaxError("Unmatched \\)", start)
            self.groups.pop()
            self.last = "item"
        elif c == "|":
            self.last = None
        elif c == "{":
            self._interval(start)
        elif c in "sS":
            if self.pos >= len(r) or r[self.pos] not in SYNTAX_CHARS:
                raise PatternSyntaxError("Invalid \\s syntax", start)
            self.pos += 1
            self.last = "item"
        elif c in "cC":
            if self.pos >= len(r):
                raise PatternSyntaxError("Invalid \\c category", start)
            self.pos += 1
            self.last = "item"
        elif c == "_":
            if self.pos >= len(r) or r[self.pos] not in "<>":
                raise PatternSyntaxError("Invalid \\_ sequence", start)
            self.pos += 1
            self.last = None
        elif c in "`'=bB<>":
            self.last = None
        elif c.isdigit():
            if c == "0":
                raise PatternSyntaxError("Invalid back reference", start)
            self.last = "item"
        elif c in BACKSLASH_SPECIALS:
            self.last = "item"
        else:
            self.warn(start, f"Escaped non-special character `{c}'")
            self.last = "item"

    def _interval(self, start: int) -> None:
        r = self.regexp
        end = r.find("\\}", self.pos)
        if end < 0:
            raise PatternSyntaxError("Invalid \\{\\} syntax", start)
        body = r[self.pos:end]
        low, _, high = body.partition(",")
        if not (low.isdigit() or low == "") or not (high.isdigit() or high == ""):
            raise PatternSyntaxError("Invalid \\{\\} syntax", start)
        if low and high and int(low) > int(high):
            raise PatternSyntaxError("Invalid \\{\\} syntax", start)
        self.pos = end + 2
        if self.last is None:
            self.warn(start, "Repetition of nothing")
        elif self.last == "repeat":
            self.warn(start, "Repetition of repetition")
        self.last = "repeat"

    def _bracket(self) -> None:
        r = self.regexp
        n = len(r)
        start = self.pos
        i = start + 1
        if i < n and r[i] == "^":
            i += 1
        intervals: List[Tuple[int, int, int]] = []
        first = True
        while True:
            if i >= n:
                raise PatternSyntaxError("Unterminated character alternative", start)
            c = r[i]
            if c == "]" and not first:
                break
            first = False
            if r.startswith("[:", i):
                close = r.find(":]", i + 2)
                if close >= 0:
                    name = r[i + 2:close]
                    if name not in CHAR_CLASSES:
                        raise PatternSyntaxError(f"Invalid character class `{name}'", i)
                    i = close + 2
                    continue
            if i + 2 < n and r[i + 1] == "-" and r[i + 2] != "]":
                lo, hi = c, r[i + 2]
                if lo > hi:
                    if ord(lo) != ord(hi) + 1:
                        self.warn(i, f"Reversed range `{lo}-{hi}' matches nothing")
                else:
                    self._add_interval(intervals, i, ord(lo), ord(hi))
                i += 3
                continue
            self._add_interval(intervals, i, ord(c), ord(c))
            i += 1
        self.pos = i + 1

    def _add_interval(self, intervals: List[Tuple[int, int, int]], pos: int, lo: int, hi: int) -> None:
        for other_pos, olo, ohi in intervals:
            if lo <= ohi and olo <= hi:
                if lo == hi and olo == ohi:
                    self.warn(pos, f"Duplicated `{chr(lo)}' inside character alternative")
                elif lo == hi:
                    self.warn(pos, f"Character `{chr(lo)}' included in range `{chr(olo)}-{chr(ohi)}'")
                elif olo == ohi:
                    self.warn(pos, f"Range `{chr(lo)}-{chr(hi)}' includes character `{chr(olo)}'")
                else:
                    self.warn(pos, f"Ranges `{chr(olo)}-{chr(ohi)}' and `{chr(lo)}-{chr(hi)}' overlap")
                break
        intervals.append((pos, lo, hi))


def lint(regexp: str) -> List[Tuple[int, str]]:
    """Return complaints about `regexp` as (position, message) pairs."""
    return _Linter(regexp).run()
