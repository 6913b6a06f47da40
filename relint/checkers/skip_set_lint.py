"""A linter for `skip-chars-forward' / `skip-chars-backward' sets.

A skip set is a string like "^a-z_" : an optional leading `^' negates it,
`X-Y' is a range, `[:CLASS:]' a character class and a backslash quotes the
next character.
"""

from __future__ import annotations

from typing import List, Tuple

from relint.checkers.regexp_lint import CHAR_CLASSES
from relint.types.errors import PatternSyntaxError


def lint(skip_set: str) -> List[Tuple[int, str]]:
    """Return complaints about `skip_set` as (position, message) pairs."""
    complaints: List[Tuple[int, str]] = []
    s = skip_set
    n = len(s)
    i = 0
    negated = False
    if s.startswith("^"):
        negated = True
        i = 1
    if i == n:
        if negated:
            complaints.append((0, "Negated empty set matches anything"))
        else:
            complaints.append((0, "Empty set matches nothing"))
        return complaints

    if s.startswith("[", i) and s.endswith("]") and not s.endswith(":]") and n - i > 2:
        complaints.append((i, "Suspect skip set framed in `[...]'"))

    seen: List[Tuple[int, int]] = []

    def add(pos: int, lo: int, hi: int) -> None:
        for olo, ohi in seen:
            if lo <= ohi and olo <= hi:
                if lo == hi and olo == ohi:
                    complaints.append((pos, f"Duplicated character `{chr(lo)}'"))
                elif lo == hi:
                    complaints.append((pos, f"Character `{chr(lo)}' included in range `{chr(olo)}-{chr(ohi)}'"))
                elif olo == ohi:
                    complaints.append((pos, f"Range `{chr(lo)}-{chr(hi)}' includes character `{chr(olo)}'"))
                else:
                    complaints.append((pos, f"Ranges `{chr(olo)}-{chr(ohi)}' and `{chr(lo)}-{chr(hi)}' overlap"))
                break
        seen.append((lo, hi))

    def char_at(pos: int) -> Tuple[str, int]:
        """The character starting at `pos` and the position after it."""
        if s[pos] == "\\":
            if pos + 1 >= n:
                raise PatternSyntaxError("Stray `\\' at end of string", pos)
            c = s[pos + 1]
            if c not in "\\^-":
                complaints.append((pos, f"Unnecessarily escaped `{c}'"))
            return c, pos + 2
        return s[pos], pos + 1

    classes = set()
    while i < n:
        if s.startswith("[:", i):
            close = s.find(":]", i + 2)
            if close >= 0:
                name = s[i + 2:close]
                if name not in CHAR_CLASSES:
                    raise PatternSyntaxError(f"No character class `[:{name}:]'", i)
                if name in classes:
                    complaints.append((i, f"Duplicated class `[:{name}:]'"))
                classes.add(name)
                i = close + 2
                continue
        start = i
        lo, i = char_at(i)
        if i + 1 < n and s[i] == "-":
            hi, end = char_at(i + 1)
            if hi < lo:
                if ord(lo) != ord(hi) + 1:
                    complaints.append((start, f"Reversed range `{lo}-{hi}'"))
            else:
                add(start, ord(lo), ord(hi))
            i = end
            continue
        add(start, ord(lo), ord(lo))

    complaints.sort(key=lambda item: item[0])
    return complaints
