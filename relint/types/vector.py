from __future__ import annotations

from typing import Iterable


class Vector:
    """An Emacs Lisp vector `[a b c]`; self-evaluating, never treated as code."""

    __slots__ = ("items",)

    def __init__(self, items: Iterable = ()):
        self.items: tuple = tuple(items)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Vector) and self.items == other.items

    def __hash__(self) -> int:
        return hash(("vector", self.items))

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __repr__(self):
        return "[" + " ".join(repr(x) for x in self.items) + "]"
