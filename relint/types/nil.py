from __future__ import annotations


class NilType:
    """The single empty-list/false value.

    The reader produces Nil for both `nil` and `()`, and list primitives
    return Nil instead of an empty Python list, so `is_nil` is the only
    test needed anywhere.
    """

    __slots__ = ()

    def __repr__(self): return "nil"
    def __bool__(self): return False
    def __iter__(self): return iter(())
    def __len__(self): return 0

    def __eq__(self, other):
        return isinstance(other, NilType)

    def __hash__(self):
        return hash("nil")


Nil = NilType()


def is_nil(value) -> bool:
    return value is Nil or (isinstance(value, list) and not value)
