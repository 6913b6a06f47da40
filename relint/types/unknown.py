from __future__ import annotations


class UnknownType:
    """Result of evaluating something the abstract evaluator cannot model.

    Evaluation functions return UNKNOWN instead of raising, and every
    combinator passes it through unchanged. Compare with `is`.
    """

    __slots__ = ()

    def __repr__(self):
        return "UNKNOWN"


UNKNOWN = UnknownType()
