"""Closures created by evaluating `lambda' forms."""

from __future__ import annotations

from io import StringIO

from relint import SExpression
from relint.types.environment import Environment
from relint.types.symbol import Symbol


class Lambda:
    """An anonymous function with formal parameters, body, and closure env.

    `body` is the list of body forms. Closures only exist inside the
    evaluator; they are never reported or spliced into patterns.
    """

    __slots__ = ("formals", "body", "env")

    def __init__(
        self, formals: SExpression, body: list[SExpression], env: Environment | None = None
    ):
        self.formals = formals
        self.body: list[SExpression] = body
        self.env: Environment | None = env

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("(lambda (")
            if isinstance(self.formals, list):
                buffer.write(" ".join(str(f) for f in self.formals))
            buffer.write(") ")
            buffer.write(" ".join(str(form) for form in self.body))
            buffer.write(")")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)


LAMBDA = Symbol("lambda")
