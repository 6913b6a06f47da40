# Core type aliases for relint's data model.
# Forms are plain Python values produced by the reader (str, int, float, list,
# tuple-for-dotted-lists) plus Symbol, Nil and Vector. The same values double
# as evaluation results in the abstract evaluator, which adds the UNKNOWN
# sentinel for anything it cannot determine safely.
#
# Naming guidance:
# - SExpression: syntactic forms as read from source (code-as-data).
# - LispValue:  values produced by the abstract evaluator.
# - Path:       structural indices locating a subform, innermost first.

from typing import Any, Callable

__version__ = "1.0.0"

LispValue = Any
SExpression = LispValue
Path = tuple[int, ...]

# Evaluator function type, passed to special forms so they can recurse
EvaluatorFn = Callable[..., LispValue]
