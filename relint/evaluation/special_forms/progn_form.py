from relint import EvaluatorFn, LispValue, SExpression
from relint.evaluation.apply import evaluate_body
from relint.evaluation.state import EvalState
from relint.types.environment import Environment
from relint.types.unknown import UNKNOWN


def progn_form(
    tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
) -> LispValue:
    """Also used for the wrappers whose body is evaluated in sequence
    (`eval-when-compile', `save-match-data', `ignore-errors', ...)."""
    return evaluate_body(tail, env, state, evaluate_fn)


def _prog_n(n: int):
    def prog_form(
        tail: list[SExpression], env: Environment, state: EvalState, evaluate_fn: EvaluatorFn
    ) -> LispValue:
        if len(tail) < n:
            return UNKNOWN
        result: LispValue = UNKNOWN
        for i, form in enumerate(tail):
            value = evaluate_fn(form, env, state)
            if value is UNKNOWN:
                return UNKNOWN
            if i == n - 1:
                result = value
        return result

    return prog_form


prog1_form = _prog_n(1)
prog2_form = _prog_n(2)
