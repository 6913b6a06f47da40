"""Registry of special forms for the abstract evaluator.

Maps Symbols to handler functions that implement non-standard evaluation
rules. The evaluator consults this table before local macros, local
functions and primitives. Every handler takes
`(tail, env, state, evaluate_fn)` and returns a value or UNKNOWN.
"""

from relint.reader.reader_macros import BACKQUOTE
from relint.types.symbol import Symbol
from relint.evaluation.special_forms.apply_form import (
    apply_form,
    cl_mapcar_form,
    cl_reduce_form,
    funcall_form,
    mapcan_form,
    mapcar_form,
    mapconcat_form,
    remove_if_form,
    remove_if_not_form,
)
from relint.evaluation.special_forms.do_loop_forms import dolist_form, dotimes_form, while_form
from relint.evaluation.special_forms.if_form import cond_form, if_form, unless_form, when_form
from relint.evaluation.special_forms.let_forms import let_form, let_star_form
from relint.evaluation.special_forms.logic_forms import and_form, or_form
from relint.evaluation.special_forms.progn_form import prog1_form, prog2_form, progn_form
from relint.evaluation.special_forms.quote_forms import backquote_form, function_form, lambda_form, quote_form
from relint.evaluation.special_forms.rx_forms import rx_form, rx_to_string_form
from relint.evaluation.special_forms.set_form import pop_form, push_form, setq_form

SPECIAL_FORMS = {
    Symbol("quote"): quote_form,
    Symbol("function"): function_form,
    Symbol("lambda"): lambda_form,
    BACKQUOTE: backquote_form,
    Symbol("if"): if_form,
    Symbol("cond"): cond_form,
    Symbol("when"): when_form,
    Symbol("unless"): unless_form,
    Symbol("and"): and_form,
    Symbol("or"): or_form,
    Symbol("progn"): progn_form,
    Symbol("prog1"): prog1_form,
    Symbol("prog2"): prog2_form,
    Symbol("eval-when-compile"): progn_form,
    Symbol("eval-and-compile"): progn_form,
    Symbol("ignore-errors"): progn_form,
    Symbol("with-no-warnings"): progn_form,
    Symbol("save-match-data"): progn_form,
    Symbol("let"): let_form,
    Symbol("let*"): let_star_form,
    Symbol("setq"): setq_form,
    Symbol("push"): push_form,
    Symbol("pop"): pop_form,
    Symbol("while"): while_form,
    Symbol("dolist"): dolist_form,
    Symbol("dotimes"): dotimes_form,
    Symbol("mapcar"): mapcar_form,
    Symbol("seq-map"): mapcar_form,
    Symbol("mapcan"): mapcan_form,
    Symbol("mapconcat"): mapconcat_form,
    Symbol("cl-mapcar"): cl_mapcar_form,
    Symbol("cl-remove-if"): remove_if_form,
    Symbol("seq-remove"): remove_if_form,
    Symbol("cl-remove-if-not"): remove_if_not_form,
    Symbol("seq-filter"): remove_if_not_form,
    Symbol("cl-reduce"): cl_reduce_form,
    Symbol("apply"): apply_form,
    Symbol("funcall"): funcall_form,
    Symbol("rx"): rx_form,
    Symbol("rx-to-string"): rx_to_string_form,
}
