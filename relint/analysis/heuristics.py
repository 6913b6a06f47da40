"""Name, doc string and customization-type heuristics.

These decide the shape in which a variable holds patterns, and which
functions take or return regexps. They are guesses; a miss only means
a string goes unchecked.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from relint import SExpression
from relint.types.bind import LAMBDA_LIST_KEYWORDS, REST, BODY
from relint.types.nil import is_nil
from relint.types.symbol import Symbol

# Shapes in which a value can hold patterns
REGEXP = "regexp"
LIST = "list"
ALIST = "alist"
ALIST_VALUES = "alist-values"
CONS = "cons"
FONT_LOCK = "font-lock"
COMPILATION = "compilation"
IMENU = "imenu"
RULES = "rules"

# Variables holding a regexp without following any naming convention
SPECIAL_REGEXP_VARIABLES = frozenset({
    "page-delimiter", "paragraph-start", "paragraph-separate", "sentence-end",
    "comment-start-skip", "comment-end-skip",
})

FONT_LOCK_NAME_RE = re.compile(r"(?:\A|-)font-lock-keywords(?:-[123])?\Z")
IMENU_NAME_RE = re.compile(r"(?:\A|-)imenu-generic-expression\Z")
ALIST_NAME_RE = re.compile(r"-(?:regexp|regex|re|pattern|mode)-alist\Z")
LIST_NAME_RE = re.compile(r"-(?:regexps|regexes|patterns)\Z|-(?:regexp|regex|re|pattern)-list\Z")
REGEXP_NAME_RE = re.compile(r"-(?:regexp|regex|re|pattern)\Z")

DOC_NEGATED_RE = re.compile(
    r"\A(?:not an? )(?:regexp|regular expression)|\bis not an? (?:regexp|regular expression)",
    re.IGNORECASE,
)
DOC_REGEXP_RE = re.compile(r"\A(?:an? |the )?(?:regexp|regular expression)\b", re.IGNORECASE)
DOC_LIST_RE = re.compile(r"\A(?:an? )?list of (?:regexps|regular expressions)\b", re.IGNORECASE)

DOC_RETURNS_REGEXP_RE = re.compile(r"\Areturn (?:a |the )?(?:regexp|regular expression)\b", re.IGNORECASE)
RETURNING_NAME_RE = re.compile(r"-(?:regexp|regex|re|pattern)\Z")
ARGUMENT_NAME_RE = re.compile(r"(?:regexp?|pattern)\Z|(?:\A|-)re\Z")
DOC_PLACEHOLDER_RES = (
    re.compile(r"(?i:regexp|regular expression)\s+([A-Z](?:[A-Z0-9-]*[A-Z0-9])?)\b"),
    re.compile(r"\b([A-Z](?:[A-Z0-9-]*[A-Z0-9])?)(?:\s+is|,)\s+an?\s+(?i:regexp|regular expression)"),
)

REGEXP_TYPE = Symbol("regexp")
REPEAT = Symbol("repeat")
CHOICE = Symbol("choice")
RADIO = Symbol("radio")
ALIST_TYPE = Symbol("alist")
CONS_TYPE = Symbol("cons")
KEY_TYPE = Symbol(":key-type")
VALUE_TYPE = Symbol(":value-type")


def classify_name(name: str) -> Optional[str]:
    """Shape suggested by a variable name alone."""
    if name == "compilation-error-regexp-alist-alist":
        return COMPILATION
    if FONT_LOCK_NAME_RE.search(name):
        return FONT_LOCK
    if IMENU_NAME_RE.search(name):
        return IMENU
    if name.endswith("-rules-list"):
        return RULES
    if name == "auto-mode-alist" or ALIST_NAME_RE.search(name):
        return ALIST
    if LIST_NAME_RE.search(name):
        return LIST
    if name in SPECIAL_REGEXP_VARIABLES or REGEXP_NAME_RE.search(name):
        return REGEXP
    return None


def classify_doc(doc: Optional[str]) -> Optional[str]:
    """Shape suggested by the first words of a variable's doc string."""
    if not isinstance(doc, str):
        return None
    doc = doc.lstrip()
    if DOC_NEGATED_RE.search(doc):
        return None
    if DOC_LIST_RE.match(doc):
        return LIST
    if DOC_REGEXP_RE.match(doc):
        return REGEXP
    return None


def _widget_args(widget: list) -> list:
    """Arguments of a customization widget with its keyword options removed."""
    args = []
    items = widget[1:]
    i = 0
    while i < len(items):
        item = items[i]
        if isinstance(item, Symbol) and item.is_keyword:
            i += 2
            continue
        args.append(item)
        i += 1
    return args


def _widget_option(widget: list, key: Symbol) -> SExpression:
    items = widget[1:]
    for i in range(len(items) - 1):
        if items[i] == key:
            return items[i + 1]
    return None


def _is_regexp_type(type_form: SExpression) -> bool:
    if type_form == REGEXP_TYPE:
        return True
    return isinstance(type_form, list) and bool(type_form) and type_form[0] == REGEXP_TYPE


def classify_type(type_form: SExpression) -> Optional[str]:
    """Shape suggested by a `defcustom' :type value."""
    if _is_regexp_type(type_form):
        return REGEXP
    if not isinstance(type_form, list) or not type_form or not isinstance(type_form[0], Symbol):
        return None
    head = type_form[0]
    if head == REPEAT:
        args = _widget_args(type_form)
        if args and _is_regexp_type(args[-1]):
            return LIST
        return None
    if head in (CHOICE, RADIO):
        shapes = [classify_type(alternative) for alternative in _widget_args(type_form)]
        for shape in (REGEXP, LIST):
            if shape in shapes:
                return shape
        return None
    if head == ALIST_TYPE:
        if _is_regexp_type(_widget_option(type_form, KEY_TYPE)):
            return ALIST
        if _is_regexp_type(_widget_option(type_form, VALUE_TYPE)):
            return ALIST_VALUES
        return None
    if head == CONS_TYPE:
        args = _widget_args(type_form)
        if args and _is_regexp_type(args[0]):
            return CONS
    return None


def classify_variable(name: Symbol, type_form: SExpression = None, doc: Optional[str] = None) -> Optional[str]:
    """Shape of a variable definition: type first, then name, then doc string."""
    if type_form is not None:
        shape = classify_type(type_form)
        if shape is not None:
            return shape
    shape = classify_name(str(name))
    if shape is not None:
        return shape
    return classify_doc(doc)


def returns_regexp(name: Symbol, doc: Optional[str]) -> bool:
    """Whether a function appears to return a regexp."""
    if RETURNING_NAME_RE.search(str(name)):
        return True
    return isinstance(doc, str) and bool(DOC_RETURNS_REGEXP_RE.match(doc.lstrip()))


def regexp_argument_positions(formals: SExpression, doc: Optional[str]) -> Tuple[int, ...]:
    """Zero-based positions of the parameters that appear to take regexps.

    Parameters after &rest are not counted.
    """
    if is_nil(formals) or not isinstance(formals, list):
        return ()
    placeholders = set()
    if isinstance(doc, str):
        for pattern in DOC_PLACEHOLDER_RES:
            placeholders.update(m.group(1) for m in pattern.finditer(doc))
    positions = []
    index = 0
    for formal in formals:
        if formal in (REST, BODY):
            break
        if isinstance(formal, Symbol) and formal in LAMBDA_LIST_KEYWORDS:
            continue
        if isinstance(formal, list) and formal and isinstance(formal[0], Symbol):
            formal = formal[0]
        if isinstance(formal, Symbol):
            name = str(formal)
            if ARGUMENT_NAME_RE.search(name) or name.upper() in placeholders:
                positions.append(index)
        index += 1
    return tuple(positions)
