"""Pure built-in functions available to the abstract evaluator.

Only the functions registered in PRIMITIVES can ever be invoked. Each takes
already-evaluated Lisp values as positional arguments and returns a Lisp
value, following Emacs semantics closely enough for pattern construction.
Errors are signalled with ordinary Python exceptions; the evaluator turns
them into UNKNOWN.
"""
from __future__ import annotations

import math
import re
from typing import Callable

from relint import LispValue
from relint.types.nil import Nil, is_nil
from relint.types.symbol import Symbol, T
from relint.types.vector import Vector

# Longest list or string a primitive may build
MAX_SEQUENCE = 100_000

# Most conses and atoms a primitive may visit while walking a structure
MAX_NODES = MAX_SEQUENCE

# Emacs `integer-width': bignums beyond this signal overflow-error
INTEGER_WIDTH = 65536

# Characters quoted by `regexp-quote'
REGEXP_SPECIALS = frozenset("[*.\\?+^$")

# Regexp matching nothing, as produced by regexp-opt for an empty list
UNMATCHABLE = "\\(?:\\`a\\`\\)"

FORMAT_SPEC_RE = re.compile(r"%(?:([0-9]+)\$)?([-+ #0]*)([0-9]*)(?:\.([0-9]+))?(.)?", re.DOTALL)

PRIMITIVES: dict[Symbol, Callable[..., LispValue]] = {}


class PrimitiveError(Exception):
    """ Raised by a primitive for an Emacs-level error (wrong type, range)"""


def primitive(*names: str):
    """Register the decorated function under each of `names`."""

    def register(fn: Callable[..., LispValue]) -> Callable[..., LispValue]:
        for name in names:
            PRIMITIVES[Symbol(name)] = fn
        return fn

    return register


# -------------------------------
# Value helpers
# -------------------------------
def lisp_bool(flag: bool) -> LispValue:
    return T if flag else Nil


def is_true(value: LispValue) -> bool:
    return not is_nil(value)


def as_list(value: LispValue) -> list:
    """Elements of a proper list; Nil is the empty list."""
    if is_nil(value):
        return []
    if isinstance(value, list):
        return value
    raise PrimitiveError(f"Wrong type argument: listp, {value!r}")


def as_sequence(value: LispValue) -> list:
    """Elements of a list, vector or string (characters as ints)."""
    if isinstance(value, str):
        return [ord(c) for c in value]
    if isinstance(value, Vector):
        return list(value.items)
    return as_list(value)


def from_items(items) -> LispValue:
    items = list(items)
    if len(items) > MAX_SEQUENCE:
        raise PrimitiveError("Sequence too long")
    return items if items else Nil


def as_string(value: LispValue) -> str:
    if isinstance(value, str):
        return value
    raise PrimitiveError(f"Wrong type argument: stringp, {value!r}")


def as_int(value: LispValue) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise PrimitiveError(f"Wrong type argument: integerp, {value!r}")


def as_number(value: LispValue) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    raise PrimitiveError(f"Wrong type argument: numberp, {value!r}")


def check_integer(n):
    """Return `n`, or signal overflow when it is wider than Emacs allows."""
    if isinstance(n, int) and abs(n).bit_length() > INTEGER_WIDTH:
        raise PrimitiveError("Arithmetic overflow error")
    return n


class NodeBudget:
    """Counts the nodes visited by one structure walk.

    Shared substructure is visited once per reference, so a list built by
    repeated `(list l l)' can be exponentially larger than the heap it uses.
    """

    __slots__ = ("left",)

    def __init__(self, limit: int = MAX_NODES):
        self.left = limit

    def spend(self, n: int = 1) -> None:
        self.left -= n
        if self.left < 0:
            raise PrimitiveError("Structure too large")


def is_equal(a: LispValue, b: LispValue, budget: NodeBudget | None = None) -> bool:
    """Structural equality (`equal')."""
    if budget is None:
        budget = NodeBudget()
    budget.spend()
    if is_nil(a) and is_nil(b):
        return True
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(is_equal(x, y, budget) for x, y in zip(a, b))
    if type(a) is not type(b):
        return False
    return a == b


def is_eq(a: LispValue, b: LispValue) -> bool:
    """Identity (`eq') for values where identity is observable in Emacs."""
    if is_nil(a) and is_nil(b):
        return True
    if isinstance(a, (Symbol, int)) and not isinstance(a, bool):
        return type(a) is type(b) and a == b
    if isinstance(a, (str, list, tuple, Vector, float)) and type(a) is type(b):
        # Distinct objects in Emacs may or may not be eq; refuse to guess.
        raise PrimitiveError("eq on non-immediate values")
    return False


def princ_string(value: LispValue) -> str:
    """Printed representation without quoting (`princ')."""
    return _print(value, False)


def prin1_string(value: LispValue) -> str:
    """Printed representation with quoting (`prin1')."""
    return _print(value, True)


def _print_float(x: float) -> str:
    if math.isnan(x):
        return "0.0e+NaN"
    if math.isinf(x):
        return "1.0e+INF" if x > 0 else "-1.0e+INF"
    return repr(x)


def _print(value: LispValue, readably: bool, budget: NodeBudget | None = None) -> str:
    if budget is None:
        budget = NodeBudget()
    budget.spend()
    if is_nil(value):
        return "nil"
    if isinstance(value, str):
        if not readably:
            return value
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, Symbol):
        return value.id
    if isinstance(value, float):
        return _print_float(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list):
        return "(" + " ".join(_print(x, readably, budget) for x in value) + ")"
    if isinstance(value, tuple):
        items, tail = value
        return ("(" + " ".join(_print(x, readably, budget) for x in items)
                + " . " + _print(tail, readably, budget) + ")")
    if isinstance(value, Vector):
        return "[" + " ".join(_print(x, readably, budget) for x in value.items) + "]"
    raise PrimitiveError(f"Cannot print {value!r}")


# -------------------------------
# Arithmetic
# -------------------------------
@primitive("+")
def add(*args):
    return check_integer(sum(as_number(x) for x in args))


@primitive("-")
def sub(*args):
    if not args:
        return 0
    nums = [as_number(x) for x in args]
    if len(nums) == 1:
        return -nums[0]
    result = nums[0]
    for x in nums[1:]:
        result -= x
    return check_integer(result)


@primitive("*")
def mul(*args):
    result = 1
    for x in args:
        result = check_integer(result * as_number(x))
    return result


@primitive("/")
def div(first, *rest):
    result = as_number(first)
    for x in rest:
        x = as_number(x)
        if isinstance(result, int) and isinstance(x, int):
            if x == 0:
                raise PrimitiveError("Arithmetic error")
            # Emacs integer division truncates towards zero
            q = abs(result) // abs(x)
            result = q if (result >= 0) == (x >= 0) else -q
        else:
            result = result / x
    return result


@primitive("%")
def rem(a, b):
    a, b = as_int(a), as_int(b)
    return int(math.fmod(a, b))


@primitive("mod")
def mod(a, b):
    a, b = as_number(a), as_number(b)
    return a % b


@primitive("1+")
def one_plus(x):
    return check_integer(as_number(x) + 1)


@primitive("1-")
def one_minus(x):
    return check_integer(as_number(x) - 1)


@primitive("max")
def max_(first, *rest):
    return max(as_number(x) for x in (first, *rest))


@primitive("min")
def min_(first, *rest):
    return min(as_number(x) for x in (first, *rest))


@primitive("abs")
def abs_(x):
    return abs(as_number(x))


def _chain(op: Callable[[LispValue, LispValue], bool]):
    def compare(first, *rest):
        nums = [as_number(x) for x in (first, *rest)]
        return lisp_bool(all(op(a, b) for a, b in zip(nums, nums[1:])))

    return compare


PRIMITIVES[Symbol("=")] = _chain(lambda a, b: a == b)
PRIMITIVES[Symbol("<")] = _chain(lambda a, b: a < b)
PRIMITIVES[Symbol(">")] = _chain(lambda a, b: a > b)
PRIMITIVES[Symbol("<=")] = _chain(lambda a, b: a <= b)
PRIMITIVES[Symbol(">=")] = _chain(lambda a, b: a >= b)


@primitive("/=")
def not_equal_num(a, b):
    return lisp_bool(as_number(a) != as_number(b))


@primitive("zerop")
def zerop(x):
    return lisp_bool(as_number(x) == 0)


@primitive("natnump")
def natnump(x):
    return lisp_bool(isinstance(x, int) and x >= 0)


# -------------------------------
# Predicates
# -------------------------------
@primitive("null", "not")
def null(x):
    return lisp_bool(is_nil(x))


@primitive("stringp")
def stringp(x):
    return lisp_bool(isinstance(x, str))


@primitive("symbolp")
def symbolp(x):
    return lisp_bool(isinstance(x, Symbol) or is_nil(x))


@primitive("keywordp")
def keywordp(x):
    return lisp_bool(isinstance(x, Symbol) and x.is_keyword)


@primitive("consp")
def consp(x):
    return lisp_bool(isinstance(x, tuple) or (isinstance(x, list) and bool(x)))


@primitive("listp")
def listp(x):
    return lisp_bool(isinstance(x, (list, tuple)) or is_nil(x))


@primitive("atom")
def atom(x):
    return lisp_bool(not (isinstance(x, tuple) or (isinstance(x, list) and bool(x))))


@primitive("numberp")
def numberp(x):
    return lisp_bool(isinstance(x, (int, float)))


@primitive("integerp", "fixnump")
def integerp(x):
    return lisp_bool(isinstance(x, int))


@primitive("characterp")
def characterp(x):
    return lisp_bool(isinstance(x, int) and 0 <= x <= 0x3FFFFF)


@primitive("vectorp")
def vectorp(x):
    return lisp_bool(isinstance(x, Vector))


@primitive("sequencep")
def sequencep(x):
    return lisp_bool(isinstance(x, (str, list, Vector)) or is_nil(x))


@primitive("eq")
def eq(a, b):
    return lisp_bool(is_eq(a, b))


@primitive("eql")
def eql(a, b):
    if isinstance(a, float) and isinstance(b, float):
        return lisp_bool(a == b)
    return lisp_bool(is_eq(a, b))


@primitive("equal")
def equal(a, b):
    return lisp_bool(is_equal(a, b))


def _string_arg(x) -> str:
    if isinstance(x, Symbol):
        return x.id
    if is_nil(x):
        return "nil"
    return as_string(x)


@primitive("string=", "string-equal")
def string_equal(a, b):
    return lisp_bool(_string_arg(a) == _string_arg(b))


@primitive("string<", "string-lessp")
def string_lessp(a, b):
    return lisp_bool(_string_arg(a) < _string_arg(b))


@primitive("string>", "string-greaterp")
def string_greaterp(a, b):
    return lisp_bool(_string_arg(a) > _string_arg(b))


@primitive("string-prefix-p")
def string_prefix_p(prefix, string, ignore_case=Nil):
    prefix, string = as_string(prefix), as_string(string)
    if is_true(ignore_case):
        prefix, string = prefix.lower(), string.lower()
    return lisp_bool(string.startswith(prefix))


@primitive("string-suffix-p")
def string_suffix_p(suffix, string, ignore_case=Nil):
    suffix, string = as_string(suffix), as_string(string)
    if is_true(ignore_case):
        suffix, string = suffix.lower(), string.lower()
    return lisp_bool(string.endswith(suffix))


@primitive("string-empty-p")
def string_empty_p(string):
    return lisp_bool(as_string(string) == "")


# -------------------------------
# Lists
# -------------------------------
@primitive("list")
def list_(*args):
    return from_items(args)


@primitive("cons")
def cons(head, tail):
    """Prepend `head`; a non-list tail yields a dotted pair."""
    if is_nil(tail):
        return [head]
    if isinstance(tail, list):
        return [head] + tail
    if isinstance(tail, tuple):
        return [head] + tail[0], tail[1]
    return [head], tail


@primitive("car")
def car(xs):
    if is_nil(xs):
        return Nil
    if isinstance(xs, tuple):
        return xs[0][0]
    return as_list(xs)[0]


@primitive("cdr")
def cdr(xs):
    if is_nil(xs):
        return Nil
    if isinstance(xs, tuple):
        items, tail = xs
        return (items[1:], tail) if len(items) > 1 else tail
    return from_items(as_list(xs)[1:])


@primitive("car-safe")
def car_safe(xs):
    return car(xs) if isinstance(xs, (list, tuple)) else Nil


@primitive("cdr-safe")
def cdr_safe(xs):
    return cdr(xs) if isinstance(xs, (list, tuple)) else Nil


PRIMITIVES[Symbol("caar")] = lambda x: car(car(x))
PRIMITIVES[Symbol("cadr")] = lambda x: car(cdr(x))
PRIMITIVES[Symbol("cdar")] = lambda x: cdr(car(x))
PRIMITIVES[Symbol("cddr")] = lambda x: cdr(cdr(x))
PRIMITIVES[Symbol("caddr")] = lambda x: car(cdr(cdr(x)))
PRIMITIVES[Symbol("cdddr")] = lambda x: cdr(cdr(cdr(x)))
PRIMITIVES[Symbol("cadar")] = lambda x: car(cdr(car(x)))


@primitive("nthcdr")
def nthcdr(n, xs):
    n = as_int(n)
    for _ in range(max(n, 0)):
        if is_nil(xs):
            return Nil
        xs = cdr(xs)
    return xs


@primitive("nth")
def nth(n, xs):
    return car(nthcdr(n, xs))


@primitive("elt")
def elt(seq, n):
    n = as_int(n)
    if isinstance(seq, (list, tuple)) or is_nil(seq):
        return nth(n, seq)
    items = as_sequence(seq)
    if not 0 <= n < len(items):
        raise PrimitiveError("Args out of range")
    return items[n]


@primitive("length", "safe-length")
def length(seq):
    if isinstance(seq, tuple):
        raise PrimitiveError("Wrong type argument: listp")
    return len(as_sequence(seq))


@primitive("last")
def last(xs, n=Nil):
    items = as_list(xs)
    count = 1 if is_nil(n) else as_int(n)
    if count <= 0:
        return Nil
    return from_items(items[-count:])


@primitive("butlast")
def butlast(xs, n=Nil):
    items = as_list(xs)
    count = 1 if is_nil(n) else as_int(n)
    if count <= 0:
        return from_items(items)
    return from_items(items[:-count])


@primitive("take", "ntake")
def take(n, xs):
    return from_items(as_list(xs)[:max(as_int(n), 0)])


@primitive("append")
def append(*seqs):
    """Concatenate sequences; the last argument becomes the tail."""
    if not seqs:
        return Nil
    items: list = []
    for seq in seqs[:-1]:
        items.extend(as_sequence(seq))
    tail = seqs[-1]
    if is_nil(tail):
        return from_items(items)
    if isinstance(tail, list):
        return from_items(items + tail)
    if isinstance(tail, tuple):
        return items + tail[0], tail[1]
    if not items:
        return tail
    return items, tail


@primitive("reverse")
def reverse(seq):
    if isinstance(seq, str):
        return seq[::-1]
    if isinstance(seq, Vector):
        return Vector(reversed(seq.items))
    return from_items(reversed(as_list(seq)))


@primitive("string-reverse")
def string_reverse(s):
    return as_string(s)[::-1]


@primitive("remove")
def remove(elt_, seq):
    return from_items(x for x in as_list(seq) if not is_equal(x, elt_))


@primitive("remq")
def remq(elt_, seq):
    return from_items(x for x in as_list(seq) if not is_eq(x, elt_))


@primitive("delete-dups", "seq-uniq", "cl-remove-duplicates")
def delete_dups(seq):
    result: list = []
    # One budget for all comparisons, which grow with the square of the length
    budget = NodeBudget(10 * MAX_NODES)
    for x in as_list(seq):
        if not any(is_equal(x, y, budget) for y in result):
            result.append(x)
    return from_items(result)


def _member_tail(items: list, index: int) -> LispValue:
    return from_items(items[index:])


@primitive("member")
def member(elt_, seq):
    items = as_list(seq)
    for i, x in enumerate(items):
        if is_equal(x, elt_):
            return _member_tail(items, i)
    return Nil


@primitive("memq", "memql")
def memq(elt_, seq):
    items = as_list(seq)
    for i, x in enumerate(items):
        if is_eq(x, elt_):
            return _member_tail(items, i)
    return Nil


def _pairs(alist: LispValue):
    for entry in as_list(alist):
        if isinstance(entry, (list, tuple)):
            yield entry


@primitive("assoc")
def assoc(key, alist, testfn=Nil):
    if is_true(testfn):
        raise PrimitiveError("assoc with test function")
    for entry in _pairs(alist):
        if is_equal(car(entry), key):
            return entry
    return Nil


@primitive("assq")
def assq(key, alist):
    for entry in _pairs(alist):
        if is_eq(car(entry), key):
            return entry
    return Nil


@primitive("rassoc")
def rassoc(key, alist):
    for entry in _pairs(alist):
        if is_equal(cdr(entry), key):
            return entry
    return Nil


@primitive("rassq")
def rassq(key, alist):
    for entry in _pairs(alist):
        if is_eq(cdr(entry), key):
            return entry
    return Nil


@primitive("alist-get")
def alist_get(key, alist, default=Nil, remove_=Nil, testfn=Nil):
    entry = assoc(key, alist, testfn) if is_true(testfn) else assq(key, alist)
    return default if is_nil(entry) else cdr(entry)


@primitive("plist-get")
def plist_get(plist, prop, predicate=Nil):
    if is_true(predicate):
        raise PrimitiveError("plist-get with predicate")
    items = as_list(plist)
    for i in range(0, len(items) - 1, 2):
        if is_eq(items[i], prop):
            return items[i + 1]
    return Nil


@primitive("plist-member")
def plist_member(plist, prop, predicate=Nil):
    if is_true(predicate):
        raise PrimitiveError("plist-member with predicate")
    items = as_list(plist)
    for i in range(0, len(items), 2):
        if is_eq(items[i], prop):
            return from_items(items[i:])
    return Nil


@primitive("number-sequence")
def number_sequence(start, end=Nil, step=Nil):
    start = as_number(start)
    if is_nil(end):
        return [start]
    end = as_number(end)
    step = 1 if is_nil(step) else as_number(step)
    if step == 0:
        raise PrimitiveError("The increment can not be zero")
    count = int((end - start) / step) + 1
    if count > MAX_SEQUENCE:
        raise PrimitiveError("Sequence too long")
    return from_items(start + i * step for i in range(max(count, 0)))


@primitive("flatten-tree")
def flatten_tree(tree):
    result: list = []
    budget = NodeBudget()

    def walk(x):
        budget.spend()
        if is_nil(x):
            return
        if isinstance(x, list):
            for y in x:
                walk(y)
        elif isinstance(x, tuple):
            for y in x[0]:
                walk(y)
            walk(x[1])
        else:
            result.append(x)

    walk(tree)
    return from_items(result)


@primitive("identity", "purecopy", "copy-sequence", "copy-tree", "copy-alist")
def identity(x, *_):
    return x


@primitive("vector")
def vector(*args):
    return Vector(args)


# -------------------------------
# Strings
# -------------------------------
def _chars(value: LispValue) -> str:
    """Argument to concat: a string or a sequence of characters."""
    if isinstance(value, str):
        return value
    if is_nil(value):
        return ""
    return "".join(chr(as_int(c)) for c in as_sequence(value))


@primitive("concat")
def concat(*args):
    result = "".join(_chars(a) for a in args)
    if len(result) > MAX_SEQUENCE:
        raise PrimitiveError("String too long")
    return result


@primitive("substring", "substring-no-properties")
def substring(s, start=Nil, end=Nil):
    if isinstance(s, Vector):
        items = list(s.items)
    else:
        items = as_string(s)
    n = len(items)
    i = 0 if is_nil(start) else as_int(start)
    j = n if is_nil(end) else as_int(end)
    if i < 0:
        i += n
    if j < 0:
        j += n
    if not 0 <= i <= j <= n:
        raise PrimitiveError("Args out of range")
    return Vector(items[i:j]) if isinstance(s, Vector) else items[i:j]


@primitive("string")
def string(*chars):
    return "".join(chr(as_int(c)) for c in chars)


@primitive("string-to-char")
def string_to_char(s):
    s = as_string(s)
    return ord(s[0]) if s else 0


@primitive("char-to-string")
def char_to_string(c):
    return chr(as_int(c))


@primitive("string-to-list", "append-string")
def string_to_list(s):
    return from_items(ord(c) for c in as_string(s))


@primitive("string-to-vector")
def string_to_vector(s):
    return Vector(ord(c) for c in as_string(s))


def _case_map(value, fn: Callable[[str], str]):
    if isinstance(value, int):
        mapped = fn(chr(value))
        return ord(mapped) if len(mapped) == 1 else value
    return fn(as_string(value))


@primitive("upcase")
def upcase(x):
    return _case_map(x, str.upper)


@primitive("downcase")
def downcase(x):
    return _case_map(x, str.lower)


@primitive("capitalize")
def capitalize(x):
    return _case_map(x, lambda s: re.sub(r"\w+", lambda m: m.group(0).capitalize(), s))


@primitive("string-join")
def string_join(strings, separator=Nil):
    sep = "" if is_nil(separator) else as_string(separator)
    return sep.join(as_string(s) for s in as_list(strings))


@primitive("make-string")
def make_string(n, c, multibyte=Nil):
    n = as_int(n)
    if not 0 <= n <= MAX_SEQUENCE:
        raise PrimitiveError("Args out of range")
    return chr(as_int(c)) * n


@primitive("string-replace")
def string_replace(from_string, to_string, in_string):
    from_string = as_string(from_string)
    if not from_string:
        raise PrimitiveError("Wrong length argument")
    return as_string(in_string).replace(from_string, as_string(to_string))


@primitive("string-search")
def string_search(needle, haystack, start=Nil):
    start = 0 if is_nil(start) else as_int(start)
    index = as_string(haystack).find(as_string(needle), start)
    return Nil if index < 0 else index


@primitive("number-to-string")
def number_to_string(x):
    x = as_number(x)
    return _print_float(x) if isinstance(x, float) else str(x)


@primitive("string-to-number")
def string_to_number(s, base=Nil):
    s = as_string(s).lstrip(" \t")
    radix = 10 if is_nil(base) else as_int(base)
    if radix == 10:
        m = re.match(r"[+-]?(?:[0-9]+\.[0-9]*(?:e[+-]?[0-9]+)?|\.[0-9]+(?:e[+-]?[0-9]+)?|[0-9]+e[+-]?[0-9]+)", s)
        if m:
            return float(m.group(0))
        m = re.match(r"[+-]?[0-9]+", s)
        return check_integer(int(m.group(0))) if m else 0
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"[:radix]
    m = re.match(rf"[+-]?[{digits}]+", s, re.IGNORECASE)
    return check_integer(int(m.group(0), radix)) if m else 0


@primitive("symbol-name")
def symbol_name(sym):
    if is_nil(sym):
        return "nil"
    if isinstance(sym, Symbol):
        return sym.id
    raise PrimitiveError(f"Wrong type argument: symbolp, {sym!r}")


@primitive("split-string")
def split_string(string, separators=Nil, omit_nulls=Nil, trim=Nil):
    """Split on whitespace, or on a separator regexp without special characters."""
    string = as_string(string)
    if is_true(trim):
        raise PrimitiveError("split-string with trim")
    if is_nil(separators):
        return from_items(re.split(r"[ \f\t\n\r\v]+", string.strip(" \f\t\n\r\v")) if string.strip(" \f\t\n\r\v") else [])
    sep = as_string(separators)
    if not sep or any(c in REGEXP_SPECIALS for c in sep):
        raise PrimitiveError("split-string with a non-literal separator")
    parts = string.split(sep)
    if is_true(omit_nulls):
        parts = [p for p in parts if p]
    return from_items(parts)


def _trim(string, regexp, at_start: bool) -> str:
    string = as_string(string)
    if not is_nil(regexp):
        raise PrimitiveError("string-trim with a custom regexp")
    return string.lstrip(" \t\n\r") if at_start else string.rstrip(" \t\n\r")


@primitive("string-trim")
def string_trim(string, trim_left=Nil, trim_right=Nil):
    return _trim(_trim(string, trim_left, True), trim_right, False)


@primitive("string-trim-left")
def string_trim_left(string, regexp=Nil):
    return _trim(string, regexp, True)


@primitive("string-trim-right")
def string_trim_right(string, regexp=Nil):
    return _trim(string, regexp, False)


# -------------------------------
# Regexp construction
# -------------------------------
@primitive("regexp-quote")
def regexp_quote(string):
    return "".join("\\" + c if c in REGEXP_SPECIALS else c for c in as_string(string))


@primitive("regexp-opt-charset")
def regexp_opt_charset(chars):
    """Bracket expression matching exactly the characters in `chars`."""
    codes = sorted({as_int(c) for c in as_sequence(chars)})
    if not codes:
        return UNMATCHABLE
    if len(codes) == 1:
        return regexp_quote(chr(codes[0]))
    # `]' must come first, `-' last and `^' anywhere but first
    specials = {c for c in codes if chr(c) in "]^-"}
    ranges: list[tuple[int, int]] = []
    for c in codes:
        if c in specials:
            continue
        if ranges and ranges[-1][1] == c - 1:
            ranges[-1] = (ranges[-1][0], c)
        else:
            ranges.append((c, c))
    parts: list[str] = []
    for lo, hi in ranges:
        if hi - lo >= 2:
            parts.append(f"{chr(lo)}-{chr(hi)}")
        else:
            parts.extend(chr(c) for c in range(lo, hi + 1))
    body = "".join(parts)
    if ord("]") in specials:
        body = "]" + body
    if ord("^") in specials:
        body += "^"
    if ord("-") in specials:
        body += "-"
    if body.startswith("^"):
        # Only `^' and `-' remain
        body = body[::-1]
    return f"[{body}]"


@primitive("regexp-opt")
def regexp_opt(strings, paren=Nil, keep_order=Nil):
    """Regexp matching any of `strings`.

    The result is equivalent to, not identical with, Emacs's optimized one.
    """
    items = [as_string(s) for s in as_list(strings)]
    unique: list[str] = []
    for s in items:
        if s not in unique:
            unique.append(s)
    if not unique:
        return UNMATCHABLE
    if not is_true(keep_order):
        unique.sort(key=lambda s: (-len(s), s))
    if all(len(s) == 1 for s in unique) and len(unique) > 1:
        body = regexp_opt_charset([ord(s) for s in unique])
        needs_group = False
    else:
        body = "\\|".join(regexp_quote(s) for s in unique)
        needs_group = len(unique) > 1
    if paren == Symbol("words"):
        return f"\\<\\({body}\\)\\>"
    if paren == Symbol("symbols"):
        return f"\\_<\\({body}\\)\\_>"
    if is_true(paren):
        return f"\\({body}\\)"
    return f"\\(?:{body}\\)" if needs_group else body


@primitive("regexp-opt-depth")
def regexp_opt_depth(regexp):
    """Number of capturing groups in `regexp`."""
    regexp = as_string(regexp)
    depth = 0
    i = 0
    n = len(regexp)
    while i < n:
        c = regexp[i]
        if c == "[":
            # Skip a bracket expression: `]' first is literal
            j = i + 1
            if j < n and regexp[j] == "^":
                j += 1
            if j < n and regexp[j] == "]":
                j += 1
            while j < n and regexp[j] != "]":
                if regexp.startswith("[:", j):
                    close = regexp.find(":]", j + 2)
                    j = close + 2 if close >= 0 else j + 1
                else:
                    j += 1
            i = j + 1
            continue
        if c == "\\" and i + 1 < n:
            if regexp[i + 1] == "(":
                if regexp.startswith("?:", i + 2):
                    pass
                else:
                    depth += 1
            i += 2
            continue
        i += 1
    return depth


@primitive("wildcard-to-regexp")
def wildcard_to_regexp(wildcard):
    """Translate a shell wildcard into an anchored Emacs regexp."""
    wildcard = as_string(wildcard)
    out = ["\\`"]
    i = 0
    n = len(wildcard)
    while i < n:
        c = wildcard[i]
        if c == "*":
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "[":
            close = wildcard.find("]", i + 2)
            if close < 0:
                out.append("\\[")
            else:
                inner = wildcard[i + 1:close]
                if inner.startswith("!"):
                    inner = "^" + inner[1:]
                out.append("[" + inner + "]")
                i = close
        elif c in REGEXP_SPECIALS:
            out.append("\\" + c)
        else:
            out.append(c)
        i += 1
    out.append("\\'")
    return "".join(out)


# -------------------------------
# format
# -------------------------------
def format_conversions(fmt: str):
    """Yield (start, end, argument-index, conversion) for each `%' spec.

    `%%' is yielded with an argument index of None.
    """
    next_arg = 0
    pos = 0
    while True:
        start = fmt.find("%", pos)
        if start < 0:
            return
        m = FORMAT_SPEC_RE.match(fmt, start)
        conv = m.group(5)
        if conv is None:
            raise PrimitiveError("Format string ends in middle of format specifier")
        if conv == "%":
            yield start, m.end(), None, conv
        else:
            if m.group(1):
                next_arg = int(m.group(1)) - 1
            yield start, m.end(), next_arg, m
            next_arg += 1
        pos = m.end()


def _pad(text: str, flags: str, width: str, numeric: bool) -> str:
    if not width:
        return text
    w = int(width)
    if "-" in flags:
        return text.ljust(w)
    if "0" in flags and numeric:
        sign = text[0] if text[:1] in "+-" else ""
        return sign + text[len(sign):].rjust(w - len(sign), "0")
    return text.rjust(w)


@primitive("format", "format-message")
def format_(fmt, *args):
    fmt = as_string(fmt)
    out: list[str] = []
    pos = 0
    for start, end, index, spec in format_conversions(fmt):
        out.append(fmt[pos:start])
        pos = end
        if index is None:
            out.append("%")
            continue
        if index >= len(args):
            raise PrimitiveError("Not enough arguments for format string")
        arg = args[index]
        _, flags, width, precision, conv = spec.groups()
        if int(width or 0) > MAX_SEQUENCE or int(precision or 0) > MAX_SEQUENCE:
            raise PrimitiveError("Format field too wide")
        if conv == "s":
            text = princ_string(arg)
            if precision:
                text = text[: int(precision)]
            out.append(_pad(text, flags, width, False))
        elif conv == "S":
            text = prin1_string(arg)
            if precision:
                text = text[: int(precision)]
            out.append(_pad(text, flags, width, False))
        elif conv == "c":
            out.append(_pad(chr(as_int(arg)), flags, width, False))
        elif conv in "doxX":
            value = int(as_number(arg))
            sign = "+" if "+" in flags and value >= 0 else (" " if " " in flags and value >= 0 else "")
            body = {"d": "d", "o": "o", "x": "x", "X": "X"}[conv]
            text = sign + format(value, body)
            if "#" in flags and conv in "xX":
                text = ("0" + conv) + text
            out.append(_pad(text, flags, width, True))
        elif conv in "efg":
            value = float(as_number(arg))
            prec = 6 if not precision else int(precision)
            text = format(value, f".{prec}{conv}")
            if "+" in flags and value >= 0:
                text = "+" + text
            out.append(_pad(text, flags, width, True))
        else:
            raise PrimitiveError(f"Invalid format operation %{conv}")
    out.append(fmt[pos:])
    result = "".join(out)
    if len(result) > MAX_SEQUENCE:
        raise PrimitiveError("String too long")
    return result


_SORT_ORDERS = {
    Symbol("string<"): _string_arg,
    Symbol("string-lessp"): _string_arg,
    Symbol("<"): as_number,
}


@primitive("sort")
def sort(seq, predicate):
    """Sorted copy of `seq`; only the standard ascending orders are known."""
    key = _SORT_ORDERS.get(predicate)
    if key is None:
        raise PrimitiveError(f"Cannot sort by {predicate!r}")
    if isinstance(seq, Vector):
        return Vector(sorted(seq.items, key=key))
    return from_items(sorted(as_list(seq), key=key))


# Destructive functions are evaluated as their pure alternatives
PRIMITIVES[Symbol("nconc")] = append
PRIMITIVES[Symbol("nreverse")] = reverse
PRIMITIVES[Symbol("delete")] = remove
PRIMITIVES[Symbol("delq")] = remq
PRIMITIVES[Symbol("nbutlast")] = butlast


@primitive("seq-sort")
def seq_sort(predicate, seq):
    return sort(seq, predicate)
