"""
Built-in template functions, matching Go text/template's predefined set.

Functions signal failure by raising FuncError; the executor turns that
into a TemplateExecError naming the function.
"""

import dataclasses
import html as html_lib
import urllib.parse
from datetime import datetime
from typing import Any, Callable, Dict, Mapping

from ecr_login.utils.gotemplate.formatting import sprint, sprintf, sprintln, type_name


class FuncError(Exception):
    """Raised by a template function to report a usage error"""


def is_true(value: Any) -> bool:
    """Go template truth: false, 0, nil and empty values are false"""
    if value is None:
        return False
    if isinstance(value, (bool, int, float, complex)):
        return bool(value)
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)) or isinstance(value, Mapping):
        return len(value) > 0
    return True


def _and(arg: Any, *rest: Any) -> Any:
    for value in (arg,) + rest:
        if not is_true(value):
            return value
    return rest[-1] if rest else arg


def _or(arg: Any, *rest: Any) -> Any:
    for value in (arg,) + rest:
        if is_true(value):
            return value
    return rest[-1] if rest else arg


def _not(arg: Any) -> bool:
    return not is_true(arg)


def _len(item: Any) -> int:
    if item is None:
        raise FuncError("len of nil pointer")
    if isinstance(item, str):
        # Go reports the length in bytes
        return len(item.encode("utf-8"))
    try:
        return len(item)
    except TypeError:
        raise FuncError(f"len of type {type_name(item)}")


def _index_one(item: Any, key: Any) -> Any:
    if item is None:
        raise FuncError("index of untyped nil")
    if isinstance(item, Mapping):
        return item.get(key)
    if isinstance(item, (str, bytes, list, tuple)):
        if not isinstance(key, int) or isinstance(key, bool):
            raise FuncError(f"cannot index slice/array with type {type_name(key)}")
        if isinstance(item, str):
            item = item.encode("utf-8")
        if key < 0 or key >= len(item):
            raise FuncError(f"index out of range: {key}")
        return item[key]
    raise FuncError(f"can't index item of type {type_name(item)}")


def _index(item: Any, *indexes: Any) -> Any:
    for key in indexes:
        item = _index_one(item, key)
    return item


def _slice(item: Any, *indexes: Any) -> Any:
    if item is None:
        raise FuncError("slice of untyped nil")
    if not isinstance(item, (str, list, tuple)):
        raise FuncError(f"can't slice item of type {type_name(item)}")
    if len(indexes) > 3:
        raise FuncError(f"too many slice indexes: {len(indexes)}")
    if len(indexes) == 3 and isinstance(item, str):
        raise FuncError("cannot 3-index slice a string")
    for index in indexes:
        if not isinstance(index, int) or isinstance(index, bool):
            raise FuncError(f"cannot index slice/array with type {type_name(index)}")

    bounds = list(indexes) + [None] * (2 - len(indexes))
    low = bounds[0] if bounds[0] is not None else 0
    high = bounds[1] if bounds[1] is not None else len(item)
    if low < 0 or high < low or high > len(item):
        raise FuncError(f"index out of range: {low}:{high}")
    return item[low:high]


def _comparable_kind(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, datetime):
        return "time"
    if isinstance(value, (list, dict, set)) or isinstance(value, Mapping):
        return "uncomparable"
    return "other"


def _equal(left: Any, right: Any) -> bool:
    left_kind, right_kind = _comparable_kind(left), _comparable_kind(right)
    if "uncomparable" in (left_kind, right_kind):
        raise FuncError(f"non-comparable type {type_name(left if left_kind == 'uncomparable' else right)}")
    if "nil" in (left_kind, right_kind):
        return left is None and right is None
    if left_kind != right_kind:
        raise FuncError("incompatible types for comparison")
    if dataclasses.is_dataclass(left) and type(left) is not type(right):
        raise FuncError("incompatible types for comparison")
    return left == right


def _eq(arg: Any, *args: Any) -> bool:
    if not args:
        raise FuncError("missing argument for comparison")
    return any(_equal(arg, other) for other in args)


def _ne(left: Any, right: Any) -> bool:
    return not _equal(left, right)


def _ordered(left: Any, right: Any) -> None:
    kinds = {_comparable_kind(left), _comparable_kind(right)}
    if len(kinds) != 1 or kinds - {"number", "string", "time"}:
        if kinds <= {"number", "string", "time"}:
            raise FuncError("incompatible types for comparison")
        raise FuncError("invalid type for comparison")


def _lt(left: Any, right: Any) -> bool:
    _ordered(left, right)
    return left < right


def _le(left: Any, right: Any) -> bool:
    _ordered(left, right)
    return left <= right


def _gt(left: Any, right: Any) -> bool:
    _ordered(left, right)
    return left > right


def _ge(left: Any, right: Any) -> bool:
    _ordered(left, right)
    return left >= right


def _escaper_input(args: tuple) -> str:
    if len(args) == 1 and isinstance(args[0], str):
        return args[0]
    return sprint(args)


def _html(*args: Any) -> str:
    text = _escaper_input(args).replace("\0", "\ufffd")
    return html_lib.escape(text, quote=False).replace('"', "&#34;").replace("'", "&#39;")


def _js(*args: Any) -> str:
    out = []
    for ch in _escaper_input(args):
        if ch == "\\":
            out.append("\\\\")
        elif ch == "'":
            out.append("\\'")
        elif ch == '"':
            out.append('\\"')
        elif ch in "<>&=" or ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return "".join(out)


def _urlquery(*args: Any) -> str:
    return urllib.parse.quote_plus(_escaper_input(args), safe="")


def _print(*args: Any) -> str:
    return sprint(args)


def _println(*args: Any) -> str:
    return sprintln(args)


def _printf(fmt: str, *args: Any) -> str:
    if not isinstance(fmt, str):
        raise FuncError(f"wrong type for value; expected string; got {type_name(fmt)}")
    return sprintf(fmt, args)


# and/or are evaluated lazily by the executor; these cover direct calls
BUILTINS: Dict[str, Callable[..., Any]] = {
    "and": _and,
    "or": _or,
    "not": _not,
    "len": _len,
    "index": _index,
    "slice": _slice,
    "print": _print,
    "printf": _printf,
    "println": _println,
    "eq": _eq,
    "ne": _ne,
    "lt": _lt,
    "le": _le,
    "gt": _gt,
    "ge": _ge,
    "html": _html,
    "js": _js,
    "urlquery": _urlquery,
}
