"""
Go fmt-style value printing.

format_value mirrors what Go's fmt prints for %v, and sprintf implements
the subset of Printf verbs that templates use in practice.
"""

import dataclasses
import re
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Sequence

from ecr_login.utils.gotemplate.gotime import time_string

NO_VALUE = "<no value>"
NIL = "<nil>"

_VERB_RE = re.compile(r"%([-+# 0]*)(\*|\d+)?(?:\.(\*|\d*))?(.?)", re.DOTALL)
_QUOTE_ESCAPES = {
    "\a": "\\a", "\b": "\\b", "\f": "\\f", "\n": "\\n", "\r": "\\r",
    "\t": "\\t", "\v": "\\v", "\\": "\\\\", '"': '\\"',
}


def type_name(value: Any) -> str:
    """Go-flavoured type name used in error messages and %T"""
    if value is None:
        return NIL
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float64"
    if isinstance(value, str):
        return "string"
    if isinstance(value, datetime):
        return "time.Time"
    if isinstance(value, (list, tuple)):
        return "[]interface {}"
    if isinstance(value, Mapping):
        return "map[string]interface {}"
    return type(value).__name__


def template_fields(value: Any) -> List[dataclasses.Field]:
    return list(dataclasses.fields(value))


def field_name(f: dataclasses.Field) -> str:
    """Name a dataclass field is known by inside templates"""
    return f.metadata.get("template_name", f.name)


def format_float(value: float) -> str:
    """Shortest representation, the way Go prints float64 with %v"""
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if str(value).startswith("-") else "0"

    sign, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits_text = "".join(str(d) for d in digits)
    point = len(digits_text) + exponent
    exp = point - 1
    prefix = "-" if sign else ""

    if exp < -4 or exp >= 6:
        mantissa = digits_text[0]
        if len(digits_text) > 1:
            mantissa += "." + digits_text[1:]
        exp_sign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits_text}"
    if point >= len(digits_text):
        return f"{prefix}{digits_text}{'0' * (point - len(digits_text))}"
    return f"{prefix}{digits_text[:point]}.{digits_text[point:]}"


def format_value(value: Any, nil_text: str = NIL, plus: bool = False) -> str:
    """Format a value the way Go's fmt does for %v"""
    if value is None:
        return nil_text
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, datetime):
        return time_string(value)
    if isinstance(value, (bytes, bytearray)):
        return "[" + " ".join(str(b) for b in value) + "]"
    if isinstance(value, Mapping):
        items = sorted_items(value)
        return "map[" + " ".join(f"{format_value(k)}:{format_value(v)}" for k, v in items) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(format_value(item) for item in value) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        parts = []
        for f in template_fields(value):
            text = format_value(getattr(value, f.name))
            parts.append(f"{field_name(f)}:{text}" if plus else text)
        return "{" + " ".join(parts) + "}"
    return str(value)


def sorted_items(mapping: Mapping) -> List[tuple]:
    """Mapping items in key order, as Go prints and ranges over maps"""
    try:
        keys = sorted(mapping)
    except TypeError:
        keys = sorted(mapping, key=str)
    return [(key, mapping[key]) for key in keys]


def go_quote(text: str) -> str:
    """Double-quoted Go string literal (strconv.Quote)"""
    out = ['"']
    for ch in text:
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) < 0x10000:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    out.append('"')
    return "".join(out)


def sprint(args: Sequence[Any]) -> str:
    """Go fmt.Sprint: spaces between operands when neither side is a string"""
    out = []
    for i, arg in enumerate(args):
        if i > 0 and not isinstance(arg, str) and not isinstance(args[i - 1], str):
            out.append(" ")
        out.append(format_value(arg))
    return "".join(out)


def sprintln(args: Sequence[Any]) -> str:
    """Go fmt.Sprintln: always space separated, newline terminated"""
    return " ".join(format_value(arg) for arg in args) + "\n"


def _pad(text: str, flags: str, width: int) -> str:
    if width <= len(text):
        return text
    if "-" in flags:
        return text.ljust(width)
    return text.rjust(width)


def _rune(code: int) -> str:
    return chr(code) if 0 <= code <= 0x10FFFF else "\ufffd"


def _bad_verb(verb: str, arg: Any) -> str:
    if arg is None:
        return f"%!{verb}({NIL})"
    return f"%!{verb}({type_name(arg)}={format_value(arg)})"


def _format_one(verb: str, flags: str, width: int, precision: Any, arg: Any) -> str:
    is_int = isinstance(arg, int) and not isinstance(arg, bool)
    is_number = is_int or isinstance(arg, float)
    number_spec = "%" + flags + (str(width) if width else "") + (f".{precision}" if precision is not None else "")

    if verb == "v":
        return _pad(format_value(arg, plus="+" in flags), flags, width)
    if verb == "s":
        if isinstance(arg, (bytes, bytearray)):
            arg = arg.decode("utf-8", "replace")
        if is_number or isinstance(arg, bool):
            return _bad_verb(verb, arg)
        text = format_value(arg)
        if precision is not None:
            text = text[:precision]
        return _pad(text, flags, width)
    if verb == "q":
        if is_int:
            return _pad("'" + _rune(arg) + "'", flags, width)
        if isinstance(arg, str):
            return _pad(go_quote(arg), flags, width)
        return _bad_verb(verb, arg)
    if verb == "t":
        if isinstance(arg, bool):
            return _pad(format_value(arg), flags, width)
        return _bad_verb(verb, arg)
    if verb == "T":
        return _pad(type_name(arg), flags, width)
    if verb in "dbo":
        if not is_int:
            return _bad_verb(verb, arg)
        if verb == "b":
            text = format(abs(arg), "b")
            return _pad(("-" if arg < 0 else "") + text, flags, width)
        return (number_spec + verb) % arg
    if verb in "xX":
        if isinstance(arg, str):
            text = arg.encode("utf-8").hex()
            return _pad(text.upper() if verb == "X" else text, flags, width)
        if not is_int:
            return _bad_verb(verb, arg)
        return (number_spec + verb) % arg
    if verb == "c":
        if not is_int:
            return _bad_verb(verb, arg)
        return _pad(_rune(arg), flags, width)
    if verb == "U":
        if not is_int:
            return _bad_verb(verb, arg)
        return _pad(f"U+{arg:04X}", flags, width)
    if verb in "eEfFgG":
        if not is_number:
            return _bad_verb(verb, arg)
        if verb in "gG" and precision is None:
            text = format_float(float(arg))
            if verb == "G":
                text = text.upper()
            if "+" in flags and not text.startswith("-"):
                text = "+" + text
            return _pad(text, flags, width)
        return (number_spec + verb) % float(arg)
    return _bad_verb(verb, arg)


def sprintf(fmt: str, args: Sequence[Any]) -> str:
    """Go fmt.Sprintf for the common verbs"""
    out = []
    arg_index = 0
    pos = 0
    while pos < len(fmt):
        percent = fmt.find("%", pos)
        if percent < 0:
            out.append(fmt[pos:])
            break
        out.append(fmt[pos:percent])
        match = _VERB_RE.match(fmt, percent)
        flags, width_text, precision_text, verb = match.groups()
        pos = match.end()

        if verb == "%":
            out.append("%")
            continue
        if not verb:
            out.append("%!(NOVERB)")
            continue

        width = 0
        if width_text == "*":
            if arg_index < len(args) and isinstance(args[arg_index], int):
                width = args[arg_index]
            else:
                out.append("%!(BADWIDTH)")
            arg_index += 1
        elif width_text:
            width = int(width_text)

        precision = None
        if precision_text == "*":
            if arg_index < len(args) and isinstance(args[arg_index], int):
                precision = args[arg_index]
            else:
                out.append("%!(BADPREC)")
            arg_index += 1
        elif precision_text is not None:
            precision = int(precision_text) if precision_text else 0

        if arg_index >= len(args):
            out.append(f"%!{verb}(MISSING)")
            continue
        out.append(_format_one(verb, flags, width, precision, args[arg_index]))
        arg_index += 1

    if arg_index < len(args):
        extra = ", ".join(f"{type_name(arg)}={format_value(arg)}" for arg in args[arg_index:])
        out.append(f"%!(EXTRA {extra})")
    return "".join(out)
