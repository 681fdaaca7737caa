"""
Funções embutidas do Expression Evaluator.

Seguem a semântica das funções Sprig usadas em charts Helm: o valor recebido
por pipe é sempre o ÚLTIMO argumento (`.Values.x | default "y"` equivale a
`default "y" .Values.x`).

`include` e `tpl` dependem do evaluator e são registradas por ele.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Callable, Dict, List

import yaml

from .errors import FunctionCallError, RequiredValueError


def is_true(value: Any) -> bool:
    """Truthiness de template: false, 0, nil e coleções/strings vazias são falsos."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def to_text(value: Any) -> str:
    """Representação textual de um valor ao ser interpolado."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _default(default_value: Any, *given: Any) -> Any:
    if len(given) > 1:
        raise FunctionCallError("default expects at most 2 arguments")
    if not given or not is_true(given[0]):
        return default_value
    return given[0]


def _required(message: Any, *given: Any) -> Any:
    value = given[0] if given else None
    if value is None or value == "":
        raise RequiredValueError(to_text(message) or "required value is missing")
    return value


def _coalesce(*args: Any) -> Any:
    for arg in args:
        if is_true(arg):
            return arg
    return None


def _ternary(true_value: Any, false_value: Any, condition: Any) -> Any:
    return true_value if is_true(condition) else false_value


def _eq(first: Any, *others: Any) -> bool:
    if not others:
        raise FunctionCallError("eq expects at least 2 arguments")
    return any(first == other for other in others)


def _compare(op: Callable[[Any, Any], bool], name: str) -> Callable[[Any, Any], bool]:
    def compare(a: Any, b: Any) -> bool:
        try:
            return op(a, b)
        except TypeError as e:
            raise FunctionCallError(
                f"{name}: incompatible types {type(a).__name__} and {type(b).__name__}"
            ) from e

    return compare


def _and(*args: Any) -> Any:
    if not args:
        raise FunctionCallError("and expects at least 1 argument")
    for arg in args:
        if not is_true(arg):
            return arg
    return args[-1]


def _or(*args: Any) -> Any:
    if not args:
        raise FunctionCallError("or expects at least 1 argument")
    for arg in args:
        if is_true(arg):
            return arg
    return args[-1]


def _quote(*args: Any) -> str:
    return " ".join(json.dumps(to_text(a), ensure_ascii=False) for a in args if a is not None)


def _squote(*args: Any) -> str:
    return " ".join(f"'{to_text(a)}'" for a in args if a is not None)


def _trunc(length: Any, text: Any) -> str:
    s = to_text(text)
    n = int(length)
    if n < 0:
        return s[n:] if -n < len(s) else s
    return s[:n]


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


_PRINTF_VERB = re.compile(r"%([-+ 0#]*)(\d*)(?:\.(\d+))?([svdqfxXtT%])")


def _printf(fmt: Any, *args: Any) -> str:
    remaining: List[Any] = list(args)
    out: List[str] = []
    pos = 0
    text = to_text(fmt)
    for m in _PRINTF_VERB.finditer(text):
        out.append(text[pos : m.start()])
        pos = m.end()
        flags, width, precision, verb = m.groups()
        if verb == "%":
            out.append("%")
            continue
        if not remaining:
            out.append(f"%!{verb}(MISSING)")
            continue
        arg = remaining.pop(0)
        if verb in ("s", "v", "t"):
            piece = to_text(arg)
        elif verb == "q":
            piece = json.dumps(to_text(arg), ensure_ascii=False)
        elif verb == "d":
            piece = str(_to_int(arg))
        elif verb == "f":
            piece = f"{_to_float(arg):.{int(precision) if precision else 6}f}"
        elif verb in ("x", "X"):
            piece = format(_to_int(arg), verb) if not isinstance(arg, str) else arg.encode("utf-8").hex()
            piece = piece.upper() if verb == "X" else piece
        else:  # T
            piece = type(arg).__name__
        if width:
            piece = piece.ljust(int(width)) if "-" in flags else piece.rjust(int(width), "0" if "0" in flags else " ")
        out.append(piece)
    out.append(text[pos:])
    return "".join(out)


def _len(value: Any) -> int:
    if value is None:
        return 0
    try:
        return len(value)
    except TypeError as e:
        raise FunctionCallError(f"len of {type(value).__name__}") from e


def _join(sep: Any, items: Any) -> str:
    if items is None:
        return ""
    if not isinstance(items, (list, tuple)):
        return to_text(items)
    return to_text(sep).join(to_text(i) for i in items if i is not None)


def _dict(*args: Any) -> Dict[str, Any]:
    if len(args) % 2:
        raise FunctionCallError("dict expects an even number of arguments")
    return {to_text(args[i]): args[i + 1] for i in range(0, len(args), 2)}


def _has_key(mapping: Any, key: Any) -> bool:
    return isinstance(mapping, dict) and key in mapping


def _get(mapping: Any, key: Any) -> Any:
    if not isinstance(mapping, dict):
        return ""
    return mapping.get(key, "")


def _to_yaml(value: Any) -> str:
    if value is None:
        return "null"
    return yaml.safe_dump(value, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip("\n")


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def _b64dec(value: Any) -> str:
    try:
        return base64.b64decode(to_text(value).encode("utf-8"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise FunctionCallError("b64dec: invalid base64 input") from e


def _indent(spaces: Any, text: Any) -> str:
    pad = " " * int(spaces)
    return "\n".join(pad + line for line in to_text(text).split("\n"))


def _nindent(spaces: Any, text: Any) -> str:
    return "\n" + _indent(spaces, text)


def _title(text: Any) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in to_text(text).split(" "))


BUILTIN_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "default": _default,
    "required": _required,
    "coalesce": _coalesce,
    "empty": lambda value=None: not is_true(value),
    "ternary": _ternary,
    "eq": _eq,
    "ne": lambda a, b: a != b,
    "lt": _compare(lambda a, b: a < b, "lt"),
    "le": _compare(lambda a, b: a <= b, "le"),
    "gt": _compare(lambda a, b: a > b, "gt"),
    "ge": _compare(lambda a, b: a >= b, "ge"),
    "and": _and,
    "or": _or,
    "not": lambda value: not is_true(value),
    "quote": _quote,
    "squote": _squote,
    "upper": lambda s: to_text(s).upper(),
    "lower": lambda s: to_text(s).lower(),
    "title": _title,
    "trim": lambda s: to_text(s).strip(),
    "trimPrefix": lambda prefix, s: to_text(s)[len(to_text(prefix)):] if to_text(s).startswith(to_text(prefix)) else to_text(s),
    "trimSuffix": lambda suffix, s: to_text(s)[: -len(to_text(suffix))] if to_text(suffix) and to_text(s).endswith(to_text(suffix)) else to_text(s),
    "trunc": _trunc,
    "replace": lambda old, new, s: to_text(s).replace(to_text(old), to_text(new)),
    "contains": lambda sub, s: to_text(sub) in to_text(s),
    "hasPrefix": lambda prefix, s: to_text(s).startswith(to_text(prefix)),
    "hasSuffix": lambda suffix, s: to_text(s).endswith(to_text(suffix)),
    "printf": _printf,
    "toString": to_text,
    "int": _to_int,
    "float": _to_float,
    "len": _len,
    "join": _join,
    "list": lambda *args: list(args),
    "dict": _dict,
    "hasKey": _has_key,
    "get": _get,
    "toYaml": _to_yaml,
    "toJson": _to_json,
    "b64enc": lambda s: base64.b64encode(to_text(s).encode("utf-8")).decode("ascii"),
    "b64dec": _b64dec,
    "indent": _indent,
    "nindent": _nindent,
}
