"""
Parser de overrides no formato `--set` (convenção do Helm).

Sintaxe suportada:
    - `a.b=c`                 → {"a": {"b": "c"}}
    - `a=1,b=true`            → várias atribuições separadas por vírgula
    - `a\\.b=c`                → ponto escapado faz parte da chave ({"a.b": "c"})
    - `a=x\\,y`                → vírgula escapada faz parte do valor
    - `list[1]=x`             → índice de lista (preenchido com `None`)
    - `list={x,y}`            → literal de lista
    - `a=null`                → `None` (remove a chave no merge)

Tipagem:
    - Por padrão apenas `true`/`false` viram bool, `null` vira None e
      inteiros sem zero à esquerda viram int. O restante fica string
      (`010`, `1.5`, `no`, `12:30`)
    - Com `as_string=True` (`--set-string`) todo valor é string

Índices de lista são limitados a `MAX_LIST_INDEX`.

O resultado é o dict de uma camada de escopo `override`.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Tuple, Union

from .errors import SetOverrideSyntaxError


PathSegment = Union[str, int]

MAX_LIST_INDEX = 65536

_INT_RE = re.compile(r"^-?(0|[1-9][0-9]*)$")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


def _split_unescaped(text: str, sep: str, *, respect_braces: bool) -> List[str]:
    parts: List[str] = []
    buf: List[str] = []
    depth = 0
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text):
            buf.append(text[i : i + 2])
            i += 2
            continue
        if respect_braces and c == "{":
            depth += 1
        elif respect_braces and c == "}":
            depth = max(0, depth - 1)
        if c == sep and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(c)
        i += 1
    parts.append("".join(buf))
    return parts


def _unescape(text: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
            continue
        out.append(text[i])
        i += 1
    return "".join(out)


def _parse_key(key: str, assignment: str) -> List[PathSegment]:
    if not key.strip():
        raise SetOverrideSyntaxError(
            f"chave vazia em '{assignment}'",
            details={"assignment": assignment},
        )

    path: List[PathSegment] = []
    for raw_segment in _split_unescaped(key, ".", respect_braces=False):
        # separa nome e índices: name[0][1]
        name_end = len(raw_segment)
        i = 0
        while i < len(raw_segment):
            if raw_segment[i] == "\\":
                i += 2
                continue
            if raw_segment[i] == "[":
                name_end = i
                break
            i += 1
        name = _unescape(raw_segment[:name_end])
        rest = raw_segment[name_end:]

        if name:
            path.append(name)
        elif not path:
            raise SetOverrideSyntaxError(
                f"segmento de chave vazio em '{assignment}'",
                details={"assignment": assignment},
            )

        while rest:
            close = rest.find("]")
            index_text = rest[1:close] if rest.startswith("[") and close > 0 else None
            if index_text is None or not index_text.isdigit():
                raise SetOverrideSyntaxError(
                    f"índice de lista inválido em '{assignment}'",
                    details={"assignment": assignment, "segment": raw_segment},
                )
            index = int(index_text)
            if index > MAX_LIST_INDEX:
                raise SetOverrideSyntaxError(
                    f"índice de lista {index} acima do limite {MAX_LIST_INDEX} em '{assignment}'",
                    details={"assignment": assignment, "index": index, "max_index": MAX_LIST_INDEX},
                )
            path.append(index)
            rest = rest[close + 1 :]

        if not name and not rest and raw_segment == "":
            raise SetOverrideSyntaxError(
                f"segmento de chave vazio em '{assignment}'",
                details={"assignment": assignment},
            )

    if not isinstance(path[0], str):
        raise SetOverrideSyntaxError(
            f"a chave deve começar por um nome em '{assignment}'",
            details={"assignment": assignment},
        )
    return path


def _typed_scalar(raw: str, *, as_string: bool) -> Any:
    text = _unescape(raw)
    if as_string:
        return text
    if text == "true":
        return True
    if text == "false":
        return False
    if text == "null":
        return None
    if _INT_RE.match(text) and _INT64_MIN <= int(text) <= _INT64_MAX:
        return int(text)
    return text


def _parse_value(raw: str, *, as_string: bool) -> Any:
    if raw.startswith("{") and raw.endswith("}"):
        inner = raw[1:-1]
        if not inner.strip():
            return []
        return [
            _typed_scalar(item, as_string=as_string)
            for item in _split_unescaped(inner, ",", respect_braces=False)
        ]
    return _typed_scalar(raw, as_string=as_string)


def _set_path(tree: Dict[str, Any], path: List[PathSegment], value: Any) -> None:
    current: Any = tree
    for i, segment in enumerate(path):
        last = i == len(path) - 1
        if isinstance(segment, int):
            while len(current) <= segment:
                current.append(None)
        if last:
            current[segment] = value
            return
        needed = list if isinstance(path[i + 1], int) else dict
        child = current[segment] if isinstance(segment, int) else current.get(segment)
        if not isinstance(child, needed):
            child = needed()
            current[segment] = child
        current = child


def split_assignment(assignment: str) -> Tuple[str, str]:
    """Separa `chave=valor` no primeiro `=` não escapado."""
    i = 0
    while i < len(assignment):
        c = assignment[i]
        if c == "\\":
            i += 2
            continue
        if c == "=":
            return assignment[:i], assignment[i + 1 :]
        i += 1
    raise SetOverrideSyntaxError(
        f"atribuição sem '=': '{assignment}'",
        details={"assignment": assignment},
    )


def parse_set_overrides(expressions: Iterable[str], *, as_string: bool = False) -> Dict[str, Any]:
    """Converte expressões `--set` em um dict de values.

    Atribuições posteriores prevalecem sobre anteriores na mesma chave.

    Raises:
        SetOverrideSyntaxError: se alguma expressão estiver malformada.
    """
    tree: Dict[str, Any] = {}
    for expression in expressions:
        if not expression or not expression.strip():
            continue
        for assignment in _split_unescaped(expression, ",", respect_braces=True):
            if not assignment.strip():
                continue
            key, raw_value = split_assignment(assignment)
            path = _parse_key(key.strip(), assignment)
            _set_path(tree, path, _parse_value(raw_value, as_string=as_string))
    return tree
