"""Lexer de templates.

Duas fases:
    1. `split_chunks` separa texto literal de ações `{{ ... }}`, aplicando
       os marcadores de trim `{{-` / `-}}`;
    2. `tokenize` quebra o conteúdo de uma ação em tokens.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import TemplateSyntaxError


OPEN = "{{"
CLOSE = "}}"

# Tipos de token
FIELD = "FIELD"
IDENT = "IDENT"
LITERAL = "LITERAL"
PIPE = "PIPE"
LPAREN = "LPAREN"
RPAREN = "RPAREN"


@dataclass(frozen=True)
class Chunk:
    kind: str  # "text" | "action"
    content: str
    offset: int


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    offset: int


def _skip_string(text: str, i: int) -> int:
    """Retorna o índice logo após o literal de string iniciado em `i`."""
    quote = text[i]
    j = i + 1
    while j < len(text):
        c = text[j]
        if quote == '"' and c == "\\":
            j += 2
            continue
        if c == quote:
            return j + 1
        j += 1
    raise TemplateSyntaxError("unterminated string literal", offset=i, expression=text)


def split_chunks(text: str) -> List[Chunk]:
    chunks: List[Chunk] = []
    pos = 0
    trim_next = False

    while pos < len(text):
        start = text.find(OPEN, pos)
        literal = text[pos:] if start < 0 else text[pos:start]
        if trim_next:
            literal = literal.lstrip()
            trim_next = False

        if start < 0:
            if literal:
                chunks.append(Chunk("text", literal, pos))
            break

        inner_start = start + len(OPEN)
        if text.startswith("-", inner_start) and (
            inner_start + 1 < len(text) and text[inner_start + 1].isspace()
        ):
            literal = literal.rstrip()
            inner_start += 1
        if literal:
            chunks.append(Chunk("text", literal, pos))

        # procura o fechamento ignorando strings
        i = inner_start
        end = -1
        while i < len(text):
            c = text[i]
            if c in ('"', "`"):
                i = _skip_string(text, i)
                continue
            if text.startswith(CLOSE, i):
                end = i
                break
            i += 1
        if end < 0:
            raise TemplateSyntaxError("unclosed action", offset=start, expression=text)

        inner_end = end
        if end - 1 >= inner_start and text[end - 1] == "-" and end - 2 >= inner_start and text[end - 2].isspace():
            inner_end = end - 1
            trim_next = True

        chunks.append(Chunk("action", text[inner_start:inner_end], start))
        pos = end + len(CLOSE)

    return chunks


def _is_ident_start(c: str) -> bool:
    return c.isalpha() or c == "_"


def _is_ident_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def _read_chain(src: str, i: int) -> tuple:
    """Lê `.a.b.c` a partir de `i` (posicionado em um ponto)."""
    parts: List[str] = []
    while i < len(src) and src[i] == "." and i + 1 < len(src) and _is_ident_start(src[i + 1]):
        j = i + 1
        while j < len(src) and _is_ident_char(src[j]):
            j += 1
        parts.append(src[i + 1 : j])
        i = j
    return tuple(parts), i


def _decode_string(raw: str, offset: int, source: str) -> str:
    out: List[str] = []
    escapes = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}
    i = 0
    while i < len(raw):
        c = raw[i]
        if c == "\\":
            if i + 1 >= len(raw) or raw[i + 1] not in escapes:
                raise TemplateSyntaxError("invalid escape in string literal", offset=offset, expression=source)
            out.append(escapes[raw[i + 1]])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def _read_number(src: str, i: int) -> tuple:
    j = i + 1 if src[i] == "-" else i
    while j < len(src) and (src[j].isdigit() or src[j] in "._eE"):
        j += 1
    text = src[i:j].replace("_", "")
    try:
        value: Any = int(text)
    except ValueError:
        value = float(text)
    return value, j


def tokenize(src: str, *, base_offset: int = 0, source: Optional[str] = None) -> List[Token]:
    source = source if source is not None else src
    tokens: List[Token] = []
    i = 0
    while i < len(src):
        c = src[i]
        at = base_offset + i

        if c.isspace():
            i += 1
            continue

        if c == "|":
            tokens.append(Token(PIPE, "|", at))
            i += 1
            continue
        if c == "(":
            tokens.append(Token(LPAREN, "(", at))
            i += 1
            continue
        if c == ")":
            tokens.append(Token(RPAREN, ")", at))
            i += 1
            continue

        if c == '"':
            end = _skip_string(src, i)
            tokens.append(Token(LITERAL, _decode_string(src[i + 1 : end - 1], at, source), at))
            i = end
            continue
        if c == "`":
            end = _skip_string(src, i)
            tokens.append(Token(LITERAL, src[i + 1 : end - 1], at))
            i = end
            continue

        if c == ".":
            parts, j = _read_chain(src, i)
            if not parts:
                tokens.append(Token(FIELD, ((), False), at))
                i += 1
            else:
                tokens.append(Token(FIELD, (parts, False), at))
                i = j
            continue

        if c == "$":
            parts, j = _read_chain(src, i + 1)
            tokens.append(Token(FIELD, (parts, True), at))
            i = j
            continue

        if c.isdigit() or (c == "-" and i + 1 < len(src) and src[i + 1].isdigit()):
            try:
                value, j = _read_number(src, i)
            except ValueError:
                raise TemplateSyntaxError("invalid number literal", offset=at, expression=source) from None
            tokens.append(Token(LITERAL, value, at))
            i = j
            continue

        if _is_ident_start(c):
            j = i
            while j < len(src) and _is_ident_char(src[j]):
                j += 1
            word = src[i:j]
            if word == "true":
                tokens.append(Token(LITERAL, True, at))
            elif word == "false":
                tokens.append(Token(LITERAL, False, at))
            elif word in ("nil", "null"):
                tokens.append(Token(LITERAL, None, at))
            else:
                tokens.append(Token(IDENT, word, at))
            i = j
            continue

        raise TemplateSyntaxError(f"unexpected character {c!r}", offset=at, expression=source)

    return tokens
