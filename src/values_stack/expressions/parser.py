"""Parser de templates (subconjunto Go template / Helm).

Gramática das ações:

    pipeline := command ('|' command)*
    command  := operand+
    operand  := FIELD | LITERAL | IDENT | '(' pipeline ')'

Blocos suportados: `if`/`else if`/`else`/`end`, `with`/`else`/`end`,
`range`/`else`/`end`, `define "nome"`/`end`. `template "nome" X` é açúcar
para `include "nome" X`.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

from .errors import TemplateSyntaxError
from .lexer import FIELD, IDENT, LITERAL, LPAREN, PIPE, RPAREN, Chunk, Token, split_chunks, tokenize
from .nodes import (
    ActionNode,
    Command,
    FieldNode,
    IdentifierNode,
    IfNode,
    LiteralNode,
    Node,
    Operand,
    ParenNode,
    Pipeline,
    RangeNode,
    Template,
    TextNode,
    WithNode,
)


OPEN_MARK = "{{"
_BLOCK_KEYWORDS = {"if", "with", "range"}
_UNSUPPORTED = {"block"}


class _PipelineParser:
    def __init__(self, tokens: List[Token], source: str) -> None:
        self.tokens = tokens
        self.pos = 0
        self.source = source

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _error(self, message: str, token: Optional[Token] = None) -> TemplateSyntaxError:
        offset = token.offset if token is not None else None
        return TemplateSyntaxError(message, offset=offset, expression=self.source)

    def parse(self) -> Pipeline:
        pipeline = self._pipeline()
        extra = self._peek()
        if extra is not None:
            raise self._error(f"unexpected token {extra.value!r}", extra)
        return pipeline

    def _pipeline(self) -> Pipeline:
        commands = [self._command()]
        while self._peek() is not None and self._peek().kind == PIPE:
            self.pos += 1
            commands.append(self._command())
        return Pipeline(commands=tuple(commands), source=self.source.strip())

    def _command(self) -> Command:
        args: List[Operand] = []
        while True:
            tok = self._peek()
            if tok is None or tok.kind in (PIPE, RPAREN):
                break
            args.append(self._operand())
        if not args:
            raise self._error("missing value for command", self._peek())
        return Command(args=tuple(args))

    def _operand(self) -> Operand:
        tok = self.tokens[self.pos]
        self.pos += 1
        if tok.kind == FIELD:
            path, from_root = tok.value
            return FieldNode(path=tuple(path), from_root=from_root)
        if tok.kind == LITERAL:
            return LiteralNode(tok.value)
        if tok.kind == IDENT:
            return IdentifierNode(tok.value)
        if tok.kind == LPAREN:
            inner = self._pipeline()
            close = self._peek()
            if close is None or close.kind != RPAREN:
                raise self._error("unclosed parenthesis", tok)
            self.pos += 1
            return ParenNode(inner)
        raise self._error(f"unexpected token {tok.value!r}", tok)


def parse_pipeline(tokens: List[Token], source: str) -> Pipeline:
    if not tokens:
        raise TemplateSyntaxError("empty pipeline", expression=source)
    return _PipelineParser(tokens, source).parse()


class _TemplateParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.chunks: List[Chunk] = split_chunks(text)
        self.pos = 0
        self.defines: Dict[str, List[Node]] = {}

    def _error(self, message: str, chunk: Optional[Chunk]) -> TemplateSyntaxError:
        return TemplateSyntaxError(
            message,
            offset=chunk.offset if chunk is not None else None,
            expression=self.text,
        )

    def parse(self) -> Template:
        nodes, term, _, chunk = self._nodes(set())
        if term is not None:
            raise self._error(f"unexpected {{{{ {term} }}}}", chunk)
        return Template(nodes=nodes, defines=self.defines, source=self.text)

    def _nodes(self, terminators: Set[str]) -> Tuple[List[Node], Optional[str], List[Token], Optional[Chunk]]:
        nodes: List[Node] = []
        while self.pos < len(self.chunks):
            chunk = self.chunks[self.pos]
            self.pos += 1

            if chunk.kind == "text":
                nodes.append(TextNode(chunk.content))
                continue

            # comentário {{/* ... */}}
            stripped = chunk.content.strip()
            if stripped.startswith("/*") and stripped.endswith("*/"):
                continue

            tokens = tokenize(chunk.content, base_offset=chunk.offset, source=self.text)
            if not tokens:
                raise self._error("empty action", chunk)

            head = tokens[0]
            keyword = head.value if head.kind == IDENT else None

            if keyword in ("else", "end"):
                if keyword in terminators:
                    return nodes, keyword, tokens[1:], chunk
                raise self._error(f"unexpected {{{{ {keyword} }}}}", chunk)

            if keyword in _BLOCK_KEYWORDS:
                nodes.append(self._block(keyword, tokens[1:], chunk))
                continue

            if keyword == "define":
                self._define(tokens[1:], chunk)
                continue

            if keyword == "template":
                tokens = [Token(IDENT, "include", head.offset)] + tokens[1:]

            if keyword in _UNSUPPORTED:
                raise self._error(f"unsupported action: {keyword}", chunk)

            nodes.append(ActionNode(parse_pipeline(tokens, chunk.content)))

        if terminators:
            raise self._error("missing {{ end }}", None)
        return nodes, None, [], None

    def _block(self, keyword: str, tokens: List[Token], chunk: Chunk) -> Node:
        pipeline = parse_pipeline(tokens, chunk.content)
        body, term, rest, term_chunk = self._nodes({"else", "end"})

        if keyword == "if":
            branches = [(pipeline, tuple(body))]
            else_body: Optional[List[Node]] = None
            while term == "else":
                if rest and rest[0].kind == IDENT and rest[0].value == "if":
                    cond = parse_pipeline(rest[1:], term_chunk.content)
                    body, term, rest, term_chunk = self._nodes({"else", "end"})
                    branches.append((cond, tuple(body)))
                else:
                    if rest:
                        raise self._error("unexpected tokens after else", term_chunk)
                    else_body, term, rest, term_chunk = self._nodes({"end"})
            if rest:
                raise self._error("unexpected tokens after end", term_chunk)
            return IfNode(
                branches=tuple(branches),
                else_body=tuple(else_body) if else_body is not None else None,
            )

        else_nodes: Optional[List[Node]] = None
        if term == "else":
            if rest:
                raise self._error(f"else if is not supported in {keyword}", term_chunk)
            else_nodes, term, rest, term_chunk = self._nodes({"end"})
        if rest:
            raise self._error("unexpected tokens after end", term_chunk)

        cls = WithNode if keyword == "with" else RangeNode
        return cls(
            pipeline=pipeline,
            body=tuple(body),
            else_body=tuple(else_nodes) if else_nodes is not None else None,
        )

    def _define(self, tokens: List[Token], chunk: Chunk) -> None:
        if len(tokens) != 1 or tokens[0].kind != LITERAL or not isinstance(tokens[0].value, str):
            raise self._error('define requires a quoted name: {{ define "name" }}', chunk)
        name = tokens[0].value
        body, _, rest, term_chunk = self._nodes({"end"})
        if rest:
            raise self._error("unexpected tokens after end", term_chunk)
        self.defines[name] = body


def parse_template(text: str) -> Template:
    """Parseia um template, levantando `TemplateSyntaxError` em caso de erro."""
    if OPEN_MARK not in text:
        return Template(nodes=[TextNode(text)] if text else [], source=text)
    return _TemplateParser(text).parse()

