"""
Expression Evaluator do values-stack.

Este módulo avalia templates (subconjunto Go template / Helm) contra um
contexto de resolução (`.Values`, `.Release`, `.Chart`, `.Environment`,
`.Region`) e resolve árvores de values cujas strings contêm expressões.

Princípios fundamentais:
    - Um template que é exatamente uma ação devolve o valor nativo
      (`"{{ .Values.replicas }}"` → `3`, não `"3"`)
    - Referências a values que também são templates são resolvidas sob
      demanda, com detecção explícita de ciclos
    - Nenhuma função é resolvida implicitamente: nome desconhecido é erro

Invariantes:
    - A árvore de values de entrada nunca é mutada
    - Cada value é avaliado no máximo uma vez por `resolve_values`
    - O aninhamento de include/tpl é limitado por `max_depth`

Limites explícitos:
    - Não carrega arquivos
    - Não mescla camadas
    - Não valida contra schema
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from values_stack.merge.paths import join_index, join_key

from .errors import (
    ExpressionCycleError,
    ExpressionError,
    FunctionCallError,
    HelperRecursionError,
    UndefinedReferenceError,
    UnknownFunctionError,
    UnknownHelperError,
)
from .functions import BUILTIN_FUNCTIONS, is_true, to_text
from .nodes import (
    ActionNode,
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
from .parser import OPEN_MARK, parse_template


PathKey = Tuple[Union[str, int], ...]

_MISSING = object()

_SHORT_CIRCUIT = ("and", "or")


def _path_text(path: PathKey) -> str:
    text = ""
    for segment in path:
        text = join_index(text, segment) if isinstance(segment, int) else join_key(text, segment)
    return text


def has_expression(value: Any) -> bool:
    return isinstance(value, str) and OPEN_MARK in value


class Evaluator:
    """Avaliador de templates com suporte a helpers nomeados.

    Args:
        context: contexto raiz (ver `build_context`).
        helpers: helpers nomeados; strings de template ou nós já parseados
            (blocos `define` de um `_helpers.tpl`).
        functions: funções adicionais/sobrescritas.
        strict_undefined: campo ausente levanta `UndefinedReferenceError`.
        max_depth: aninhamento máximo de include/tpl.
    """

    def __init__(
        self,
        context: Dict[str, Any],
        *,
        helpers: Optional[Mapping[str, Union[str, Sequence[Node]]]] = None,
        functions: Optional[Mapping[str, Callable[..., Any]]] = None,
        strict_undefined: bool = False,
        max_depth: int = 32,
    ) -> None:
        self.root: Dict[str, Any] = dict(context)
        self.helpers: Dict[str, Union[str, Sequence[Node]]] = dict(helpers or {})
        self.strict_undefined = strict_undefined
        self.max_depth = max_depth

        self.functions: Dict[str, Callable[..., Any]] = dict(BUILTIN_FUNCTIONS)
        self.functions["include"] = self._include
        self.functions["tpl"] = self._tpl
        if functions:
            self.functions.update(functions)

        self._templates: Dict[str, Template] = {}
        self._depth = 0
        # dado de `$` por nível de template (render, include, tpl)
        self._dollar: List[Any] = []

        # estado de resolve_values
        self._raw_values: Optional[Dict[str, Any]] = None
        self._resolved: Dict[PathKey, Any] = {}
        self._resolving: List[PathKey] = []

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def render(self, text: str, dot: Any = _MISSING) -> Any:
        """Avalia um template.

        Retorna o valor nativo quando o template é uma única ação; caso
        contrário, a string resultante.
        """
        if not has_expression(text):
            return text
        template = self._parse(text)
        scope = self.root if dot is _MISSING else dot
        self._dollar.append(scope)
        try:
            if template.is_single_action:
                return self._eval_pipeline(template.nodes[0].pipeline, scope)
            return self._render_nodes(template.nodes, scope)
        finally:
            self._dollar.pop()

    def render_text(self, text: str, dot: Any = _MISSING) -> str:
        """Avalia um template sempre como texto.

        Dentro do template, `$` é o dado recebido (`dot`), como em Go.
        """
        if not has_expression(text):
            return text
        template = self._parse(text)
        scope = self.root if dot is _MISSING else dot
        self._dollar.append(scope)
        try:
            return self._render_nodes(template.nodes, scope)
        finally:
            self._dollar.pop()

    def resolve_values(self, values: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Resolve todas as expressões de uma árvore de values.

        Após a resolução, `.Values` do contexto passa a apontar para a árvore
        resolvida (útil para renderizar manifests na sequência).

        Raises:
            ExpressionCycleError: values que se referenciam mutuamente.
            ExpressionError: qualquer falha de avaliação, com `details.path`.
        """
        raw = self.root.get("Values") if values is None else values
        if not isinstance(raw, dict):
            raise ExpressionError(
                "Values para resolução devem ser dict",
                details={"received": type(raw).__name__},
            )

        self._raw_values = raw
        self._resolved = {}
        self._resolving = []
        try:
            resolved = self._resolve_at((), raw)
        finally:
            self._raw_values = None
            self._resolving = []
            self._resolved = {}

        self.root["Values"] = resolved
        return resolved

    # ------------------------------------------------------------------
    # Resolução de values
    # ------------------------------------------------------------------
    def _resolve_at(self, path: PathKey, raw: Any) -> Any:
        if path in self._resolved:
            return self._resolved[path]
        if path in self._resolving:
            start = self._resolving.index(path)
            chain = [_path_text(p) or "<root>" for p in self._resolving[start:]] + [_path_text(path) or "<root>"]
            raise ExpressionCycleError(chain)

        self._resolving.append(path)
        try:
            value = self._resolve_node(path, raw)
        finally:
            self._resolving.pop()

        self._resolved[path] = value
        return value

    def _resolve_node(self, path: PathKey, raw: Any) -> Any:
        if isinstance(raw, dict):
            return {k: self._resolve_at(path + (k,), v) for k, v in raw.items()}
        if isinstance(raw, list):
            return [self._resolve_at(path + (i,), v) for i, v in enumerate(raw)]
        if has_expression(raw):
            try:
                return self.render(raw)
            except ExpressionError as e:
                e.details.setdefault("path", _path_text(path))
                e.details.setdefault("expression", raw)
                raise
        return raw

    def _lookup_values(self, segments: Tuple[str, ...], node: FieldNode) -> Any:
        assert self._raw_values is not None
        current: Any = self._raw_values
        path: PathKey = ()
        for segment in segments:
            current = self._resolve_at(path, current) if has_expression(current) else current
            if isinstance(current, dict) and segment in current:
                current = current[segment]
                path = path + (segment,)
                continue
            return self._undefined(("Values",) + segments, node)
        return self._resolve_at(path, current)

    # ------------------------------------------------------------------
    # Avaliação
    # ------------------------------------------------------------------
    def _parse(self, text: str) -> Template:
        template = self._templates.get(text)
        if template is None:
            template = parse_template(text)
            self._templates[text] = template
        return template

    def _render_nodes(self, nodes: Sequence[Node], dot: Any) -> str:
        out: List[str] = []
        for node in nodes:
            if isinstance(node, TextNode):
                out.append(node.text)
            elif isinstance(node, ActionNode):
                out.append(to_text(self._eval_pipeline(node.pipeline, dot)))
            elif isinstance(node, IfNode):
                for condition, body in node.branches:
                    if is_true(self._eval_pipeline(condition, dot)):
                        out.append(self._render_nodes(body, dot))
                        break
                else:
                    if node.else_body is not None:
                        out.append(self._render_nodes(node.else_body, dot))
            elif isinstance(node, WithNode):
                value = self._eval_pipeline(node.pipeline, dot)
                if is_true(value):
                    out.append(self._render_nodes(node.body, value))
                elif node.else_body is not None:
                    out.append(self._render_nodes(node.else_body, dot))
            elif isinstance(node, RangeNode):
                out.append(self._render_range(node, dot))
        return "".join(out)

    def _render_range(self, node: RangeNode, dot: Any) -> str:
        value = self._eval_pipeline(node.pipeline, dot)
        if isinstance(value, dict):
            items = [value[k] for k in sorted(value, key=str)]
        elif isinstance(value, (list, tuple)):
            items = list(value)
        elif value is None:
            items = []
        else:
            raise ExpressionError(
                f"range can't iterate over {type(value).__name__}",
                expression=node.pipeline.source,
            )
        if not items:
            return self._render_nodes(node.else_body, dot) if node.else_body is not None else ""
        return "".join(self._render_nodes(node.body, item) for item in items)

    def _eval_pipeline(self, pipeline: Pipeline, dot: Any) -> Any:
        value: Any = _MISSING
        for command in pipeline.commands:
            value = self._eval_command(command.args, dot, value, pipeline.source)
        return value

    def _eval_command(self, args: Tuple[Operand, ...], dot: Any, piped: Any, source: str) -> Any:
        head = args[0]
        if isinstance(head, IdentifierNode):
            fn = self.functions.get(head.name)
            if fn is None:
                raise UnknownFunctionError(f"function {head.name!r} not defined", expression=source)
            if head.name in _SHORT_CIRCUIT and fn is BUILTIN_FUNCTIONS.get(head.name):
                return self._eval_short_circuit(head.name, args[1:], dot, piped, source)
            call_args = [self._eval_operand(a, dot) for a in args[1:]]
            if piped is not _MISSING:
                call_args.append(piped)
            try:
                return fn(*call_args)
            except ExpressionError:
                raise
            except (TypeError, ValueError, OverflowError) as e:
                raise FunctionCallError(
                    f"error calling {head.name}: {e}",
                    expression=source,
                    details={"function": head.name},
                ) from e

        if len(args) > 1 or piped is not _MISSING:
            raise ExpressionError(
                "can't give argument to non-function",
                expression=source,
            )
        return self._eval_operand(head, dot)

    def _eval_short_circuit(
        self, name: str, operands: Tuple[Operand, ...], dot: Any, piped: Any, source: str
    ) -> Any:
        """`and`/`or` param no primeiro argumento que decide o resultado.

        Os operandos seguintes não são avaliados; o valor recebido via pipe
        é sempre o último argumento.
        """
        if not operands and piped is _MISSING:
            raise FunctionCallError(
                f"error calling {name}: expects at least 1 argument",
                expression=source,
                details={"function": name},
            )
        stop_when = name == "or"
        value: Any = None
        for operand in operands:
            value = self._eval_operand(operand, dot)
            if is_true(value) == stop_when:
                return value
        return piped if piped is not _MISSING else value

    def _eval_operand(self, operand: Operand, dot: Any) -> Any:
        if isinstance(operand, LiteralNode):
            return operand.value
        if isinstance(operand, ParenNode):
            return self._eval_pipeline(operand.pipeline, dot)
        if isinstance(operand, FieldNode):
            return self._eval_field(operand, dot)
        if isinstance(operand, IdentifierNode):
            # função sem argumentos usada como operando
            return self._eval_command((operand,), dot, _MISSING, operand.name)
        raise ExpressionError(f"unsupported operand {operand!r}")  # pragma: no cover

    def _eval_field(self, node: FieldNode, dot: Any) -> Any:
        if node.from_root:
            base = self._dollar[-1] if self._dollar else self.root
        else:
            base = dot
        segments = node.path
        if not segments:
            return base

        if base is self.root and segments[0] == "Values" and self._raw_values is not None:
            return self._lookup_values(segments[1:], node)

        current = base
        for segment in segments:
            if isinstance(current, dict) and segment in current:
                current = current[segment]
                continue
            return self._undefined(segments, node)
        return current

    def _undefined(self, segments: Tuple[str, ...], node: FieldNode) -> Any:
        if self.strict_undefined:
            name = ("$" if node.from_root else "") + "." + ".".join(segments)
            raise UndefinedReferenceError(
                f"undefined reference {name}",
                expression=name,
                details={"reference": name},
            )
        return None

    # ------------------------------------------------------------------
    # Helpers nomeados
    # ------------------------------------------------------------------
    def _enter(self, what: str) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            self._depth -= 1
            raise HelperRecursionError(
                f"maximum template depth {self.max_depth} exceeded in {what}",
                details={"max_depth": self.max_depth, "helper": what},
            )

    def _include(self, name: Any, dot: Any = None) -> str:
        helper = self.helpers.get(name)
        if helper is None:
            raise UnknownHelperError(
                f"no template {name!r} associated",
                details={"helper": name, "available": sorted(self.helpers)},
            )
        self._enter(str(name))
        try:
            if isinstance(helper, str):
                return self.render_text(helper, dot)
            self._dollar.append(dot)
            try:
                return self._render_nodes(helper, dot)
            finally:
                self._dollar.pop()
        finally:
            self._depth -= 1

    def _tpl(self, text: Any, dot: Any = None) -> str:
        self._enter("tpl")
        try:
            return self.render_text(to_text(text), self.root if dot is None else dot)
        finally:
            self._depth -= 1
