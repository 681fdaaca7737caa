"""Árvore sintática dos templates.

Nós de operando:
    - FieldNode       → `.Values.a.b`, `.`, `$`, `$.Release.Name`
    - LiteralNode     → string, número, bool, nil
    - IdentifierNode  → nome de função
    - ParenNode       → pipeline entre parênteses

Nós de template:
    - TextNode, ActionNode, IfNode, WithNode, RangeNode
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class FieldNode:
    path: Tuple[str, ...]
    from_root: bool = False


@dataclass(frozen=True)
class LiteralNode:
    value: Any


@dataclass(frozen=True)
class IdentifierNode:
    name: str


@dataclass(frozen=True)
class ParenNode:
    pipeline: "Pipeline"


Operand = Union[FieldNode, LiteralNode, IdentifierNode, ParenNode]


@dataclass(frozen=True)
class Command:
    args: Tuple[Operand, ...]


@dataclass(frozen=True)
class Pipeline:
    commands: Tuple[Command, ...]
    source: str = ""


@dataclass(frozen=True)
class TextNode:
    text: str


@dataclass(frozen=True)
class ActionNode:
    pipeline: Pipeline


@dataclass(frozen=True)
class IfNode:
    branches: Tuple[Tuple[Pipeline, Tuple["Node", ...]], ...]
    else_body: Optional[Tuple["Node", ...]] = None


@dataclass(frozen=True)
class WithNode:
    pipeline: Pipeline
    body: Tuple["Node", ...]
    else_body: Optional[Tuple["Node", ...]] = None


@dataclass(frozen=True)
class RangeNode:
    pipeline: Pipeline
    body: Tuple["Node", ...]
    else_body: Optional[Tuple["Node", ...]] = None


Node = Union[TextNode, ActionNode, IfNode, WithNode, RangeNode]


@dataclass
class Template:
    """Template parseado: nós de topo + blocos `define` nomeados."""

    nodes: List[Node]
    defines: Dict[str, List[Node]] = field(default_factory=dict)
    source: str = ""

    @property
    def is_single_action(self) -> bool:
        return len(self.nodes) == 1 and isinstance(self.nodes[0], ActionNode)
