"""
Modelo canônico de camada de values.

Uma camada é uma árvore de values nomeada, associada a um escopo de
precedência e, opcionalmente, a um environment e/ou region alvo.

Precedência (menor → maior):
    global < environment < region < override

Invariantes:
    - `name` é não vazio
    - `values` é sempre um dict
    - A camada é imutável após a criação
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LayerScope(str, Enum):
    """
    Escopos de camada e sua precedência.

    Os valores são strings para facilitar serialização no manifest.
    """

    GLOBAL = "global"
    ENVIRONMENT = "environment"
    REGION = "region"
    OVERRIDE = "override"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]


_PRECEDENCE = {
    LayerScope.GLOBAL: 0,
    LayerScope.ENVIRONMENT: 1,
    LayerScope.REGION: 2,
    LayerScope.OVERRIDE: 3,
}


@dataclass(frozen=True)
class Layer:
    """Camada nomeada de values."""

    name: str
    scope: LayerScope
    values: Dict[str, Any] = field(default_factory=dict)
    source: str = "<inline>"
    environment: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("layer.name must be a non-empty string")
        if not isinstance(self.values, dict):
            raise TypeError(f"layer.values must be dict, got {type(self.values).__name__}")
        if not isinstance(self.scope, LayerScope):
            object.__setattr__(self, "scope", LayerScope(self.scope))

    def applies_to(self, environment: Optional[str], region: Optional[str]) -> bool:
        """Indica se a camada participa da resolução do alvo informado."""
        if self.scope is LayerScope.REGION and region is None:
            return False
        if self.environment is not None and self.environment != environment:
            return False
        if self.region is not None and self.region != region:
            return False
        return True

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "scope": self.scope.value,
            "source": self.source,
            "environment": self.environment,
            "region": self.region,
        }
