"""
Layer Store — registro ordenado de camadas de values.

O store atua como uma camada de proteção antecipada, garantindo que:
    - cada camada possua um nome válido e único
    - a ordem de declaração seja preservada explicitamente
    - a seleção de camadas para um alvo (environment, region) seja determinística

Decisões arquiteturais:
    - A ordem de aplicação é: precedência do escopo, depois ordem de declaração
    - O store não mescla values nem avalia expressões

Invariantes:
    - Cada nome de camada é único no store
    - `list()` reflete exatamente a ordem de registro
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import DuplicateLayerError
from .model import Layer


@dataclass
class LayerStore:
    """Registro canônico de camadas."""

    _layers: Dict[str, Layer] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, layer: Layer) -> None:
        name = getattr(layer, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("layer.name must be a non-empty string")
        if name in self._layers:
            raise DuplicateLayerError(
                f"Duplicate layer name: {name}",
                details={"layer": name, "source": layer.source},
            )
        self._layers[name] = layer
        self._order.append(name)

    def extend(self, layers: List[Layer]) -> None:
        for layer in layers:
            self.add(layer)

    def get(self, name: str) -> Layer:
        return self._layers[name]

    def list(self) -> List[Layer]:
        return [self._layers[n] for n in self._order]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: object) -> bool:
        return name in self._layers

    def ordered(
        self,
        environment: Optional[str] = None,
        region: Optional[str] = None,
    ) -> List[Layer]:
        """Camadas aplicáveis ao alvo, na ordem de aplicação (menor → maior precedência)."""
        position = {n: i for i, n in enumerate(self._order)}
        applicable = [l for l in self.list() if l.applies_to(environment, region)]
        return sorted(applicable, key=lambda l: (l.scope.precedence, position[l.name]))
