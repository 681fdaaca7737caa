"""Hashing canônico de values.

O hash dos values serve para:
- rastreabilidade no manifest de resolução
- detecção de divergência entre resoluções (mesmas camadas => mesmo hash)

A política (JSON canônico + SHA-256) é a mesma das settings; ver
`values_stack.core.config.hashing.canonical_hash`.
"""

from __future__ import annotations

from typing import Any, Dict

from values_stack.core.config.hashing import canonical_hash


def compute_values_hash(values: Dict[str, Any]) -> str:
    """Computa SHA-256 dos values em formato canônico."""
    if not isinstance(values, dict):
        raise TypeError(f"Values para hashing devem ser dict, recebido: {type(values).__name__}")
    return canonical_hash(values)
