"""Caminhos canônicos dentro de árvores de values.

Formato:
- chaves simples são unidas por ponto (`image.tag`)
- chaves que contêm ponto ou colchetes são citadas (`annotations["prometheus.io/scrape"]`)
- índices de lista usam colchetes (`ports[1]`)

O mesmo formato é usado por provenance, overrides e issues de validação.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Tuple


def join_key(parent: str, key: Any) -> str:
    k = str(key)
    if not k or "." in k or "[" in k or "]" in k or '"' in k:
        part = "[" + json.dumps(k, ensure_ascii=False) + "]"
        return f"{parent}{part}" if parent else part
    return f"{parent}.{k}" if parent else k


def join_index(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


def iter_leaves(tree: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Percorre as folhas de um dict de values.

    Listas e dicts vazios são folhas: são atribuídos inteiros à camada que os
    definiu.
    """
    for key, value in tree.items():
        path = join_key(prefix, key)
        if isinstance(value, dict) and value:
            yield from iter_leaves(value, path)
        else:
            yield path, value


def is_within(path: str, ancestor: str) -> bool:
    """True se `path` é `ancestor` ou está abaixo dele."""
    if path == ancestor:
        return True
    return path.startswith(ancestor + ".") or path.startswith(ancestor + "[")
