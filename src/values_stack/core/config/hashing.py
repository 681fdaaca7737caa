# src/values_stack/core/config/hashing.py
"""
Hashing canônico das settings (e dos values) do values-stack.

O hash gerado representa a identidade estrutural das settings efetivas
e é registrado no manifest de resolução. `canonical_hash` é a única
implementação da política abaixo; o hash de values delega para ela.

Política de hashing (v1):
    - Serialização JSON canônica
    - Ordenação estável de chaves
    - Separadores compactos
    - Escalares fora do JSON (ex.: datas do YAML) via `str`
    - Codificação UTF-8
    - Algoritmo SHA-256
"""

import hashlib
import json
from typing import Any, Dict


def canonical_hash(obj: Any) -> str:
    """SHA-256 hexadecimal do JSON canônico de `obj`."""
    canonical_json = json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico das settings efetivas.

    Invariantes:
        - O valor retornado é uma string hexadecimal de 64 caracteres
        - Settings estruturalmente equivalentes produzem o mesmo hash
        - Nenhuma mutação ocorre sobre o input

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """

    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    return canonical_hash(config)
