"""
Política de merge entre camadas.

Política padrão (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (`replace`)
    - `null` no override → remove a chave (mesma semântica do Helm)
    - conflito de tipos → erro estrutural explícito

A política é lida da seção `merge` das settings e é imutável.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import MergePolicyError


LIST_REPLACE = "replace"
LIST_APPEND = "append"
LIST_MERGE_BY_KEY = "merge_by_key"

_ALLOWED_LIST_STRATEGIES = {LIST_REPLACE, LIST_APPEND, LIST_MERGE_BY_KEY}


@dataclass(frozen=True)
class MergePolicy:
    """Política explícita e imutável do deep-merge."""

    list_strategy: str = LIST_REPLACE
    list_merge_key: str = "name"
    null_deletes: bool = True
    strict_types: bool = True

    def __post_init__(self) -> None:
        if self.list_strategy not in _ALLOWED_LIST_STRATEGIES:
            raise MergePolicyError(
                f"merge.list_strategy inválida: {self.list_strategy!r}",
                details={
                    "list_strategy": self.list_strategy,
                    "allowed": sorted(_ALLOWED_LIST_STRATEGIES),
                },
            )
        if not isinstance(self.list_merge_key, str) or not self.list_merge_key.strip():
            raise MergePolicyError(
                "merge.list_merge_key deve ser string não vazia",
                details={"list_merge_key": self.list_merge_key},
            )

    @classmethod
    def from_settings(cls, settings: Optional[Dict[str, Any]]) -> "MergePolicy":
        """Materializa a política a partir da seção `merge` das settings."""
        merge_cfg = (settings or {}).get("merge") or {}
        if not isinstance(merge_cfg, dict):
            raise MergePolicyError(
                "settings.merge deve ser um mapeamento",
                details={"received": type(merge_cfg).__name__},
            )
        return cls(
            list_strategy=merge_cfg.get("list_strategy", LIST_REPLACE),
            list_merge_key=merge_cfg.get("list_merge_key", "name"),
            null_deletes=bool(merge_cfg.get("null_deletes", True)),
            strict_types=bool(merge_cfg.get("strict_types", True)),
        )
