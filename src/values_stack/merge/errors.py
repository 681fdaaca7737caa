"""
Exceções canônicas do Merge Engine.

Princípios fundamentais:
    - Conflitos estruturais entre camadas são falhas fatais
    - Nenhum merge parcial é produzido em caso de erro
    - A exceção carrega o caminho exato da chave em conflito

Invariantes:
    - Todas as exceções de merge herdam de `MergeError`
"""

from __future__ import annotations

from typing import Optional

from values_stack.core.errors import MERGE_TYPE_CONFLICT
from values_stack.core.exceptions import ValuesStackError


class MergeError(ValuesStackError):
    """Exceção base para erros do Merge Engine."""

    error_type = "MERGE_ERROR"


class MergeTypeConflictError(MergeError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"image": {"tag": "1.0"}}
        - override: {"image": "nginx"}

    Decisões arquiteturais:
        - O deep-merge é estritamente tipado por chave (quando `strict_types`)
        - int e float são considerados compatíveis
        - Não há coerção nem resolução automática
    """

    error_type = MERGE_TYPE_CONFLICT
    default_hint = "Alinhe o tipo da chave entre as camadas ou desative merge.strict_types explicitamente."
    decision_required = True

    def __init__(
        self,
        *,
        path: str,
        base_type: str,
        override_type: str,
        layer: Optional[str] = None,
    ) -> None:
        where = f" (camada '{layer}')" if layer else ""
        super().__init__(
            f"Conflito de tipo na chave '{path}'{where}: {base_type} vs {override_type}",
            details={
                "path": path,
                "base_type": base_type,
                "override_type": override_type,
                "layer": layer,
            },
        )
        self.path = path
        self.base_type = base_type
        self.override_type = override_type
        self.layer = layer


class MergePolicyError(MergeError):
    """Política de merge inválida (ex.: `merge.list_strategy` desconhecida)."""

    error_type = "MERGE_POLICY_INVALID"
    default_hint = "Use list_strategy em {replace, append, merge_by_key}."
