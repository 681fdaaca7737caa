"""
Tipos canônicos do pipeline de resolução do values-stack.

Os tipos aqui definidos representam:
    - estados finais de execução de estágios
    - resultado imutável produzido por um estágio

Componentes principais:
    - StageStatus → enum de estados finais (SUCCESS, SKIPPED, FAILED)
    - StageResult → estrutura imutável de resultado de execução

Invariantes:
    - Enums possuem valores textuais canônicos
    - StageResult é imutável e seguro contra mutação acidental
    - Tipos não dependem do resolver, da CLI ou de I/O

Limites explícitos:
    - Não executa estágios
    - Não decide políticas de execução
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class StageStatus(str, Enum):
    """
    Estados finais possíveis da execução de um estágio.

    Estados definidos:
        - SUCCESS: execução concluída (possivelmente com warnings)
        - SKIPPED: execução pulada por decisão explícita (settings ou falha anterior)
        - FAILED: execução interrompida por erro

    Os valores são strings para facilitar a persistência no manifest.
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """
    Resultado imutável da execução de um estágio.

    Campos:
        - stage_id: identificador canônico do estágio (ex.: `values.merge`)
        - status: estado final
        - summary: descrição curta e legível
        - metrics: métricas numéricas leves
        - warnings: mensagens não fatais
        - payload: dados estruturados (ex.: `error` em caso de falha)
    """

    stage_id: str
    status: StageStatus
    summary: str
    metrics: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage_id": self.stage_id,
            "status": self.status.value,
            "summary": self.summary,
            "metrics": dict(self.metrics),
            "warnings": list(self.warnings),
            "payload": dict(self.payload),
        }
