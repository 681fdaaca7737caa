"""
ResolutionContext — contexto canônico de uma resolução.

O ResolutionContext é o meio de:
- registro de logs estruturados de execução
- coleta de warnings não fatais associados a estágios

Princípios fundamentais:
- Isolamento por execução (cada resolução possui seu próprio contexto)
- Nenhum estágio acessa estado global para comunicação indireta
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class ResolutionContext:
    """
    Contexto de execução compartilhado de uma resolução.

    Campos canônicos:
    - run_id: identificador único da resolução
    - created_at: timestamp UTC de criação do contexto
    - settings: settings efetivas (defaults + local deep-merge)
    - environment / region: alvo da resolução
    - warnings: warnings por stage_id
    - events: log estruturado de eventos
    """

    run_id: str
    created_at: str
    settings: Dict[str, Any]
    environment: Optional[str] = None
    region: Optional[str] = None

    warnings: Dict[str, List[str]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def log(self, *, stage_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage_id": stage_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, stage_id: str, message: str) -> None:
        if stage_id not in self.warnings:
            self.warnings[stage_id] = []
        self.warnings[stage_id].append(message)

    def warnings_for(self, stage_id: str) -> List[str]:
        return list(self.warnings.get(stage_id, []))
