"""
values-stack — Canonical Exceptions (v1)

Este módulo define a raiz tipada de todas as exceções do values-stack.

Objetivo:
- Permitir que camadas (layers, merge, expressions, validation) levantem
  exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload no Resolver
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- A mensagem é curta e humana; o `hint` diz onde corrigir.
- Nenhuma exceção embute stack trace no payload.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ValuesStackError(Exception):
    """Base class para exceções internas do values-stack.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - `error_type` é um código estável (não é texto livre)
    - Subclasses podem redefinir `error_type` e `default_hint`
    """

    error_type: str = "VALUES_STACK_ERROR"
    default_hint: Optional[str] = None
    decision_required: bool = False

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint if hint is not None else self.default_hint

    def __str__(self) -> str:  # pragma: no cover
        return self.message
