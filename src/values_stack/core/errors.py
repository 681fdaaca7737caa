"""
values-stack — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do values-stack.
Erros são artefatos da resolução e fazem parte do contrato operacional
da ferramenta, devendo ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhuma decisão implícita é permitida: uma camada inválida, um conflito de
tipos ou um valor fora do schema interrompem a resolução com um payload
estruturado, nunca com um stack trace cru.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .exceptions import ValuesStackError


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do values-stack.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    - decision_required: indica que a resolução está bloqueada aguardando
      decisão humana (ex.: conflito de tipos entre camadas).
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    decision_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Camadas
LAYER_NOT_FOUND = "LAYER_NOT_FOUND"
LAYER_INVALID = "LAYER_INVALID"

# Merge
MERGE_TYPE_CONFLICT = "MERGE_TYPE_CONFLICT"

# Expressões
EXPRESSION_FAILED = "EXPRESSION_FAILED"

# Schema
VALUES_INVALID = "VALUES_INVALID"

# Resolver
RESOLVER_EXECUTION_ERROR = "RESOLVER_EXECUTION_ERROR"
RESOLVER_CONFIGURATION_ERROR = "RESOLVER_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def layer_not_found(
    *,
    path: str,
    scope: Optional[str] = None,
    hint: str = "Crie o arquivo de values esperado ou ajuste o diretório raiz informado.",
) -> ErrorPayload:
    return ErrorPayload(
        type=LAYER_NOT_FOUND,
        message="Arquivo de camada obrigatório não encontrado",
        details={"path": path, "scope": scope},
        hint=hint,
        decision_required=False,
    )


def merge_type_conflict(
    *,
    path: str,
    base_type: str,
    override_type: str,
    layer: Optional[str] = None,
    hint: str = "Alinhe o tipo da chave entre as camadas ou desative merge.strict_types explicitamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=MERGE_TYPE_CONFLICT,
        message="Conflito de tipo entre camadas",
        details={
            "path": path,
            "base_type": base_type,
            "override_type": override_type,
            "layer": layer,
        },
        hint=hint,
        decision_required=True,
    )


def expression_failed(
    *,
    path: Optional[str],
    expression: Optional[str],
    reason: str,
    hint: str = "Corrija a expressão de template ou declare o valor referenciado em alguma camada.",
) -> ErrorPayload:
    return ErrorPayload(
        type=EXPRESSION_FAILED,
        message="Falha ao avaliar expressão de template",
        details={"path": path, "expression": expression, "reason": reason},
        hint=hint,
        decision_required=False,
    )


def values_invalid(
    *,
    issues: List[Dict[str, Any]],
    hint: str = "Ajuste os values nas camadas indicadas ou atualize o schema.",
) -> ErrorPayload:
    return ErrorPayload(
        type=VALUES_INVALID,
        message="Values finais não aderem ao schema",
        details={"issues": issues, "issues_count": len(issues)},
        hint=hint,
        decision_required=True,
    )


def resolver_execution_error(
    *,
    stage: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique os eventos da resolução para diagnosticar a falha. Nenhum fallback é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=RESOLVER_EXECUTION_ERROR,
        message="Falha inesperada durante a resolução",
        details={
            "stage": stage,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
        decision_required=False,
    )


def payload_from_exception(exc: BaseException, *, stage: Optional[str] = None) -> ErrorPayload:
    """Converte uma exceção em ErrorPayload (serializável, acionável).

    Regras:
    - ValuesStackError: já carrega error_type/details/hint/decision_required.
    - Outras exceções: encapsuladas como RESOLVER_EXECUTION_ERROR sem stack trace.
    """
    if isinstance(exc, ValuesStackError):
        details = dict(exc.details)
        if stage is not None:
            details.setdefault("stage", stage)
        return ErrorPayload(
            type=exc.error_type,
            message=exc.message or "Erro de resolução",
            details=details,
            hint=exc.hint,
            decision_required=bool(exc.decision_required),
        )

    return resolver_execution_error(
        stage=stage,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc) or None,
    )
