"""Erros canônicos do Expression Evaluator.

Toda falha de parsing ou avaliação de template é uma `ExpressionError`,
com `details` contendo ao menos a expressão envolvida e, quando conhecido,
o caminho do value que a contém.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from values_stack.core.errors import EXPRESSION_FAILED
from values_stack.core.exceptions import ValuesStackError


class ExpressionError(ValuesStackError):
    """Erro base do domínio de expressões."""

    error_type = EXPRESSION_FAILED
    default_hint = "Corrija a expressão de template ou declare o valor referenciado em alguma camada."

    def __init__(
        self,
        message: str,
        *,
        expression: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        merged = dict(details or {})
        if expression is not None:
            merged.setdefault("expression", expression)
        super().__init__(message, details=merged, hint=hint)

    @property
    def path(self) -> Optional[str]:
        return self.details.get("path")


class TemplateSyntaxError(ExpressionError):
    """Template malformado (ação não fechada, bloco sem `end`, token inválido)."""

    def __init__(self, message: str, *, offset: Optional[int] = None, expression: Optional[str] = None) -> None:
        super().__init__(message, expression=expression, details={"offset": offset})
        self.offset = offset


class UndefinedReferenceError(ExpressionError):
    """Campo referenciado não existe (apenas com `strict_undefined`)."""


class UnknownFunctionError(ExpressionError):
    """Função não registrada no evaluator."""


class UnknownHelperError(ExpressionError):
    """`include`/`template` de um helper não declarado."""


class HelperRecursionError(ExpressionError):
    """Aninhamento de include/tpl acima de `max_depth`."""


class ExpressionCycleError(ExpressionError):
    """Values que se referenciam mutuamente via templates."""

    def __init__(self, chain: List[str]) -> None:
        super().__init__(
            "Ciclo de referência entre values: " + " -> ".join(chain),
            details={"chain": list(chain)},
        )
        self.chain = list(chain)


class RequiredValueError(ExpressionError):
    """`required` recebeu valor vazio."""


class FunctionCallError(ExpressionError):
    """Função chamada com argumentos inválidos."""
