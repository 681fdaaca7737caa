"""Erros canônicos do Validator.

Dois tipos de falha são distintos:
- o schema em si é inválido (`SchemaDefinitionError`)
- os values não aderem ao schema (`ValuesValidationError`)
"""

from __future__ import annotations

from typing import Any, Dict, List

from values_stack.core.errors import VALUES_INVALID
from values_stack.core.exceptions import ValuesStackError


class ValidationError(ValuesStackError):
    """Erro base do domínio de validação."""

    error_type = "VALIDATION_ERROR"


class SchemaDefinitionError(ValidationError):
    """Schema não é estruturalmente válido (keyword com tipo errado, $ref quebrado)."""

    error_type = "SCHEMA_INVALID"
    default_hint = "Corrija o values.schema informado."


class SchemaFileError(ValidationError):
    """Arquivo de schema ausente, ilegível ou com formato não suportado."""

    error_type = "SCHEMA_FILE_ERROR"


class ValuesValidationError(ValidationError):
    """Values finais violam o schema; carrega todas as issues encontradas."""

    error_type = VALUES_INVALID
    default_hint = "Ajuste os values nas camadas indicadas ou atualize o schema."
    decision_required = True

    def __init__(self, issues: List[Dict[str, Any]]) -> None:
        first = issues[0]["message"] if issues else "values are invalid"
        more = f" (+{len(issues) - 1} issues)" if len(issues) > 1 else ""
        super().__init__(
            f"values do not match schema: {first}{more}",
            details={"issues": list(issues), "issues_count": len(issues)},
        )
        self.issues = list(issues)
