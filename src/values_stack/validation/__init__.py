"""values-stack — Validator.

Componentes canônicos:
 - verificação estrutural do schema
 - validação de values (subconjunto JSON Schema draft-07)
 - relatório de issues com caminho, keyword e mensagem
"""

from .errors import (  # noqa: F401
    SchemaDefinitionError,
    SchemaFileError,
    ValidationError,
    ValuesValidationError,
)
from .report import ValidationIssue, ValidationReport  # noqa: F401
from .schema import check_schema, load_schema, validate_values  # noqa: F401
