"""Estruturas de resultado da validação."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import ValuesValidationError


@dataclass(frozen=True)
class ValidationIssue:
    """Violação pontual: caminho do value, keyword do schema e mensagem."""

    path: str
    keyword: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "keyword": self.keyword, "message": self.message}


@dataclass(frozen=True)
class ValidationReport:
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues

    def raise_for_issues(self) -> None:
        if self.issues:
            raise ValuesValidationError([i.to_dict() for i in self.issues])

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "issues": [i.to_dict() for i in self.issues]}
