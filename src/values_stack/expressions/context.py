"""Contexto de avaliação e carregamento de helpers nomeados.

O contexto raiz espelha os objetos de um chart Helm:

    .Values       → values mesclados
    .Release      → Name, Namespace, Revision, Service
    .Chart        → Name, Version, AppVersion
    .Environment  → environment alvo (ou nil)
    .Region       → region alvo (ou nil)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from values_stack.layers.loader import read_mapping_file

from .errors import ExpressionError
from .nodes import Node
from .parser import parse_template


RELEASE_SERVICE = "values-stack"


def build_context(
    values: Dict[str, Any],
    *,
    release: Optional[Dict[str, Any]] = None,
    chart: Optional[Dict[str, Any]] = None,
    environment: Optional[str] = None,
    region: Optional[str] = None,
) -> Dict[str, Any]:
    """Monta o contexto raiz a partir das seções `release`/`chart` das settings."""
    release = release or {}
    chart = chart or {}
    return {
        "Values": values,
        "Release": {
            "Name": release.get("name", "release"),
            "Namespace": release.get("namespace", "default"),
            "Revision": release.get("revision", 1),
            "Service": RELEASE_SERVICE,
        },
        "Chart": {
            "Name": chart.get("name", "chart"),
            "Version": chart.get("version", "0.1.0"),
            "AppVersion": chart.get("app_version", ""),
        },
        "Environment": environment,
        "Region": region,
    }


def load_helpers(path: str) -> Dict[str, Union[str, List[Node]]]:
    """Carrega helpers nomeados.

    Formatos:
        - `.tpl`: blocos `{{ define "nome" }}...{{ end }}` (como `_helpers.tpl`)
        - `.yaml`/`.yml`/`.json`: mapeamento nome → string de template

    Raises:
        ExpressionError: helper com valor não-string ou arquivo `.tpl` ausente.
        TemplateSyntaxError: `.tpl` malformado.
    """
    p = Path(path)
    if p.suffix.lower() == ".tpl":
        if not p.exists():
            raise ExpressionError(f"helpers file not found: {p}", details={"path": str(p)})
        template = parse_template(p.read_text(encoding="utf-8"))
        return dict(template.defines)

    data = read_mapping_file(p)
    helpers: Dict[str, Union[str, List[Node]]] = {}
    for name, body in data.items():
        if not isinstance(body, str):
            raise ExpressionError(
                f"helper {name!r} must be a template string",
                details={"path": str(p), "helper": name, "received": type(body).__name__},
            )
        helpers[str(name)] = body
    return helpers
