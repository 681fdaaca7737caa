"""
Renderização de templates de manifest a partir dos values resolvidos.

Um template é texto (potencialmente com vários documentos YAML separados
por `---`) avaliado pelo `Evaluator`; o resultado é parseado com
`yaml.safe_load_all`.

Decisões arquiteturais:
    - Documentos vazios após a renderização são descartados
      (ex.: bloco `{{ if }}` desligado)
    - Arquivos iniciados por `_` são parciais (helpers) e não geram manifests
    - A ordem de saída é a ordem alfabética dos arquivos

Limites explícitos:
    - Não aplica manifests em cluster
    - Não valida semântica Kubernetes
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import yaml

from values_stack.expressions.errors import ExpressionError
from values_stack.expressions.evaluator import Evaluator

from .errors import ManifestRenderError, TemplatesNotFoundError


TEMPLATE_SUFFIXES = (".yaml", ".yml")


def render_manifest(template_text: str, evaluator: Evaluator, *, name: str = "<template>") -> List[Any]:
    """Renderiza um template e devolve a lista de documentos não vazios.

    Raises:
        ManifestRenderError: falha de expressão ou YAML inválido; `details`
            sempre nomeia o template (e carrega os details da expressão).
    """
    try:
        rendered = evaluator.render_text(template_text)
    except ExpressionError as e:
        raise ManifestRenderError(
            f"Template '{name}' falhou ao avaliar expressões: {e.message}",
            details={**e.details, "template": name, "cause": e.error_type},
            hint=e.hint,
        ) from e
    try:
        documents = list(yaml.safe_load_all(rendered))
    except yaml.YAMLError as e:
        raise ManifestRenderError(
            f"Template '{name}' gerou YAML inválido: {e}",
            details={"template": name},
            hint="Revise a indentação produzida pelo template (ex.: use nindent).",
        ) from e
    return [doc for doc in documents if doc is not None]


def render_manifests(templates_dir: Path, evaluator: Evaluator) -> Dict[str, List[Any]]:
    """Renderiza todos os templates de um diretório → {arquivo: [documentos]}."""
    root = Path(templates_dir)
    if not root.is_dir():
        raise TemplatesNotFoundError(
            f"Diretório de templates não encontrado: {root}",
            details={"path": str(root)},
        )

    out: Dict[str, List[Any]] = {}
    for path in sorted(root.iterdir(), key=lambda p: p.name):
        if not path.is_file() or path.name.startswith("_"):
            continue
        if path.suffix.lower() not in TEMPLATE_SUFFIXES:
            continue
        out[path.name] = render_manifest(path.read_text(encoding="utf-8"), evaluator, name=path.name)
    return out
