"""Erros canônicos de renderização/emissão."""

from __future__ import annotations

from values_stack.core.exceptions import ValuesStackError


class RenderError(ValuesStackError):
    """Erro base de renderização."""

    error_type = "RENDER_ERROR"


class UnsupportedOutputFormatError(RenderError):
    """Formato de saída fora do catálogo suportado (yaml, json)."""

    error_type = "UNSUPPORTED_OUTPUT_FORMAT"
    default_hint = "Use output.format igual a 'yaml' ou 'json'."


class ManifestRenderError(RenderError):
    """Template de manifest falhou ao avaliar expressões ou renderizou YAML inválido."""

    error_type = "MANIFEST_RENDER_FAILED"


class TemplatesNotFoundError(RenderError):
    """Diretório de templates de manifest inexistente."""

    error_type = "TEMPLATES_NOT_FOUND"
    default_hint = "Informe em --templates um diretório existente."
