"""Emissão dos values finais em YAML ou JSON."""

from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from .errors import UnsupportedOutputFormatError


SUPPORTED_FORMATS = ("yaml", "json")


def dump_values(values: Dict[str, Any], fmt: str = "yaml", sort_keys: bool = False) -> str:
    """Serializa values de forma determinística.

    YAML sai em block style com unicode preservado; JSON com indentação 2.
    A saída sempre termina com quebra de linha. Escalares que o JSON não
    representa (ex.: datas do YAML) saem via `str`.
    """
    fmt = (fmt or "").lower()
    if fmt == "yaml":
        return yaml.safe_dump(values, default_flow_style=False, sort_keys=sort_keys, allow_unicode=True)
    if fmt == "json":
        return json.dumps(values, ensure_ascii=False, indent=2, sort_keys=sort_keys, default=str) + "\n"
    raise UnsupportedOutputFormatError(
        f"Formato de saída não suportado: {fmt!r}",
        details={"format": fmt, "supported": list(SUPPORTED_FORMATS)},
    )
