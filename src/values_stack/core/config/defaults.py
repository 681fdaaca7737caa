# src/values_stack/core/config/defaults.py
"""Settings padrão embutidas do values-stack.

Espelham o conteúdo de um `settings.defaults.yaml` canônico. Qualquer chave
pode ser sobrescrita por um arquivo local via `load_settings`.
"""

from copy import deepcopy
from typing import Any, Dict


DEFAULT_SETTINGS: Dict[str, Any] = {
    "merge": {
        "list_strategy": "replace",
        "list_merge_key": "name",
        "null_deletes": True,
        "strict_types": True,
    },
    "expressions": {
        "enabled": True,
        "strict_undefined": False,
        "max_depth": 32,
    },
    "validation": {
        "enabled": True,
        "fail_on_error": True,
    },
    "output": {
        "format": "yaml",
        "sort_keys": False,
    },
    "release": {
        "name": "release",
        "namespace": "default",
        "revision": 1,
    },
    "chart": {
        "name": "chart",
        "version": "0.1.0",
        "app_version": "",
    },
}


def default_settings() -> Dict[str, Any]:
    """Retorna uma cópia independente das settings padrão."""
    return deepcopy(DEFAULT_SETTINGS)
