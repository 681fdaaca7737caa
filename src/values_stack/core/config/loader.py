# src/values_stack/core/config/loader.py
"""
Loader canônico das settings do values-stack.

As settings efetivas são resolvidas a partir de:
    - um arquivo de defaults (opcional; sem ele valem os defaults embutidos)
    - um arquivo local de overrides (opcional)

Responsabilidades do módulo:
    - Carregar arquivos de settings em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver as settings finais via deep-merge estrito
    - Garantir precedência explícita do override local sobre defaults

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - A mesma entrada sempre produz as mesmas settings finais
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from values_stack.merge import MergePolicy, MergeTypeConflictError, deep_merge

from .defaults import default_settings
from .errors import (
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


# Settings não apagam chaves com null: um null explícito é um valor.
_SETTINGS_POLICY = MergePolicy(list_strategy="replace", null_deletes=False, strict_types=True)


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de settings e valida sua estrutura básica.

    Decisões arquiteturais:
        - O arquivo deve existir no momento do carregamento
        - Arquivos vazios são interpretados como dicionários vazios
        - Formatos não suportados geram erro explícito

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(
            f"Arquivo de settings não encontrado: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(
            f"Formato não suportado: {path.suffix}",
            details={"path": str(path), "suffix": path.suffix},
        )

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}",
            details={"path": str(path), "received": type(data).__name__},
        )

    return data


def load_settings(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve as settings efetivas do values-stack.

    Política de resolução:
        - Sem `defaults_path`, a base são os defaults embutidos
        - Com `defaults_path`, o arquivo é obrigatório e substitui os embutidos
        - O arquivo local é opcional e ignorado quando não existe
        - O local sempre tem prioridade sobre defaults

    Args:
        defaults_path: Caminho opcional para o arquivo de defaults.
        local_path: Caminho opcional para overrides locais.

    Returns:
        Settings finais resolvidas.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults informado não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    if defaults_path is not None:
        effective = _load_file(Path(defaults_path))
    else:
        effective = default_settings()

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            local = _load_file(local_file)
            try:
                effective = deep_merge(effective, local, _SETTINGS_POLICY)
            except MergeTypeConflictError as e:
                raise ConfigTypeConflictError(
                    str(e),
                    details={**e.details, "local_path": str(local_file)},
                ) from e

    return effective
