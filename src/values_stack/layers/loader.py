"""Loader canônico de camadas (YAML/JSON) e descoberta por convenção de layout.

Notas:
- YAML é preferencial, JSON é alternativo.
- O formato é inferido pela extensão do arquivo.
- O nome de uma camada descoberta é o caminho relativo do arquivo na raiz
  (ex.: `environments/prod/values.yaml`), o que o torna único e legível.

Convenção de layout (a partir de `root`):

    values.yaml                                   -> global (obrigatório)
    values-<env>.yaml                             -> environment
    environments/<env>/values.yaml                -> environment
    regions/<region>/values.yaml                  -> region (qualquer environment)
    values-<env>-<region>.yaml                    -> region
    environments/<env>/regions/<region>/values.yaml -> region

Todas as variantes aceitam `.yml`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import (
    InvalidLayerRootError,
    LayerFileNotFoundError,
    LayerParseError,
    UnsupportedLayerFormatError,
)
from .model import Layer, LayerScope


_YAML_SUFFIXES = {".yaml", ".yml"}


def read_mapping_file(path: Path) -> Dict[str, Any]:
    """Lê um arquivo YAML/JSON cujo root deve ser um mapeamento.

    Arquivo vazio (YAML `None`) é interpretado como `{}`.

    Raises:
        LayerFileNotFoundError: se o arquivo não existir.
        UnsupportedLayerFormatError: se a extensão não for suportada.
        LayerParseError: se o parsing falhar.
        InvalidLayerRootError: se o root não for um mapeamento.
    """
    if not path.exists():
        raise LayerFileNotFoundError(
            f"layer file not found: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    if suffix not in _YAML_SUFFIXES and suffix != ".json":
        raise UnsupportedLayerFormatError(
            f"unsupported layer format: {suffix}",
            details={"path": str(path), "suffix": suffix},
        )

    raw = path.read_text(encoding="utf-8")
    try:
        if suffix in _YAML_SUFFIXES:
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw) if raw.strip() else None
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise LayerParseError(
            str(e) or "failed to parse layer",
            details={"path": str(path)},
        ) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise InvalidLayerRootError(
            f"layer root must be a mapping/dict, got {type(data).__name__}",
            details={"path": str(path), "received": type(data).__name__},
        )

    return data


def load_layer_file(
    path: str,
    *,
    name: Optional[str] = None,
    scope: LayerScope = LayerScope.OVERRIDE,
    environment: Optional[str] = None,
    region: Optional[str] = None,
) -> Layer:
    """Carrega um arquivo como camada.

    Args:
        path: caminho do arquivo YAML/JSON.
        name: nome da camada; o próprio caminho quando omitido.
        scope: escopo de precedência da camada.
        environment: environment ao qual a camada se restringe.
        region: region à qual a camada se restringe.
    """
    p = Path(path)
    data = read_mapping_file(p)
    return Layer(
        name=name or str(p),
        scope=LayerScope(scope),
        values=data,
        source=str(p),
        environment=environment,
        region=region,
    )


def _first_existing(root: Path, stems: List[str]) -> List[Path]:
    found: List[Path] = []
    for stem in stems:
        for suffix in (".yaml", ".yml"):
            candidate = root / f"{stem}{suffix}"
            if candidate.is_file():
                found.append(candidate)
                break
    return found


def _layer_from(root: Path, path: Path, **kwargs: Any) -> Layer:
    return load_layer_file(str(path), name=path.relative_to(root).as_posix(), **kwargs)


def discover_layers(
    root: str,
    *,
    environment: Optional[str] = None,
    region: Optional[str] = None,
) -> List[Layer]:
    """Descobre as camadas de um diretório seguindo a convenção de layout.

    Retorna as camadas em ordem de declaração (global, environment, region).
    Arquivos de environment/region ausentes são simplesmente omitidos.

    Raises:
        LayerFileNotFoundError: se `root` não existir ou não houver `values.yaml`.
    """
    base = Path(root)
    if not base.is_dir():
        raise LayerFileNotFoundError(
            f"values root not found: {base}",
            details={"path": str(base)},
        )

    global_files = _first_existing(base, ["values"])
    if not global_files:
        raise LayerFileNotFoundError(
            f"global values file not found in {base}",
            details={"path": str(base / "values.yaml"), "scope": LayerScope.GLOBAL.value},
        )

    layers: List[Layer] = [_layer_from(base, global_files[0], scope=LayerScope.GLOBAL)]

    if environment:
        for path in _first_existing(base, [f"values-{environment}", f"environments/{environment}/values"]):
            layers.append(_layer_from(base, path, scope=LayerScope.ENVIRONMENT, environment=environment))

    if region:
        for path in _first_existing(base, [f"regions/{region}/values"]):
            layers.append(_layer_from(base, path, scope=LayerScope.REGION, region=region))
        if environment:
            stems = [
                f"values-{environment}-{region}",
                f"environments/{environment}/regions/{region}/values",
            ]
            for path in _first_existing(base, stems):
                layers.append(
                    _layer_from(
                        base,
                        path,
                        scope=LayerScope.REGION,
                        environment=environment,
                        region=region,
                    )
                )

    return layers
