"""values-stack — Layer Store.

Componentes canônicos para camadas de values:
 - modelo de camada e escopos de precedência
 - registro ordenado (LayerStore) com seleção por environment/region
 - carregamento YAML/JSON e descoberta por convenção de layout
 - overrides no formato `--set`
"""

from .errors import (  # noqa: F401
    DuplicateLayerError,
    InvalidLayerRootError,
    LayerError,
    LayerFileNotFoundError,
    LayerParseError,
    SetOverrideSyntaxError,
    UnsupportedLayerFormatError,
)
from .loader import discover_layers, load_layer_file, read_mapping_file  # noqa: F401
from .model import Layer, LayerScope  # noqa: F401
from .set_parser import parse_set_overrides  # noqa: F401
from .store import LayerStore  # noqa: F401
