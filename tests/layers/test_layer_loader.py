# tests/layers/test_layer_loader.py
"""
Testes do carregamento de arquivos de camada e da descoberta por convenção.

Os testes garantem que:
- YAML e JSON são aceitos; arquivo vazio vale `{}`
- formatos, raízes e conteúdos inválidos geram erros tipados
- a descoberta segue o layout (global, env, region, env+region)
- arquivos opcionais ausentes são omitidos sem erro
"""

from pathlib import Path

import pytest

try:
    from values_stack.layers.errors import (
        InvalidLayerRootError,
        LayerError,
        LayerFileNotFoundError,
        LayerParseError,
        UnsupportedLayerFormatError,
    )
    from values_stack.layers.loader import discover_layers, load_layer_file, read_mapping_file
    from values_stack.layers.model import LayerScope
except Exception as e:  # noqa: BLE001
    discover_layers = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/layers/loader.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_load_yaml_layer(write_file):
    _require_imports()
    path = write_file("extra.yaml", "image:\n  tag: \"3.1\"\n")
    layer = load_layer_file(str(path), name="extra", scope="override")

    assert layer.name == "extra"
    assert layer.scope is LayerScope.OVERRIDE
    assert layer.values == {"image": {"tag": "3.1"}}
    assert layer.source == str(path)


def test_load_json_layer_uses_path_as_default_name(write_file):
    _require_imports()
    path = write_file("extra.json", '{"replicas": 2}')
    layer = load_layer_file(str(path))
    assert layer.name == str(path)
    assert layer.values == {"replicas": 2}


def test_empty_file_is_empty_mapping(write_file):
    _require_imports()
    assert read_mapping_file(write_file("empty.yaml", "")) == {}
    assert read_mapping_file(write_file("empty.json", "  \n")) == {}


@pytest.mark.parametrize(
    "relative, content, error_name",
    [
        ("values.toml", "a = 1", "UnsupportedLayerFormatError"),
        ("values.yaml", "a: [1, 2", "LayerParseError"),
        ("values.json", "{not json}", "LayerParseError"),
        ("values.yaml", "- a\n- b\n", "InvalidLayerRootError"),
    ],
)
def test_invalid_files_raise_typed_errors(write_file, relative, content, error_name):
    _require_imports()
    error = {
        "UnsupportedLayerFormatError": UnsupportedLayerFormatError,
        "LayerParseError": LayerParseError,
        "InvalidLayerRootError": InvalidLayerRootError,
    }[error_name]
    path = write_file(relative, content)

    with pytest.raises(error) as exc:
        read_mapping_file(path)

    assert isinstance(exc.value, LayerError)
    assert exc.value.details["path"] == str(path)


def test_missing_file_raises_not_found(tmp_path: Path):
    _require_imports()
    with pytest.raises(LayerFileNotFoundError) as exc:
        load_layer_file(str(tmp_path / "nope.yaml"))
    assert exc.value.error_type == "LAYER_NOT_FOUND"


def test_discover_global_only(values_root):
    _require_imports()
    layers = discover_layers(str(values_root))
    assert [(l.name, l.scope) for l in layers] == [("values.yaml", LayerScope.GLOBAL)]


def test_discover_environment_and_region(values_root):
    _require_imports()
    layers = discover_layers(str(values_root), environment="prod", region="eu")

    assert [l.name for l in layers] == [
        "values.yaml",
        "values-prod.yaml",
        "regions/eu/values.yaml",
        "values-prod-eu.yaml",
    ]
    assert [l.scope for l in layers] == [
        LayerScope.GLOBAL,
        LayerScope.ENVIRONMENT,
        LayerScope.REGION,
        LayerScope.REGION,
    ]
    assert layers[1].environment == "prod"
    assert layers[2].environment is None and layers[2].region == "eu"
    assert (layers[3].environment, layers[3].region) == ("prod", "eu")


def test_discover_supports_nested_environment_directories(write_file, tmp_path: Path):
    _require_imports()
    write_file("values.yml", "a: 1\n")
    write_file("environments/staging/values.yaml", "a: 2\n")
    write_file("environments/staging/regions/us/values.yaml", "a: 3\n")

    layers = discover_layers(str(tmp_path), environment="staging", region="us")

    assert [l.name for l in layers] == [
        "values.yml",
        "environments/staging/values.yaml",
        "environments/staging/regions/us/values.yaml",
    ]


def test_discover_skips_missing_optional_layers(values_root):
    _require_imports()
    layers = discover_layers(str(values_root), environment="dev", region="us")
    assert [l.name for l in layers] == ["values.yaml"]


def test_discover_requires_root_and_global_file(tmp_path: Path):
    _require_imports()
    with pytest.raises(LayerFileNotFoundError):
        discover_layers(str(tmp_path / "missing"))
    with pytest.raises(LayerFileNotFoundError) as exc:
        discover_layers(str(tmp_path))
    assert exc.value.details["scope"] == "global"
