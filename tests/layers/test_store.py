# tests/layers/test_store.py
"""
Testes do modelo de camadas e do LayerStore.

Invariantes:
    - nomes de camada são únicos dentro do store
    - `ordered` respeita precedência de escopo e, no empate, a ordem de declaração
    - camadas restritas a environment/region só participam do alvo correspondente
"""

import pytest

try:
    from values_stack.layers.errors import DuplicateLayerError
    from values_stack.layers.model import Layer, LayerScope
    from values_stack.layers.store import LayerStore
except Exception as e:  # noqa: BLE001
    LayerStore = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/layers/{model,store}.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_scope_precedence_is_global_env_region_override():
    _require_imports()
    assert [s.precedence for s in LayerScope] == [0, 1, 2, 3]
    assert LayerScope("region") is LayerScope.REGION


def test_layer_coerces_scope_and_validates_values():
    _require_imports()
    layer = Layer(name="values.yaml", scope="global", values={"a": 1})
    assert layer.scope is LayerScope.GLOBAL
    assert layer.source == "<inline>"

    with pytest.raises(TypeError):
        Layer(name="bad", scope="global", values=["not", "a", "dict"])
    with pytest.raises(ValueError):
        Layer(name="  ", scope="global")
    with pytest.raises(ValueError):
        Layer(name="x", scope="galaxy")


def test_duplicate_layer_name_is_rejected(make_layer):
    _require_imports()
    store = LayerStore()
    store.add(make_layer("values.yaml", {}))
    with pytest.raises(DuplicateLayerError) as exc:
        store.add(make_layer("values.yaml", {"a": 1}))
    assert exc.value.details["layer"] == "values.yaml"
    assert exc.value.hint


def test_ordered_sorts_by_scope_then_declaration(make_layer):
    _require_imports()
    store = LayerStore()
    store.extend(
        [
            make_layer("cli", {}, scope="override"),
            make_layer("prod", {}, scope="environment", environment="prod"),
            make_layer("base", {}, scope="global"),
            make_layer("shared", {}, scope="global"),
        ]
    )

    assert [l.name for l in store.ordered("prod")] == ["base", "shared", "prod", "cli"]
    assert len(store) == 4
    assert "prod" in store
    assert store.get("cli").scope is LayerScope.OVERRIDE


def test_ordered_filters_by_target(make_layer):
    _require_imports()
    store = LayerStore()
    store.extend(
        [
            make_layer("base", {}),
            make_layer("prod", {}, scope="environment", environment="prod"),
            make_layer("dev", {}, scope="environment", environment="dev"),
            make_layer("eu", {}, scope="region", region="eu"),
            make_layer("prod-eu", {}, scope="region", environment="prod", region="eu"),
            make_layer("any-region", {}, scope="region"),
        ]
    )

    assert [l.name for l in store.ordered()] == ["base"]
    assert [l.name for l in store.ordered("dev")] == ["base", "dev"]
    assert [l.name for l in store.ordered("prod", "eu")] == ["base", "prod", "eu", "prod-eu", "any-region"]
    assert [l.name for l in store.ordered("dev", "eu")] == ["base", "dev", "eu", "any-region"]


def test_describe_is_serializable(make_layer):
    _require_imports()
    layer = make_layer("eu", {"a": 1}, scope="region", region="eu", source="regions/eu/values.yaml")
    assert layer.describe() == {
        "name": "eu",
        "scope": "region",
        "source": "regions/eu/values.yaml",
        "environment": None,
        "region": "eu",
    }
