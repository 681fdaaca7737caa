# tests/merge/test_engine.py
"""
Testes do Merge Engine (deep-merge de camadas de values).

Os testes garantem que:
- dicts são mesclados recursivamente e inputs nunca são mutados
- `null` remove chaves quando `null_deletes` está ativo
- listas seguem a estratégia da política (replace, append, merge_by_key)
- conflitos de tipo são fatais sob `strict_types`
- provenance e overrides apontam a camada correta por folha
"""

from copy import deepcopy
from types import SimpleNamespace

import pytest

try:
    from values_stack.merge.engine import MergeResult, deep_merge, merge_layers
    from values_stack.merge.errors import MergeError, MergeTypeConflictError
    from values_stack.merge.policy import MergePolicy
except Exception as e:  # noqa: BLE001
    deep_merge = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/merge/engine.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_nested_dicts_are_merged_without_mutation():
    _require_imports()
    base = {"image": {"repository": "nginx", "tag": "1.0"}, "replicas": 1}
    override = {"image": {"tag": "2.0"}, "debug": True}
    base_copy, override_copy = deepcopy(base), deepcopy(override)

    merged = deep_merge(base, override)

    assert merged == {"image": {"repository": "nginx", "tag": "2.0"}, "replicas": 1, "debug": True}
    assert list(merged) == ["image", "replicas", "debug"]
    assert base == base_copy and override == override_copy

    merged["image"]["tag"] = "mutated"
    assert override["image"]["tag"] == "2.0"


def test_null_deletes_keys_and_is_stripped_from_new_subtrees():
    _require_imports()
    assert deep_merge({"a": 1, "b": {"c": 2}}, {"b": None}) == {"a": 1}
    assert deep_merge({"a": 1}, {"x": {"y": None, "z": 1}}) == {"a": 1, "x": {"z": 1}}
    assert deep_merge({"a": 1}, {"missing": None}) == {"a": 1}


def test_null_kept_when_policy_disables_deletion():
    _require_imports()
    policy = MergePolicy(null_deletes=False)
    assert deep_merge({"a": 1, "b": 2}, {"b": None}, policy) == {"a": 1, "b": None}


def test_lists_are_replaced_by_default():
    _require_imports()
    assert deep_merge({"args": ["a", "b"]}, {"args": ["c"]}) == {"args": ["c"]}


def test_lists_append():
    _require_imports()
    policy = MergePolicy(list_strategy="append")
    assert deep_merge({"args": ["a"]}, {"args": ["b", "c"]}, policy) == {"args": ["a", "b", "c"]}


def test_lists_merge_by_key():
    _require_imports()
    policy = MergePolicy(list_strategy="merge_by_key")
    base = {"ports": [{"name": "http", "port": 80, "protocol": "TCP"}]}
    override = {"ports": [{"name": "http", "port": 8080}, {"name": "https", "port": 443}]}

    merged = deep_merge(base, override, policy)

    assert merged["ports"] == [
        {"name": "http", "port": 8080, "protocol": "TCP"},
        {"name": "https", "port": 443},
    ]


def test_merge_by_key_falls_back_to_replace_for_unkeyed_items():
    _require_imports()
    policy = MergePolicy(list_strategy="merge_by_key", list_merge_key="id")
    assert deep_merge({"l": [{"id": 1}]}, {"l": ["plain"]}, policy) == {"l": ["plain"]}


def test_type_conflict_is_fatal_under_strict_types():
    _require_imports()
    with pytest.raises(MergeTypeConflictError) as exc:
        deep_merge({"image": {"tag": "1.0"}}, {"image": "nginx"}, layer="values-prod.yaml")

    err = exc.value
    assert err.error_type == "MERGE_TYPE_CONFLICT"
    assert err.decision_required is True
    assert err.details == {
        "path": "image",
        "base_type": "map",
        "override_type": "string",
        "layer": "values-prod.yaml",
    }


def test_conflict_path_quotes_dotted_keys():
    _require_imports()
    with pytest.raises(MergeTypeConflictError) as exc:
        deep_merge({"annotations": {"a.b/c": "x"}}, {"annotations": {"a.b/c": ["y"]}})
    assert exc.value.path == 'annotations["a.b/c"]'


def test_numeric_types_are_compatible_but_bool_is_not():
    _require_imports()
    assert deep_merge({"ratio": 1}, {"ratio": 1.5}) == {"ratio": 1.5}
    with pytest.raises(MergeTypeConflictError):
        deep_merge({"enabled": True}, {"enabled": 1})


def test_null_base_accepts_any_override():
    _require_imports()
    policy = MergePolicy(null_deletes=False)
    assert deep_merge({"a": None}, {"a": {"b": 1}}, policy) == {"a": {"b": 1}}


def test_non_strict_types_replace_silently():
    _require_imports()
    policy = MergePolicy(strict_types=False)
    assert deep_merge({"image": {"tag": "1.0"}}, {"image": "nginx"}, policy) == {"image": "nginx"}


def test_root_must_be_mappings():
    _require_imports()
    with pytest.raises(MergeTypeConflictError) as exc:
        deep_merge({"a": 1}, ["x"])
    assert exc.value.path == "<root>"


def _layer(name, values):
    return SimpleNamespace(name=name, values=values)


def test_merge_layers_tracks_provenance_and_overrides():
    _require_imports()
    result = merge_layers(
        [
            _layer("values.yaml", {"image": {"repository": "nginx", "tag": "1.0"}, "debug": True}),
            _layer("values-prod.yaml", {"image": {"tag": "2.0"}, "debug": None}),
            _layer("--set", {"image": {"tag": "2.1"}}),
        ]
    )

    assert isinstance(result, MergeResult)
    assert result.values == {"image": {"repository": "nginx", "tag": "2.1"}}
    assert result.layers == ["values.yaml", "values-prod.yaml", "--set"]
    assert result.provenance == {"image.repository": "values.yaml", "image.tag": "--set"}
    assert result.origin_of("image.tag") == "--set"
    assert [o.to_dict() for o in result.overrides] == [
        {"path": "image.tag", "layer": "values-prod.yaml", "previous_layer": "values.yaml", "action": "replace"},
        {"path": "debug", "layer": "values-prod.yaml", "previous_layer": "values.yaml", "action": "delete"},
        {"path": "image.tag", "layer": "--set", "previous_layer": "values-prod.yaml", "action": "replace"},
    ]


def test_merge_layers_replacing_subtree_reports_previous_owner():
    _require_imports()
    policy = MergePolicy(strict_types=False)
    result = merge_layers(
        [
            _layer("base", {"ingress": {"host": "a", "tls": True}}),
            _layer("prod", {"ingress": "disabled"}),
        ],
        policy,
    )

    assert result.values == {"ingress": "disabled"}
    assert result.provenance == {"ingress": "prod"}
    assert [(o.path, o.previous_layer) for o in result.overrides] == [("ingress", "base")]


def test_merge_layers_list_actions_follow_policy():
    _require_imports()
    policy = MergePolicy(list_strategy="append")
    result = merge_layers([_layer("a", {"args": ["x"]}), _layer("b", {"args": ["y"]})], policy)

    assert result.values == {"args": ["x", "y"]}
    assert result.provenance == {"args": "b"}
    assert result.overrides[0].action == "append"


def test_merge_layers_rejects_invalid_layers():
    _require_imports()
    with pytest.raises(MergeError) as exc:
        merge_layers([_layer("broken", ["not", "a", "dict"])])
    assert exc.value.details == {"layer": "broken", "received": "list"}

    with pytest.raises(MergeError):
        merge_layers([_layer("", {})])


def test_merge_layers_empty_input():
    _require_imports()
    result = merge_layers([])
    assert result.values == {}
    assert result.provenance == {}
    assert result.to_dict()["overrides"] == []
