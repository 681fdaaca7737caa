# tests/merge/test_paths_and_hashing.py
"""Testes do formato canônico de caminhos e do hash de values."""

import pytest

try:
    from values_stack.merge.hashing import compute_values_hash
    from values_stack.merge.paths import is_within, iter_leaves, join_index, join_key
except Exception as e:  # noqa: BLE001
    join_key = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/merge/{paths,hashing}.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_join_key_quotes_special_keys():
    _require_imports()
    assert join_key("", "image") == "image"
    assert join_key("image", "tag") == "image.tag"
    assert join_key("annotations", "prometheus.io/scrape") == 'annotations["prometheus.io/scrape"]'
    assert join_key("", "") == '[""]'
    assert join_index("ports", 1) == "ports[1]"


def test_iter_leaves_treats_lists_and_empty_maps_as_leaves():
    _require_imports()
    tree = {"a": {"b": 1, "c": {}}, "ports": [{"port": 80}], "x": None}
    assert list(iter_leaves(tree)) == [
        ("a.b", 1),
        ("a.c", {}),
        ("ports", [{"port": 80}]),
        ("x", None),
    ]


def test_is_within():
    _require_imports()
    assert is_within("image", "image")
    assert is_within("image.tag", "image")
    assert is_within("ports[0]", "ports")
    assert not is_within("imagePullPolicy", "image")


def test_values_hash_is_stable_and_order_independent():
    _require_imports()
    h1 = compute_values_hash({"a": 1, "b": {"c": [1, 2]}})
    h2 = compute_values_hash({"b": {"c": [1, 2]}, "a": 1})
    assert h1 == h2
    assert len(h1) == 64
    assert compute_values_hash({"a": 2}) != compute_values_hash({"a": 1})


def test_values_hash_requires_dict():
    _require_imports()
    with pytest.raises(TypeError):
        compute_values_hash(["a"])
