# tests/merge/test_policy.py
"""Testes da MergePolicy e do parsing da seção `merge` das settings."""

import pytest

try:
    from values_stack.core.config.defaults import default_settings
    from values_stack.merge.errors import MergePolicyError
    from values_stack.merge.policy import MergePolicy
except Exception as e:  # noqa: BLE001
    MergePolicy = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/merge/policy.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_defaults_match_builtin_settings():
    _require_imports()
    policy = MergePolicy.from_settings(default_settings())
    assert policy == MergePolicy()
    assert policy.list_strategy == "replace"
    assert policy.null_deletes is True
    assert policy.strict_types is True


def test_from_settings_reads_merge_section():
    _require_imports()
    policy = MergePolicy.from_settings(
        {"merge": {"list_strategy": "merge_by_key", "list_merge_key": "id", "strict_types": False}}
    )
    assert policy.list_strategy == "merge_by_key"
    assert policy.list_merge_key == "id"
    assert policy.strict_types is False


def test_missing_settings_use_defaults():
    _require_imports()
    assert MergePolicy.from_settings(None) == MergePolicy()
    assert MergePolicy.from_settings({"merge": None}) == MergePolicy()


def test_unknown_list_strategy_is_rejected():
    _require_imports()
    with pytest.raises(MergePolicyError) as exc:
        MergePolicy(list_strategy="zip")
    assert exc.value.error_type == "MERGE_POLICY_INVALID"
    assert exc.value.details["allowed"] == ["append", "merge_by_key", "replace"]


def test_invalid_merge_key_and_section_type():
    _require_imports()
    with pytest.raises(MergePolicyError):
        MergePolicy(list_merge_key=" ")
    with pytest.raises(MergePolicyError):
        MergePolicy.from_settings({"merge": ["replace"]})
