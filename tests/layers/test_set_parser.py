# tests/layers/test_set_parser.py
"""
Testes do parser de overrides `--set` / `--set-string`.

Invariantes:
    - chaves pontuadas viram árvores aninhadas
    - escapes (`\\.` e `\\,`) fazem parte da chave/valor
    - apenas bool, null e inteiros simples são tipados, exceto com `as_string=True`
    - sintaxe malformada gera SetOverrideSyntaxError (nunca ValueError genérico)
"""

import pytest

try:
    from values_stack.layers.errors import SetOverrideSyntaxError
    from values_stack.layers.set_parser import parse_set_overrides, split_assignment
except Exception as e:  # noqa: BLE001
    parse_set_overrides = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/layers/set_parser.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_dotted_keys_build_nested_tree():
    _require_imports()
    assert parse_set_overrides(["image.tag=1.4.2", "image.pullPolicy=Always"]) == {
        "image": {"tag": "1.4.2", "pullPolicy": "Always"}
    }


def test_comma_separates_assignments():
    _require_imports()
    assert parse_set_overrides(["a.b=1,a.c=2"]) == {"a": {"b": 1, "c": 2}}


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("v=1", 1),
        ("v=1.5", "1.5"),
        ("v=-3", -3),
        ("v=0", 0),
        ("v=true", True),
        ("v=null", None),
        ("v=", ""),
        ("v=hello world", "hello world"),
        ("v=a: b", "a: b"),
    ],
)
def test_values_are_typed(expression, expected):
    _require_imports()
    assert parse_set_overrides([expression]) == {"v": expected}


def test_set_string_keeps_text():
    _require_imports()
    assert parse_set_overrides(["a=1,b=true,c=null"], as_string=True) == {
        "a": "1",
        "b": "true",
        "c": "null",
    }


def test_escaped_dot_and_comma():
    _require_imports()
    result = parse_set_overrides([r"annotations.kubernetes\.io/ingress=nginx", r"hosts=a\,b"])
    assert result == {"annotations": {"kubernetes.io/ingress": "nginx"}, "hosts": "a,b"}


def test_list_index_pads_with_none():
    _require_imports()
    assert parse_set_overrides(["servers[1].port=8080"]) == {"servers": [None, {"port": 8080}]}
    assert parse_set_overrides(["args[0]=a", "args[2]=c"]) == {"args": ["a", None, "c"]}


def test_list_literals():
    _require_imports()
    assert parse_set_overrides(["tags={a,b},n=1"]) == {"tags": ["a", "b"], "n": 1}
    assert parse_set_overrides(["ports={80,443}"]) == {"ports": [80, 443]}
    assert parse_set_overrides(["empty={}"]) == {"empty": []}


def test_later_assignment_wins_and_blanks_are_ignored():
    _require_imports()
    assert parse_set_overrides(["a=1", "", "a=2,"]) == {"a": 2}


def test_split_assignment_uses_first_unescaped_equals():
    _require_imports()
    assert split_assignment("a=b=c") == ("a", "b=c")
    assert split_assignment(r"a\=b=c") == (r"a\=b", "c")


@pytest.mark.parametrize("expression", ["novalue", "=1", "list[x]=1", "[0]=1", "a[1=2"])
def test_malformed_expressions_raise(expression):
    _require_imports()
    with pytest.raises(SetOverrideSyntaxError) as exc:
        parse_set_overrides([expression])
    assert exc.value.details["assignment"] == expression
    assert exc.value.hint


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("v=no", "no"),
        ("v=off", "off"),
        ("v=yes", "yes"),
        ("v=on", "on"),
        ("v=010", "010"),
        ("v=12:30", "12:30"),
        ("v=True", "True"),
        ("v=~", "~"),
        ("v=1e3", "1e3"),
        ("v=99999999999999999999", "99999999999999999999"),
    ],
)
def test_yaml_only_scalars_stay_strings(expression, expected):
    _require_imports()
    assert parse_set_overrides([expression]) == {"v": expected}


def test_mixed_assignment_keeps_ambiguous_scalars_as_text():
    _require_imports()
    assert parse_set_overrides(["country=no,flag=on,port=010,time=12:30"]) == {
        "country": "no",
        "flag": "on",
        "port": "010",
        "time": "12:30",
    }


def test_list_index_above_limit_raises():
    _require_imports()
    assert parse_set_overrides(["a[65536]=1"])["a"][65536] == 1
    with pytest.raises(SetOverrideSyntaxError) as exc:
        parse_set_overrides(["a[100000000]=1"])
    assert exc.value.details["index"] == 100000000
    assert exc.value.details["max_index"] == 65536
