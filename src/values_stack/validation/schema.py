"""
Validator canônico — subconjunto de JSON Schema (draft-07) para values.

Alinhado ao formato `values.schema.json` usado por charts Helm.

Cobre as keywords usadas na prática por schemas de values:

    type, enum, const, required, properties, additionalProperties,
    patternProperties, items, minItems, maxItems, uniqueItems,
    minLength, maxLength, pattern, minimum, maximum, exclusiveMinimum,
    exclusiveMaximum, multipleOf, allOf, anyOf, oneOf, not, $ref (local)

Decisões arquiteturais:
    - Issues são coletadas, nunca levantadas durante a validação
    - A ordem das issues segue a ordem do documento de values
    - Falha de `type` interrompe as demais keywords daquele nó
    - Ciclos de `$ref` que não descem na estrutura do value (ex.: `{"$ref": "#"}`)
      são rejeitados por `check_schema`
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from values_stack.merge.paths import join_index, join_key

from .errors import SchemaDefinitionError, SchemaFileError
from .report import ValidationIssue, ValidationReport


ROOT_PATH = "<root>"

_ALLOWED_TYPES = {"object", "array", "string", "integer", "number", "boolean", "null"}
_SCHEMA_MAP_KEYWORDS = ("properties", "patternProperties", "definitions", "$defs")
_SCHEMA_LIST_KEYWORDS = ("allOf", "anyOf", "oneOf")
_NON_NEGATIVE_INT_KEYWORDS = ("minLength", "maxLength", "minItems", "maxItems")
_NUMBER_KEYWORDS = ("minimum", "maximum", "exclusiveMinimum", "exclusiveMaximum", "multipleOf")


def _expect(cond: bool, msg: str) -> None:
    if not cond:
        raise SchemaDefinitionError(msg)


def _is_schema(x: Any) -> bool:
    return isinstance(x, (dict, bool))


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def _type_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_type(value: Any, expected: str) -> bool:
    actual = _type_of(value)
    if expected == "number":
        return actual in ("integer", "number")
    if expected == "integer":
        return actual == "integer" or (actual == "number" and float(value).is_integer())
    return actual == expected


def _json_equal(a: Any, b: Any) -> bool:
    """Igualdade JSON: `true` não é igual a `1`."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_json_equal(a[k], b[k]) for k in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_json_equal(x, y) for x, y in zip(a, b))
    return a == b


def _resolve_ref(root: Dict[str, Any], ref: str) -> Any:
    _expect(isinstance(ref, str) and ref.startswith("#"), f"only local $ref are supported: {ref!r}")
    node: Any = root
    for raw in ref[1:].split("/"):
        if not raw:
            continue
        part = raw.replace("~1", "/").replace("~0", "~")
        _expect(isinstance(node, dict) and part in node, f"unresolvable $ref: {ref}")
        node = node[part]
    _expect(_is_schema(node), f"$ref does not point to a schema: {ref}")
    return node


def _same_value_children(schema: Dict[str, Any], root: Dict[str, Any]) -> List[Any]:
    # subschemas aplicados ao mesmo value (sem descer na estrutura)
    if "$ref" in schema:
        return [(schema["$ref"], _resolve_ref(root, schema["$ref"]))]
    children = [(None, sub) for kw in _SCHEMA_LIST_KEYWORDS for sub in schema.get(kw) or []]
    if "not" in schema:
        children.append((None, schema["not"]))
    return children


def _check_ref_cycle(schema: Any, root: Dict[str, Any], stack: List[int], refs: List[str]) -> None:
    if not isinstance(schema, dict):
        return
    if id(schema) in stack:
        raise SchemaDefinitionError(
            f"$ref cycle never reaches a keyword that consumes the value: {' -> '.join(refs)}",
            details={"refs": list(refs)},
        )
    stack.append(id(schema))
    try:
        for ref, sub in _same_value_children(schema, root):
            _check_ref_cycle(sub, root, stack, refs + [ref] if ref is not None else refs)
    finally:
        stack.pop()


def check_schema(schema: Any, *, _root: Optional[Dict[str, Any]] = None, _where: str = "#") -> None:
    """Valida estruturalmente o próprio schema.

    Raises:
        SchemaDefinitionError: na primeira inconsistência encontrada.
    """
    if isinstance(schema, bool):
        return
    _expect(isinstance(schema, dict), f"{_where}: schema must be an object or boolean")
    root = schema if _root is None else _root

    t = schema.get("type")
    if t is not None:
        types = t if isinstance(t, list) else [t]
        _expect(bool(types), f"{_where}.type must not be empty")
        for item in types:
            _expect(item in _ALLOWED_TYPES, f"{_where}.type must be one of {sorted(_ALLOWED_TYPES)}")

    if "required" in schema:
        req = schema["required"]
        _expect(isinstance(req, list) and all(isinstance(r, str) for r in req), f"{_where}.required must be a list of strings")

    if "enum" in schema:
        _expect(isinstance(schema["enum"], list), f"{_where}.enum must be a list")

    for kw in _NON_NEGATIVE_INT_KEYWORDS:
        if kw in schema:
            v = schema[kw]
            _expect(isinstance(v, int) and not isinstance(v, bool) and v >= 0, f"{_where}.{kw} must be a non-negative integer")

    for kw in _NUMBER_KEYWORDS:
        if kw in schema:
            _expect(_is_number(schema[kw]), f"{_where}.{kw} must be a number")
    if "multipleOf" in schema:
        _expect(schema["multipleOf"] > 0, f"{_where}.multipleOf must be greater than 0")

    if "uniqueItems" in schema:
        _expect(isinstance(schema["uniqueItems"], bool), f"{_where}.uniqueItems must be boolean")

    if "pattern" in schema:
        _expect(isinstance(schema["pattern"], str), f"{_where}.pattern must be a string")
        try:
            re.compile(schema["pattern"])
        except re.error as e:
            raise SchemaDefinitionError(f"{_where}.pattern is not a valid regex: {e}") from e

    for kw in _SCHEMA_MAP_KEYWORDS:
        if kw in schema:
            mapping = schema[kw]
            _expect(isinstance(mapping, dict), f"{_where}.{kw} must be an object")
            for name, sub in mapping.items():
                if kw == "patternProperties":
                    try:
                        re.compile(name)
                    except re.error as e:
                        raise SchemaDefinitionError(f"{_where}.patternProperties key is not a valid regex: {name}") from e
                check_schema(sub, _root=root, _where=f"{_where}.{kw}.{name}")

    if "additionalProperties" in schema:
        check_schema(schema["additionalProperties"], _root=root, _where=f"{_where}.additionalProperties")

    if "items" in schema:
        items = schema["items"]
        if isinstance(items, list):
            for i, sub in enumerate(items):
                check_schema(sub, _root=root, _where=f"{_where}.items[{i}]")
        else:
            check_schema(items, _root=root, _where=f"{_where}.items")

    for kw in _SCHEMA_LIST_KEYWORDS:
        if kw in schema:
            subs = schema[kw]
            _expect(isinstance(subs, list) and subs, f"{_where}.{kw} must be a non-empty list")
            for i, sub in enumerate(subs):
                check_schema(sub, _root=root, _where=f"{_where}.{kw}[{i}]")

    if "not" in schema:
        check_schema(schema["not"], _root=root, _where=f"{_where}.not")

    if "$ref" in schema:
        _resolve_ref(root, schema["$ref"])
        _check_ref_cycle(schema, root, [], [])


class _Validator:
    def __init__(self, root: Any) -> None:
        self.root = root

    def _passes(self, value: Any, schema: Any, path: str) -> bool:
        probe: List[ValidationIssue] = []
        self.validate(value, schema, path, probe)
        return not probe

    def validate(self, value: Any, schema: Any, path: str, issues: List[ValidationIssue]) -> None:
        where = path or ROOT_PATH

        if schema is True:
            return
        if schema is False:
            issues.append(ValidationIssue(where, "false", "no value is allowed here"))
            return

        if "$ref" in schema:
            self.validate(value, _resolve_ref(self.root, schema["$ref"]), path, issues)
            return

        t = schema.get("type")
        if t is not None:
            types = t if isinstance(t, list) else [t]
            if not any(_matches_type(value, x) for x in types):
                issues.append(
                    ValidationIssue(where, "type", f"expected {' or '.join(types)}, got {_type_of(value)}")
                )
                return

        if "enum" in schema and not any(_json_equal(value, e) for e in schema["enum"]):
            issues.append(ValidationIssue(where, "enum", f"value {value!r} is not one of {schema['enum']!r}"))

        if "const" in schema and not _json_equal(value, schema["const"]):
            issues.append(ValidationIssue(where, "const", f"value must be {schema['const']!r}"))

        if isinstance(value, str):
            self._string(value, schema, where, issues)
        elif _is_number(value):
            self._number(value, schema, where, issues)
        elif isinstance(value, dict):
            self._object(value, schema, path, issues)
        elif isinstance(value, list):
            self._array(value, schema, path, issues)

        for sub in schema.get("allOf", []) or []:
            self.validate(value, sub, path, issues)

        if "anyOf" in schema and not any(self._passes(value, s, path) for s in schema["anyOf"]):
            issues.append(ValidationIssue(where, "anyOf", "value does not match any of the allowed schemas"))

        if "oneOf" in schema:
            matches = sum(1 for s in schema["oneOf"] if self._passes(value, s, path))
            if matches != 1:
                issues.append(
                    ValidationIssue(where, "oneOf", f"value must match exactly one schema, matched {matches}")
                )

        if "not" in schema and self._passes(value, schema["not"], path):
            issues.append(ValidationIssue(where, "not", "value must not match the negated schema"))

    def _string(self, value: str, schema: Dict[str, Any], where: str, issues: List[ValidationIssue]) -> None:
        if "minLength" in schema and len(value) < schema["minLength"]:
            issues.append(ValidationIssue(where, "minLength", f"string shorter than {schema['minLength']}"))
        if "maxLength" in schema and len(value) > schema["maxLength"]:
            issues.append(ValidationIssue(where, "maxLength", f"string longer than {schema['maxLength']}"))
        if "pattern" in schema and re.search(schema["pattern"], value) is None:
            issues.append(ValidationIssue(where, "pattern", f"string does not match pattern {schema['pattern']!r}"))

    def _number(self, value: Any, schema: Dict[str, Any], where: str, issues: List[ValidationIssue]) -> None:
        if "minimum" in schema and value < schema["minimum"]:
            issues.append(ValidationIssue(where, "minimum", f"{value} is less than minimum {schema['minimum']}"))
        if "maximum" in schema and value > schema["maximum"]:
            issues.append(ValidationIssue(where, "maximum", f"{value} is greater than maximum {schema['maximum']}"))
        if "exclusiveMinimum" in schema and value <= schema["exclusiveMinimum"]:
            issues.append(
                ValidationIssue(where, "exclusiveMinimum", f"{value} must be greater than {schema['exclusiveMinimum']}")
            )
        if "exclusiveMaximum" in schema and value >= schema["exclusiveMaximum"]:
            issues.append(
                ValidationIssue(where, "exclusiveMaximum", f"{value} must be less than {schema['exclusiveMaximum']}")
            )
        if "multipleOf" in schema:
            quotient = value / schema["multipleOf"]
            if abs(quotient - round(quotient)) > 1e-9:
                issues.append(ValidationIssue(where, "multipleOf", f"{value} is not a multiple of {schema['multipleOf']}"))

    def _object(self, value: Dict[str, Any], schema: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> None:
        where = path or ROOT_PATH
        for name in schema.get("required", []) or []:
            if name not in value:
                issues.append(ValidationIssue(where, "required", f"missing required property {name!r}"))

        properties = schema.get("properties", {}) or {}
        patterns = schema.get("patternProperties", {}) or {}
        additional = schema.get("additionalProperties", True)

        for key, item in value.items():
            item_path = join_key(path, key)
            matched = False
            if key in properties:
                matched = True
                self.validate(item, properties[key], item_path, issues)
            for pattern, sub in patterns.items():
                if re.search(pattern, str(key)):
                    matched = True
                    self.validate(item, sub, item_path, issues)
            if matched:
                continue
            if additional is False:
                issues.append(ValidationIssue(item_path, "additionalProperties", f"property {key!r} is not allowed"))
            elif isinstance(additional, dict):
                self.validate(item, additional, item_path, issues)

    def _array(self, value: List[Any], schema: Dict[str, Any], path: str, issues: List[ValidationIssue]) -> None:
        where = path or ROOT_PATH
        if "minItems" in schema and len(value) < schema["minItems"]:
            issues.append(ValidationIssue(where, "minItems", f"array has fewer than {schema['minItems']} items"))
        if "maxItems" in schema and len(value) > schema["maxItems"]:
            issues.append(ValidationIssue(where, "maxItems", f"array has more than {schema['maxItems']} items"))
        if schema.get("uniqueItems"):
            for i, item in enumerate(value):
                if any(_json_equal(item, other) for other in value[:i]):
                    issues.append(ValidationIssue(join_index(path, i), "uniqueItems", "duplicate array item"))

        items = schema.get("items")
        if isinstance(items, list):
            for i, (item, sub) in enumerate(zip(value, items)):
                self.validate(item, sub, join_index(path, i), issues)
        elif items is not None:
            for i, item in enumerate(value):
                self.validate(item, items, join_index(path, i), issues)


def validate_values(values: Any, schema: Any) -> ValidationReport:
    """Valida values contra o schema e retorna todas as issues encontradas.

    Raises:
        SchemaDefinitionError: se o próprio schema for inválido.
    """
    check_schema(schema)
    issues: List[ValidationIssue] = []
    _Validator(schema).validate(values, schema, "", issues)
    return ValidationReport(issues=issues)


def load_schema(path: str) -> Dict[str, Any]:
    """Carrega um schema JSON ou YAML e valida sua estrutura."""
    p = Path(path)
    if not p.exists():
        raise SchemaFileError(f"schema file not found: {p}", details={"path": str(p)})

    suffix = p.suffix.lower()
    raw = p.read_text(encoding="utf-8")
    try:
        if suffix == ".json":
            data = json.loads(raw)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw)
        else:
            raise SchemaFileError(f"unsupported schema format: {suffix}", details={"path": str(p)})
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaFileError(f"failed to parse schema: {e}", details={"path": str(p)}) from e

    if not isinstance(data, dict):
        raise SchemaFileError("schema root must be an object", details={"path": str(p)})

    check_schema(data)
    return data
