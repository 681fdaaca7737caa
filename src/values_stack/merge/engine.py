"""
Merge Engine canônico do values-stack.

Este módulo implementa a política oficial de deep-merge utilizada para
resolver os values finais a partir de camadas ordenadas por precedência
(global → environment → region → override).

Política de merge (v1):
    - dict + dict        → merge recursivo por chave
    - `null` no override → remove a chave (quando `null_deletes`)
    - list + list        → conforme `list_strategy` (replace, append, merge_by_key)
    - escalar            → sobrescrita direta
    - conflito de tipos  → erro estrutural explícito (quando `strict_types`)

Princípios fundamentais:
    - O merge é determinístico e puramente funcional
    - Nenhum input é mutado durante o processo
    - Toda folha final é atribuída à camada que a definiu por último (provenance)

Invariantes:
    - A mesma sequência de camadas sempre produz o mesmo resultado
    - Chaves não sobrescritas são preservadas
    - A ordem das chaves segue a primeira aparição
    - Conflitos estruturais interrompem o merge sem resultado parcial

Limites explícitos:
    - Não carrega arquivos
    - Não avalia expressões de template
    - Não valida o resultado contra schema
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import MergeError, MergeTypeConflictError
from .paths import is_within, iter_leaves, join_index, join_key
from .policy import LIST_APPEND, LIST_MERGE_BY_KEY, MergePolicy


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, dict):
        return "map"
    if isinstance(value, list):
        return "list"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _compatible(base_value: Any, override_value: Any) -> bool:
    # `null` na base representa "sem valor": qualquer override é aceito
    if base_value is None or override_value is None:
        return True
    return _type_name(base_value) == _type_name(override_value)


def _strip_nulls(value: Any, policy: MergePolicy) -> Any:
    """Remove chaves `null` de um subtree novo (não há o que apagar na base)."""
    if not policy.null_deletes or not isinstance(value, dict):
        return value
    return {k: _strip_nulls(v, policy) for k, v in value.items() if v is not None}


def _merge_lists(
    base: List[Any],
    override: List[Any],
    policy: MergePolicy,
    path: str,
    layer: Optional[str],
) -> List[Any]:
    if policy.list_strategy == LIST_APPEND:
        return base + deepcopy(override)

    if policy.list_strategy == LIST_MERGE_BY_KEY:
        key = policy.list_merge_key
        keyed = all(isinstance(item, dict) and key in item for item in base + override)
        if keyed:
            result = [deepcopy(item) for item in base]
            index = {item[key]: i for i, item in enumerate(result)}
            for item in override:
                pos = index.get(item[key])
                if pos is None:
                    index[item[key]] = len(result)
                    result.append(_strip_nulls(deepcopy(item), policy))
                else:
                    _merge_into(result[pos], item, policy, join_index(path, pos), layer)
            return result

    # replace (e fallback de merge_by_key para listas não indexáveis)
    return deepcopy(override)


def _merge_into(
    target: Dict[str, Any],
    override: Dict[str, Any],
    policy: MergePolicy,
    path: str,
    layer: Optional[str],
) -> None:
    for key, override_value in override.items():
        key_path = join_key(path, key)

        # null -> remoção explícita
        if override_value is None and policy.null_deletes:
            target.pop(key, None)
            continue

        if key not in target:
            target[key] = _strip_nulls(deepcopy(override_value), policy)
            continue

        base_value = target[key]

        # dict -> merge recursivo
        if isinstance(base_value, dict) and isinstance(override_value, dict):
            _merge_into(base_value, override_value, policy, key_path, layer)
            continue

        # list -> estratégia da política
        if isinstance(base_value, list) and isinstance(override_value, list):
            target[key] = _merge_lists(base_value, override_value, policy, key_path, layer)
            continue

        # conflito de tipo
        if policy.strict_types and not _compatible(base_value, override_value):
            raise MergeTypeConflictError(
                path=key_path,
                base_type=_type_name(base_value),
                override_type=_type_name(override_value),
                layer=layer,
            )

        # escalar -> sobrescrita
        target[key] = _strip_nulls(deepcopy(override_value), policy)


def deep_merge(
    base: Dict[str, Any],
    override: Dict[str, Any],
    policy: Optional[MergePolicy] = None,
    *,
    layer: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois dicionários de values.

    Args:
        base: values de menor precedência.
        override: values de maior precedência.
        policy: política de merge; `MergePolicy()` quando omitida.
        layer: nome da camada do override (apenas para mensagens de erro).

    Returns:
        Novo dicionário resultante; `base` e `override` não são mutados.

    Raises:
        MergeTypeConflictError: conflito de tipo sob `strict_types`.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise MergeTypeConflictError(
            path="<root>",
            base_type=_type_name(base),
            override_type=_type_name(override),
            layer=layer,
        )

    policy = policy or MergePolicy()
    result: Dict[str, Any] = deepcopy(base)
    _merge_into(result, override, policy, "", layer)
    return result


@dataclass(frozen=True)
class OverrideRecord:
    """Registro de uma folha substituída ou removida por uma camada posterior."""

    path: str
    layer: str
    previous_layer: str
    action: str  # replace | delete | append | merge

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "layer": self.layer,
            "previous_layer": self.previous_layer,
            "action": self.action,
        }


@dataclass(frozen=True)
class MergeResult:
    """Resultado do merge de camadas: values finais + rastreabilidade por folha."""

    values: Dict[str, Any]
    provenance: Dict[str, str] = field(default_factory=dict)
    overrides: List[OverrideRecord] = field(default_factory=list)
    layers: List[str] = field(default_factory=list)

    def origin_of(self, path: str) -> Optional[str]:
        return self.provenance.get(path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": deepcopy(self.values),
            "provenance": dict(self.provenance),
            "overrides": [o.to_dict() for o in self.overrides],
            "layers": list(self.layers),
        }


def _action_for(value: Any, policy: MergePolicy) -> str:
    if value is None and policy.null_deletes:
        return "delete"
    if isinstance(value, list) and policy.list_strategy == LIST_APPEND:
        return "append"
    if isinstance(value, list) and policy.list_strategy == LIST_MERGE_BY_KEY:
        return "merge"
    return "replace"


def merge_layers(layers: Iterable[Any], policy: Optional[MergePolicy] = None) -> MergeResult:
    """
    Mescla camadas já ordenadas por precedência (menor → maior).

    Cada camada precisa expor `name` e `values` (duck typing, como `Layer`).

    Decisões arquiteturais:
        - A ordem recebida é a ordem de aplicação; nada é reordenado aqui
        - A provenance aponta, para cada folha final, a última camada que a definiu
        - Cada folha substituída/removida gera um `OverrideRecord`

    Raises:
        MergeError: se uma camada não expõe um dict em `values`.
        MergeTypeConflictError: conflito de tipo sob `strict_types`.
    """
    policy = policy or MergePolicy()

    values: Dict[str, Any] = {}
    provenance: Dict[str, str] = {}
    overrides: List[OverrideRecord] = []
    names: List[str] = []

    for layer in layers:
        name = getattr(layer, "name", None)
        data = getattr(layer, "values", None)
        if not isinstance(name, str) or not name.strip():
            raise MergeError("layer.name must be a non-empty string")
        if not isinstance(data, dict):
            raise MergeError(
                f"Camada '{name}' não possui values do tipo dict",
                details={"layer": name, "received": type(data).__name__},
            )

        values = deep_merge(values, data, policy, layer=name)
        names.append(name)

        touched: Dict[str, Any] = dict(iter_leaves(data))
        for touched_path, touched_value in touched.items():
            previous: List[str] = []
            for prev_path, prev_layer in provenance.items():
                if prev_layer == name or prev_layer in previous:
                    continue
                if is_within(prev_path, touched_path) or is_within(touched_path, prev_path):
                    previous.append(prev_layer)
            for prev_layer in previous:
                overrides.append(
                    OverrideRecord(
                        path=touched_path,
                        layer=name,
                        previous_layer=prev_layer,
                        action=_action_for(touched_value, policy),
                    )
                )

        new_provenance: Dict[str, str] = {}
        for leaf_path, _ in iter_leaves(values):
            if leaf_path in touched or any(is_within(leaf_path, t) for t in touched):
                new_provenance[leaf_path] = name
            else:
                new_provenance[leaf_path] = provenance.get(leaf_path, name)
        provenance = new_provenance

    return MergeResult(values=values, provenance=provenance, overrides=overrides, layers=names)
