"""
Engine do values-stack.

Este pacote contém o Resolver, responsável por executar a resolução de
values como uma sequência fixa de estágios rastreáveis:

    layers.select → values.merge → expressions.evaluate → schema.validate

Princípios fundamentais:
    - A ordem dos estágios é fixa e determinística
    - Nenhuma decisão silenciosa é tomada durante a execução
    - Falhas viram ErrorPayload serializável (fail-fast)

Limites explícitos:
    - Não descobre arquivos de camada (ver `values_stack.layers`)
    - Não renderiza manifests (ver `values_stack.render`)
"""

from .resolver import (  # noqa: F401
    STAGES,
    ResolutionResult,
    Resolver,
    ResolverConfigurationError,
)
