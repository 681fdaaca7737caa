"""
values-stack — resolução hierárquica de values no estilo Helm.

Este pacote raiz define o namespace público do values-stack, uma ferramenta
para compor values a partir de camadas (global, environment, region,
overrides), avaliar expressões de template e validar o resultado contra
um schema.

Arquitetura em alto nível:
    - layers      → modelo de camadas, descoberta por convenção e `--set`
    - merge       → deep-merge com provenance e política de listas/nulos
    - expressions → templates (subconjunto Go template / Helm) e funções
    - validation  → subconjunto de JSON Schema
    - render      → emissão de values e templates de manifest
    - core        → settings, Resolver, Manifest e erros canônicos
    - cli         → interface de linha de comando

Limites explícitos:
    - Não fala com cluster Kubernetes nem com o binário helm
    - Não baixa dependências de charts
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
