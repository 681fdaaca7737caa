# src/values_stack/core/config/__init__.py

"""
Camada de configuração (settings) do values-stack.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar, validar estruturalmente e identificar as settings da própria
ferramenta (não os values das camadas resolvidas).

As settings são:
    - declarativas
    - determinísticas
    - explicitamente versionáveis

Responsabilidades do pacote:
    - Defaults embutidos (equivalentes a um `settings.defaults.yaml`)
    - Carregamento de arquivos de settings (defaults + overrides locais)
    - Resolução das settings finais via deep-merge estrito
    - Geração de hash canônico para rastreabilidade

Invariantes:
    - As settings finais são um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não carrega camadas de values
    - Não executa a resolução
"""
