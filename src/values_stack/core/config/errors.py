# src/values_stack/core/config/errors.py
"""
Exceções canônicas da camada de settings do values-stack.

As exceções aqui definidas representam violações explícitas na configuração
da ferramenta, e não erros de resolução de values.

Invariantes:
    - Todas as exceções de settings herdam de `ConfigError`
    - Nenhuma exceção representa erro de camada, merge ou schema
"""

from values_stack.core.exceptions import ValuesStackError


class ConfigError(ValuesStackError):
    """
    Exceção base para erros relacionados às settings do values-stack.

    Limites explícitos:
        - Não representa erro de camada de values
        - Não representa erro de avaliação de expressões
    """

    error_type = "CONFIG_ERROR"


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de defaults informado explicitamente não existe.

    Decisões arquiteturais:
        - Um caminho de defaults explícito é obrigatório quando informado
        - Não há fallback silencioso para os defaults embutidos
    """

    error_type = "CONFIG_DEFAULTS_NOT_FOUND"


class UnsupportedConfigFormatError(ConfigError):
    """
    Formato do arquivo de settings não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """

    error_type = "CONFIG_UNSUPPORTED_FORMAT"


class InvalidConfigRootTypeError(ConfigError):
    """Conteúdo raiz das settings não é um dicionário (`dict`)."""

    error_type = "CONFIG_INVALID_ROOT"


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos entre defaults e settings locais.

    Exemplo de conflito:
        - defaults: {"validation": {"enabled": true}}
        - local:    {"validation": "off"}
    """

    error_type = "CONFIG_TYPE_CONFLICT"
