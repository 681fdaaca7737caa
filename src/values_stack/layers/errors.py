"""Erros canônicos do domínio de camadas (Layer Store).

Camadas são a entrada crítica da resolução. Falhas de carregamento ou de
registro devem produzir erros explícitos e estáveis.
"""

from values_stack.core.errors import LAYER_INVALID, LAYER_NOT_FOUND
from values_stack.core.exceptions import ValuesStackError


class LayerError(ValuesStackError):
    """Erro base do domínio de camadas."""

    error_type = LAYER_INVALID


class DuplicateLayerError(LayerError):
    """Duas camadas registradas com o mesmo nome."""

    default_hint = "Cada camada precisa de um nome único dentro do store."


class LayerFileNotFoundError(LayerError):
    """Arquivo de camada não existe no caminho informado."""

    error_type = LAYER_NOT_FOUND
    default_hint = "Crie o arquivo de values esperado ou ajuste o diretório raiz informado."


class UnsupportedLayerFormatError(LayerError):
    """Formato de camada não suportado (v1: YAML/JSON)."""


class LayerParseError(LayerError):
    """Falha ao parsear YAML/JSON de uma camada."""


class InvalidLayerRootError(LayerError):
    """Conteúdo raiz da camada não é um mapeamento."""


class SetOverrideSyntaxError(LayerError):
    """Expressão `--set` malformada."""

    default_hint = "Use o formato chave.aninhada=valor; separe atribuições com vírgula."
