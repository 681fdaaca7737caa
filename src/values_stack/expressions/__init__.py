"""values-stack — Expression Evaluator.

Componentes canônicos:
 - lexer/parser de templates (subconjunto Go template / Helm)
 - funções embutidas no estilo Sprig
 - evaluator com helpers nomeados, include/tpl e resolução lazy de values
 - contexto raiz (.Values, .Release, .Chart, .Environment, .Region)
"""

from .context import build_context, load_helpers  # noqa: F401
from .errors import (  # noqa: F401
    ExpressionCycleError,
    ExpressionError,
    FunctionCallError,
    HelperRecursionError,
    RequiredValueError,
    TemplateSyntaxError,
    UndefinedReferenceError,
    UnknownFunctionError,
    UnknownHelperError,
)
from .evaluator import Evaluator, has_expression  # noqa: F401
from .functions import BUILTIN_FUNCTIONS, is_true, to_text  # noqa: F401
from .parser import parse_template  # noqa: F401
