"""values-stack — Merge Engine.

Componentes canônicos:
 - política de merge (listas, nulls, tipos)
 - deep-merge determinístico e puramente funcional
 - merge de camadas com provenance por folha
 - hashing canônico dos values
"""

from .errors import MergeError, MergePolicyError, MergeTypeConflictError  # noqa: F401
from .engine import MergeResult, OverrideRecord, deep_merge, merge_layers  # noqa: F401
from .hashing import compute_values_hash  # noqa: F401
from .policy import MergePolicy  # noqa: F401
