"""
Rastreabilidade do values-stack.

Componentes principais:
    - manifest → Resolution Manifest v1 e Event Log ordenado

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip)
"""

from .manifest import (  # noqa: F401
    ResolutionManifest,
    add_event,
    create_manifest,
    load_manifest,
    record_input,
    record_output,
    save_manifest,
    stage_failed,
    stage_finished,
    stage_started,
)
