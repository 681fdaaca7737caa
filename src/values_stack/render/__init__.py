"""values-stack — Render.

Emissão dos values finais (YAML/JSON) e renderização de templates de manifest.
"""

from .emitter import SUPPORTED_FORMATS, dump_values  # noqa: F401
from .errors import ManifestRenderError, RenderError, UnsupportedOutputFormatError  # noqa: F401
from .manifests import render_manifest, render_manifests  # noqa: F401
