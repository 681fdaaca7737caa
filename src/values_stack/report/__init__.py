"""values-stack — relatório de resolução (Markdown) derivado do Manifest."""

from .report_md import REQUIRED_SECTIONS, generate_resolution_report_md  # noqa: F401
