"""
Report export component - time report encodings.
"""

from ._render import render, render_narrative, render_tabular
from .component import run_render
from .models import (
    DEFAULT_CONFIG,
    FILE_EXTENSIONS,
    LABELS_BY_LOCALE,
    LABELS_EN,
    LABELS_NB,
    MEDIA_TYPES,
    ExportConfig,
    ExportLabels,
    ReportFormat,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ExportConfig",
    "ExportLabels",
    "FILE_EXTENSIONS",
    "LABELS_BY_LOCALE",
    "LABELS_EN",
    "LABELS_NB",
    "MEDIA_TYPES",
    "ReportFormat",
    "render",
    "render_narrative",
    "render_tabular",
    "run_render",
]
