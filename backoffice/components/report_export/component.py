"""
Report export component - tabular and narrative time reports.

Rendering is deterministic. Rows keep input order and hours are written
as given, never rounded.
"""

from __future__ import annotations

from collections.abc import Sequence

from backoffice.core.entities import TimeEntryDetail

from ._render import render
from .models import DEFAULT_CONFIG, ExportConfig, ReportFormat


def run_render(
    entries: Sequence[TimeEntryDetail],
    fmt: ReportFormat | str,
    *,
    config: ExportConfig = DEFAULT_CONFIG,
) -> bytes:
    """
    Render entries as tabular or narrative bytes.

    Raises:
        UnsupportedFormatError: unknown format.
    """
    return render(entries, fmt, config)
