"""
Report rendering.

Two encodings of a time-entry sequence, both UTF-8 bytes:
- tabular: header row + one delimited row per entry
- narrative: plain-text summary with totals, then one line per entry

Both are pure functions of their input; rows follow input order.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from decimal import Decimal

from backoffice.core.entities import TimeEntryDetail

from .models import DEFAULT_CONFIG, ExportConfig, ReportFormat

ENCODING = "utf-8"


def _row(detail: TimeEntryDetail, config: ExportConfig) -> list[str]:
    labels = config.labels
    return [
        detail.work_date.isoformat(),
        detail.client.name,
        detail.user.name,
        detail.task.title if detail.task is not None else labels.no_task,
        detail.notes,
        str(detail.hours),
        labels.yes if detail.billable else labels.no,
    ]


def render_tabular(
    entries: Sequence[TimeEntryDetail],
    config: ExportConfig = DEFAULT_CONFIG,
) -> bytes:
    """Header plus one row per entry, rows separated by a bare newline."""
    rows = [list(config.labels.header)] + [_row(e, config) for e in entries]

    if config.quoting == "none":
        text = "\n".join(config.delimiter.join(r) for r in rows)
        return text.encode(ENCODING)

    buf = io.StringIO()
    writer = csv.writer(
        buf,
        delimiter=config.delimiter,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\n",
    )
    writer.writerows(rows)
    return buf.getvalue().removesuffix("\n").encode(ENCODING)


def render_narrative(
    entries: Sequence[TimeEntryDetail],
    config: ExportConfig = DEFAULT_CONFIG,
) -> bytes:
    """Fixed-layout summary: totals block, then a details line per entry."""
    labels = config.labels
    total = sum((e.hours for e in entries), Decimal("0"))
    billable = sum((e.hours for e in entries if e.billable), Decimal("0"))

    lines = [
        labels.title,
        "=" * len(labels.title),
        "",
        f"{labels.total_hours}: {total}",
        f"{labels.billable_hours}: {billable}",
        f"{labels.non_billable_hours}: {total - billable}",
        "",
        f"{labels.details}:",
    ]
    for e in entries:
        lines.append(
            f"{e.work_date.isoformat()} - {e.client.name} - {e.user.name} - "
            f"{e.hours}{labels.hours_suffix} - {e.notes}"
        )
    return ("\n".join(lines) + "\n").encode(ENCODING)


def render(
    entries: Sequence[TimeEntryDetail],
    fmt: ReportFormat | str,
    config: ExportConfig = DEFAULT_CONFIG,
) -> bytes:
    """
    Render entries in the requested format.

    Raises:
        UnsupportedFormatError: fmt is not a known format.
    """
    report_format = ReportFormat.parse(fmt)
    if report_format is ReportFormat.TABULAR:
        return render_tabular(entries, config)
    return render_narrative(entries, config)
