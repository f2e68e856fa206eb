"""Views of a ``CalendarResult`` for the collaborators that consume it.

- Persistence rows: one flat record per activity, colours as ``#RRGGBB`` or
  None, ready to map onto relational rows.
- Preview grid: activities by period with the author colour per cell, ready
  to draw before anything is persisted.
- Export: ``CalendarResult.to_dict`` already is the export shape; the
  helpers here only reshape it.
"""

from __future__ import annotations

import re
from typing import Any

from agri_calendar_extraction.calendar_model import CalendarResult

_CANONICAL_COLOR = re.compile(r"^#[0-9A-F]{6}$")


def _stored_color(color: str | None) -> str | None:
    if color is None or not _CANONICAL_COLOR.match(color):
        return None
    return color


def to_persistence_rows(result: CalendarResult) -> list[dict[str, Any]]:
    """Flatten activities into rows for the relational store.

    Args:
        result: Parsed calendar.

    Returns:
        One dictionary per activity, in calendar order. ``color`` holds the
        dominant colour and ``period_colors`` the colour of each marked
        period, each a 7-character hex string or None.
    """
    rows = []
    for position, activity in enumerate(result.activities, start=1):
        rows.append(
            {
                "activity_id": activity.id,
                "position": position,
                "name": activity.name,
                "start_period": activity.start_period,
                "end_period": activity.end_period,
                "color": _stored_color(activity.dominant_color),
                "period_colors": {
                    label: _stored_color(color)
                    for label, color in activity.per_period_color.items()
                },
                "source_sheet": activity.source_sheet,
                "source_row": activity.source_row,
                "calendar_type": result.calendar_type.value,
                "commodity": result.commodity,
                "region": result.region,
                "district": result.district,
                "year": result.year,
            }
        )
    return rows


def build_preview_grid(result: CalendarResult) -> dict[str, Any]:
    """Lay activities out as a grid of periods for the preview renderer.

    Args:
        result: Parsed calendar.

    Returns:
        Dictionary with ``headers`` (``"Activity"`` then every period label),
        ``rows`` (one per activity, one cell per period) and ``summary``.
    """
    labels = list(result.period_labels)
    rows = []
    for activity in result.activities:
        cells = []
        for label in labels:
            active = label in activity.per_period_color
            cells.append(
                {
                    "time_label": label,
                    "active": active,
                    "background": activity.per_period_color.get(label) if active else None,
                }
            )
        rows.append(
            {
                "activity_id": activity.id,
                "activity": activity.name,
                "color": activity.dominant_color,
                "cells": cells,
            }
        )

    return {
        "title": result.title,
        "headers": ["Activity", *labels],
        "rows": rows,
        "summary": {
            "total_columns": len(labels) + 1,
            "total_rows": len(rows),
            "timeline_type": result.calendar_type.value,
            "color_palette": list(result.color_palette),
            "has_diagnostics": result.has_diagnostics,
        },
    }
