"""Terminal rendering of drift results."""

from __future__ import annotations

from typing import Any

import click

from dash0_drift.diff.engine import ChangeRecord, FieldChange

_MARKERS = {
    "item_added": ("+", "green"),
    "item_removed": ("-", "red"),
    "value_changed": ("~", "yellow"),
    "type_changed": ("~", "yellow"),
}


def render_terminal(record: ChangeRecord | None, no_color: bool = False) -> None:
    """Print a drift result, one line per changed field."""
    if record is None:
        click.echo(_style("No drift: documents are equivalent", "green", no_color))
        return

    title = "/".join(part for part in (record.kind, record.name) if part) or "document"
    click.echo(_style(f"Drift detected in {title}:", "yellow", no_color, bold=True))
    for change in record.changes:
        click.echo(_format_change(change, no_color))


def _format_change(change: FieldChange, no_color: bool) -> str:
    marker, color = _MARKERS.get(change.change_type, ("?", "white"))
    if change.change_type == "item_added":
        detail = _short(change.new_value)
    elif change.change_type == "item_removed":
        detail = _short(change.old_value)
    else:
        detail = f"{_short(change.old_value)} -> {_short(change.new_value)}"
    return _style(f"  {marker} {change.path or '<root>'}: {detail}", color, no_color)


def _short(value: Any, limit: int = 80) -> str:
    text = repr(value)
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text


def _style(text: str, color: str, no_color: bool, bold: bool = False) -> str:
    if no_color:
        return text
    return click.style(text, fg=color, bold=bold)
