"""JSON rendering of drift results."""

from __future__ import annotations

import json
from dataclasses import asdict

from dash0_drift.diff.engine import ChangeRecord


def render_json(record: ChangeRecord | None) -> str:
    """Render a drift result as a JSON document.

    None (no drift) renders as {"equivalent": true, "changes": []}.
    """
    if record is None:
        payload = {"equivalent": True, "changes": []}
    else:
        payload = {
            "equivalent": False,
            "kind": record.kind,
            "name": record.name,
            "changes": [asdict(change) for change in record.changes],
        }
    return json.dumps(payload, indent=2, default=str, ensure_ascii=False)
