"""YAML to JSON conversion for API payloads."""

from __future__ import annotations

import json

from dash0_drift.parser.document import load_yaml


def yaml_to_json(yaml_text: str) -> str:
    """Convert a YAML string to a compact JSON string.

    Raises MalformedInput if the YAML does not parse.
    """
    return json.dumps(load_yaml(yaml_text), separators=(",", ":"), ensure_ascii=False)
