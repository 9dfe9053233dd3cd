"""Drift detection between a desired and an observed resource document."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from deepdiff import DeepDiff

from dash0_drift.core.errors import MalformedInput
from dash0_drift.diff.filters import normalize_yaml
from dash0_drift.diff.semantic import (
    durations_equal,
    is_semantically_equal,
    normalize_numeric_types,
)
from dash0_drift.parser.document import load_yaml, parse_document

logger = logging.getLogger(__name__)

__all__ = [
    "ChangeRecord",
    "FieldChange",
    "explain_drift",
    "normalize_yaml",
    "resources_equivalent",
]


@dataclass
class FieldChange:
    path: str
    old_value: Any
    new_value: Any
    change_type: str  # "value_changed", "item_added", "item_removed", "type_changed"


@dataclass
class ChangeRecord:
    kind: str
    name: str
    status: Literal["changed"] = "changed"
    changes: list[FieldChange] = field(default_factory=list)


def resources_equivalent(yaml_a: str, yaml_b: str) -> bool:
    """Check if two resource YAMLs are equivalent, ignoring fields we don't care about.

    Raises MalformedInput if either side cannot be parsed, so callers can tell
    "cannot decide" apart from "not equivalent".
    """
    tree_a, tree_b = _comparable_trees(yaml_a, yaml_b)
    equivalent = is_semantically_equal(tree_a, tree_b)
    logger.debug("Resource YAMLs equivalent: %s", equivalent)
    return equivalent


def explain_drift(desired_yaml: str, observed_yaml: str) -> ChangeRecord | None:
    """Compute the field-level changes from desired to observed.

    Returns None when the documents are equivalent.
    """
    tree_a, tree_b = _comparable_trees(desired_yaml, observed_yaml)

    # Check semantic equality after normalization
    if is_semantically_equal(tree_a, tree_b):
        return None

    dd = DeepDiff(tree_a, tree_b, ignore_order=True, view="tree")
    changes = _extract_changes(dd)

    desired = parse_document(desired_yaml)
    return ChangeRecord(kind=desired.kind, name=desired.name, changes=changes)


def _comparable_trees(yaml_a: str, yaml_b: str) -> tuple[Any, Any]:
    """Normalize both sides, re-parse, and unify numeric types."""
    normalized_a = _normalize_side(yaml_a, "first")
    normalized_b = _normalize_side(yaml_b, "second")

    # The comparison runs on what the canonical text parses back to
    tree_a = load_yaml(normalized_a)
    tree_b = load_yaml(normalized_b)

    return normalize_numeric_types(tree_a), normalize_numeric_types(tree_b)


def _normalize_side(yaml_text: str, side: str) -> str:
    try:
        return normalize_yaml(yaml_text)
    except MalformedInput as e:
        raise MalformedInput(
            f"error normalizing {side} resource YAML: {e.message}",
            details={"side": side},
        ) from e


_CHANGE_TYPES = {
    "values_changed": "value_changed",
    "type_changes": "type_changed",
    "dictionary_item_added": "item_added",
    "iterable_item_added": "item_added",
    "dictionary_item_removed": "item_removed",
    "iterable_item_removed": "item_removed",
}


def _extract_changes(dd: DeepDiff) -> list[FieldChange]:
    """Convert a tree-view DeepDiff into a FieldChange list."""
    changes: list[FieldChange] = []

    for report_type, change_type in _CHANGE_TYPES.items():
        for level in dd.get(report_type, []):
            added = change_type == "item_added"
            removed = change_type == "item_removed"
            old_value = None if added else level.t1
            new_value = None if removed else level.t2
            if (
                change_type == "value_changed"
                and isinstance(old_value, str)
                and isinstance(new_value, str)
                and durations_equal(old_value, new_value)
            ):
                continue
            changes.append(FieldChange(
                path=_format_path(level.path(output_format="list", use_t2=added)),
                old_value=old_value,
                new_value=new_value,
                change_type=change_type,
            ))

    return sorted(changes, key=lambda c: c.path)


def _format_path(parts: list) -> str:
    """Render path elements as spec.groups[0].name; keys are used verbatim."""
    result = ""
    for part in parts:
        if isinstance(part, int) and not isinstance(part, bool):
            result += f"[{part}]"
        else:
            result += f".{part}" if result else str(part)
    return result
