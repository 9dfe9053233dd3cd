"""Semantic comparison utilities for normalized YAML trees."""

from __future__ import annotations

import json
import math
from typing import Any

from dash0_drift.convert.duration import parse_duration


def normalize_numeric_types(value: Any) -> Any:
    """Recursively convert every int/float leaf to float.

    60 and 60.0 must compare equal whichever type the parser picked.
    Booleans are left alone even though bool subclasses int.
    """
    if isinstance(value, dict):
        return {k: normalize_numeric_types(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_numeric_types(item) for item in value]
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    return value


def is_semantically_equal(old: Any, new: Any) -> bool:
    """Check whether two normalized trees are equivalent.

    Handles:
    - Lists compared as multisets, at any depth
    - Duration strings compared by magnitude ("2m" == "2m0s" == "120s")
    """
    return _deep_semantic_equal(old, new)


def _deep_semantic_equal(a: object, b: object) -> bool:
    """Recursively compare two values."""
    if isinstance(a, str) and isinstance(b, str):
        return a == b or durations_equal(a, b)

    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(_deep_semantic_equal(a[key], b[key]) for key in a)

    if isinstance(a, list) and isinstance(b, list):
        return _multiset_equal(a, b)

    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True

    # True == 1.0 in Python, so scalar types must match too
    return type(a) is type(b) and a == b


def durations_equal(a: str, b: str) -> bool:
    """True if both strings parse as durations of the same magnitude."""
    try:
        return parse_duration(a) == parse_duration(b)
    except ValueError:
        return False


def _multiset_equal(a: list, b: list) -> bool:
    """Compare lists ignoring order.

    Both sides are sorted by string form first so the usual case pairs up
    in one pass; elements that only match semantically ("2m" vs "120s")
    are then paired by search.
    """
    if len(a) != len(b):
        return False

    remaining = sorted(b, key=sort_token)
    for item in sorted(a, key=sort_token):
        for i, candidate in enumerate(remaining):
            if _deep_semantic_equal(item, candidate):
                del remaining[i]
                break
        else:
            return False
    return True


def sort_token(value: object) -> str:
    """Stable string form of any tree value, used to order list elements."""
    try:
        return json.dumps(value, sort_keys=True, default=str)
    except TypeError:
        # Mixed key types (e.g. 1 and "a") cannot be sorted
        return repr(value)
