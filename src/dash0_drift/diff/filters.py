"""Noise filtering and normalization for YAML resource bodies."""

from __future__ import annotations

import copy
import logging
import re

from dash0_drift.config import (
    ANNOTATIONS_KEY,
    DEFAULT_ANNOTATION_VALUES,
    IGNORED_PATHS,
    STRING_VALUED_KEYS,
    ZERO_DURATION_KEYS,
)
from dash0_drift.convert.duration import parse_duration
from dash0_drift.parser.document import dump_yaml, parse_document, scalar_to_text

logger = logging.getLogger(__name__)


def strip_ignored(body: dict, ignored_paths: frozenset[str] = IGNORED_PATHS) -> dict:
    """Deep-copy body and remove every path in ignored_paths.

    Dot-paths use backslash-escaped dots for literal dots in keys.
    A path whose intermediate keys are missing is skipped.
    """
    result = copy.deepcopy(body)
    for path in sorted(ignored_paths):
        _remove_path(result, path)
    return result


def _split_dot_path(path: str) -> list[str]:
    """Split a dot-path respecting escaped dots.

    e.g. 'metadata.labels.app\\.kubernetes\\.io/name' ->
         ['metadata', 'labels', 'app.kubernetes.io/name']
    """
    # Split on dots not preceded by backslash
    parts = re.split(r'(?<!\\)\.', path)
    # Unescape literal dots
    return [p.replace('\\.', '.') for p in parts]


def _remove_path(obj: dict, path: str) -> None:
    """Remove a dot-path from a nested dict."""
    _remove_path_parts(obj, _split_dot_path(path))


def _remove_path_parts(obj: object, parts: list[str]) -> None:
    """Recursively walk into obj following parts, removing the leaf."""
    if not parts or not isinstance(obj, dict):
        return

    key = parts[0]
    remaining = parts[1:]

    if not remaining:
        if key in obj:
            logger.debug("Stripping ignored field %r", key)
            del obj[key]
    elif key in obj and isinstance(obj[key], dict):
        _remove_path_parts(obj[key], remaining)


def clean_values(body: dict) -> dict:
    """Unify representational variance and drop empty values, in place.

    - annotations/labels values become strings
    - annotations equal to their default are dropped
    - keep_firing_for holding a zero duration is dropped
    - empty maps, lists and strings are dropped, recursively
    """
    _clean_map(body)
    return body


def _clean_map(data: dict) -> None:
    for key in list(data):
        value = data[key]

        if isinstance(value, dict):
            if key in STRING_VALUED_KEYS:
                _stringify_values(value)
            if key == ANNOTATIONS_KEY:
                _drop_default_annotations(value)
            _clean_map(value)
            if not value:
                del data[key]

        elif isinstance(value, list):
            _clean_list(value)
            if not value:
                del data[key]

        elif isinstance(value, str):
            if value == "":
                del data[key]
            elif key in ZERO_DURATION_KEYS and _is_zero_duration(value):
                logger.debug("Dropping zero duration %s: %r", key, value)
                del data[key]


def _clean_list(items: list) -> None:
    """Clean maps and lists nested in a list. Elements themselves are kept."""
    for item in items:
        if isinstance(item, dict):
            _clean_map(item)
        elif isinstance(item, list):
            _clean_list(item)


def _stringify_values(mapping: dict) -> None:
    """annotations/labels are string-valued even if YAML parsed 8080 or true."""
    for key, value in mapping.items():
        mapping[key] = scalar_to_text(value)


def _drop_default_annotations(annotations: dict) -> None:
    for key, default in DEFAULT_ANNOTATION_VALUES.items():
        if annotations.get(key) == default:
            del annotations[key]


def _is_zero_duration(value: str) -> bool:
    try:
        return parse_duration(value) == 0
    except ValueError:
        # Not a duration, keep as-is
        return False


def normalize_body(body: dict) -> dict:
    """Deep-copy body, strip ignored fields and clean values."""
    return clean_values(strip_ignored(body))


def normalize_yaml(yaml_text: str) -> str:
    """Canonical YAML text for a document: noise stripped, keys sorted.

    Raises MalformedInput if the text is not a YAML mapping.
    """
    document = parse_document(yaml_text)
    return dump_yaml(normalize_body(document.body))
