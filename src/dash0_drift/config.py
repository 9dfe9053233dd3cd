"""Ignore lists, default annotations, and schema constants."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

# Dot-paths stripped before comparing. Server-populated fields the user does
# not control. Backslash-escaped dots match literal dots in a key.
IGNORED_PATHS: frozenset[str] = frozenset({
    "apiVersion",
    "kind",
    "metadata.name",
    "metadata.labels",
    "metadata.annotations",
    "metadata.createdAt",
    "metadata.updatedAt",
    "metadata.version",
    "metadata.dash0Extensions",
})

# Annotation values equivalent to the annotation being absent
DEFAULT_ANNOTATION_VALUES: Mapping[str, str] = MappingProxyType({
    "dash0-threshold-critical": "0",
    "dash0-threshold-degraded": "0",
    "dash0-enabled": "true",
})

# Maps whose values are strings regardless of how YAML typed them
STRING_VALUED_KEYS: frozenset[str] = frozenset({"annotations", "labels"})

# Maps under this key get default annotation pruning
ANNOTATIONS_KEY = "annotations"

# Duration fields omitted when zero
ZERO_DURATION_KEYS: frozenset[str] = frozenset({"keep_firing_for"})

YAML_INDENT = 2

# PrometheusRule schema identifiers
PROMETHEUS_API_VERSION = "monitoring.coreos.com/v1"
PROMETHEUS_KIND = "PrometheusRule"

# Check rule names are "<group> - <alert>"
RULE_NAME_SEPARATOR = " - "

DEFAULT_DATASET = "default"
