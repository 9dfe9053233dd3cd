"""Tests for noise filtering and YAML normalization."""

import pytest
import yaml

from dash0_drift.config import IGNORED_PATHS
from dash0_drift.core.errors import MalformedInput
from dash0_drift.diff.filters import (
    _split_dot_path,
    clean_values,
    normalize_yaml,
    strip_ignored,
)


class TestStripIgnored:
    def test_removes_top_level_field(self):
        body = {"apiVersion": "v1", "spec": {"a": 1}}
        assert strip_ignored(body) == {"spec": {"a": 1}}

    def test_removes_nested_field(self):
        body = {"metadata": {"createdAt": "2024-01-01", "description": "kept"}}
        assert strip_ignored(body) == {"metadata": {"description": "kept"}}

    def test_missing_path_is_noop(self):
        body = {"spec": {"a": 1}}
        assert strip_ignored(body) == body

    def test_intermediate_not_a_mapping_is_noop(self):
        body = {"metadata": "not-a-map"}
        assert strip_ignored(body) == {"metadata": "not-a-map"}

    def test_does_not_mutate_input(self):
        body = {"kind": "Dash0View", "metadata": {"version": 3}}
        strip_ignored(body)
        assert body == {"kind": "Dash0View", "metadata": {"version": 3}}

    def test_paths_resolved_from_root_only(self):
        body = {"spec": {"kind": "http", "metadata": {"name": "inner"}}}
        assert strip_ignored(body) == body

    def test_custom_paths_with_escaped_dots(self):
        body = {"metadata": {"labels": {"app.kubernetes.io/name": "x", "team": "y"}}}
        result = strip_ignored(body, frozenset({"metadata.labels.app\\.kubernetes\\.io/name"}))
        assert result == {"metadata": {"labels": {"team": "y"}}}

    def test_split_dot_path(self):
        assert _split_dot_path("metadata.labels.app\\.kubernetes\\.io/name") == [
            "metadata",
            "labels",
            "app.kubernetes.io/name",
        ]


class TestCleanValues:
    def test_removes_empty_values_recursively(self):
        body = {"spec": {"items": [], "filters": {}, "title": "", "nested": {"empty": {}}, "keep": 0}}
        assert clean_values(body) == {"spec": {"keep": 0}}

    def test_keeps_false_and_zero(self):
        body = {"spec": {"enabled": False, "count": 0, "ratio": 0.0, "nothing": None}}
        assert clean_values(body) == {"spec": {"enabled": False, "count": 0, "ratio": 0.0, "nothing": None}}

    def test_list_elements_are_cleaned_but_kept(self):
        body = {"panels": [{"title": "", "query": "up"}, {"filters": []}]}
        assert clean_values(body) == {"panels": [{"query": "up"}, {}]}

    def test_stringifies_annotations_and_labels(self):
        body = {
            "rule": {
                "annotations": {"port": 8080, "flag": True, "ratio": 1.5, "note": "x"},
                "labels": {"replicas": 3, "canary": False},
            }
        }
        assert clean_values(body) == {
            "rule": {
                "annotations": {"port": "8080", "flag": "true", "ratio": "1.5", "note": "x"},
                "labels": {"replicas": "3", "canary": "false"},
            }
        }

    def test_null_label_is_treated_as_absent(self):
        body = {"labels": {"team": None, "env": "prod"}}
        assert clean_values(body) == {"labels": {"env": "prod"}}

    def test_removes_default_annotations(self):
        body = {
            "annotations": {
                "dash0-threshold-critical": "0",
                "dash0-threshold-degraded": 0,
                "dash0-enabled": True,
                "summary": "kept",
            }
        }
        assert clean_values(body) == {"annotations": {"summary": "kept"}}

    def test_keeps_non_default_annotations(self):
        body = {"annotations": {"dash0-threshold-critical": "50", "dash0-enabled": "false"}}
        assert clean_values(body) == {
            "annotations": {"dash0-threshold-critical": "50", "dash0-enabled": "false"}
        }

    def test_default_values_outside_annotations_are_kept(self):
        body = {"labels": {"dash0-enabled": "true"}, "spec": {"dash0-threshold-critical": "0"}}
        assert clean_values(body) == {"labels": {"dash0-enabled": "true"}, "spec": {"dash0-threshold-critical": "0"}}

    @pytest.mark.parametrize("value", ["0s", "0", "0m0s", "0h"])
    def test_zero_keep_firing_for_removed(self, value):
        body = {"rule": {"keep_firing_for": value, "for": "0s"}}
        assert clean_values(body) == {"rule": {"for": "0s"}}

    def test_non_zero_keep_firing_for_kept(self):
        body = {"rule": {"keep_firing_for": "5m"}}
        assert clean_values(body) == {"rule": {"keep_firing_for": "5m"}}

    def test_non_duration_keep_firing_for_kept(self):
        body = {"rule": {"keep_firing_for": "later"}}
        assert clean_values(body) == {"rule": {"keep_firing_for": "later"}}


class TestNormalizeYAML:
    def test_removes_metadata_fields(self):
        text = """
apiVersion: v1
kind: Dash0SyntheticCheck
metadata:
  name: examplecom
  createdAt: "2024-01-01T00:00:00Z"
  updatedAt: "2024-01-02T00:00:00Z"
  version: 1
  dash0Extensions:
    something: value
spec:
  enabled: true
  plugin:
    kind: http
"""
        assert normalize_yaml(text) == "spec:\n  enabled: true\n  plugin:\n    kind: http"

    def test_sorts_keys(self):
        assert normalize_yaml("spec:\n  zeta: 1\n  alpha: 2\n") == "spec:\n  alpha: 2\n  zeta: 1"

    def test_keeps_unlisted_metadata(self):
        text = "metadata:\n  name: x\n  description: hello\n"
        assert normalize_yaml(text) == "metadata:\n  description: hello"

    def test_empty_document(self):
        assert normalize_yaml("") == "{}"

    def test_only_ignored_fields(self):
        assert normalize_yaml("apiVersion: v1\nkind: Dash0View\n") == "{}"

    def test_timestamps_stay_strings(self):
        text = "spec:\n  since: 2023-01-01T00:00:00Z\n"
        assert yaml.safe_load(normalize_yaml(text)) == {"spec": {"since": "2023-01-01T00:00:00Z"}}

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("spec:\n  country: NO\n", {"spec": {"country": "NO"}}),
            ("spec:\n  paging: on\n", {"spec": {"paging": "on"}}),
            ("spec:\n  window: 1:30\n", {"spec": {"window": "1:30"}}),
            ("spec:\n  mode: 0777\n", {"spec": {"mode": 777}}),
            ("spec:\n  count: 1_000\n", {"spec": {"count": "1_000"}}),
            ("spec:\n  mode: 0o17\n", {"spec": {"mode": 15}}),
        ],
    )
    def test_plain_scalars_resolve_as_yaml_1_2(self, text, expected):
        assert yaml.safe_load(normalize_yaml(text)) == expected

    @pytest.mark.parametrize("value", ["NO", "on", "1:30", "0o17", "1e3", "yes", "~"])
    def test_quoted_strings_stay_strings(self, value):
        normalized = normalize_yaml(f'spec:\n  value: "{value}"\n')
        assert normalize_yaml(normalized) == normalized
        assert yaml.safe_load(normalized) == {"spec": {"value": value}}

    def test_invalid_yaml(self):
        with pytest.raises(MalformedInput):
            normalize_yaml("spec: [unclosed")

    def test_top_level_list_rejected(self):
        with pytest.raises(MalformedInput):
            normalize_yaml("- a\n- b\n")

    @pytest.mark.parametrize(
        "text",
        [
            "spec:\n  groups:\n  - name: g\n    rules:\n    - alert: a\n      labels:\n        port: 8080\n",
            "metadata:\n  name: x\nspec:\n  display:\n    name: ''\n  items: [3, 1, 2]\n",
            "spec:\n  annotations:\n    dash0-enabled: true\n    nested:\n      x: ''\n",
        ],
    )
    def test_idempotent(self, text):
        once = normalize_yaml(text)
        assert normalize_yaml(once) == once

    def test_ignored_paths_are_fixed(self):
        assert IGNORED_PATHS == {
            "apiVersion",
            "kind",
            "metadata.name",
            "metadata.labels",
            "metadata.annotations",
            "metadata.createdAt",
            "metadata.updatedAt",
            "metadata.version",
            "metadata.dash0Extensions",
        }
