"""Tests for the dash0-drift command line."""

import json

import pytest
import yaml
from click.testing import CliRunner

from dash0_drift.cli import main

RULE_YAML = """\
apiVersion: monitoring.coreos.com/v1
kind: PrometheusRule
metadata:
  name: api
spec:
  groups:
    - name: API
      interval: 1m
      rules:
        - alert: Down
          expr: up == 0
          for: 2m
          annotations:
            summary: API is down
            dash0-threshold-critical: "1"
          labels:
            severity: critical
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def write(tmp_path):
    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


class TestNormalize:
    def test_prints_canonical_form(self, runner, write):
        path = write("view.yaml", "kind: Dash0View\nmetadata:\n  name: x\nspec:\n  b: 1\n  a: ''\n")
        result = runner.invoke(main, ["normalize", path])
        assert result.exit_code == 0
        assert result.output == "spec:\n  b: 1\n"

    def test_invalid_yaml(self, runner, write):
        path = write("bad.yaml", "spec: [unclosed")
        result = runner.invoke(main, ["normalize", path])
        assert result.exit_code == 2
        assert "Error:" in result.output


class TestCompare:
    def test_equivalent(self, runner, write):
        desired = write("desired.yaml", RULE_YAML)
        observed = write("observed.yaml", RULE_YAML.replace("for: 2m", "for: 2m0s"))
        result = runner.invoke(main, ["compare", desired, observed, "--no-color"])
        assert result.exit_code == 0
        assert "No drift" in result.output

    def test_drift(self, runner, write):
        desired = write("desired.yaml", "kind: Dash0View\nspec:\n  title: X\n")
        observed = write("observed.yaml", "kind: Dash0View\nspec:\n  title: Y\n")
        result = runner.invoke(main, ["compare", desired, observed, "--no-color"])
        assert result.exit_code == 1
        assert "Drift detected in Dash0View" in result.output
        assert "~ spec.title: 'X' -> 'Y'" in result.output

    def test_json_output(self, runner, write):
        desired = write("desired.yaml", "spec:\n  title: X\n")
        observed = write("observed.yaml", "spec:\n  title: Y\n")
        result = runner.invoke(main, ["compare", desired, observed, "-o", "json"])
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["equivalent"] is False
        assert payload["changes"] == [
            {"path": "spec.title", "old_value": "X", "new_value": "Y", "change_type": "value_changed"}
        ]

    def test_json_output_equivalent(self, runner, write):
        desired = write("desired.yaml", "spec:\n  title: X\n")
        result = runner.invoke(main, ["compare", desired, desired, "-o", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"equivalent": True, "changes": []}

    def test_invalid_input(self, runner, write):
        desired = write("desired.yaml", "- not\n- a mapping\n")
        observed = write("observed.yaml", "spec: {}\n")
        result = runner.invoke(main, ["compare", desired, observed])
        assert result.exit_code == 2
        assert "first" in result.output


class TestConversion:
    def test_to_check_rule(self, runner, write):
        path = write("rule.yaml", RULE_YAML)
        result = runner.invoke(main, ["to-check-rule", path, "--dataset", "prod"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["dataset"] == "prod"
        assert data["name"] == "API - Down"
        assert data["thresholds"] == {"degraded": 0, "failed": 1}
        assert data["annotations"] == {}

    def test_to_check_rule_unsupported_shape(self, runner, write):
        path = write("rule.yaml", "spec:\n  groups: []\n")
        result = runner.invoke(main, ["to-check-rule", path])
        assert result.exit_code == 2
        assert "exactly one group required" in result.output

    def test_to_check_rule_duration_out_of_range(self, runner, write):
        path = write("rule.yaml", RULE_YAML.replace("for: 2m", "for: 999999999999h"))
        result = runner.invoke(main, ["to-check-rule", path])
        assert result.exit_code == 2
        assert "out of range" in result.output

    def test_to_prometheus(self, runner, write):
        record = {
            "dataset": "default",
            "name": "API - Down",
            "expression": "up == 0",
            "thresholds": {"degraded": 0, "failed": 1},
            "summary": "API is down",
            "for": "2m0s",
            "enabled": False,
        }
        path = write("rule.json", json.dumps(record))
        result = runner.invoke(main, ["to-prometheus", path])
        assert result.exit_code == 0
        rule = yaml.safe_load(result.output)["spec"]["groups"][0]["rules"][0]
        assert rule["alert"] == "Down"
        assert rule["annotations"] == {
            "dash0-enabled": "false",
            "dash0-threshold-critical": "1",
            "summary": "API is down",
        }

    def test_to_prometheus_strict(self, runner, write):
        path = write("rule.json", json.dumps({"dataset": "default", "name": "Down", "expression": "up"}))
        result = runner.invoke(main, ["to-prometheus", path, "--strict"])
        assert result.exit_code == 2
        assert "invalid value for name" in result.output

    def test_round_trip_through_cli(self, runner, write):
        source = write("rule.yaml", RULE_YAML)
        record = runner.invoke(main, ["to-check-rule", source])
        wire = write("rule.json", record.output)
        rendered = runner.invoke(main, ["to-prometheus", wire])
        observed = write("observed.yaml", rendered.output)
        result = runner.invoke(main, ["compare", source, observed])
        assert result.exit_code == 0

    def test_to_json(self, runner, write):
        path = write("dashboard.yaml", "kind: Dash0Dashboard\nspec:\n  panels: [1, 2]\n")
        result = runner.invoke(main, ["to-json", path])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"kind": "Dash0Dashboard", "spec": {"panels": [1, 2]}}
