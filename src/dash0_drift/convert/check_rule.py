"""Conversion between PrometheusRule YAML and Dash0 check rule records.

A PrometheusRule with exactly one group holding exactly one rule maps to one
check rule. Fields the Prometheus schema has no place for (thresholds,
enabled, summary, description) travel as annotations on the rule:

    annotations:
      summary: High error rate
      dash0-threshold-critical: "5"
      dash0-threshold-degraded: "1.5"
      dash0-enabled: "false"

Converting to a check rule claims those annotations and removes them from the
annotation map. Converting back only re-adds an annotation when its value
differs from the default, so the two directions are deliberately not
symmetric; the normalizer treats default-valued annotations as absent.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any, Callable

from dash0_drift.config import (
    DEFAULT_DATASET,
    PROMETHEUS_API_VERSION,
    PROMETHEUS_KIND,
    RULE_NAME_SEPARATOR,
)
from dash0_drift.convert.duration import (
    MAX_DURATION,
    SECOND,
    format_timedelta,
    parse_timedelta,
)
from dash0_drift.core.errors import InvalidFieldValue, MalformedInput, UnsupportedShape
from dash0_drift.parser.document import dump_yaml, parse_document, scalar_to_text

logger = logging.getLogger(__name__)

_ZERO = timedelta(0)


@dataclass(frozen=True)
class CheckRuleThresholds:
    degraded: float = 0.0
    failed: float = 0.0


@dataclass(frozen=True)
class CheckRule:
    dataset: str
    name: str
    expression: str
    thresholds: CheckRuleThresholds = field(default_factory=CheckRuleThresholds)
    summary: str | None = None
    description: str | None = None
    interval: timedelta = _ZERO
    for_: timedelta = _ZERO
    keep_firing_for: timedelta = _ZERO
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the record, as the Dash0 API expects it."""
        data: dict[str, Any] = {"dataset": self.dataset}
        if self.id:
            data["id"] = self.id
        data.update({
            "name": self.name,
            "expression": self.expression,
            "thresholds": {
                "degraded": _json_number(self.thresholds.degraded),
                "failed": _json_number(self.thresholds.failed),
            },
            "summary": self.summary or "",
            "description": self.description or "",
        })
        for key, value in (
            ("interval", self.interval),
            ("for", self.for_),
            ("keepFiringFor", self.keep_firing_for),
        ):
            if value != _ZERO:
                data[key] = format_timedelta(value)
        data.update({
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "enabled": self.enabled,
        })
        return data

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> CheckRule:
        """Build a record from its wire form. Missing fields take their defaults."""
        if not isinstance(data, dict):
            raise MalformedInput(
                f"expected a JSON object for a check rule, got {type(data).__name__}"
            )

        thresholds = data.get("thresholds") or {}
        if not isinstance(thresholds, dict):
            raise InvalidFieldValue("thresholds", thresholds, "expected an object")

        summary = data.get("summary")
        description = data.get("description")
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise InvalidFieldValue("enabled", enabled, "expected a boolean")

        return cls(
            dataset=scalar_to_text(data.get("dataset")),
            id=data.get("id") or None,
            name=scalar_to_text(data.get("name")),
            expression=scalar_to_text(data.get("expression")),
            thresholds=CheckRuleThresholds(
                degraded=_read_number(thresholds.get("degraded"), "thresholds.degraded"),
                failed=_read_number(thresholds.get("failed"), "thresholds.failed"),
            ),
            summary=scalar_to_text(summary) or None,
            description=scalar_to_text(description) or None,
            interval=_read_duration(data.get("interval"), "interval"),
            for_=_read_duration(data.get("for"), "for"),
            keep_firing_for=_read_duration(data.get("keepFiringFor"), "keepFiringFor"),
            labels=_string_map(data.get("labels"), "labels"),
            annotations=_string_map(data.get("annotations"), "annotations"),
            enabled=enabled,
        )

    @classmethod
    def from_json(cls, json_text: str) -> CheckRule:
        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"error parsing check rule JSON: {e}") from e
        return cls.from_dict(data)


# ---------------------------------------------------------------------------
# Annotation <-> record field table
# ---------------------------------------------------------------------------

_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_BOOLS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}


def parse_threshold(text: str) -> float:
    """Parse a threshold annotation: a plain, finite decimal number."""
    if not _DECIMAL.fullmatch(text):
        raise ValueError("not a decimal number")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError("out of range")
    return value


def format_threshold(value: float) -> str:
    """Shortest plain decimal text for a threshold: 100.0 -> "100", 1e-05 -> "0.00001"."""
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_bool(text: str) -> bool:
    try:
        return _BOOLS[text]
    except KeyError:
        raise ValueError("not a boolean") from None


@dataclass(frozen=True)
class DerivedAnnotation:
    """An annotation that carries a check rule field.

    parse turns the annotation text into the field value (ValueError on bad
    input); render returns the annotation text, or None when the record holds
    the default and the annotation is left out.
    """

    key: str
    field: str
    parse: Callable[[str], Any]
    render: Callable[[CheckRule], str | None]


DERIVED_ANNOTATIONS: tuple[DerivedAnnotation, ...] = (
    DerivedAnnotation(
        key="summary",
        field="summary",
        parse=str,
        render=lambda rule: rule.summary or None,
    ),
    DerivedAnnotation(
        key="description",
        field="description",
        parse=str,
        render=lambda rule: rule.description or None,
    ),
    DerivedAnnotation(
        key="dash0-threshold-critical",
        field="failed",
        parse=parse_threshold,
        render=lambda rule: (
            format_threshold(rule.thresholds.failed) if rule.thresholds.failed else None
        ),
    ),
    DerivedAnnotation(
        key="dash0-threshold-degraded",
        field="degraded",
        parse=parse_threshold,
        render=lambda rule: (
            format_threshold(rule.thresholds.degraded) if rule.thresholds.degraded else None
        ),
    ),
    DerivedAnnotation(
        key="dash0-enabled",
        field="enabled",
        parse=parse_bool,
        # true is the default, only false is written out
        render=lambda rule: None if rule.enabled else "false",
    ),
)


def _claim_annotations(annotations: dict[str, str]) -> dict[str, Any]:
    """Pop every derived annotation out of annotations, returning parsed field values."""
    claimed: dict[str, Any] = {}
    for derived in DERIVED_ANNOTATIONS:
        if derived.key not in annotations:
            continue
        text = annotations.pop(derived.key)
        try:
            claimed[derived.field] = derived.parse(text)
        except ValueError as e:
            raise InvalidFieldValue(derived.key, text, str(e)) from e
    return claimed


def _inject_annotations(rule: CheckRule) -> dict[str, str]:
    """Residual annotations plus every derived annotation not at its default."""
    annotations = dict(rule.annotations)
    for derived in DERIVED_ANNOTATIONS:
        text = derived.render(rule)
        if text is not None:
            annotations[derived.key] = text
    return dict(sorted(annotations.items()))


# ---------------------------------------------------------------------------
# PrometheusRule -> check rule
# ---------------------------------------------------------------------------

def convert_prometheus_rule(yaml_text: str, dataset: str = DEFAULT_DATASET) -> CheckRule:
    """Convert a single-group, single-rule PrometheusRule document to a check rule.

    Raises MalformedInput, UnsupportedShape or InvalidFieldValue; nothing is
    ever converted partially.
    """
    document = parse_document(yaml_text)
    group, rule = _single_group_and_rule(document.body)

    group_name = scalar_to_text(group.get("name"))
    alert = scalar_to_text(rule.get("alert"))

    annotations = _string_map(rule.get("annotations"), "annotations")
    labels = _string_map(rule.get("labels"), "labels")
    claimed = _claim_annotations(annotations)

    check_rule = CheckRule(
        dataset=dataset,
        name=f"{group_name}{RULE_NAME_SEPARATOR}{alert}",
        expression=scalar_to_text(rule.get("expr")),
        thresholds=CheckRuleThresholds(
            degraded=claimed.get("degraded", 0.0),
            failed=claimed.get("failed", 0.0),
        ),
        summary=claimed.get("summary"),
        description=claimed.get("description"),
        interval=_read_duration(group.get("interval"), "interval"),
        for_=_read_duration(rule.get("for"), "for"),
        keep_firing_for=_read_duration(rule.get("keep_firing_for"), "keep_firing_for"),
        labels=labels,
        annotations=annotations,
        enabled=claimed.get("enabled", True),
    )
    logger.debug("Converted PrometheusRule to check rule %r", check_rule.name)
    return check_rule


def _single_group_and_rule(body: dict) -> tuple[dict, dict]:
    spec = body.get("spec") or {}
    if not isinstance(spec, dict):
        raise MalformedInput("spec must be a mapping")

    groups = spec.get("groups") or []
    if not isinstance(groups, list):
        raise MalformedInput("spec.groups must be a list")
    if len(groups) != 1:
        raise UnsupportedShape("exactly one group required", details={"groups": len(groups)})

    group = groups[0]
    if not isinstance(group, dict):
        raise MalformedInput("spec.groups[0] must be a mapping")

    rules = group.get("rules") or []
    if not isinstance(rules, list):
        raise MalformedInput("spec.groups[0].rules must be a list")
    if len(rules) != 1:
        raise UnsupportedShape("exactly one rule required", details={"rules": len(rules)})

    rule = rules[0]
    if not isinstance(rule, dict):
        raise MalformedInput("spec.groups[0].rules[0] must be a mapping")

    return group, rule


def _string_map(value: Any, field_name: str) -> dict[str, str]:
    """Copy a labels/annotations map, stringifying values YAML typed as numbers or bools."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidFieldValue(field_name, value, "expected a mapping")
    result: dict[str, str] = {}
    for key, item in value.items():
        text = scalar_to_text(item)
        if not isinstance(text, str):
            raise InvalidFieldValue(f"{field_name}.{key}", item, "expected a string")
        result[str(key)] = text
    return result


def _read_duration(value: Any, field_name: str) -> timedelta:
    """Duration strings ("5m", "1h30m") or numbers of seconds; absent is zero."""
    if value is None or value == "":
        return _ZERO
    if isinstance(value, bool):
        raise InvalidFieldValue(field_name, value, "expected a duration")
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or abs(value) * SECOND > MAX_DURATION:
            raise InvalidFieldValue(field_name, value, "duration out of range")
        try:
            return timedelta(seconds=value)
        except OverflowError as e:
            raise InvalidFieldValue(field_name, value, "duration out of range") from e
    if isinstance(value, str):
        try:
            return parse_timedelta(value)
        except ValueError as e:
            raise InvalidFieldValue(field_name, value, str(e)) from e
    raise InvalidFieldValue(field_name, value, "expected a duration")


def _read_number(value: Any, field_name: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFieldValue(field_name, value, "expected a number")
    return float(value)


def _json_number(value: float) -> int | float:
    if value.is_integer():
        return int(value)
    return value


# ---------------------------------------------------------------------------
# check rule -> PrometheusRule
# ---------------------------------------------------------------------------

def to_prometheus_rule(rule: CheckRule, strict: bool = False) -> dict[str, Any]:
    """Build the PrometheusRule tree for a check rule.

    Zero durations are left out, as are annotations holding default values.
    """
    group_name, alert = _split_name(rule.name, strict=strict)

    prom_rule: dict[str, Any] = {"alert": alert, "expr": rule.expression}
    if rule.for_ != _ZERO:
        prom_rule["for"] = format_timedelta(rule.for_)
    if rule.keep_firing_for != _ZERO:
        prom_rule["keep_firing_for"] = format_timedelta(rule.keep_firing_for)
    prom_rule["annotations"] = _inject_annotations(rule)
    prom_rule["labels"] = dict(sorted(rule.labels.items()))

    group: dict[str, Any] = {"name": group_name}
    if rule.interval != _ZERO:
        group["interval"] = format_timedelta(rule.interval)
    group["rules"] = [prom_rule]

    return {
        "apiVersion": PROMETHEUS_API_VERSION,
        "kind": PROMETHEUS_KIND,
        "metadata": {},
        "spec": {"groups": [group]},
    }


def render_prometheus_rule(rule: CheckRule, strict: bool = False) -> str:
    """PrometheusRule YAML text for a check rule."""
    return dump_yaml(to_prometheus_rule(rule, strict=strict), sort_keys=False)


def convert_check_rule_json(json_text: str, strict: bool = False) -> str:
    """PrometheusRule YAML text for a check rule in its JSON wire form."""
    return render_prometheus_rule(CheckRule.from_json(json_text), strict=strict)


def _split_name(name: str, strict: bool = False) -> tuple[str, str]:
    """Split "<group> - <alert>" on the first separator.

    Without a separator the full name is used for both halves, which cannot
    be reversed; strict mode rejects such names instead.
    """
    group_name, sep, alert = name.partition(RULE_NAME_SEPARATOR)
    if sep:
        return group_name, alert

    if strict:
        raise InvalidFieldValue(
            "name", name, f"expected '<group>{RULE_NAME_SEPARATOR}<alert>'"
        )
    logger.warning(
        "Check rule name %r has no %r separator; using it as both group and alert name",
        name,
        RULE_NAME_SEPARATOR,
    )
    return name, name
