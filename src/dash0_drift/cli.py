"""Click CLI entry point for dash0-drift."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, TextIO

import click

from dash0_drift.config import DEFAULT_DATASET
from dash0_drift.convert.check_rule import convert_check_rule_json, convert_prometheus_rule
from dash0_drift.convert.yaml_json import yaml_to_json
from dash0_drift.core.errors import DriftError
from dash0_drift.diff.engine import explain_drift, normalize_yaml
from dash0_drift.output.json_out import render_json
from dash0_drift.output.terminal import render_terminal

# Exit codes: 0 equivalent / success, 1 drift found, 2 invalid input
EXIT_DRIFT = 1
EXIT_INVALID = 2


@click.group()
@click.version_option(package_name="dash0-drift")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """dash0-drift: Drift detection and PrometheusRule conversion for Dash0 resources."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@click.argument("document", type=click.File("r"))
def normalize(document: TextIO) -> None:
    """Print the canonical form of a resource YAML."""
    with _input_errors():
        click.echo(normalize_yaml(document.read()))


@main.command()
@click.argument("desired", type=click.File("r"))
@click.argument("observed", type=click.File("r"))
@click.option(
    "-o", "--output", "output_format",
    type=click.Choice(["terminal", "json"]),
    default="terminal",
    help="Output format",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
def compare(desired: TextIO, observed: TextIO, output_format: str, no_color: bool) -> None:
    """Compare a desired resource YAML against the observed one.

    Exits 0 when equivalent and 1 when drift is found.
    """
    with _input_errors():
        record = explain_drift(desired.read(), observed.read())

    if output_format == "json":
        click.echo(render_json(record))
    else:
        render_terminal(record, no_color=no_color)

    if record is not None:
        sys.exit(EXIT_DRIFT)


@main.command("to-check-rule")
@click.argument("document", type=click.File("r"))
@click.option("--dataset", default=DEFAULT_DATASET, show_default=True, help="Dash0 dataset")
def to_check_rule(document: TextIO, dataset: str) -> None:
    """Convert a PrometheusRule YAML to a Dash0 check rule (JSON)."""
    with _input_errors():
        rule = convert_prometheus_rule(document.read(), dataset=dataset)
    click.echo(rule.to_json(indent=2))


@main.command("to-prometheus")
@click.argument("document", type=click.File("r"))
@click.option("--strict", is_flag=True, help="Reject names without a ' - ' separator")
def to_prometheus(document: TextIO, strict: bool) -> None:
    """Convert a Dash0 check rule (JSON) to a PrometheusRule YAML."""
    with _input_errors():
        click.echo(convert_check_rule_json(document.read(), strict=strict))


@main.command("to-json")
@click.argument("document", type=click.File("r"))
def to_json(document: TextIO) -> None:
    """Convert a resource YAML to the JSON payload sent to the API."""
    with _input_errors():
        click.echo(yaml_to_json(document.read()))


@contextmanager
def _input_errors() -> Iterator[None]:
    """Report DriftError on stderr and exit with EXIT_INVALID."""
    try:
        yield
    except DriftError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_INVALID)
