"""YAML document parsing, serialization, and scalar stringification."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

import yaml

from dash0_drift.config import YAML_INDENT
from dash0_drift.core.errors import MalformedInput

# Plain scalar resolution per the YAML 1.2 core schema. yes/no/on/off,
# 1:30, 0777 and 1_000 stay strings; timestamps are never resolved.
_CORE_SCHEMA_RESOLVERS: list[tuple[str, str, list[str]]] = [
    ("tag:yaml.org,2002:bool", r"^(?:true|True|TRUE|false|False|FALSE)$", list("tTfF")),
    ("tag:yaml.org,2002:int", r"^(?:[-+]?[0-9]+|0o[0-7]+|0x[0-9a-fA-F]+)$", list("-+0123456789")),
    (
        "tag:yaml.org,2002:float",
        r"^(?:[-+]?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?)(?:[eE][-+]?[0-9]+)?"
        r"|[-+]?\.(?:inf|Inf|INF)|\.(?:nan|NaN|NAN))$",
        list("-+0123456789."),
    ),
    ("tag:yaml.org,2002:null", r"^(?:~|null|Null|NULL|)$", ["~", "n", "N", ""]),
    ("tag:yaml.org,2002:merge", r"^(?:<<)$", ["<"]),
]


class _DocumentLoader(yaml.SafeLoader):
    """SafeLoader that resolves plain scalars like yaml.v3 does.

    Label values such as NO or 1:30 must reach the server as written.
    """


class _DocumentDumper(yaml.SafeDumper):
    """SafeDumper that quotes any string either schema would read as non-string."""


def _construct_core_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> int:
    value = loader.construct_scalar(node)
    if value.startswith("0o"):
        return int(value[2:], 8)
    if value.startswith("0x"):
        return int(value[2:], 16)
    return int(value, 10)


_DocumentLoader.yaml_implicit_resolvers = {}
for _tag, _pattern, _first in _CORE_SCHEMA_RESOLVERS:
    _DocumentLoader.add_implicit_resolver(_tag, re.compile(_pattern), _first)
    _DocumentDumper.add_implicit_resolver(_tag, re.compile(_pattern), _first)
_DocumentLoader.add_constructor("tag:yaml.org,2002:int", _construct_core_int)


@dataclass
class Document:
    body: dict
    raw: str

    @property
    def kind(self) -> str:
        return str(self.body.get("kind", ""))

    @property
    def name(self) -> str:
        metadata = self.body.get("metadata")
        if isinstance(metadata, dict):
            return str(metadata.get("name", ""))
        return ""


def load_yaml(yaml_text: str) -> Any:
    """Parse YAML text into an untyped tree. Raises MalformedInput."""
    try:
        return yaml.load(yaml_text, Loader=_DocumentLoader)
    except yaml.YAMLError as e:
        raise MalformedInput(f"error parsing YAML: {e}") from e


def parse_document(yaml_text: str) -> Document:
    """Parse a single YAML document whose top level must be a mapping.

    An empty document parses as an empty mapping.
    """
    body = load_yaml(yaml_text)
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise MalformedInput(
            f"expected a YAML mapping at the top level, got {type(body).__name__}"
        )
    return Document(body=body, raw=yaml_text)


def dump_yaml(tree: Any, sort_keys: bool = True) -> str:
    """Serialize a tree with fixed indentation, without the trailing newline."""
    text = yaml.dump(
        tree,
        Dumper=_DocumentDumper,
        default_flow_style=False,
        sort_keys=sort_keys,
        indent=YAML_INDENT,
        allow_unicode=True,
    )
    return text.rstrip("\n")


def scalar_to_text(value: Any) -> Any:
    """String form of a YAML scalar; lists and maps are returned unchanged.

    8080 -> "8080", True -> "true", 1.0 -> "1", None -> "".
    """
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, dict)):
        return value
    return str(value)
