"""Compound duration strings ("1h30m", "90m0s", "500ms")."""

from __future__ import annotations

import re
from datetime import timedelta

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

# Durations are signed 64-bit nanosecond counts, roughly 292 years either way
MIN_DURATION = -(2**63)
MAX_DURATION = 2**63 - 1

_UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # micro sign
    "μs": MICROSECOND,  # greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

# Longest units first so "ms" is not read as "m" followed by garbage
_COMPONENT = re.compile(
    r"(\d+\.?\d*|\.\d+)(" + "|".join(sorted(_UNITS, key=len, reverse=True)) + r")"
)


def parse_duration(text: str) -> int:
    """Parse a duration string into nanoseconds.

    Accepts an optional sign followed by one or more <number><unit>
    components, e.g. "1h30m", "1.5s", "-2m". A bare "0" is zero.
    Raises ValueError for anything else, including the empty string.
    """
    if not isinstance(text, str):
        raise ValueError(f"duration must be a string, got {type(text).__name__}")

    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]

    if rest == "0":
        return 0
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total = 0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += _component_nanos(match.group(1), _UNITS[match.group(2)])
        pos = match.end()

    total *= sign
    if not MIN_DURATION <= total <= MAX_DURATION:
        raise ValueError(f"duration out of range {text!r}")
    return total


def _component_nanos(number: str, unit: int) -> int:
    """Nanoseconds for one number/unit pair, truncating sub-nanosecond fractions."""
    whole, _, frac = number.partition(".")
    nanos = int(whole or "0") * unit
    if frac:
        nanos += int(frac) * unit // 10 ** len(frac)
    return nanos


def is_duration(text: object) -> bool:
    """True if text is a string that parses as a duration."""
    if not isinstance(text, str):
        return False
    try:
        parse_duration(text)
    except ValueError:
        return False
    return True


def format_duration(nanos: int) -> str:
    """Format nanoseconds in canonical compound form.

    Sub-second values use the largest of ns/µs/ms that fits ("1.5ms");
    everything else is hours, minutes and seconds ("1h0m30s", "2m0s", "1.5s").
    """
    if nanos == 0:
        return "0s"

    sign = "-" if nanos < 0 else ""
    u = abs(nanos)

    if u < MICROSECOND:
        return f"{sign}{u}ns"
    if u < MILLISECOND:
        return f"{sign}{_fixed(u, MICROSECOND)}µs"
    if u < SECOND:
        return f"{sign}{_fixed(u, MILLISECOND)}ms"

    hours, u = divmod(u, HOUR)
    minutes, u = divmod(u, MINUTE)
    seconds = _fixed(u, SECOND)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _fixed(value: int, unit: int) -> str:
    """value/unit as a decimal with trailing zeros trimmed."""
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def to_timedelta(nanos: int) -> timedelta:
    return timedelta(microseconds=nanos // MICROSECOND)


def from_timedelta(delta: timedelta) -> int:
    return (
        (delta.days * 86400 + delta.seconds) * SECOND
        + delta.microseconds * MICROSECOND
    )


def parse_timedelta(text: str) -> timedelta:
    """Parse a duration string straight into a timedelta (microsecond resolution)."""
    return to_timedelta(parse_duration(text))


def format_timedelta(delta: timedelta) -> str:
    return format_duration(from_timedelta(delta))
