"""Duration parsing for configuration values.

Durations are written the way the server's operators are used to from
other tooling: a sequence of ``<number><unit>`` components such as
``24h``, ``1h30m`` or ``250ms``. Plain numbers are taken as seconds.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
# "ms" must precede "m" and "s" in the alternation.
_COMPONENT = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)"
_COMPONENT_RE = re.compile(_COMPONENT)
_DURATION_RE = re.compile(rf"(?:{_COMPONENT})+")


def parse_duration(value: Any) -> timedelta:
    """Parse a duration value into a ``timedelta``.

    Args:
        value: A ``timedelta``, a number of seconds, or a duration string
            like ``"24h"``, ``"1h30m"`` or ``"-5s"``.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the value cannot be interpreted as a duration.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return _seconds(value, value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")

    text = value.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not _DURATION_RE.fullmatch(text):
        raise ValueError(f"invalid duration {value!r}")

    seconds = sum(
        float(number) * _UNIT_SECONDS[unit]
        for number, unit in _COMPONENT_RE.findall(text)
    )
    return _seconds(sign * seconds, value)


def _seconds(seconds: float, original: Any) -> timedelta:
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f"duration out of range {original!r}") from None


def format_duration(value: timedelta) -> str:
    """Render a duration compactly, e.g. ``24h0m0s`` or ``1m30s``."""
    seconds = value.total_seconds()
    if seconds == 0:
        return "0s"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{secs:g}s")
    return sign + "".join(parts)
