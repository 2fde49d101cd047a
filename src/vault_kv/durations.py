"""Go duration literal parsing and formatting.

Vault reports durations such as ``delete_version_after`` as Go duration
strings (``"768h0m0s"``, ``"1h30m"``, ``"0s"``). This module converts them to
and from :class:`datetime.timedelta`.
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal
from typing import Optional

_UNIT_MICROSECONDS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
    "d": Decimal(86_400_000_000),
}

_COMPONENT = r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h|d)"
_PARSE_PATTERN = re.compile(_COMPONENT)
_VERIFY_PATTERN = re.compile(rf"(?:{_COMPONENT})+")


def parse_duration(value: Optional[str]) -> Optional[timedelta]:
    """Parse a Go duration literal.

    Returns ``None`` for ``None`` or an empty string. A bare ``"0"`` is zero.
    Raises ``ValueError`` for anything that is not a duration literal.
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    if text == "0":
        return timedelta(0)

    negative = text.startswith("-")
    if text[0] in "+-":
        text = text[1:]

    if not _VERIFY_PATTERN.fullmatch(text):
        raise ValueError(f"Cannot parse '{value}' into a duration")

    micros = Decimal(0)
    for number, unit in _PARSE_PATTERN.findall(text):
        micros += Decimal(number) * _UNIT_MICROSECONDS[unit]

    result = timedelta(microseconds=int(micros))
    return -result if negative else result


def format_duration(value: Optional[timedelta]) -> str:
    """Format a timedelta as a Go duration literal (``"768h0m0s"``).

    ``None`` and zero both format as ``"0s"``. Sub-second durations use
    ``ms``/``us`` the way Go does.
    """
    if value is None:
        return "0s"

    total_us = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if total_us == 0:
        return "0s"

    sign = "-" if total_us < 0 else ""
    total_us = abs(total_us)

    if total_us < 1_000:
        return f"{sign}{total_us}us"
    if total_us < 1_000_000:
        return f"{sign}{_trim(Decimal(total_us) / 1_000)}ms"

    hours, remainder = divmod(total_us, 3_600_000_000)
    minutes, remainder = divmod(remainder, 60_000_000)
    seconds = _trim(Decimal(remainder) / 1_000_000)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _trim(number: Decimal) -> str:
    text = format(number.normalize(), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text
