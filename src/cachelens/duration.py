"""Revalidate window parsing."""

import re

from cachelens.types import Revalidate

_DURATION_PATTERN = re.compile(r"^(\d+)(s|m|h|d)$")
_UNITS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3_600,
    "d": 86_400,
}


def parse_revalidate(value: int | str | bool | None) -> Revalidate | None:
    """Parse a revalidate window to seconds.

    Integers pass through, ``False`` disables revalidation and ``None`` means
    the request did not declare one.
    """
    if value is None or value is False:
        return value
    if value is True:
        raise ValueError("Invalid revalidate window: True")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid revalidate window: {value!r}")
        return value

    match = _DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid revalidate window: {value!r}")

    amount, unit = match.groups()
    return int(amount) * _UNITS[unit]
