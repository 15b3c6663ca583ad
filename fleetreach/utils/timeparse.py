import re
from typing import Union

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smh]?)\s*$")

_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration like 120, 0.5, '15s', '10m' or '1h' into seconds.

    Bare numbers (and unitless strings) are seconds.
    """
    if isinstance(value, bool):
        raise ValueError("Invalid duration: booleans are not durations")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration string: {value!r}")

    number, unit = match.groups()
    return float(number) * _UNIT_SECONDS[unit]
