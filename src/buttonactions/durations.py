"""Convert timedeltas to and from strings like "350ms" or "1.5s", loosely following Go's Duration format."""
import datetime
import decimal
import re

PARSE_UNITS = {
    "ms": datetime.timedelta(milliseconds=1),
    "us": datetime.timedelta(microseconds=1),
    "s": datetime.timedelta(seconds=1),
    "m": datetime.timedelta(minutes=1),
    "h": datetime.timedelta(hours=1),
}

PART_MATCHER = re.compile(r"(\d+(?:\.\d*)?)(ms|us|s|m|h)")


def _maybe_int(val: float):
    return int(val) if val.is_integer() else val


def to_millis(val: datetime.timedelta) -> int:
    return round(val / PARSE_UNITS["ms"])


def format_duration(val: datetime.timedelta) -> str:
    if val == datetime.timedelta():
        return "0"
    sign = ""
    if val < datetime.timedelta():
        sign = "-"
        val = -val
    if val < PARSE_UNITS["ms"]:
        return f"{sign}{val.microseconds}us"
    if val < PARSE_UNITS["s"]:
        return f"{sign}{_maybe_int(val / PARSE_UNITS['ms'])}ms"
    return f"{sign}{_maybe_int(val.total_seconds())}s"


def parse_duration(val: str | int) -> datetime.timedelta:
    "Parse a duration string; a bare integer is a number of milliseconds."
    if isinstance(val, int):
        return datetime.timedelta(milliseconds=val)
    sign = 1
    if val.startswith("-"):
        sign = -1
        val = val[1:]
    elif val.startswith("+"):
        val = val[1:]
    if len(val) == 0:
        raise ValueError("Empty duration string")
    if val == "0":
        return datetime.timedelta()

    accum = datetime.timedelta()
    pos = 0
    while pos < len(val):
        match = PART_MATCHER.match(val, pos)
        if match is None:
            raise ValueError(f"Invalid duration string {val!r}; expected number and unit at position {pos}")
        number = decimal.Decimal(match.group(1))
        num, denom = number.as_integer_ratio()
        accum += PARSE_UNITS[match.group(2)] * num / denom
        pos = match.end()
    return sign * accum
