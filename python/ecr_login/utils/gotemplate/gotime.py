"""
Go time.Time formatting for datetime values.

Templates print timestamps the way Go does (time.Time.String) and can
call a handful of time.Time methods such as .Unix and .Format with Go
reference layouts ("2006-01-02T15:04:05Z07:00").
"""

import re
from datetime import datetime, timezone
from typing import Callable, Dict, Tuple

DEFAULT_LAYOUT = "2006-01-02 15:04:05.999999999 -0700 MST"

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# Ordered so that longer layout elements win over their prefixes
_LAYOUT_ELEMENTS = [
    "January", "Jan", "Monday", "Mon", "MST",
    "2006", "002", "01", "02", "03", "04", "05", "06", "_2",
    "15", "1", "2", "3", "4", "5",
    "-07:00:00", "-070000", "-07:00", "-0700", "-07",
    "Z07:00:00", "Z070000", "Z07:00", "Z0700", "Z07",
    "PM", "pm",
]
_FRACTION_RE = re.compile(r"[.,](0+|9+)(?!\d)")
_NUMERIC_ZONE_RE = re.compile(r"^(UTC|GMT)?[+-]")


def _aware(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC"""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _offset_seconds(dt: datetime) -> int:
    offset = dt.utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


def _format_offset(seconds: int, element: str) -> str:
    """Render a zone offset for one of the -07/Z07 layout elements"""
    if element.startswith("Z") and seconds == 0:
        return "Z"
    sign = "-" if seconds < 0 else "+"
    seconds = abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    shape = element[1:]
    if shape == "07":
        return f"{sign}{hours:02d}"
    if shape == "0700":
        return f"{sign}{hours:02d}{minutes:02d}"
    if shape == "07:00":
        return f"{sign}{hours:02d}:{minutes:02d}"
    if shape == "070000":
        return f"{sign}{hours:02d}{minutes:02d}{secs:02d}"
    return f"{sign}{hours:02d}:{minutes:02d}:{secs:02d}"


def _zone_name(dt: datetime) -> str:
    name = dt.tzname() if dt.tzinfo is not None else "UTC"
    if not name or _NUMERIC_ZONE_RE.match(name):
        # Zones without an abbreviation print as a numeric offset
        return _format_offset(_offset_seconds(dt), "-0700")
    return name


def _format_element(dt: datetime, element: str) -> str:
    hour12 = dt.hour % 12 or 12
    simple: Dict[str, Callable[[], str]] = {
        "January": lambda: MONTHS[dt.month - 1],
        "Jan": lambda: MONTHS[dt.month - 1][:3],
        "Monday": lambda: DAYS[dt.weekday()],
        "Mon": lambda: DAYS[dt.weekday()][:3],
        "MST": lambda: _zone_name(dt),
        "2006": lambda: f"{dt.year:04d}",
        "06": lambda: f"{dt.year % 100:02d}",
        "002": lambda: f"{dt.timetuple().tm_yday:03d}",
        "01": lambda: f"{dt.month:02d}",
        "1": lambda: str(dt.month),
        "02": lambda: f"{dt.day:02d}",
        "_2": lambda: f"{dt.day:>2d}",
        "2": lambda: str(dt.day),
        "15": lambda: f"{dt.hour:02d}",
        "03": lambda: f"{hour12:02d}",
        "3": lambda: str(hour12),
        "04": lambda: f"{dt.minute:02d}",
        "4": lambda: str(dt.minute),
        "05": lambda: f"{dt.second:02d}",
        "5": lambda: str(dt.second),
        "PM": lambda: "PM" if dt.hour >= 12 else "AM",
        "pm": lambda: "pm" if dt.hour >= 12 else "am",
    }
    if element in simple:
        return simple[element]()
    return _format_offset(_offset_seconds(dt), element)


def _next_element(layout: str, pos: int) -> Tuple[str, int]:
    """Return (element, length) at pos, or ("", 0) for literal text"""
    rest = layout[pos:]
    if rest.startswith("_2006"):
        return "", 0
    for element in _LAYOUT_ELEMENTS:
        if rest.startswith(element):
            if element in ("Jan", "Mon") and rest[3:4].islower():
                # "Month" and "Janitor" are literal text
                continue
            return element, len(element)
    match = _FRACTION_RE.match(layout, pos)
    if match:
        return match.group(0), len(match.group(0))
    return "", 0


def format_layout(dt: datetime, layout: str) -> str:
    """Format dt using a Go reference layout"""
    out = []
    pos = 0
    while pos < len(layout):
        element, length = _next_element(layout, pos)
        if not length:
            out.append(layout[pos])
            pos += 1
            continue
        if element[0] in ".,":
            digits = len(element) - 1
            nanos = f"{dt.microsecond * 1000:09d}"[:digits]
            if element[1] == "9":
                nanos = nanos.rstrip("0")
                out.append(element[0] + nanos if nanos else "")
            else:
                out.append(element[0] + nanos)
        else:
            out.append(_format_element(dt, element))
        pos += length
    return "".join(out)


def time_string(dt: datetime) -> str:
    """Equivalent of Go's time.Time.String()"""
    return format_layout(dt, DEFAULT_LAYOUT)


TIME_METHODS: Dict[str, Callable] = {
    "Unix": lambda t: int(_aware(t).timestamp()),
    "UnixMilli": lambda t: int(_aware(t).timestamp() * 1000),
    "UTC": lambda t: _aware(t).astimezone(timezone.utc),
    "Local": lambda t: _aware(t).astimezone(),
    "Format": lambda t, layout: format_layout(t, layout),
    "String": time_string,
    "Year": lambda t: t.year,
    "Day": lambda t: t.day,
    "Hour": lambda t: t.hour,
    "Minute": lambda t: t.minute,
    "Second": lambda t: t.second,
}
