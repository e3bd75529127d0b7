"""
Display formatting for query results.

Timestamps, sample values and label sets are turned into the strings that end
up in table cells. Timestamp patterns use the reference-date layout
(``2006-01-02 15:04:05``) rather than strftime directives.
"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from math import isinf, isnan
from typing import Callable, Dict, List, Optional, Union

import numpy as np

logger = logging.getLogger("promcsv")

DEFAULT_DATE_FORMAT = "2006-01-02 15:04:05"
RAW_DATE_FORMAT = "-"

TimestampFormatter = Callable[[int], str]
LayoutChunk = Union[str, Callable[[datetime], str]]


# ---------------- Values and labels ----------------

def format_sample_value(value: float) -> str:
    """Shortest round-trip decimal in positional notation, or NaN/+Inf/-Inf."""
    if isnan(value):
        return "NaN"
    if isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return np.format_float_positional(value, trim="-")


_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
}


def _quote(value: str) -> str:
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) < 0x10000:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    return '"' + "".join(out) + '"'


def format_label_set(labels: Dict[str, str]) -> str:
    """
    Render a label mapping as ``{name="value", ...}``.

    Entries are sorted by label name so the same series always gets the
    same string.
    """
    pairs = [f"{name}={_quote(labels[name])}" for name in sorted(labels)]
    return "{" + ", ".join(pairs) + "}"


# ---------------- Timestamps ----------------

def format_raw_timestamp(millis: int) -> str:
    """Seconds since the epoch with the shortest exact decimal form."""
    seconds = Decimal(millis).scaleb(-3).normalize()
    return format(seconds, "f")


def _pad(width: int, attr: str) -> Callable[[datetime], str]:
    return lambda dt: f"{getattr(dt, attr):0{width}d}"


def _hour12(padded: bool) -> Callable[[datetime], str]:
    def render(dt: datetime) -> str:
        hour = dt.hour % 12 or 12
        return f"{hour:02d}" if padded else str(hour)
    return render


def _offset(colon: bool, seconds: bool, hours_only: bool, utc_z: bool) -> Callable[[datetime], str]:
    def render(dt: datetime) -> str:
        offset = dt.utcoffset() or timedelta(0)
        total = int(offset.total_seconds())
        if utc_z and total == 0:
            return "Z"
        sign = "-" if total < 0 else "+"
        hh, rest = divmod(abs(total), 3600)
        mm, ss = divmod(rest, 60)
        if hours_only:
            return f"{sign}{hh:02d}"
        sep = ":" if colon else ""
        text = f"{sign}{hh:02d}{sep}{mm:02d}"
        if seconds:
            text += f"{sep}{ss:02d}"
        return text
    return render


def _zone_name(dt: datetime) -> str:
    name = dt.tzname()
    if name:
        return name
    return _offset(False, False, False, False)(dt)


def _fraction(sep: str, digits: int, trim: bool) -> Callable[[datetime], str]:
    def render(dt: datetime) -> str:
        frac = f"{dt.microsecond:06d}000"[:digits]
        if trim:
            frac = frac.rstrip("0")
            return sep + frac if frac else ""
        return sep + frac
    return render


# Longest token first where tokens share a prefix.
_LAYOUT_TOKENS = [
    ("January", lambda dt: dt.strftime("%B")),
    ("Jan", lambda dt: dt.strftime("%b")),
    ("Monday", lambda dt: dt.strftime("%A")),
    ("Mon", lambda dt: dt.strftime("%a")),
    ("MST", _zone_name),
    ("2006", _pad(4, "year")),
    ("002", lambda dt: f"{dt.timetuple().tm_yday:03d}"),
    ("01", _pad(2, "month")),
    ("02", _pad(2, "day")),
    ("03", _hour12(True)),
    ("04", _pad(2, "minute")),
    ("05", _pad(2, "second")),
    ("06", lambda dt: f"{dt.year % 100:02d}"),
    ("15", _pad(2, "hour")),
    ("_2", lambda dt: f"{dt.day:2d}"),
    ("1", lambda dt: str(dt.month)),
    ("2", lambda dt: str(dt.day)),
    ("3", _hour12(False)),
    ("4", lambda dt: str(dt.minute)),
    ("5", lambda dt: str(dt.second)),
    ("PM", lambda dt: "PM" if dt.hour >= 12 else "AM"),
    ("pm", lambda dt: "pm" if dt.hour >= 12 else "am"),
    ("-07:00:00", _offset(True, True, False, False)),
    ("-070000", _offset(False, True, False, False)),
    ("-07:00", _offset(True, False, False, False)),
    ("-0700", _offset(False, False, False, False)),
    ("-07", _offset(False, False, True, False)),
    ("Z07:00:00", _offset(True, True, False, True)),
    ("Z070000", _offset(False, True, False, True)),
    ("Z07:00", _offset(True, False, False, True)),
    ("Z0700", _offset(False, False, False, True)),
    ("Z07", _offset(False, False, True, True)),
]


def _match_fraction(layout: str, i: int) -> Optional[int]:
    """Length of a fractional-second token (``.000``, ``,999``) at ``i``."""
    if layout[i] not in ".," or i + 1 >= len(layout) or layout[i + 1] not in "09":
        return None
    digit = layout[i + 1]
    j = i + 1
    while j < len(layout) and layout[j] == digit:
        j += 1
    if j < len(layout) and layout[j].isdigit():
        return None
    return j - i


def compile_layout(layout: str) -> List[LayoutChunk]:
    """Split a reference-date layout into literal text and field renderers."""
    chunks: List[LayoutChunk] = []
    literal = ""
    i = 0
    while i < len(layout):
        # "_2006" is a literal underscore followed by the year
        if layout.startswith("_2006", i):
            literal += "_"
            i += 1
            continue

        frac_len = _match_fraction(layout, i)
        if frac_len:
            token = None
            render = _fraction(layout[i], frac_len - 1, layout[i + 1] == "9")
        else:
            token, render = next(
                ((tok, fn) for tok, fn in _LAYOUT_TOKENS if layout.startswith(tok, i)),
                (None, None),
            )

        if render is None:
            literal += layout[i]
            i += 1
            continue

        if literal:
            chunks.append(literal)
            literal = ""
        chunks.append(render)
        i += len(token) if token else frac_len

    if literal:
        chunks.append(literal)
    return chunks


def format_datetime(dt: datetime, chunks: List[LayoutChunk]) -> str:
    return "".join(c if isinstance(c, str) else c(dt) for c in chunks)


def to_datetime(millis: int, tz: Optional[tzinfo] = None) -> datetime:
    """Millisecond timestamp as an aware datetime in ``tz`` (local zone if None)."""
    seconds, ms = divmod(millis, 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=ms * 1000)
    return dt.astimezone(tz)


def make_timestamp_formatter(pattern: Optional[str], tz: Optional[tzinfo] = None) -> TimestampFormatter:
    """
    Build the timestamp formatter for a run.

    Args:
        pattern: Reference-date layout; empty or "-" selects the raw numeric form
        tz: Time zone for calendar output (local system zone if None)

    Returns:
        Function mapping millisecond timestamps to display strings
    """
    if not pattern or pattern == RAW_DATE_FORMAT:
        logger.debug("using raw timestamp format")
        return format_raw_timestamp

    chunks = compile_layout(pattern)
    logger.debug("using timestamp layout %r", pattern)

    def formatter(millis: int) -> str:
        return format_datetime(to_datetime(millis, tz), chunks)

    return formatter
