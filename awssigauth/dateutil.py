"""
Strict datetime parse utilities.
"""
from datetime import datetime
from pytz import FixedOffset, UTC
from re import compile as re_compile

# Month-name to month-value map
_month_names = {
    "Jan": 1,
    "Feb": 2,
    "Mar": 3,
    "Apr": 4,
    "May": 5,
    "Jun": 6,
    "Jul": 7,
    "Aug": 8,
    "Sep": 9,
    "Oct": 10,
    "Nov": 11,
    "Dec": 12,
}

# ISO 8601 timestamp format regex (includes RFC 3339)
_iso_8601_regex = re_compile(
    r"^(?P<year>[0-9]{4})-?"
    r"(?P<month>0[1-9]|1[0-2])-?"
    r"(?P<day>0[1-9]|[12][0-9]|3[01])"
    r"[Tt ]"
    r"(?P<hour>[01][0-9]|2[0-3]):?"
    r"(?P<minute>[0-5][0-9]):?"
    r"(?P<second>[0-5][0-9]|6[01])"
    r"(?P<frac_sec>[\.,][0-9]+)?"
    r"(?P<timezone>[-+][01][0-9]:?[0-5][0-9]|[Zz])$")

# RFC 2822 timestamp format regex. HTTP dates use the obsolete "GMT" zone.
_rfc_2822_regex = re_compile(
    r"^(?:(?P<dow>Mon|Tue|Wed|Thu|Fri|Sat|Sun)\s*,)?\s*"
    r"(?P<day>[0-9]|0[1-9]|1[0-9]|2[0-9]|3[01])\s+"
    r"(?P<month>Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+"
    r"(?P<year>[0-9]{4})\s+"
    r"(?P<hour>[01][0-9]|2[0-3]):"
    r"(?P<minute>[0-5][0-9]):"
    r"(?P<second>[0-5][0-9]|6[01])\s+"
    r"(?P<timezone>[-+][01][0-9][0-5][0-9]|GMT|UTC|UT|Z)$"
)

def _fixed_offset(zone):
    zone = zone.replace(":", "")
    assert len(zone) == 5
    sign = zone[0]
    offset_hour = int(zone[1:3])
    offset_minutes = offset_hour * 60 + int(zone[3:5])

    if sign == "-":
        offset_minutes = -offset_minutes

    if offset_minutes == 0:
        return UTC

    return FixedOffset(offset_minutes)

def _build(m, month, offset):
    try:
        return datetime(
            year=int(m.group("year")),
            month=month,
            day=int(m.group("day")),
            hour=int(m.group("hour")),
            minute=int(m.group("minute")),
            second=min(int(m.group("second")), 59),
            tzinfo=offset)
    except ValueError:
        # e.g. February 30th
        return None

def parse_iso8601(s):
    """
    Parse a timestamp formatted in ISO 8601 timestamp format and return a
    timezone-aware datetime. If the string is not a valid ISO 8601 timestamp,
    None is returned.

    ISO 8601 timestamps include the forms:
        2018-12-25T14:00:00-08:00
        20181225T140000-0800            (Condensed)
        2018-12-25T22:00:00Z            (Z == +0000, UTC)
        20181225T220000Z                (Condensed; the AWS x-amz-date form)
        20181225 220000Z                (Space instead of T)

    If fractional seconds are included, they are ignored.
    """
    m = _iso_8601_regex.match(s)
    if not m:
        return None

    zone = m.group("timezone")
    if zone in ("Z", "z"):
        offset = UTC
    else:
        offset = _fixed_offset(zone)

    return _build(m, int(m.group("month")), offset)

def parse_rfc2822(s):
    """
    Parse a timestamp formatted in RFC 2822 timestamp format and return a
    timezone-aware datetime. If the string is not a valid RFC 2822
    timestamp, None is returned.

    RFC 2822 timestamps are of the form:
        Tue, 25 Dec 2018 14:00:00 -0800
        25 Dec 2018 14:00:00 -0800
        Tue, 25 Dec 2018 22:00:00 GMT
    """
    m = _rfc_2822_regex.match(s)
    if not m:
        return None

    month = _month_names[m.group("month")]
    zone = m.group("timezone")
    if zone in ("GMT", "UTC", "UT", "Z"):
        offset = UTC
    else:
        offset = _fixed_offset(zone)

    return _build(m, month, offset)

def parse_http_date(s):
    """
    Parse a Date or x-amz-date header value in either of the formats clients
    send, returning a timezone-aware datetime or None.
    """
    if not s:
        return None

    s = s.strip()
    return parse_rfc2822(s) or parse_iso8601(s)
