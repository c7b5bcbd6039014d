"""
Conversions between wire timestamp formats and epoch milliseconds, and the
skew/expiry predicates built on them.

Every function that needs the current time reads it through now_ms() so a
single patch point controls the clock.
"""
from calendar import timegm
from datetime import datetime
from logging import getLogger
from os import environ
from time import time

from pytz import UTC

from . import constants
from .dateutil import parse_http_date, parse_iso8601
from .exc import errors

# Requests stamped before this instant are rejected outright.
EPOCH_MS = 0

# Format of x-amz-date and of V4 timestamps
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"

log = getLogger("awssigauth.timeutils")

def now_ms():
    """
    The current time in milliseconds since the epoch.
    """
    return int(time() * 1000)

def datetime_to_ms(value):
    """
    Convert a timezone-aware datetime to milliseconds since the epoch.
    """
    value = value.astimezone(UTC)
    return timegm(value.utctimetuple()) * 1000 + value.microsecond // 1000

def ms_to_datetime(value):
    return datetime.fromtimestamp(value / 1000.0, UTC)

def convert_amz_time_to_ms(timestamp):
    """
    convert_amz_time_to_ms(timestamp) -> int

    Convert a YYYYMMDDTHHMMSSZ timestamp to epoch milliseconds. A ValueError
    is raised if the timestamp is not of that form.
    """
    return datetime_to_ms(
        UTC.localize(datetime.strptime(timestamp, AMZ_DATE_FORMAT)))

def convert_utc_to_iso8601(value):
    """
    convert_utc_to_iso8601(value) -> str or None

    Convert epoch milliseconds or an HTTP date string to the compact
    YYYYMMDDTHHMMSSZ form, dropping milliseconds. None is returned for
    unparseable strings.
    """
    if isinstance(value, (int, float)):
        parsed = ms_to_datetime(value)
    else:
        parsed = parse_http_date(value)
        if parsed is None:
            return None

    return parsed.astimezone(UTC).strftime(AMZ_DATE_FORMAT)

def parse_header_date_ms(value):
    """
    Epoch milliseconds of a Date/x-amz-date header value, or None.
    """
    parsed = parse_http_date(value)
    if parsed is None:
        return None
    return datetime_to_ms(parsed)

def is_valid_amz_timestamp(timestamp):
    """
    Whether timestamp has the strict YYYYMMDDTHHMMSSZ shape and is after
    the Unix epoch.
    """
    if not timestamp:
        return False

    parts = timestamp.split("T")
    if (len(parts) != 2 or len(parts[0]) != 8 or len(parts[1]) != 7
            or not parts[0].isdigit()):
        return False

    if int(parts[0]) <= 19700101:
        return False

    return parse_iso8601(timestamp) is not None

def check_time_skew(timestamp, expiry,
                    skew_window=constants.DEFAULT_SKEW_WINDOW):
    """
    check_time_skew(timestamp, expiry, skew_window) -> bool

    Return True if the YYYYMMDDTHHMMSSZ timestamp is more than skew_window
    seconds in the future or older than expiry seconds.
    """
    current_time = now_ms()
    skew_window_ms = skew_window * 1000
    parsed_timestamp = convert_amz_time_to_ms(timestamp)

    if current_time + skew_window_ms < parsed_timestamp:
        log.debug("requested time is too far in the future: %s",
                  timestamp)
        return True

    expiration = parsed_timestamp + expiry * 1000
    if current_time > expiration:
        log.debug("request has expired: %s (expiry %ss)", timestamp, expiry)
        return True

    return False

def check_request_expiry(timestamp, skew_window=constants.DEFAULT_SKEW_WINDOW):
    """
    check_request_expiry(timestamp, skew_window) -> AuthError or None

    Check a V2 request timestamp (epoch milliseconds) against the epoch
    floor and the skew window (seconds) on both sides of the current time.
    """
    if timestamp < EPOCH_MS:
        log.debug("request time is before the epoch: %s", timestamp)
        return errors.AccessDenied

    current_time = now_ms()
    window = skew_window * 1000

    if current_time - timestamp > window:
        log.debug("request time too skewed (past): %s", timestamp)
        return errors.RequestTimeTooSkewed

    if timestamp - current_time > window:
        log.debug("request time too skewed (future): %s", timestamp)
        return errors.RequestTimeTooSkewed

    return None

def presigned_url_expiry_ms():
    """
    Maximum lifetime of a V2 pre-signed URL, in milliseconds.

    The PRE_SIGN_URL_EXPIRY environment variable (milliseconds) overrides
    the 7 day default.
    """
    value = environ.get("PRE_SIGN_URL_EXPIRY")
    if value:
        try:
            return int(value)
        except ValueError:
            log.warning("ignoring invalid PRE_SIGN_URL_EXPIRY value: %r",
                        value)

    return constants.DEFAULT_PRESIGNED_URL_EXPIRY * 1000
