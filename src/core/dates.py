"""Date handling for the three textual formats the API produces.

Every producer has its own format; callers pick the parser that matches the
endpoint they decoded rather than guessing.
"""

from datetime import date, datetime, timedelta, timezone

REST_DATE_FORMAT = "%Y-%m-%d"
ACTIVITY_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
SETTLED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"

# settledAt carries a zone abbreviation which strptime cannot resolve
ZONE_OFFSETS = {
    "UTC": 0.0,
    "GMT": 0.0,
    "Z": 0.0,
    "EST": -5.0,
    "EDT": -4.0,
    "CST": -6.0,
    "CDT": -5.0,
    "MST": -7.0,
    "MDT": -6.0,
    "PST": -8.0,
    "PDT": -7.0,
    "AST": -4.0,
    "ADT": -3.0,
    "NST": -3.5,
    "NDT": -2.5,
}


def parse_rest_date(value: str) -> datetime:
    """Parse ``yyyy-MM-dd`` (REST resources) as midnight UTC."""
    return datetime.strptime(value, REST_DATE_FORMAT).replace(tzinfo=timezone.utc)


def format_rest_date(value: date | datetime) -> str:
    return value.strftime(REST_DATE_FORMAT)


def parse_activity_timestamp(value: str) -> datetime:
    """Parse the activity feed ``occurredAt`` (microseconds plus offset)."""
    return datetime.strptime(value, ACTIVITY_TIMESTAMP_FORMAT)


def parse_settled_at(value: str) -> datetime:
    """Parse ``yyyy-MM-dd HH:mm:ss ZZZ`` from the spend details query."""
    stamp, _, zone = value.rpartition(" ")
    if zone not in ZONE_OFFSETS:
        raise ValueError(f"Unknown time zone abbreviation: {zone!r}")
    parsed = datetime.strptime(stamp, SETTLED_AT_FORMAT)
    return parsed.replace(tzinfo=timezone(timedelta(hours=ZONE_OFFSETS[zone])))


def format_graphql_date(value: date | datetime) -> str:
    """Format a request date as ``yyyy-MM-dd'T'HH:mm:ss.SSSZ``."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    millis = value.microsecond // 1000
    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{millis:03d}{value.strftime('%z')}"
