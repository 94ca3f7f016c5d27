"""CSV row parsing and field coercion."""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Sequence, Set

from .models import Airport

SCHEDULED_SERVICE_TRUTHY: Set[str] = {'1', 'yes', 'true'}

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INT_RE = re.compile(r'[+-]?[0-9]+')
_FLOAT_RE = re.compile(
    r'[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|(?i:inf|infinity|nan))'
)
_RFC3339_RE = re.compile(
    r'(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})'
    r'T(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})'
    r'(?:\.(?P<fraction>[0-9]+))?'
    r'(?P<offset>Z|[+-][0-9]{2}:[0-9]{2})'
)

# Upper-case table limited to ASCII letters so "ß" or "ﬁ" never expand.
_ASCII_UPPER = str.maketrans(
    'abcdefghijklmnopqrstuvwxyz',
    'ABCDEFGHIJKLMNOPQRSTUVWXYZ',
)


def to_upper_ascii(value: str) -> str:
    return value.translate(_ASCII_UPPER)


def build_column_index(header: Sequence[str]) -> Dict[str, int]:
    """Map each trimmed header name to its column position."""
    return {name.strip(): position for position, name in enumerate(header)}


def get_field(row: Sequence[str], column_index: Dict[str, int], name: str) -> str:
    """Return the trimmed cell for ``name``; empty for unknown columns or short rows."""
    position = column_index.get(name)
    if position is None or position >= len(row):
        return ''
    return row[position].strip()


def parse_int(value: str) -> Optional[int]:
    """Parse a signed decimal 64-bit integer, or return None."""
    if not _INT_RE.fullmatch(value):
        return None
    number = int(value)
    if number < INT64_MIN or number > INT64_MAX:
        return None
    return number


def parse_optional_int(value: str) -> Optional[int]:
    if not value:
        return None
    return parse_int(value)


def parse_float_or_zero(value: str) -> float:
    """Parse a plain decimal or exponent float; anything else yields 0.0."""
    if not _FLOAT_RE.fullmatch(value):
        return 0.0
    return float(value)


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 date-time with offset; anything else yields None."""
    match = _RFC3339_RE.fullmatch(value)
    if not match:
        return None

    offset = match.group('offset')
    if offset == 'Z':
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == '-' else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            return None
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))

    fraction = match.group('fraction') or '0'
    microsecond = int(fraction[:6].ljust(6, '0'))
    try:
        return datetime(
            int(match.group('year')),
            int(match.group('month')),
            int(match.group('day')),
            int(match.group('hour')),
            int(match.group('minute')),
            int(match.group('second')),
            microsecond,
            tzinfo=tz,
        )
    except ValueError:
        return None


def parse_bool(value: str) -> bool:
    return value.lower() in SCHEDULED_SERVICE_TRUTHY


def parse_airport_row(row: Sequence[str], column_index: Dict[str, int]) -> Optional[Airport]:
    """Build an Airport from one data row.

    Returns None when the row has no usable ``id`` or no IATA code. Bad
    optional cells fall back to their defaults and never reject the row.
    """
    def get(name: str) -> str:
        return get_field(row, column_index, name)

    airport_id = parse_int(get('id'))
    if airport_id is None:
        return None

    iata_code = to_upper_ascii(get('iata_code'))
    if not iata_code:
        return None

    return Airport(
        id=airport_id,
        iata_code=iata_code,
        ident=get('ident'),
        type=get('type'),
        name=get('name'),
        latitude_deg=parse_float_or_zero(get('latitude_deg')),
        longitude_deg=parse_float_or_zero(get('longitude_deg')),
        elevation_ft=parse_optional_int(get('elevation_ft')),
        continent=get('continent'),
        country_name=get('country_name'),
        iso_country=get('iso_country'),
        region_name=get('region_name'),
        iso_region=get('iso_region'),
        local_region=get('local_region'),
        municipality=get('municipality'),
        scheduled_service=parse_bool(get('scheduled_service')),
        gps_code=get('gps_code'),
        icao_code=get('icao_code'),
        local_code=get('local_code'),
        home_link=get('home_link'),
        wikipedia_link=get('wikipedia_link'),
        keywords=get('keywords'),
        score=parse_optional_int(get('score')),
        last_updated=parse_timestamp(get('last_updated')),
    )
