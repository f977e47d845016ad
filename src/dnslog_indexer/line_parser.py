"""
Log line parsing module.

Extracts the queried domain and its timestamp from dnsmasq-style log lines:

    Mar  3 10:15:02 dnsmasq[2696]: query[A] www.example.com from 127.0.0.1

The leading 15 characters are a syslog timestamp without a year; the domain is
the token following the first token that starts with ``query[``.
"""

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from dnslog_indexer.models import Observation


TIMESTAMP_WIDTH = 15
TIMESTAMP_FORMAT = "%Y %b %d %H:%M:%S"
QUERY_MARKER = "query["

# Mon _2 HH:MM:SS, single spaces, day padded with a space or zero
TIMESTAMP_SHAPE = re.compile(r"[A-Za-z]{3} [ \d]\d \d\d:\d\d:\d\d", re.ASCII)


def parse_timestamp(
    stamp: str,
    year: int,
    tz: Optional[tzinfo] = timezone.utc,
) -> Optional[int]:
    """
    Convert a ``Mon _2 HH:MM:SS`` stamp to epoch seconds.

    Args:
        stamp: The fixed-width timestamp field
        year: Year to assume, since the log format carries none
        tz: Zone the stamp is expressed in; None means the local zone

    Returns:
        Epoch seconds, or None if the stamp does not parse
    """
    # strptime lets one format space match any run of whitespace
    if not TIMESTAMP_SHAPE.fullmatch(stamp):
        return None
    try:
        parsed = datetime.strptime(f"{year} {stamp}", TIMESTAMP_FORMAT)
    except ValueError:
        return None

    if tz is not None:
        parsed = parsed.replace(tzinfo=tz)
    return int(parsed.timestamp())


def find_queried_domain(message: str) -> Optional[str]:
    """Return the token after the first ``query[...]`` token, if any."""
    fields = message.split()
    for index, token in enumerate(fields[:-1]):
        if token.startswith(QUERY_MARKER):
            return fields[index + 1]
    return None


def parse_line(
    line: str,
    year: Optional[int] = None,
    tz: Optional[tzinfo] = timezone.utc,
) -> Optional[Observation]:
    """
    Extract an observation from one log line.

    Never raises on malformed input: short lines, unparsable timestamps and
    lines without a query marker all return None.

    Args:
        line: A single log line without its line terminator
        year: Year to assign to the timestamp (defaults to the current year)
        tz: Zone the log timestamps are written in; None means the local zone

    Returns:
        Observation, or None if the line holds no query
    """
    if len(line) < TIMESTAMP_WIDTH:
        return None

    if year is None:
        year = datetime.now(tz).year

    timestamp = parse_timestamp(line[:TIMESTAMP_WIDTH], year, tz)
    if timestamp is None:
        return None

    domain = find_queried_domain(line[TIMESTAMP_WIDTH:])
    if domain is None:
        return None

    return Observation(domain=domain, timestamp=timestamp)


class LineParser:
    """
    Parser bound to a single reference year and timezone.

    A run binds its year once so that every line of a file is dated the same
    way, even when the clock crosses a year boundary mid-scan.
    """

    def __init__(
        self,
        reference_year: Optional[int] = None,
        tz: Optional[tzinfo] = timezone.utc,
    ) -> None:
        """
        Initialize the parser.

        Args:
            reference_year: Year assigned to every timestamp (defaults to now)
            tz: Zone the log timestamps are written in; None means local
        """
        self._tz = tz
        self._year = reference_year if reference_year is not None else datetime.now(tz).year

    @property
    def reference_year(self) -> int:
        """Year assigned to parsed timestamps."""
        return self._year

    def parse(self, line: str) -> Optional[Observation]:
        """Parse one line; see :func:`parse_line`."""
        return parse_line(line, year=self._year, tz=self._tz)
