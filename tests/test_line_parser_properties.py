"""
Property-based tests for the line parser module.

Uses Hypothesis to check timestamp and domain extraction from dnsmasq log
lines, and that malformed lines are rejected without raising.
"""

from datetime import datetime, timezone

from hypothesis import given, settings, assume
from hypothesis import strategies as st

from dnslog_indexer.line_parser import (
    LineParser,
    find_queried_domain,
    parse_line,
    parse_timestamp,
)
from dnslog_indexer.models import Observation


MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DOMAIN_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-"


# Strategies for generating valid test data

@st.composite
def stamp_strategy(draw) -> tuple[str, datetime]:
    """Generate a syslog stamp and the UTC datetime it denotes in 2026."""
    month = draw(st.integers(min_value=1, max_value=12))
    day = draw(st.integers(min_value=1, max_value=28))
    hour = draw(st.integers(min_value=0, max_value=23))
    minute = draw(st.integers(min_value=0, max_value=59))
    second = draw(st.integers(min_value=0, max_value=59))
    stamp = f"{MONTHS[month - 1]} {day:2d} {hour:02d}:{minute:02d}:{second:02d}"
    expected = datetime(2026, month, day, hour, minute, second, tzinfo=timezone.utc)
    return stamp, expected


@st.composite
def domain_strategy(draw) -> str:
    """Generate dotted domain names."""
    labels = draw(st.lists(
        st.text(alphabet=st.sampled_from(DOMAIN_ALPHABET), min_size=1, max_size=15),
        min_size=1,
        max_size=5,
    ))
    return ".".join(labels)


@st.composite
def query_line_strategy(draw) -> tuple[str, str, datetime]:
    """Generate a dnsmasq query line with its expected domain and time."""
    stamp, expected = draw(stamp_strategy())
    domain = draw(domain_strategy())
    pid = draw(st.integers(min_value=1, max_value=99999))
    qtype = draw(st.sampled_from(["A", "AAAA", "HTTPS", "PTR", "MX", "TXT"]))
    client = draw(st.sampled_from(["127.0.0.1", "192.168.1.20", "::1"]))
    line = f"{stamp} dnsmasq[{pid}]: query[{qtype}] {domain} from {client}"
    return line, domain, expected


class TestQueryExtractionProperty:
    """Query lines yield the queried domain and its timestamp."""

    def test_example_line(self) -> None:
        """The documented example line parses to its domain and time."""
        line = "Mar  3 10:15:02 dnsmasq: query[A] www.Example.com from 127.0.0.1"
        observation = parse_line(line, year=2026)

        expected = int(datetime(2026, 3, 3, 10, 15, 2, tzinfo=timezone.utc).timestamp())
        assert observation == Observation(domain="www.Example.com", timestamp=expected)

    def test_default_year_is_current_year(self) -> None:
        """Without an explicit year the current year is assumed."""
        observation = parse_line("Mar  3 10:15:02 dnsmasq: query[A] example.com from ::1")

        assert observation is not None
        parsed = datetime.fromtimestamp(observation.timestamp, timezone.utc)
        assert parsed.year == datetime.now(timezone.utc).year
        assert (parsed.month, parsed.day) == (3, 3)

    @given(data=query_line_strategy())
    @settings(max_examples=100)
    def test_query_lines_are_extracted(self, data: tuple[str, str, datetime]) -> None:
        """
        *For any* well-formed query line, the parser returns the token after
        ``query[...]`` and the stamp as epoch seconds.
        """
        line, domain, expected = data
        observation = parse_line(line, year=2026)

        assert observation is not None
        assert observation.domain == domain
        assert observation.timestamp == int(expected.timestamp())

    def test_first_query_marker_wins(self) -> None:
        """Only the first ``query[`` token is used."""
        line = "Mar 13 01:02:03 dnsmasq[1]: query[A] first.com query[AAAA] second.com"
        observation = parse_line(line, year=2026)

        assert observation is not None
        assert observation.domain == "first.com"

    def test_domain_passes_through_unvalidated(self) -> None:
        """Trailing punctuation in the domain token is kept."""
        line = "Mar 13 01:02:03 dnsmasq[1]: query[A] odd.example.com, from 10.0.0.1"
        observation = parse_line(line, year=2026)

        assert observation is not None
        assert observation.domain == "odd.example.com,"

    def test_timezone_shifts_epoch(self) -> None:
        """The same stamp read in a different zone maps to a different epoch."""
        from datetime import timedelta

        plus_two = timezone(timedelta(hours=2))
        line = "Jun  1 12:00:00 dnsmasq[1]: query[A] example.com from ::1"

        utc = parse_line(line, year=2026, tz=timezone.utc)
        shifted = parse_line(line, year=2026, tz=plus_two)

        assert utc is not None and shifted is not None
        assert utc.timestamp - shifted.timestamp == 7200

    def test_leap_day_uses_reference_year(self) -> None:
        """Feb 29 only parses when the reference year is a leap year."""
        line = "Feb 29 00:00:00 dnsmasq[1]: query[A] leap.example from ::1"

        assert parse_line(line, year=2028) is not None
        assert parse_line(line, year=2026) is None


class TestMalformedLineProperty:
    """Malformed lines yield no observation and never raise."""

    @given(line=st.text(max_size=14))
    @settings(max_examples=100)
    def test_short_lines_rejected(self, line: str) -> None:
        """*For any* line shorter than 15 characters, the result is None."""
        assert parse_line(line, year=2026) is None

    @given(
        prefix=st.text(
            alphabet=st.sampled_from("XYZxyz!?#"),
            min_size=15,
            max_size=15,
        ),
        domain=domain_strategy(),
    )
    @settings(max_examples=100)
    def test_bad_timestamp_rejected(self, prefix: str, domain: str) -> None:
        """*For any* unparsable timestamp field, the result is None."""
        line = f"{prefix} dnsmasq[1]: query[A] {domain} from 127.0.0.1"
        assert parse_line(line, year=2026) is None

    @given(
        stamp=stamp_strategy(),
        message=st.text(
            alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789 .:"),
            max_size=80,
        ),
    )
    @settings(max_examples=100)
    def test_missing_marker_rejected(self, stamp: tuple[str, datetime], message: str) -> None:
        """*For any* line without a ``query[`` token, the result is None."""
        line = f"{stamp[0]} dnsmasq[1]: {message}"
        assert parse_line(line, year=2026) is None

    @given(stamp=stamp_strategy(), domain=domain_strategy())
    @settings(max_examples=100)
    def test_misaligned_stamp_rejected(self, stamp: tuple[str, datetime], domain: str) -> None:
        """*For any* stamp shifted right by a leading space, the result is None."""
        line = f" {stamp[0]} dnsmasq[1]: query[A] {domain} from 127.0.0.1"
        assert parse_line(line, year=2026) is None

    def test_leading_space_rejected(self) -> None:
        line = " Mar 3 10:15:02 dnsmasq: query[A] x.com from y"
        assert parse_line(line, year=2026) is None

    def test_tab_separated_stamp_rejected(self) -> None:
        for stamp in ("Mar\t 3 10:15:02", "Mar  3\t10:15:02", "Mar \t3 10:15:02"):
            line = f"{stamp} dnsmasq[1]: query[A] x.com from y"
            assert parse_line(line, year=2026) is None

    def test_marker_without_domain_rejected(self) -> None:
        """A trailing ``query[A]`` with no following token is not a match."""
        assert parse_line("Mar  3 10:15:02 dnsmasq[1]: query[A]", year=2026) is None

    def test_marker_must_prefix_token(self) -> None:
        """``query[`` inside a token does not count."""
        line = "Mar  3 10:15:02 dnsmasq[1]: xquery[A] example.com from ::1"
        assert parse_line(line, year=2026) is None

    def test_reply_lines_rejected(self) -> None:
        """Reply, cached and forwarded lines hold no query."""
        for message in (
            "reply example.com is 1.1.1.1",
            "cached example.com is 1.1.1.1",
            "forwarded example.com to 8.8.8.8",
        ):
            assert parse_line(f"Mar  3 10:15:02 dnsmasq[1]: {message}", year=2026) is None


class TestHelpers:
    """Direct tests of the parser's building blocks."""

    def test_parse_timestamp_space_padded_day(self) -> None:
        expected = int(datetime(2026, 1, 5, 0, 0, 1, tzinfo=timezone.utc).timestamp())
        assert parse_timestamp("Jan  5 00:00:01", 2026) == expected

    def test_parse_timestamp_zero_padded_day(self) -> None:
        expected = int(datetime(2026, 1, 5, 0, 0, 1, tzinfo=timezone.utc).timestamp())
        assert parse_timestamp("Jan 05 00:00:01", 2026) == expected

    def test_parse_timestamp_rejects_garbage(self) -> None:
        assert parse_timestamp("not a timestamp", 2026) is None
        assert parse_timestamp("Jan  5 0:00:01 ", 2026) is None
        assert parse_timestamp("Jan 32 00:00:01", 2026) is None

    def test_find_queried_domain(self) -> None:
        assert find_queried_domain(" dnsmasq[1]: query[A] a.b.com from x") == "a.b.com"
        assert find_queried_domain(" dnsmasq[1]: started") is None


class TestLineParser:
    """The bound parser applies one reference year to every line."""

    @given(data=query_line_strategy())
    @settings(max_examples=50)
    def test_bound_parser_matches_function(self, data: tuple[str, str, datetime]) -> None:
        line, _, _ = data
        parser = LineParser(reference_year=2026)
        assert parser.parse(line) == parse_line(line, year=2026)

    def test_reference_year_defaults_to_now(self) -> None:
        parser = LineParser()
        assert parser.reference_year == datetime.now(timezone.utc).year

    @given(year=st.integers(min_value=1971, max_value=2100))
    @settings(max_examples=30)
    def test_reference_year_applied(self, year: int) -> None:
        assume(year != 2026)
        parser = LineParser(reference_year=year)
        observation = parser.parse("Jul  4 08:30:00 dnsmasq[1]: query[A] example.com from ::1")

        assert observation is not None
        assert datetime.fromtimestamp(observation.timestamp, timezone.utc).year == year
