"""
Enumeration types for the DNS log indexer.
"""

from enum import Enum


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def severity(self) -> int:
        """Numeric rank used for level filtering."""
        return _SEVERITY[self]


_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


class ReportOrder(Enum):
    """Row order of an exported report."""

    BY_DOMAIN = "by_domain"
    BY_FIRST_SEEN = "by_first_seen"


class DisplayMode(Enum):
    """How the domain column of a report is rendered."""

    KEY = "key"  # Reversed key, e.g. com.example.www
    DOMAIN = "domain"  # Original label order, e.g. www.example.com
