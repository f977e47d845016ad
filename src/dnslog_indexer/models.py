"""
Data models for the DNS log indexer.

This module defines the records flowing through a run: observations
extracted from log lines, per-domain first/last-seen records, and the
summaries returned by the ingest and export stages.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .enums import ReportOrder


@dataclass(frozen=True)
class Observation:
    """A single (domain, timestamp) extraction from one log line."""

    domain: str  # Queried domain exactly as it appears in the log
    timestamp: int  # Unix epoch seconds


@dataclass
class DomainRecord:
    """First and last time a domain key was seen."""

    key: str  # Label-reversed domain, e.g. com.example.www
    first_seen: int
    last_seen: int

    def observe(self, timestamp: int) -> None:
        """Widen the seen window to include ``timestamp``."""
        if timestamp < self.first_seen:
            self.first_seen = timestamp
        if timestamp > self.last_seen:
            self.last_seen = timestamp


@dataclass
class IngestResult:
    """Outcome of scanning one log source into an aggregate."""

    source_path: Path
    source_size: Optional[int]
    lines_processed: int
    observations: int
    unique_domains: int
    duration_seconds: float


@dataclass
class ReportSummary:
    """A report file written by the export stage."""

    path: Path
    order: ReportOrder
    rows: int
