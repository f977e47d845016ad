"""
Ingest pipeline for the DNS log indexer.

Coordinates one run end to end:
- open the log source and prepare the domain store schema
- scan lines in file order through the line parser into an aggregate,
  with a progress monitor sampling the scan cursor
- merge the aggregate into the store in one transaction
- export both reports
"""

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, TextIO

from .aggregator import Aggregator
from .audit_logger import AuditLogger
from .config import SystemConfig, resolve_timezone
from .domain_store import DomainStore
from .enums import LogLevel
from .exceptions import InputError
from .line_parser import LineParser
from .models import IngestResult, ReportSummary
from .progress import ProgressMonitor, ScanCursor
from .report_writer import ReportWriter


def decode_line(raw: bytes) -> str:
    """
    Decode one raw line and drop its terminator (``\\n`` or ``\\r\\n``).

    Bytes that are not valid UTF-8 are kept as surrogate escapes so distinct
    byte strings stay distinct keys.
    """
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw.decode("utf-8", errors="surrogateescape")


def source_size(f: BinaryIO) -> Optional[int]:
    """Size of a regular file in bytes, or None if unknown."""
    try:
        size = os.fstat(f.fileno()).st_size
    except (OSError, ValueError):
        return None
    return size or None


@dataclass
class RunResult:
    """Result of a full ingest-and-export run."""

    ingest: IngestResult
    merged: int
    reports: list[ReportSummary] = field(default_factory=list)


class IngestPipeline:
    """
    Runs scan, merge and export against one configuration.

    The aggregate built by a scan is owned by that scan and handed to the
    store explicitly; nothing is kept between runs except the store itself.
    """

    COMPONENT = "pipeline"

    def __init__(
        self,
        config: SystemConfig,
        logger: Optional[AuditLogger] = None,
        progress_stream: Optional[TextIO] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            config: System configuration
            logger: Optional audit logger
            progress_stream: Stream for the progress line (defaults to stderr)
        """
        self._config = config
        self._logger = logger
        self._progress_stream = progress_stream
        self._parser = LineParser(
            reference_year=config.parser.reference_year,
            tz=resolve_timezone(config.parser.timezone),
        )
        self._store = DomainStore(config.storage.db_path, logger=logger)

    @property
    def store(self) -> DomainStore:
        """The domain store this pipeline merges into."""
        return self._store

    @property
    def parser(self) -> LineParser:
        """The line parser bound to this run's reference year."""
        return self._parser

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

    def _open_source(self, path: Path) -> BinaryIO:
        try:
            return open(path, "rb")
        except OSError as e:
            raise InputError(
                code="input_open",
                message=f"Failed to open log source: {e}",
                details={"path": str(path)},
            )

    def scan(
        self,
        source: BinaryIO,
        path: Path,
        cursor: Optional[ScanCursor] = None,
    ) -> tuple[Aggregator, IngestResult]:
        """
        Scan an open log source into a fresh aggregate.

        Lines are processed strictly in file order. Lines that hold no query
        are counted and skipped.

        Args:
            source: Binary file object positioned at the start
            path: Path of the source, for reporting
            cursor: Cursor to advance (one is created if omitted)

        Returns:
            Tuple of (aggregate, ingest result)

        Raises:
            InputError: If reading fails mid-scan
        """
        cursor = cursor or ScanCursor()
        aggregate = Aggregator()
        debug = self._logger is not None and self._logger.is_enabled_for(LogLevel.DEBUG)
        started = time.monotonic()

        try:
            for raw in source:
                cursor.advance(len(raw))
                observation = self._parser.parse(decode_line(raw))
                if observation is None:
                    if debug:
                        self._log(LogLevel.DEBUG, "Skipped line", {"line_number": cursor.lines})
                    continue
                aggregate.add(observation)
        except OSError as e:
            raise InputError(
                code="scan_io",
                message=f"Failed reading log source: {e}",
                details={"path": str(path), "lines_processed": cursor.lines},
            )

        result = IngestResult(
            source_path=path,
            source_size=source_size(source),
            lines_processed=cursor.lines,
            observations=aggregate.observation_count,
            unique_domains=len(aggregate),
            duration_seconds=time.monotonic() - started,
        )
        return aggregate, result

    def ingest(self, log_path: Optional[Path] = None) -> tuple[IngestResult, int]:
        """
        Scan a log file and merge it into the domain store.

        Args:
            log_path: Log file (defaults to the configured path)

        Returns:
            Tuple of (ingest result, number of records merged)

        Raises:
            InputError: If the log cannot be opened or read
            StorageError: If the store cannot be prepared or merged into
        """
        path = Path(log_path or self._config.log_path)
        self._log(LogLevel.INFO, f"Parsing: {path}", {
            "reference_year": self._parser.reference_year,
        })

        with self._open_source(path) as source:
            self._store.initialize()

            cursor = ScanCursor()
            monitor = ProgressMonitor(
                cursor,
                total_size=source_size(source),
                interval=self._config.progress.interval_seconds,
                stream=self._progress_stream,
                enabled=self._config.progress.enabled,
            )
            with monitor:
                aggregate, result = self.scan(source, path, cursor)
                merged = self._store.merge(aggregate)

        self._log(LogLevel.INFO, "Scan complete", {
            "lines_processed": result.lines_processed,
            "observations": result.observations,
            "unique_domains": result.unique_domains,
            "duration_seconds": round(result.duration_seconds, 3),
        })
        return result, merged

    def export(self) -> list[ReportSummary]:
        """
        Write both reports from the domain store.

        Raises:
            StorageError: If the store cannot be read
            ExportError: If a report cannot be written
        """
        writer = ReportWriter(self._store, self._config.reports, logger=self._logger)
        return writer.export_all()

    def run(self, log_path: Optional[Path] = None) -> RunResult:
        """Ingest a log file, then export both reports."""
        result, merged = self.ingest(log_path)
        reports = self.export()
        self._log(LogLevel.INFO, "Process completed successfully.")
        return RunResult(ingest=result, merged=merged, reports=reports)
