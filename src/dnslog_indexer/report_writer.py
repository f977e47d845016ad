"""
Report export for the domain store.

Writes the stored records as tab-separated text, one file per order:

    Mar  3 2026 10:15:02 UTC<TAB>Mar  4 2026 08:00:00 UTC<TAB>com.example.www
"""

import os
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Iterable, Optional

import idna

from .audit_logger import AuditLogger
from .config import ReportConfig, resolve_timezone
from .domain_key import domain_from_key
from .domain_store import DomainStore
from .enums import DisplayMode, LogLevel, ReportOrder
from .exceptions import ExportError
from .models import DomainRecord, ReportSummary


IDNA_PREFIX = "xn--"


def format_timestamp(epoch: int, tz: Optional[tzinfo] = None) -> str:
    """
    Render epoch seconds as ``Mon _2 YYYY HH:MM:SS ZONE``.

    Args:
        epoch: Unix timestamp
        tz: Display zone; None means the local system zone
    """
    if tz is None:
        dt = datetime.fromtimestamp(epoch).astimezone()
    else:
        dt = datetime.fromtimestamp(epoch, tz)
    return f"{dt:%b} {dt.day:2d} {dt:%Y %H:%M:%S} {dt.tzname()}"


def decode_idna_labels(name: str) -> str:
    """Decode ``xn--`` labels to Unicode, leaving undecodable labels as-is."""
    labels = []
    for label in name.split("."):
        if label.lower().startswith(IDNA_PREFIX):
            try:
                label = idna.decode(label)
            except (idna.IDNAError, UnicodeError):
                pass
        labels.append(label)
    return ".".join(labels)


def display_name(key: str, display: DisplayMode = DisplayMode.KEY, unicode: bool = False) -> str:
    """Text shown in the domain column for ``key``."""
    name = domain_from_key(key) if display is DisplayMode.DOMAIN else key
    if unicode:
        name = decode_idna_labels(name)
    return name


def format_row(
    record: DomainRecord,
    tz: Optional[tzinfo] = None,
    display: DisplayMode = DisplayMode.KEY,
    unicode: bool = False,
) -> str:
    """Format one report line, without the trailing newline."""
    return "\t".join((
        format_timestamp(record.first_seen, tz),
        format_timestamp(record.last_seen, tz),
        display_name(record.key, display, unicode),
    ))


def write_report(
    records: Iterable[DomainRecord],
    path: Path,
    tz: Optional[tzinfo] = None,
    display: DisplayMode = DisplayMode.KEY,
    unicode: bool = False,
) -> int:
    """
    Write records to ``path``, one tab-separated line each.

    Rows go to a ``.tmp`` sibling that replaces ``path`` only once complete,
    so a failed export never leaves a truncated report behind. Key bytes that
    are not valid UTF-8 are written back out unchanged.

    Returns:
        Number of rows written

    Raises:
        ExportError: If the file cannot be written
    """
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    rows = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
            for record in records:
                f.write(format_row(record, tz, display, unicode) + "\n")
                rows += 1
        os.replace(tmp, path)
    except (OSError, UnicodeError) as e:
        tmp.unlink(missing_ok=True)
        raise ExportError(
            code="export_failed",
            message=f"Failed to write report: {e}",
            details={"path": str(path)},
        )
    return rows


class ReportWriter:
    """Exports the domain store in both report orders."""

    COMPONENT = "report_writer"

    def __init__(
        self,
        store: DomainStore,
        config: ReportConfig,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._store = store
        self._config = config
        self._logger = logger
        self._tz = resolve_timezone(config.timezone)
        self._display = DisplayMode(config.display)

    def report_path(self, order: ReportOrder) -> Path:
        """Output file for ``order``."""
        if order is ReportOrder.BY_FIRST_SEEN:
            filename = self._config.by_first_seen_filename
        else:
            filename = self._config.by_domain_filename
        return Path(self._config.output_dir) / filename

    def export(self, order: ReportOrder) -> ReportSummary:
        """Write the report for one order."""
        path = self.report_path(order)
        records = self._store.fetch_records(order)
        rows = write_report(
            records,
            path,
            tz=self._tz,
            display=self._display,
            unicode=self._config.unicode,
        )
        if self._logger:
            self._logger.log(
                LogLevel.INFO,
                self.COMPONENT,
                f"Saved {rows} unique domains to {path}",
                {"order": order.value, "rows": rows},
            )
        return ReportSummary(path=path, order=order, rows=rows)

    def export_all(self) -> list[ReportSummary]:
        """Write both reports: by domain key, then by first seen."""
        return [
            self.export(ReportOrder.BY_DOMAIN),
            self.export(ReportOrder.BY_FIRST_SEEN),
        ]
