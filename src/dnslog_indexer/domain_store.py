"""
Domain Store module for durable first/last-seen records.

Records live in a SQLite table keyed by the reversed domain. Merging a run's
aggregate is a single transaction of conditional upserts that keep the
minimum first-seen and maximum last-seen per key, so merging the same data
twice, or overlapping data in either order, converges to the same rows.

Every operation opens and closes its own connection; no handle outlives the
call that needed it.
"""

import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .audit_logger import AuditLogger
from .enums import LogLevel, ReportOrder
from .exceptions import StorageError
from .models import DomainRecord


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS domains (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT UNIQUE NOT NULL,
    first_seen INTEGER NOT NULL,
    last_seen INTEGER NOT NULL
)
"""

UPSERT_SQL = """
INSERT INTO domains (domain, first_seen, last_seen)
VALUES (CAST(? AS TEXT), ?, ?)
ON CONFLICT(domain) DO UPDATE SET
    first_seen = MIN(first_seen, excluded.first_seen),
    last_seen = MAX(last_seen, excluded.last_seen)
"""

# Keys are bound as raw UTF-8 bytes and cast to TEXT so that bytes which
# are not valid UTF-8 (carried in str as surrogate escapes) survive unchanged.
KEY_ENCODING = "utf-8"
KEY_ERRORS = "surrogateescape"

ORDER_CLAUSES = {
    ReportOrder.BY_DOMAIN: "ORDER BY domain ASC",
    # Key breaks ties so repeated exports are identical
    ReportOrder.BY_FIRST_SEEN: "ORDER BY first_seen DESC, domain ASC",
}


def encode_key(key: str) -> bytes:
    """Bytes stored for ``key``."""
    return key.encode(KEY_ENCODING, KEY_ERRORS)


def decode_key(raw: bytes) -> str:
    """Inverse of :func:`encode_key`, used as the connection text factory."""
    return raw.decode(KEY_ENCODING, KEY_ERRORS)


class DomainStore:
    """
    SQLite-backed store of DomainRecord rows.

    Provides idempotent schema creation, transactional merging of a run's
    aggregate, and ordered read-back for reports.
    """

    COMPONENT = "domain_store"

    def __init__(self, db_path: Path, logger: Optional[AuditLogger] = None) -> None:
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database file
            logger: Optional audit logger
        """
        self._db_path = Path(db_path)
        self._logger = logger

    @property
    def db_path(self) -> Path:
        """Get the database file path."""
        return self._db_path

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

    @contextmanager
    def _connect(self, read_only: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Open a connection scoped to one operation.

        Read-only connections refuse to create a missing database file.
        """
        try:
            if read_only:
                uri = self._db_path.resolve().as_uri() + "?mode=ro"
                conn = sqlite3.connect(uri, uri=True)
            else:
                conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StorageError(
                code="storage_open",
                message=f"Failed to open domain store: {e}",
                details={"db_path": str(self._db_path)},
            )

        conn.text_factory = decode_key
        with closing(conn):
            yield conn

    def initialize(self) -> None:
        """
        Create the domains table if it does not exist.

        Raises:
            StorageError: If the database cannot be opened or the schema created
        """
        with self._connect() as conn:
            try:
                with conn:
                    conn.execute(CREATE_TABLE_SQL)
            except sqlite3.Error as e:
                raise StorageError(
                    code="schema",
                    message=f"Failed to create schema: {e}",
                    details={"db_path": str(self._db_path)},
                )
        self._log(LogLevel.DEBUG, "Schema ready", {"db_path": str(self._db_path)})

    def merge(self, records: Iterable[DomainRecord]) -> int:
        """
        Reconcile records into the store in a single transaction.

        For each key the stored first_seen becomes the minimum and last_seen
        the maximum of the stored and incoming values. If any row fails, the
        whole transaction is rolled back and the store is left unchanged.

        Args:
            records: Records to merge, typically an Aggregator

        Returns:
            Number of records reconciled

        Raises:
            StorageError: If the transaction fails
        """
        try:
            rows = [(encode_key(r.key), r.first_seen, r.last_seen) for r in records]
        except UnicodeEncodeError as e:
            raise StorageError(
                code="merge_failed",
                message=f"Domain key cannot be stored: {e}",
                details={"db_path": str(self._db_path)},
            )

        with self._connect() as conn:
            try:
                with conn:
                    conn.executemany(UPSERT_SQL, rows)
            except sqlite3.Error as e:
                self._log(LogLevel.ERROR, "Merge rolled back", {"error": str(e)})
                raise StorageError(
                    code="merge_failed",
                    message=f"Failed to merge domains: {e}",
                    details={"db_path": str(self._db_path), "records": len(rows)},
                )

        self._log(LogLevel.INFO, "Merged domains", {"records": len(rows)})
        return len(rows)

    def _query(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self._connect(read_only=True) as conn:
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(
                    code="query_failed",
                    message=f"Failed to read domain store: {e}",
                    details={"db_path": str(self._db_path)},
                )

    def fetch_records(self, order: ReportOrder = ReportOrder.BY_DOMAIN) -> list[DomainRecord]:
        """
        Read every stored record in the given order.

        Args:
            order: Report order

        Returns:
            List of DomainRecord
        """
        sql = f"SELECT domain, first_seen, last_seen FROM domains {ORDER_CLAUSES[order]}"
        return [
            DomainRecord(key=domain, first_seen=first_seen, last_seen=last_seen)
            for domain, first_seen, last_seen in self._query(sql)
        ]

    def get(self, key: str) -> Optional[DomainRecord]:
        """Get the stored record for ``key``, or None."""
        rows = self._query(
            "SELECT domain, first_seen, last_seen FROM domains WHERE domain = CAST(? AS TEXT)",
            (encode_key(key),),
        )
        if not rows:
            return None
        domain, first_seen, last_seen = rows[0]
        return DomainRecord(key=domain, first_seen=first_seen, last_seen=last_seen)

    def count(self) -> int:
        """Number of stored domains."""
        return self._query("SELECT COUNT(*) FROM domains")[0][0]
