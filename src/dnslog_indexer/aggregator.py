"""
In-memory aggregation of observations for a single run.

The aggregate maps each domain key to the earliest and latest timestamp seen
for it. Folding is min/max per key, so the result does not depend on the
order observations arrive in.
"""

from typing import Iterator, Optional

from dnslog_indexer.domain_key import reverse_domain
from dnslog_indexer.models import DomainRecord, Observation


class Aggregator:
    """
    Mutable key -> DomainRecord mapping owned by one scan.

    Not thread-safe; only the scanning thread touches it.
    """

    def __init__(self) -> None:
        self._records: dict[str, DomainRecord] = {}
        self._observations = 0

    def observe(self, key: str, timestamp: int) -> DomainRecord:
        """
        Fold one timestamp into the record for ``key``.

        Args:
            key: Domain key (already label-reversed)
            timestamp: Epoch seconds

        Returns:
            The updated record
        """
        self._observations += 1
        record = self._records.get(key)
        if record is None:
            record = DomainRecord(key=key, first_seen=timestamp, last_seen=timestamp)
            self._records[key] = record
        else:
            record.observe(timestamp)
        return record

    def observe_domain(self, domain: str, timestamp: int) -> DomainRecord:
        """Normalize ``domain`` to its key and observe it."""
        return self.observe(reverse_domain(domain), timestamp)

    def add(self, observation: Observation) -> DomainRecord:
        """Observe a parsed log line."""
        return self.observe_domain(observation.domain, observation.timestamp)

    def merge(self, other: "Aggregator") -> None:
        """Fold every record of ``other`` into this aggregate."""
        for record in other:
            mine = self._records.get(record.key)
            if mine is None:
                self._records[record.key] = DomainRecord(
                    key=record.key,
                    first_seen=record.first_seen,
                    last_seen=record.last_seen,
                )
            else:
                mine.observe(record.first_seen)
                mine.observe(record.last_seen)
        self._observations += other.observation_count

    def get(self, key: str) -> Optional[DomainRecord]:
        """Get the record for ``key``, or None if never observed."""
        return self._records.get(key)

    def records(self) -> list[DomainRecord]:
        """All records, sorted by key."""
        return [self._records[key] for key in sorted(self._records)]

    @property
    def observation_count(self) -> int:
        """Number of observations folded in so far."""
        return self._observations

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[DomainRecord]:
        return iter(list(self._records.values()))
