"""
Bounded, deduplicating buffer of reports waiting for delivery.
"""
import logging
import threading
from collections import OrderedDict
from typing import Iterable, Optional

from .types import QueueEntry, ReportRecord

logger = logging.getLogger(__name__)


class ReportQueue:
    """Pending reports keyed by fingerprint.

    Entries are kept in least-recently-updated order so overflow evicts the
    stalest fingerprint. Every public operation runs under one lock, which
    is never held across I/O.
    """

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.dropped_count = 0
        self._entries: "OrderedDict[str, QueueEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def enqueue(self, report: ReportRecord) -> None:
        """Record one occurrence of a report."""
        with self._lock:
            entry = self._entries.get(report.fingerprint)
            if entry is not None:
                entry.count += 1
                entry.last_seen = max(entry.last_seen, report.timestamp)
                self._entries.move_to_end(report.fingerprint)
                return

            self._make_room()
            self._entries[report.fingerprint] = QueueEntry(report=report)

    def drain(self, max_batch: int) -> list[QueueEntry]:
        """Remove and return up to ``max_batch`` entries, oldest first-seen first."""
        if max_batch < 1:
            return []
        with self._lock:
            batch = sorted(self._entries.values(), key=lambda e: e.first_seen)[:max_batch]
            for entry in batch:
                del self._entries[entry.fingerprint]
        return batch

    def requeue(self, entries: Iterable[QueueEntry]) -> None:
        """Merge entries that failed delivery back into the queue.

        Counts are summed with anything recorded since the drain, so the
        total matches the real number of occurrences. Fingerprints not
        currently queued are placed by their last_seen; when the queue is
        full, one older than every live entry is dropped instead of
        evicting fresher reports.
        """
        self._merge_back(entries, failed=True)

    def restore(self, entries: Iterable[QueueEntry]) -> None:
        """Load entries spooled by a previous session."""
        self._merge_back(entries, failed=False)

    def get(self, fingerprint: str) -> Optional[QueueEntry]:
        """Return a copy of the entry for ``fingerprint``, if queued."""
        with self._lock:
            entry = self._entries.get(fingerprint)
            return entry.copy() if entry is not None else None

    def snapshot(self) -> list[QueueEntry]:
        """Copies of all entries, least recently updated first."""
        with self._lock:
            return [entry.copy() for entry in self._entries.values()]

    def _make_room(self) -> None:
        # Caller holds the lock.
        while len(self._entries) >= self.max_size:
            fingerprint, evicted = self._entries.popitem(last=False)
            self.dropped_count += 1
            logger.warning(
                f"Report queue full ({self.max_size}); dropped {fingerprint[:12]} "
                f"seen {evicted.count} time(s)"
            )

    def _merge_back(self, entries: Iterable[QueueEntry], failed: bool) -> None:
        with self._lock:
            returning = sorted(entries, key=lambda e: e.last_seen, reverse=True)
            for entry in returning:
                if failed:
                    entry.attempts += 1
                current = self._entries.get(entry.fingerprint)
                if current is not None:
                    current.merge(entry)
                    continue

                if len(self._entries) >= self.max_size:
                    oldest = next(iter(self._entries.values()))
                    if entry.last_seen <= oldest.last_seen:
                        self.dropped_count += 1
                        logger.warning(
                            f"Report queue full ({self.max_size}); dropped returning "
                            f"{entry.fingerprint[:12]} seen {entry.count} time(s)"
                        )
                        continue
                    self._make_room()
                self._insert_by_last_seen(entry)

    def _insert_by_last_seen(self, entry: QueueEntry) -> None:
        # Caller holds the lock. Keeps the entry behind everything updated later.
        newer = [fp for fp, e in self._entries.items() if e.last_seen > entry.last_seen]
        self._entries[entry.fingerprint] = entry
        for fingerprint in newer:
            self._entries.move_to_end(fingerprint)
