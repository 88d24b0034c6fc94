"""
Tests for the report queue.
"""
import threading

import pytest

from containment.queue import ReportQueue
from containment.types import QueueEntry

from fakes import at, make_report


class TestEnqueue:
    """Test cases for enqueue and deduplication."""

    def test_identical_reports_merge(self):
        """Test N identical reports give one entry with count N."""
        queue = ReportQueue(max_size=10)

        for i in range(7):
            queue.enqueue(make_report("aaa", seconds=i))

        assert len(queue) == 1
        entry = queue.get("aaa")
        assert entry.count == 7
        assert entry.first_seen == at(0)
        assert entry.last_seen == at(6)

    def test_distinct_fingerprints(self):
        queue = ReportQueue(max_size=10)

        for fingerprint in ("a", "b", "c", "a", "b"):
            queue.enqueue(make_report(fingerprint))

        assert len(queue) == 3
        assert queue.get("a").count == 2
        assert queue.get("c").count == 1

    def test_get_returns_copy(self):
        queue = ReportQueue()
        queue.enqueue(make_report("a"))

        queue.get("a").count = 99

        assert queue.get("a").count == 1
        assert queue.get("missing") is None

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ReportQueue(max_size=0)


class TestOverflow:
    """Test cases for the overflow policy."""

    def test_least_recently_updated_is_evicted(self):
        """Test A(t=1), B(t=2), then C(t=3) evicts A."""
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("A", seconds=1))
        queue.enqueue(make_report("B", seconds=2))

        queue.enqueue(make_report("C", seconds=3))

        assert queue.get("A") is None
        assert {e.fingerprint for e in queue.snapshot()} == {"B", "C"}
        assert queue.dropped_count == 1

    def test_update_protects_entry(self):
        """Test a recurring fault stays queued over a stale one."""
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("A", seconds=1))
        queue.enqueue(make_report("B", seconds=2))
        queue.enqueue(make_report("A", seconds=3))

        queue.enqueue(make_report("C", seconds=4))

        assert {e.fingerprint for e in queue.snapshot()} == {"A", "C"}
        assert queue.get("A").count == 2

    def test_merge_does_not_evict(self):
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("A", seconds=1))
        queue.enqueue(make_report("B", seconds=2))

        queue.enqueue(make_report("B", seconds=3))

        assert len(queue) == 2
        assert queue.dropped_count == 0

    def test_distinct_count_capped(self):
        queue = ReportQueue(max_size=5)

        for i in range(12):
            queue.enqueue(make_report(f"fp-{i}", seconds=i))

        assert len(queue) == 5
        assert queue.dropped_count == 7
        assert {e.fingerprint for e in queue.snapshot()} == {f"fp-{i}" for i in range(7, 12)}


class TestDrain:
    """Test cases for drain."""

    def test_oldest_first_seen_first(self):
        queue = ReportQueue()
        queue.enqueue(make_report("late", seconds=5))
        queue.enqueue(make_report("early", seconds=1))
        queue.enqueue(make_report("middle", seconds=3))
        queue.enqueue(make_report("early", seconds=9))

        batch = queue.drain(2)

        assert [e.fingerprint for e in batch] == ["early", "middle"]
        assert batch[0].count == 2
        assert len(queue) == 1

    def test_drain_repeatedly_until_empty(self):
        queue = ReportQueue()
        for i in range(5):
            queue.enqueue(make_report(f"fp-{i}", seconds=i))

        batches = [queue.drain(2), queue.drain(2), queue.drain(2), queue.drain(2)]

        assert [len(b) for b in batches] == [2, 2, 1, 0]
        assert len(queue) == 0

    def test_drain_zero(self):
        queue = ReportQueue()
        queue.enqueue(make_report("a"))

        assert queue.drain(0) == []
        assert len(queue) == 1


class TestRequeue:
    """Test cases for merging failed batches back."""

    def test_counts_are_summed(self):
        """Test occurrences recorded during a failed send are not lost or doubled."""
        queue = ReportQueue()
        queue.enqueue(make_report("a", seconds=1))
        queue.enqueue(make_report("a", seconds=2))
        batch = queue.drain(10)

        queue.enqueue(make_report("a", seconds=3))
        queue.requeue(batch)

        entry = queue.get("a")
        assert entry.count == 3
        assert entry.first_seen == at(1)
        assert entry.last_seen == at(3)
        assert entry.attempts == 1

    def test_requeued_entries_are_evicted_first(self):
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("old", seconds=1))
        batch = queue.drain(1)
        queue.enqueue(make_report("new-1", seconds=2))

        queue.requeue(batch)
        queue.enqueue(make_report("new-2", seconds=3))

        assert {e.fingerprint for e in queue.snapshot()} == {"new-1", "new-2"}
        assert queue.dropped_count == 1

    def test_stale_entries_do_not_evict_fresh_ones(self):
        """Test a full queue keeps live reports newer than the failed batch."""
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("X", seconds=1))
        queue.enqueue(make_report("Y", seconds=2))
        batch = queue.drain(10)
        queue.enqueue(make_report("Z", seconds=10))
        queue.enqueue(make_report("W", seconds=11))

        queue.requeue(batch)

        assert {e.fingerprint for e in queue.snapshot()} == {"Z", "W"}
        assert queue.dropped_count == 2

    def test_fresher_entry_evicts_oldest_live(self):
        queue = ReportQueue(max_size=2)
        queue.enqueue(make_report("X", seconds=5))
        batch = queue.drain(10)
        queue.enqueue(make_report("Z", seconds=1))
        queue.enqueue(make_report("W", seconds=9))

        queue.requeue(batch)

        assert [e.fingerprint for e in queue.snapshot()] == ["X", "W"]
        assert queue.dropped_count == 1

    def test_restore_does_not_count_attempt(self):
        queue = ReportQueue()
        entry = QueueEntry(report=make_report("a"), count=4)

        queue.restore([entry])

        assert queue.get("a").count == 4
        assert queue.get("a").attempts == 0


class TestConcurrency:
    """Test atomicity of enqueue against drain."""

    def test_concurrent_enqueue_and_drain(self):
        queue = ReportQueue(max_size=1000)
        drained: list[QueueEntry] = []
        per_thread = 500

        def produce():
            for i in range(per_thread):
                queue.enqueue(make_report("shared", seconds=i))

        def consume():
            for _ in range(200):
                drained.extend(queue.drain(5))

        threads = [threading.Thread(target=produce) for _ in range(4)]
        threads.append(threading.Thread(target=consume))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        drained.extend(queue.drain(10))
        assert sum(e.count for e in drained) == 4 * per_thread
