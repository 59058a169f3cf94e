import pytest

from vibedeck.domain.constants import PROGRESS_KEY
from vibedeck.infrastructure.progress import StoreProgressTracker
from vibedeck.infrastructure.storage import MemoryStore


@pytest.fixture
def tracker(store, clock):
    return StoreProgressTracker(store, clock=clock)


def test_update_status_records_timestamp(tracker, store, clock):
    tracker.update_status("two-sum", "attempted")

    entry = store.get(PROGRESS_KEY)["two-sum"]
    assert entry["status"] == "attempted"
    assert entry["lastAttempted"] == clock().isoformat()
    assert tracker.get_status("two-sum") == "attempted"


def test_update_preserves_other_fields(store, clock):
    store.set(PROGRESS_KEY, {"two-sum": {"status": "attempted", "notes": "hash map", "bookmarked": True}})
    StoreProgressTracker(store, clock=clock).update_status("two-sum", "solved")

    entry = store.get(PROGRESS_KEY)["two-sum"]
    assert entry["status"] == "solved"
    assert entry["notes"] == "hash map"
    assert entry["bookmarked"] is True


def test_unknown_status_rejected(tracker):
    with pytest.raises(ValueError):
        tracker.update_status("two-sum", "finished")


def test_unseen_default(tracker):
    assert tracker.get_status("never") == "unseen"


def test_stats(tracker):
    tracker.update_status("a", "solved")
    tracker.update_status("b", "attempted")
    tracker.update_status("c", "mastered")

    assert tracker.get_stats() == {"total": 3, "solved": 2, "attempted": 1, "mastered": 1}


def test_malformed_progress_is_ignored(clock):
    store = MemoryStore({PROGRESS_KEY: "[]"})
    tracker = StoreProgressTracker(store, clock=clock)
    assert tracker.get_stats()["total"] == 0

    tracker.update_status("a", "solved")
    assert tracker.get_status("a") == "solved"
