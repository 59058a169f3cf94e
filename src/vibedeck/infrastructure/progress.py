"""Problem-status tracker persisted in the key-value store."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from vibedeck.domain.constants import PROBLEM_STATUSES, PROGRESS_KEY
from vibedeck.domain.review.ports import KeyValueStore, ProgressTracker

logger = logging.getLogger(__name__)


class StoreProgressTracker(ProgressTracker):
    """
    Tracks per-problem status under a single store key.

    Record layout: {problem_id: {"status": ..., "lastAttempted": iso8601, ...}}.
    Unknown fields on a problem entry are preserved on update.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] | None = None):
        self._store = store
        self._clock = clock or (lambda: datetime.now().astimezone())

    def _load(self) -> dict[str, Any]:
        raw = self._store.get(PROGRESS_KEY)
        if isinstance(raw, dict):
            return raw
        if raw is not None:
            logger.warning("Ignoring malformed progress record")
        return {}

    def update_status(self, problem_id: str, status: str) -> None:
        if status not in PROBLEM_STATUSES:
            raise ValueError(f"Unknown status {status!r}; expected one of {PROBLEM_STATUSES}")

        progress = self._load()
        entry = progress.get(problem_id)
        entry = dict(entry) if isinstance(entry, dict) else {}
        entry["status"] = status
        entry["lastAttempted"] = self._clock().isoformat()
        progress[problem_id] = entry
        self._store.set(PROGRESS_KEY, progress)
        logger.info(f"Problem {problem_id} marked {status}")

    def get_status(self, problem_id: str) -> str:
        entry = self._load().get(problem_id)
        if isinstance(entry, dict) and entry.get("status") in PROBLEM_STATUSES:
            return entry["status"]
        return "unseen"

    def get_stats(self) -> dict[str, int]:
        statuses = [
            entry.get("status") for entry in self._load().values() if isinstance(entry, dict)
        ]
        return {
            "total": len(statuses),
            "solved": sum(1 for s in statuses if s in ("solved", "mastered")),
            "attempted": sum(1 for s in statuses if s == "attempted"),
            "mastered": sum(1 for s in statuses if s == "mastered"),
        }
