"""
Session queue manager for mixed study sessions.

Keeps a resumable traversal over the items that pass the current filters:
1. Filtering the catalog (kind, category, pattern, difficulty, quality, due)
2. Reconciling the stored queue order with the filtered set
3. Feeding grades back into the review scheduler

State is persisted after every transition so a restart resumes mid-session.
"""

import dataclasses
import logging
import random
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TypeVar

from vibedeck.application.catalog import Catalog
from vibedeck.application.scheduler import Clock, Listener, ReviewScheduler
from vibedeck.domain.constants import (
    CATEGORIES,
    DIFFICULTIES,
    HIGH_QUALITY_THRESHOLD,
    ITEM_KINDS,
    MCQ_CORRECT_QUALITY,
    MCQ_WRONG_QUALITY,
    QUALITY_MODES,
    SESSION_KEY,
    SOLVE_KNOWN_QUALITY,
    SOLVE_NEEDS_WORK_QUALITY,
)
from vibedeck.domain.errors import SessionEmptyError, WrongItemKindError
from vibedeck.domain.review.models import ReviewState
from vibedeck.domain.review.ports import KeyValueStore, ProgressTracker
from vibedeck.domain.session.models import (
    DEFAULT_FILTERS,
    FlashcardItem,
    LearningItem,
    MCQItem,
    SessionFilters,
    SessionRecord,
    SolveItem,
)

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT", FlashcardItem, MCQItem, SolveItem)


def shuffle_ids(ids: Sequence[str], rng: random.Random) -> list[str]:
    """Fisher-Yates shuffle into a new list."""
    shuffled = list(ids)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _valid_subset(values: Any, allowed: Sequence[str], fallback: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        return fallback
    kept: list[str] = []
    for value in values:
        if value in allowed and value not in kept:
            kept.append(value)
    return tuple(kept) or fallback


def sanitize_filters(filters: SessionFilters, catalog: Catalog | None = None) -> SessionFilters:
    """
    Coerce filters into a valid state.

    Unknown kinds/categories are dropped (an emptied set falls back to the
    default), unknown difficulty/quality values reset to their defaults, and
    a pattern the selected categories do not offer resets to "all".
    """
    categories = _valid_subset(filters.categories, CATEGORIES, DEFAULT_FILTERS.categories)

    pattern = filters.pattern if isinstance(filters.pattern, str) and filters.pattern else "all"
    if pattern != "all" and catalog is not None and pattern not in catalog.patterns(categories):
        pattern = "all"

    difficulty = filters.difficulty if filters.difficulty in DIFFICULTIES else "all"
    quality = filters.quality if filters.quality in QUALITY_MODES else DEFAULT_FILTERS.quality

    return SessionFilters(
        kinds=_valid_subset(filters.kinds, ITEM_KINDS, DEFAULT_FILTERS.kinds),
        categories=categories,
        pattern=pattern,
        difficulty=difficulty,
        due_only=bool(filters.due_only),
        quality=quality,
    )


def load_record(store: KeyValueStore) -> SessionRecord:
    """
    Read the persisted session record.

    Absent or malformed data yields a fresh record; this never raises.
    """
    raw = store.get(SESSION_KEY)
    if raw is None:
        return SessionRecord()
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed session record")
        return SessionRecord()

    try:
        raw_filters = raw.get("filters")
        filters = (
            SessionFilters.from_dict(raw_filters) if isinstance(raw_filters, dict) else DEFAULT_FILTERS
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed session filters: {e}")
        filters = DEFAULT_FILTERS

    raw_ids = raw.get("queueIds")
    queue_ids = [v for v in raw_ids if isinstance(v, str)] if isinstance(raw_ids, list) else []

    raw_index = raw.get("currentIndex")
    index = raw_index if isinstance(raw_index, int) and not isinstance(raw_index, bool) else 0

    return SessionRecord(filters=filters, queue_ids=queue_ids, current_index=max(index, 0))


class SessionQueueManager:
    """
    Owns one study session: filters, queue order and current position.

    The manager is the single source of truth for the session; interested
    parties subscribe() instead of reading shared globals.
    """

    def __init__(
        self,
        catalog: Catalog,
        scheduler: ReviewScheduler,
        store: KeyValueStore,
        progress: ProgressTracker | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        self._catalog = catalog
        self._scheduler = scheduler
        self._store = store
        self._progress = progress
        self._clock = clock or scheduler.now
        self._rng = rng or random.Random()
        self._listeners: list[Listener] = []

        record = load_record(store)
        self._filters = sanitize_filters(record.filters, catalog)
        self._queue_ids: list[str] = record.queue_ids
        self._index = record.current_index

        self._reconcile()
        self._persist()

    # -- read-only views --------------------------------------------------

    @property
    def filters(self) -> SessionFilters:
        return self._filters

    @property
    def queue_ids(self) -> list[str]:
        return list(self._queue_ids)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def queue(self) -> list[LearningItem]:
        items = (self._catalog.get(item_id) for item_id in self._queue_ids)
        return [item for item in items if item is not None]

    @property
    def current_item(self) -> LearningItem | None:
        if not self._queue_ids:
            return None
        return self._catalog.get(self._queue_ids[self._index])

    @property
    def is_empty(self) -> bool:
        return not self._queue_ids

    @property
    def progress(self) -> float:
        """Position through the queue as a fraction in (0, 1], or 0 when empty."""
        if not self._queue_ids:
            return 0.0
        return (self._index + 1) / len(self._queue_ids)

    @property
    def record(self) -> SessionRecord:
        return SessionRecord(
            filters=self._filters,
            queue_ids=list(self._queue_ids),
            current_index=self._index,
        )

    def available_patterns(self) -> list[str]:
        return self._catalog.patterns(self._filters.categories)

    # -- filtering ----------------------------------------------------------

    def _due_problem_ids(self, now: datetime) -> set[str]:
        return {
            card.problem_id
            for card in self._catalog.flashcards
            if self._scheduler.is_due(card.card_id, now)
        }

    def _passes(self, item: LearningItem, due_problems: set[str] | None, now: datetime) -> bool:
        f = self._filters
        if item.category not in f.categories:
            return False
        if f.pattern != "all" and item.pattern != f.pattern:
            return False
        if f.difficulty != "all" and item.difficulty != f.difficulty:
            return False
        if f.quality == "high" and item.quality.score < HIGH_QUALITY_THRESHOLD:
            return False
        if f.due_only:
            if isinstance(item, FlashcardItem):
                return self._scheduler.is_due(item.card_id, now)
            return due_problems is not None and item.problem_id in due_problems
        return True

    def filtered_items(self, now: datetime | None = None) -> list[LearningItem]:
        """Items passing the current filters, in catalog order."""
        now = now or self._clock()
        due_problems = self._due_problem_ids(now) if self._filters.due_only else None
        return [
            item
            for item in self._catalog.items(self._filters.kinds)
            if self._passes(item, due_problems, now)
        ]

    def _reconcile(self) -> None:
        """
        Bring the queue back in line with the filtered set.

        Stale ids are pruned (order preserved), newly admitted ids are
        appended in filter order, an emptied queue is reshuffled from
        scratch, and the index is clamped into range.
        """
        filtered_ids = [item.id for item in self.filtered_items()]
        if not filtered_ids:
            self._queue_ids = []
            self._index = 0
            return

        valid = set(filtered_ids)
        seen: set[str] = set()
        pruned: list[str] = []
        for item_id in self._queue_ids:
            if item_id in valid and item_id not in seen:
                pruned.append(item_id)
                seen.add(item_id)

        if not pruned:
            self._queue_ids = shuffle_ids(filtered_ids, self._rng)
            self._index = 0
            return

        pruned.extend(item_id for item_id in filtered_ids if item_id not in seen)
        self._queue_ids = pruned
        self._index = min(max(self._index, 0), len(pruned) - 1)

    # -- transitions ----------------------------------------------------------

    def update_filters(self, **changes: Any) -> SessionFilters:
        """
        Change one or more filter fields and reconcile the queue.

        Accepts the SessionFilters field names (kinds, categories, pattern,
        difficulty, due_only, quality).
        """
        for key in ("kinds", "categories"):
            if key in changes and isinstance(changes[key], list):
                changes[key] = tuple(changes[key])
        self._filters = sanitize_filters(dataclasses.replace(self._filters, **changes), self._catalog)
        logger.info(f"Filters updated: {self._filters}")
        self._reconcile()
        self._commit()
        return self._filters

    def toggle_kind(self, kind: str) -> bool:
        """Toggle an item kind. Refuses (returns False) to deselect the last one."""
        kinds = self._toggled(self._filters.kinds, kind)
        if not kinds:
            return False
        self.update_filters(kinds=kinds)
        return True

    def toggle_category(self, category: str) -> bool:
        """Toggle a category. Refuses (returns False) to deselect the last one."""
        categories = self._toggled(self._filters.categories, category)
        if not categories:
            return False
        self.update_filters(categories=categories)
        return True

    @staticmethod
    def _toggled(values: tuple[str, ...], value: str) -> tuple[str, ...]:
        if value in values:
            return tuple(v for v in values if v != value)
        return (*values, value)

    def set_catalog(self, catalog: Catalog) -> None:
        """Swap in a new content snapshot and reconcile against it."""
        self._catalog = catalog
        self._filters = sanitize_filters(self._filters, catalog)
        self._reconcile()
        self._commit()

    def advance(self) -> None:
        if not self._queue_ids:
            return
        self._index = (self._index + 1) % len(self._queue_ids)
        self._commit()

    def go_back(self) -> None:
        if not self._queue_ids:
            return
        self._index = (self._index - 1) % len(self._queue_ids)
        self._commit()

    def reshuffle(self) -> None:
        """New random order over the current filtered items, back to the start."""
        filtered_ids = [item.id for item in self.filtered_items()]
        if not filtered_ids:
            return
        self._queue_ids = shuffle_ids(filtered_ids, self._rng)
        self._index = 0
        self._commit()

    def reset(self) -> None:
        """
        Start over: default filters, a fresh queue, and no persisted record.

        The record stays deleted until the next transition writes one.
        """
        self._filters = sanitize_filters(DEFAULT_FILTERS, self._catalog)
        self._queue_ids = []
        self._index = 0
        self._store.delete(SESSION_KEY)
        logger.info("Session reset")
        self._reconcile()
        self._notify()

    # -- grading feedback -------------------------------------------------------

    def _require_current(self, kind: type[ItemT]) -> ItemT:
        item = self.current_item
        if item is None:
            raise SessionEmptyError("No items match the current filters")
        if not isinstance(item, kind):
            raise WrongItemKindError(kind.kind, item.kind)
        return item

    def _grade_problem(self, problem_id: str, quality: int) -> int:
        cards = self._catalog.cards_for_problem(problem_id)
        for card in cards:
            self._scheduler.grade(card.card_id, quality)
        return len(cards)

    def _move_past(self, item_id: str, old_index: int) -> None:
        """
        Advance after feedback on item_id.

        If grading dropped the item from the filtered set (due-only mode),
        the item that slid into its slot becomes current instead.
        """
        self._reconcile()
        if self._queue_ids:
            if item_id in self._queue_ids:
                self._index = (self._queue_ids.index(item_id) + 1) % len(self._queue_ids)
            else:
                self._index = old_index % len(self._queue_ids)
        self._commit()

    def review_flashcard(self, quality: int) -> ReviewState:
        """Grade the current flashcard and move on."""
        item = self._require_current(FlashcardItem)
        old_index = self._index
        state = self._scheduler.grade(item.card_id, quality)
        self._move_past(item.id, old_index)
        return state

    def answer_mcq(self, option_index: int) -> bool:
        """
        Check an MCQ answer and move on.

        MCQs have no schedule of their own: correctness is applied as a
        grade to every flashcard of the parent problem.
        """
        item = self._require_current(MCQItem)
        old_index = self._index
        correct = option_index == item.correct_index
        quality = MCQ_CORRECT_QUALITY if correct else MCQ_WRONG_QUALITY
        graded = self._grade_problem(item.problem_id, quality)
        logger.debug(f"MCQ {item.mcq_id} correct={correct}, graded {graded} cards")
        self._move_past(item.id, old_index)
        return correct

    def solve_feedback(self, knows_it: bool) -> str:
        """
        Record a self-report on a solve prompt and move on.

        Returns the problem status that was sent to the progress tracker.
        """
        item = self._require_current(SolveItem)
        old_index = self._index
        if knows_it:
            quality, status = SOLVE_KNOWN_QUALITY, "solved"
        else:
            quality, status = SOLVE_NEEDS_WORK_QUALITY, "attempted"
        self._grade_problem(item.problem_id, quality)
        if self._progress is not None:
            self._progress.update_status(item.problem_id, status)
        self._move_past(item.id, old_index)
        return status

    # -- persistence & notification ----------------------------------------------

    def _persist(self) -> None:
        self._store.set(SESSION_KEY, self.record.to_dict())

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener for session changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
