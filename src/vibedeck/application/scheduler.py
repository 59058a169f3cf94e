"""
Review scheduler: SM-2 spaced repetition over a key-value store.

Grades are persisted immediately; due checks are evaluated lazily against
an injectable clock.

Ease adjustments (SM-2 variant):
    lapse (quality 0-1): ease - 0.2, floored at 1.3; interval reset to 1 day
    good  (quality 2):   ease unchanged
    easy  (quality 3):   ease + 0.15
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

from vibedeck.domain.constants import (
    EASY_EASE_BONUS,
    FIRST_INTERVAL,
    GOOD_EASE_BONUS,
    LAPSE_EASE_PENALTY,
    LAPSE_INTERVAL,
    MAX_QUALITY,
    MIN_EASE,
    MIN_QUALITY,
    PASSING_QUALITY,
    REVIEW_DATA_KEY,
    SECOND_INTERVAL,
    STREAK_KEY,
    TOTAL_REVIEWS_KEY,
)
from vibedeck.domain.review.models import ReviewState, ReviewStats
from vibedeck.domain.review.ports import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]
Listener = Callable[[], None]


def local_now() -> datetime:
    """Timezone-aware wall-clock time in the local zone."""
    return datetime.now().astimezone()


def clamp_quality(quality: int) -> int:
    """
    Clamp a recall rating into 0..3.

    Out-of-range ratings can only come from a buggy caller, so they are
    logged and clamped instead of raised.
    """
    clamped = max(MIN_QUALITY, min(MAX_QUALITY, int(quality)))
    if clamped != quality:
        logger.warning(f"Quality {quality} out of range, clamped to {clamped}")
    return clamped


def next_state(state: ReviewState, quality: int, now: datetime) -> ReviewState:
    """
    Apply one SM-2 step. Pure: returns a new state, does not touch state.
    """
    if quality < PASSING_QUALITY:
        return ReviewState(
            ease_factor=max(MIN_EASE, state.ease_factor - LAPSE_EASE_PENALTY),
            interval=LAPSE_INTERVAL,
            repetitions=0,
            last_review=now,
        )

    repetitions = state.repetitions + 1
    if repetitions == 1:
        interval = FIRST_INTERVAL
    elif repetitions == 2:
        interval = SECOND_INTERVAL
    else:
        interval = round(state.interval * state.ease_factor)

    bonus = EASY_EASE_BONUS if quality == MAX_QUALITY else GOOD_EASE_BONUS
    return ReviewState(
        ease_factor=max(MIN_EASE, state.ease_factor + bonus),
        interval=interval,
        repetitions=repetitions,
        last_review=now,
    )


class ReviewScheduler:
    """
    Tracks ReviewState per card id and answers "what is due now".

    The store is the single source of truth: state is loaded once at
    construction and written back after every grade.
    """

    def __init__(self, store: KeyValueStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or local_now
        self._states: dict[str, ReviewState] = self._load_states()
        self._listeners: list[Listener] = []

    def _load_states(self) -> dict[str, ReviewState]:
        raw = self._store.get(REVIEW_DATA_KEY)
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Ignoring malformed review data")
            return {}

        states: dict[str, ReviewState] = {}
        for card_id, data in raw.items():
            try:
                states[card_id] = ReviewState.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Dropping malformed review state for {card_id}: {e}")
        return states

    def now(self) -> datetime:
        return self._clock()

    # -- lookups ---------------------------------------------------------

    def get_state(self, card_id: str) -> ReviewState | None:
        """Stored state for card_id, or None if it has never been graded."""
        return self._states.get(card_id)

    def state_or_default(self, card_id: str) -> ReviewState:
        """
        State for card_id, default-constructed for never-seen cards.

        This is the only place a missing state turns into defaults.
        """
        state = self.get_state(card_id)
        if state is None:
            return ReviewState()
        return state

    def next_due(self, card_id: str) -> datetime | None:
        state = self.get_state(card_id)
        return state.due_at if state else None

    def is_due(self, card_id: str, now: datetime | None = None) -> bool:
        """Never-graded cards are always due."""
        due_at = self.next_due(card_id)
        if due_at is None:
            return True
        return due_at <= (now or self._clock())

    def due_items(
        self,
        items: Iterable[T],
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[T]:
        """
        Filter items (anything with a card_id attribute) down to the due ones.

        Input order is preserved; limit caps the result size.
        """
        now = now or self._clock()
        due: list[T] = []
        for item in items:
            if limit is not None and len(due) >= limit:
                break
            if self.is_due(item.card_id, now):  # type: ignore[attr-defined]
                due.append(item)
        return due

    def due_card_ids(self, card_ids: Iterable[str], now: datetime | None = None) -> set[str]:
        now = now or self._clock()
        return {cid for cid in card_ids if self.is_due(cid, now)}

    # -- grading ---------------------------------------------------------

    def grade(self, card_id: str, quality: int) -> ReviewState:
        """
        Record a review of card_id with a recall rating.

        Args:
            card_id: Opaque card identifier.
            quality: 0=again, 1=hard, 2=good, 3=easy. Clamped into range.

        Returns:
            The updated ReviewState (already persisted).
        """
        quality = clamp_quality(quality)
        now = self._clock()

        state = next_state(self.state_or_default(card_id), quality, now)
        self._states[card_id] = state

        self._persist_states()
        self._record_review(now.date())
        logger.debug(
            f"Graded {card_id} q={quality}: interval={state.interval} "
            f"ease={state.ease_factor:.2f} reps={state.repetitions}"
        )
        self._notify()
        return state

    def _persist_states(self) -> None:
        self._store.set(
            REVIEW_DATA_KEY,
            {cid: state.to_dict() for cid, state in self._states.items()},
        )

    def _record_review(self, today: date) -> None:
        total = self._read_total()
        self._store.set(TOTAL_REVIEWS_KEY, total + 1)

        count, last_date = self._read_streak()
        if last_date != today:
            count = count + 1 if last_date == today - timedelta(days=1) else 1
        self._store.set(STREAK_KEY, {"count": count, "lastDate": today.isoformat()})

    # -- stats -----------------------------------------------------------

    def _read_total(self) -> int:
        raw = self._store.get(TOTAL_REVIEWS_KEY)
        if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
            return raw
        return 0

    def _read_streak(self) -> tuple[int, date | None]:
        raw: Any = self._store.get(STREAK_KEY)
        if not isinstance(raw, dict):
            return 0, None
        try:
            count = int(raw.get("count", 0))
            last_date = date.fromisoformat(raw["lastDate"]) if raw.get("lastDate") else None
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed streak record")
            return 0, None
        return max(count, 0), last_date

    def review_stats(self) -> ReviewStats:
        """
        Total reviews ever recorded and the current day streak.

        The streak is reported as stored; a day with no reviews only breaks
        it once the next grade happens.
        """
        count, last_date = self._read_streak()
        return ReviewStats(
            total_reviews=self._read_total(),
            streak=count,
            last_review_date=last_date,
        )

    # -- change notification ----------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener for grade events. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
