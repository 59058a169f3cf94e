from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pytest

from vibedeck.application.scheduler import ReviewScheduler, clamp_quality, next_state
from vibedeck.domain.constants import REVIEW_DATA_KEY, STREAK_KEY, TOTAL_REVIEWS_KEY
from vibedeck.domain.review.models import ReviewState
from vibedeck.infrastructure.storage import MemoryStore


@dataclass(frozen=True)
class Card:
    card_id: str


def test_first_review_creates_state_lazily(scheduler):
    assert scheduler.get_state("c1") is None
    assert scheduler.state_or_default("c1") == ReviewState()
    assert scheduler.get_state("c1") is None  # default path does not materialize

    scheduler.grade("c1", 2)
    assert scheduler.get_state("c1") is not None


def test_lapse_resets_progress(scheduler):
    scheduler.grade("c1", 3)
    scheduler.grade("c1", 3)

    for quality in (0, 1):
        state = scheduler.grade("c1", quality)
        assert state.repetitions == 0
        assert state.interval == 1


def test_repeated_lapses_floor_ease(scheduler):
    previous = 2.5
    for _ in range(20):
        state = scheduler.grade("c1", 0)
        assert state.ease_factor <= previous
        assert state.ease_factor >= 1.3
        assert state.interval == 1
        previous = state.ease_factor
    assert state.ease_factor == pytest.approx(1.3)


def test_easy_grades_grow_interval(scheduler):
    intervals = [scheduler.grade("c1", 3).interval for _ in range(6)]
    assert intervals[:3] == [1, 6, 17]
    assert all(a < b for a, b in zip(intervals, intervals[1:]))


def test_good_grades_hold_ease(scheduler):
    states = [scheduler.grade("c1", 2) for _ in range(3)]
    assert [s.interval for s in states] == [1, 6, 15]
    assert all(s.ease_factor == pytest.approx(2.5) for s in states)


def test_easy_grade_raises_ease(scheduler):
    state = scheduler.grade("c1", 3)
    assert state.ease_factor == pytest.approx(2.65)


@pytest.mark.parametrize("raw,expected", [(-3, 0), (0, 0), (3, 3), (9, 3)])
def test_clamp_quality(raw, expected):
    assert clamp_quality(raw) == expected


def test_out_of_range_quality_is_clamped_not_raised(scheduler):
    assert scheduler.grade("c1", 10).ease_factor == pytest.approx(2.65)
    assert scheduler.grade("c2", -1).interval == 1
    assert scheduler.get_state("c2").repetitions == 0


def test_next_state_is_pure(clock):
    state = ReviewState(ease_factor=2.0, interval=10, repetitions=4)
    new = next_state(state, 3, clock())
    assert state == ReviewState(ease_factor=2.0, interval=10, repetitions=4)
    assert new.interval == 20
    assert new.last_review == clock()


def test_never_graded_is_always_due(scheduler, clock):
    cards = [Card("a"), Card("b")]
    for days in (-1000, 0, 1000):
        assert scheduler.due_items(cards, now=clock() + timedelta(days=days)) == cards


def test_graded_card_leaves_due_set(scheduler):
    cards = [Card("a"), Card("b")]
    state = scheduler.grade("a", 3)

    due = scheduler.due_items(cards, now=state.last_review)
    assert due == [Card("b")]


def test_card_becomes_due_after_interval(scheduler, clock):
    scheduler.grade("a", 2)  # interval 1
    assert not scheduler.is_due("a")

    clock.advance(hours=23)
    assert not scheduler.is_due("a")

    clock.advance(hours=1)
    assert scheduler.is_due("a")


def test_next_due(scheduler, clock):
    assert scheduler.next_due("a") is None
    scheduler.grade("a", 3)
    scheduler.grade("a", 3)
    assert scheduler.next_due("a") == clock() + timedelta(days=6)


def test_due_items_limit_preserves_order(scheduler):
    cards = [Card(str(i)) for i in range(10)]
    scheduler.grade("1", 3)

    assert scheduler.due_items(cards, limit=3) == [Card("0"), Card("2"), Card("3")]
    assert scheduler.due_items(cards, limit=0) == []


def test_due_card_ids(scheduler):
    scheduler.grade("a", 3)
    assert scheduler.due_card_ids(["a", "b", "c"]) == {"b", "c"}


def test_grade_persists_immediately(store, clock):
    ReviewScheduler(store, clock=clock).grade("c1", 3)

    reloaded = ReviewScheduler(store, clock=clock)
    state = reloaded.get_state("c1")
    assert state.interval == 1
    assert state.last_review == clock()
    assert store.get(TOTAL_REVIEWS_KEY) == 1


def test_malformed_review_data_is_ignored(clock):
    store = MemoryStore({REVIEW_DATA_KEY: "{broken"})
    scheduler = ReviewScheduler(store, clock=clock)
    assert scheduler.get_state("c1") is None
    assert scheduler.is_due("c1")


def test_malformed_card_record_is_dropped(clock):
    store = MemoryStore(
        {
            REVIEW_DATA_KEY: (
                '{"bad": {"easeFactor": "nope", "interval": 1, "repetitions": 0},'
                ' "missing": {"interval": 3},'
                ' "good": {"easeFactor": 2.1, "interval": 6, "repetitions": 2,'
                ' "lastReview": "2025-03-01T09:00:00+00:00"}}'
            )
        }
    )
    scheduler = ReviewScheduler(store, clock=clock)

    assert scheduler.get_state("bad") is None
    assert scheduler.get_state("missing") is None
    assert scheduler.get_state("good").interval == 6
    assert scheduler.is_due("good")  # 2025-03-07 <= 2025-03-10


def test_naive_last_review_is_read_as_local_time(clock):
    store = MemoryStore(
        {
            REVIEW_DATA_KEY: (
                '{"c1": {"easeFactor": 2.5, "interval": 6, "repetitions": 2,'
                ' "lastReview": "2025-03-01T09:00:00"}}'
            )
        }
    )
    scheduler = ReviewScheduler(store, clock=clock)

    state = scheduler.get_state("c1")
    assert state.last_review.tzinfo is not None
    assert state.last_review.replace(tzinfo=None) == datetime(2025, 3, 1, 9, 0)
    assert scheduler.is_due("c1")
    assert scheduler.due_items([Card("c1")]) == [Card("c1")]


@pytest.mark.parametrize(
    "record",
    [
        '{"easeFactor": 0.5, "interval": 4, "repetitions": 1}',
        '{"easeFactor": 2.5, "interval": -4, "repetitions": 1}',
        '{"easeFactor": 2.5, "interval": 4, "repetitions": -1}',
    ],
)
def test_out_of_range_card_record_is_dropped(clock, record):
    store = MemoryStore({REVIEW_DATA_KEY: f'{{"c1": {record}}}'})
    scheduler = ReviewScheduler(store, clock=clock)

    assert scheduler.get_state("c1") is None
    state = scheduler.grade("c1", 3)
    assert state.interval == 1
    assert state.ease_factor == pytest.approx(2.65)


def test_minimum_ease_record_is_kept(clock):
    store = MemoryStore(
        {REVIEW_DATA_KEY: '{"c1": {"easeFactor": 1.3, "interval": 0, "repetitions": 0}}'}
    )
    scheduler = ReviewScheduler(store, clock=clock)
    assert scheduler.get_state("c1").ease_factor == 1.3


def test_review_stats_counts_and_streak(scheduler, clock):
    assert scheduler.review_stats().total_reviews == 0
    assert scheduler.review_stats().streak == 0

    scheduler.grade("a", 3)
    scheduler.grade("b", 1)
    stats = scheduler.review_stats()
    assert stats.total_reviews == 2
    assert stats.streak == 1
    assert stats.last_review_date == date(2025, 3, 10)

    clock.advance(days=1)
    scheduler.grade("a", 3)
    assert scheduler.review_stats().streak == 2

    clock.advance(days=1)
    scheduler.grade("a", 3)
    assert scheduler.review_stats().streak == 3

    # Skip a day entirely
    clock.advance(days=2)
    scheduler.grade("a", 3)
    stats = scheduler.review_stats()
    assert stats.streak == 1
    assert stats.total_reviews == 5


def test_malformed_streak_record_restarts_streak(clock):
    store = MemoryStore({STREAK_KEY: '{"count": "x", "lastDate": "yesterday"}', TOTAL_REVIEWS_KEY: '"7"'})
    scheduler = ReviewScheduler(store, clock=clock)
    assert scheduler.review_stats().streak == 0
    assert scheduler.review_stats().total_reviews == 0

    scheduler.grade("a", 2)
    assert scheduler.review_stats().streak == 1
    assert scheduler.review_stats().total_reviews == 1


def test_subscribe_and_unsubscribe(scheduler):
    calls = []
    unsubscribe = scheduler.subscribe(lambda: calls.append(1))

    scheduler.grade("a", 3)
    unsubscribe()
    scheduler.grade("a", 3)

    assert calls == [1]
