"""
Domain models for spaced-repetition review.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Literal

from vibedeck.domain.constants import DEFAULT_EASE, MIN_EASE

QualityTier = Literal["low", "medium", "high"]


@dataclass
class ReviewState:
    """
    SM-2 scheduling state for a single card.

    Attributes:
        ease_factor: Interval growth multiplier, never below 1.3.
        interval: Days until the next review.
        repetitions: Consecutive passing reviews since the last lapse.
        last_review: When the card was last graded (None if never).
    """

    ease_factor: float = DEFAULT_EASE
    interval: int = 0
    repetitions: int = 0
    last_review: datetime | None = None

    @property
    def due_at(self) -> datetime | None:
        if self.last_review is None:
            return None
        return self.last_review + timedelta(days=self.interval)

    def to_dict(self) -> dict[str, Any]:
        return {
            "easeFactor": self.ease_factor,
            "interval": self.interval,
            "repetitions": self.repetitions,
            "lastReview": self.last_review.isoformat() if self.last_review else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewState":
        """
        Rebuild a state from its stored form.

        Timestamps without an offset are read as local time. Raises KeyError,
        TypeError or ValueError on malformed records, including values that
        break the scheduling invariants (ease below the floor, negative
        interval or repetitions); callers decide whether to drop or surface
        them.
        """
        ease_factor = float(data["easeFactor"])
        interval = int(data["interval"])
        repetitions = int(data["repetitions"])
        if ease_factor < MIN_EASE or interval < 0 or repetitions < 0:
            raise ValueError(
                f"out of range: ease={ease_factor} interval={interval} reps={repetitions}"
            )

        last_review = None
        if data.get("lastReview"):
            last_review = datetime.fromisoformat(data["lastReview"])
            if last_review.tzinfo is None:
                last_review = last_review.astimezone()

        return cls(
            ease_factor=ease_factor,
            interval=interval,
            repetitions=repetitions,
            last_review=last_review,
        )


@dataclass(frozen=True)
class ReviewStats:
    """Aggregate review counters."""

    total_reviews: int = 0
    streak: int = 0
    last_review_date: date | None = None


@dataclass(frozen=True)
class QualityScore:
    """
    Heuristic content-quality score for a learning item.

    Attributes:
        score: 0-100.
        tier: low (<55), medium (<75) or high.
        signals: Labels of the heuristics that fired, in evaluation order.
    """

    score: int
    tier: QualityTier
    signals: tuple[str, ...] = field(default_factory=tuple)
