"""
Domain models for study sessions.

Learning items are read-only snapshots built from problem content; the
session layer never mutates them.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from vibedeck.domain.review.models import QualityScore


@dataclass(frozen=True)
class _ItemBase:
    id: str
    category: str
    problem_id: str
    problem_title: str
    pattern: str
    difficulty: str
    quality: QualityScore


@dataclass(frozen=True)
class FlashcardItem(_ItemBase):
    kind: ClassVar[str] = "flashcard"

    card_id: str
    front: str
    back: str


@dataclass(frozen=True)
class MCQItem(_ItemBase):
    kind: ClassVar[str] = "mcq"

    mcq_id: str
    question: str
    options: tuple[str, ...]
    correct_index: int
    explanation: str


@dataclass(frozen=True)
class SolveItem(_ItemBase):
    kind: ClassVar[str] = "solve"

    description: str


LearningItem = Union[FlashcardItem, MCQItem, SolveItem]


@dataclass(frozen=True)
class SessionFilters:
    """
    The sole input governing which items enter the session queue.

    pattern and difficulty use "all" as the wildcard. quality is "high"
    (score >= 72 only) or "all".
    """

    kinds: tuple[str, ...] = ("flashcard", "mcq")
    categories: tuple[str, ...] = ("dsa",)
    pattern: str = "all"
    difficulty: str = "all"
    due_only: bool = False
    quality: str = "high"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kinds": list(self.kinds),
            "categories": list(self.categories),
            "pattern": self.pattern,
            "difficulty": self.difficulty,
            "dueOnly": self.due_only,
            "quality": self.quality,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionFilters":
        """Build filters from a stored dict. Only dueOnly is type-checked here."""
        defaults = cls()
        due_only = data.get("dueOnly")
        return cls(
            kinds=tuple(data.get("kinds") or defaults.kinds),
            categories=tuple(data.get("categories") or defaults.categories),
            pattern=data.get("pattern") or defaults.pattern,
            difficulty=data.get("difficulty") or defaults.difficulty,
            due_only=due_only if isinstance(due_only, bool) else defaults.due_only,
            quality=data.get("quality") or defaults.quality,
        )


DEFAULT_FILTERS = SessionFilters()


@dataclass
class SessionRecord:
    """Persisted session: filters, queue order and position."""

    filters: SessionFilters = DEFAULT_FILTERS
    queue_ids: list[str] = field(default_factory=list)
    current_index: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "filters": self.filters.to_dict(),
            "queueIds": list(self.queue_ids),
            "currentIndex": self.current_index,
        }
