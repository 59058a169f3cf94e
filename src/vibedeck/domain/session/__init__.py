# Domain Session Package
from .models import (
    DEFAULT_FILTERS,
    FlashcardItem,
    LearningItem,
    MCQItem,
    SessionFilters,
    SessionRecord,
    SolveItem,
)

__all__ = [
    "DEFAULT_FILTERS",
    "FlashcardItem",
    "LearningItem",
    "MCQItem",
    "SessionFilters",
    "SessionRecord",
    "SolveItem",
]
