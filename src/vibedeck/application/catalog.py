"""
Catalog of learning items built from problem content.

Turns per-category problem and MCQ records into flashcard, MCQ and solve
items, scoring each once so the session layer can filter by quality
without rescoring.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from vibedeck.application.quality import score_exercise, score_solve
from vibedeck.domain.content.models import MCQModel, ProblemModel
from vibedeck.domain.session.models import FlashcardItem, LearningItem, MCQItem, SolveItem

logger = logging.getLogger(__name__)


def normalize_difficulty(raw: str | None) -> str:
    """Map free-form difficulty labels onto Easy/Medium/Hard."""
    if not raw:
        return "Medium"
    lowered = raw.strip().lower()
    if lowered.startswith("easy"):
        return "Easy"
    if lowered.startswith("hard"):
        return "Hard"
    return "Medium"


class Catalog:
    """
    Read-only pool of learning items.

    Items keep the order they were built in: flashcards, then MCQs, then
    solve prompts, each in content order. That order is the "filter order"
    used when new items are appended to a session queue.
    """

    def __init__(
        self,
        flashcards: Sequence[FlashcardItem] = (),
        mcqs: Sequence[MCQItem] = (),
        solves: Sequence[SolveItem] = (),
        patterns_by_category: Mapping[str, Iterable[str]] | None = None,
    ):
        self.flashcards = list(flashcards)
        self.mcqs = list(mcqs)
        self.solves = list(solves)

        self._by_id: dict[str, LearningItem] = {}
        for item in (*self.flashcards, *self.mcqs, *self.solves):
            self._by_id[item.id] = item

        self._cards_by_problem: dict[str, list[FlashcardItem]] = {}
        for card in self.flashcards:
            self._cards_by_problem.setdefault(card.problem_id, []).append(card)

        if patterns_by_category is None:
            derived: dict[str, set[str]] = {}
            for item in self._by_id.values():
                if item.pattern:
                    derived.setdefault(item.category, set()).add(item.pattern)
            patterns_by_category = derived
        self._patterns = {cat: set(p) for cat, p in patterns_by_category.items()}

    @classmethod
    def from_content(
        cls,
        problems: Mapping[str, Sequence[ProblemModel]],
        mcqs: Mapping[str, Sequence[MCQModel]] | None = None,
    ) -> "Catalog":
        """
        Build a catalog from per-category content.

        Args:
            problems: category -> problems.
            mcqs: category -> MCQ cards. MCQs referencing an unknown problem
                are skipped.
        """
        mcqs = mcqs or {}
        flashcards: list[FlashcardItem] = []
        mcq_items: list[MCQItem] = []
        solves: list[SolveItem] = []
        patterns: dict[str, set[str]] = {}

        for category, category_problems in problems.items():
            for problem in category_problems:
                if problem.pattern:
                    patterns.setdefault(category, set()).add(problem.pattern)
                difficulty = normalize_difficulty(problem.difficulty)

                for card in problem.flashcards:
                    flashcards.append(
                        FlashcardItem(
                            id=f"flashcard:{category}:{problem.id}:{card.id}",
                            category=category,
                            problem_id=problem.id,
                            problem_title=problem.title,
                            pattern=problem.pattern,
                            difficulty=difficulty,
                            quality=score_exercise(card.front, card.back),
                            card_id=card.id,
                            front=card.front,
                            back=card.back,
                        )
                    )

                if problem.test_cases:
                    solves.append(
                        SolveItem(
                            id=f"solve:{category}:{problem.id}",
                            category=category,
                            problem_id=problem.id,
                            problem_title=problem.title,
                            pattern=problem.pattern,
                            difficulty=difficulty,
                            quality=score_solve(problem.description),
                            description=problem.description,
                        )
                    )

        for category, category_mcqs in mcqs.items():
            problem_map = {p.id: p for p in problems.get(category, ())}
            for card in category_mcqs:
                problem = problem_map.get(card.problem_id)
                if problem is None:
                    logger.debug(f"Skipping MCQ {card.id}: unknown problem {card.problem_id}")
                    continue
                mcq_items.append(
                    MCQItem(
                        id=f"mcq:{category}:{card.id}",
                        category=category,
                        problem_id=problem.id,
                        problem_title=problem.title,
                        pattern=problem.pattern,
                        difficulty=normalize_difficulty(problem.difficulty),
                        quality=score_exercise(card.question, card.explanation, card.options),
                        mcq_id=card.id,
                        question=card.question,
                        options=tuple(card.options),
                        correct_index=card.correct_index,
                        explanation=card.explanation,
                    )
                )

        logger.info(
            f"Catalog built: {len(flashcards)} flashcards, "
            f"{len(mcq_items)} MCQs, {len(solves)} solve prompts"
        )
        return cls(flashcards, mcq_items, solves, patterns_by_category=patterns)

    def items(self, kinds: Iterable[str] = ("flashcard", "mcq", "solve")) -> list[LearningItem]:
        """All items of the given kinds, in catalog order."""
        wanted = set(kinds)
        result: list[LearningItem] = []
        if "flashcard" in wanted:
            result.extend(self.flashcards)
        if "mcq" in wanted:
            result.extend(self.mcqs)
        if "solve" in wanted:
            result.extend(self.solves)
        return result

    def get(self, item_id: str) -> LearningItem | None:
        return self._by_id.get(item_id)

    def cards_for_problem(self, problem_id: str) -> list[FlashcardItem]:
        return list(self._cards_by_problem.get(problem_id, ()))

    def patterns(self, categories: Iterable[str]) -> list[str]:
        """Pattern ids offered by the given categories, sorted."""
        found: set[str] = set()
        for category in categories:
            found |= self._patterns.get(category, set())
        return sorted(found)

    def __len__(self) -> int:
        return len(self._by_id)
