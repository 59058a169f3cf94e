import json
import random
from datetime import datetime, timedelta, timezone

import pytest

from vibedeck.application.catalog import Catalog
from vibedeck.application.scheduler import ReviewScheduler
from vibedeck.domain.content.models import FlashcardModel, MCQModel, ProblemModel
from vibedeck.infrastructure.storage import MemoryStore

GOOD_FRONT = "How do you solve Two Sum in a single pass?"
GOOD_BACK = (
    "Keep a hash map from value to index. For each number, check whether "
    "target minus the number is already in the map."
)
LONG_DESCRIPTION = (
    "Given an array of integers nums and an integer target, return indices of the "
    "two numbers such that they add up to target. You may assume that each input "
    "would have exactly one solution.\n\nExample 1:\nInput: nums = [2,7,11,15], target = 9\n"
    "Output: [0,1]"
)


class FakeClock:
    """Settable clock for deterministic scheduling tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def card(card_id: str, front: str = GOOD_FRONT, back: str = GOOD_BACK) -> FlashcardModel:
    return FlashcardModel(id=card_id, front=front, back=back)


def problem(
    problem_id: str,
    pattern: str,
    difficulty: str = "Easy",
    cards: list[FlashcardModel] | None = None,
    test_cases: bool = False,
    description: str = LONG_DESCRIPTION,
) -> ProblemModel:
    return ProblemModel(
        id=problem_id,
        title=problem_id.replace("-", " ").title(),
        pattern=pattern,
        difficulty=difficulty,
        description=description,
        test_cases=[{"input": "x", "output": "y"}] if test_cases else [],
        flashcards=cards or [],
    )


def mcq(mcq_id: str, problem_id: str, options: list[str] | None = None) -> MCQModel:
    return MCQModel(
        id=mcq_id,
        problem_id=problem_id,
        question="Which data structure gives O(1) average lookups here?",
        options=options or ["Hash map", "Sorted array", "Linked list", "Binary heap"],
        correct_index=0,
        explanation="A hash map answers membership queries in constant time on average.",
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def scheduler(store, clock):
    return ReviewScheduler(store, clock=clock)


@pytest.fixture
def catalog():
    """
    dsa: two-sum (arrays, Easy, 2 cards, solvable), valid-parens (stack, Easy,
    1 card), islands (graphs, Medium, 2 cards, solvable).
    hld: url-shortener (caching, Hard, 1 card).
    MCQs: one per dsa problem with cards plus an orphan.
    """
    problems = {
        "dsa": [
            problem("two-sum", "arrays", "Easy", [card("ts-1"), card("ts-2")], test_cases=True),
            problem("valid-parens", "stack", "easy", [card("vp-1")]),
            problem(
                "islands", "graphs", "Medium", [card("is-1"), card("is-2")], test_cases=True
            ),
        ],
        "hld": [problem("url-shortener", "caching", "Hard", [card("us-1")])],
    }
    mcqs = {
        "dsa": [mcq("m-ts", "two-sum"), mcq("m-is", "islands"), mcq("m-orphan", "missing")],
    }
    return Catalog.from_content(problems, mcqs)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/state
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def content_tree(tmp_path):
    """A content directory with dsa problems/MCQs in the scraped JSON layout."""
    root = tmp_path / "content"
    dsa = root / "dsa"
    dsa.mkdir(parents=True)
    problems = [
        {
            "id": "two-sum",
            "title": "Two Sum",
            "pattern": "arrays",
            "difficulty": "Easy",
            "description": LONG_DESCRIPTION,
            "testCases": [{"input": "[2,7,11,15] 9", "output": "[0,1]"}],
            "ankiCards": [
                {"id": "ts-1", "front": GOOD_FRONT, "back": GOOD_BACK},
                {"id": "ts-2", "front": GOOD_FRONT, "back": GOOD_BACK},
            ],
        },
        {
            "id": "islands",
            "title": "Number of Islands",
            "pattern": "graphs",
            "difficulty": "Medium",
            "ankiCards": [{"id": "is-1", "front": GOOD_FRONT, "back": GOOD_BACK}],
        },
    ]
    mcqs = [mcq("m-ts", "two-sum").model_dump(by_alias=True)]
    (dsa / "problems.json").write_text(json.dumps(problems), encoding="utf-8")
    (dsa / "mcq.json").write_text(json.dumps(mcqs), encoding="utf-8")
    return root
