"""
Content models for problems, flashcards and MCQs.

These mirror the static JSON produced by the content scripts. Field aliases
accept the camelCase keys used in those files.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ContentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class FlashcardModel(_ContentModel):
    id: str
    front: str
    back: str


class ProblemModel(_ContentModel):
    id: str
    title: str
    pattern: str = ""
    difficulty: str | None = None
    description: str = ""
    test_cases: list[dict] = Field(default_factory=list, alias="testCases")
    flashcards: list[FlashcardModel] = Field(default_factory=list, alias="ankiCards")


class MCQModel(_ContentModel):
    id: str
    problem_id: str = Field(alias="problemId")
    question: str
    options: list[str]
    correct_index: int = Field(alias="correctIndex")
    explanation: str = ""

    @model_validator(mode="after")
    def check_correct_index(self) -> "MCQModel":
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"correctIndex {self.correct_index} out of range for {len(self.options)} options"
            )
        return self
