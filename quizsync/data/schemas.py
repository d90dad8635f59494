"""Data schemas for quiz catalogs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple


@dataclass(frozen=True)
class Answer:
    """One answer option of a question."""
    text: str
    is_correct: bool = False


@dataclass(frozen=True)
class Question:
    """A question with its ordered answer options.

    Exactly one answer is expected to be correct. Questions with no correct
    answer are allowed; ``correct_answer_index`` then reports 0.
    """
    text: str
    answers: Sequence[Answer] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "answers", tuple(self.answers))

    @property
    def correct_answer_index(self) -> int:
        for idx, answer in enumerate(self.answers):
            if answer.is_correct:
                return idx
        return 0

    @property
    def correct_answer(self) -> Answer | None:
        if not self.answers:
            return None
        return self.answers[self.correct_answer_index]

    @property
    def has_correct_answer(self) -> bool:
        return any(a.is_correct for a in self.answers)


@dataclass(frozen=True)
class Category:
    """A quiz category and its questions."""
    id: str
    name: str
    image: str
    description: str
    questions: Sequence[Question] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "questions", tuple(self.questions))


# Full ordered dataset published by the orchestrator.
Catalog = Tuple[Category, ...]


class CatalogSource(str, Enum):
    """Tier that produced a published catalog."""
    REMOTE = "remote"
    CACHE = "cache"
    DEFAULT = "default"


def catalogs_equivalent(left: Sequence[Category], right: Sequence[Category]) -> bool:
    """Compare catalogs by position and content, ignoring category ids.

    Ids of remote and cached categories are synthesized from their position,
    so two catalogs holding the same categories in the same order are the
    same dataset even when their ids differ.
    """
    if len(left) != len(right):
        return False
    for a, b in zip(left, right):
        if (a.name, a.image, a.description, a.questions) != (
            b.name, b.image, b.description, b.questions
        ):
            return False
    return True
