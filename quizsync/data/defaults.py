"""Built-in fallback catalog."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .schemas import Answer, Catalog, Category, Question


def _question(text: str, answers: Sequence[str], correct: int) -> Question:
    return Question(
        text=text,
        answers=[Answer(text=a, is_correct=(i == correct)) for i, a in enumerate(answers)],
    )


_MATH: List[Tuple[str, Sequence[str], int]] = [
    ("What is 2 + 2?", ["3", "4", "5", "6"], 1),
    ("What is 7 × 8?", ["54", "56", "64", "48"], 1),
    ("What is the square root of 144?", ["10", "12", "14", "16"], 1),
]

_MARVEL: List[Tuple[str, Sequence[str], int]] = [
    ("Who is Iron Man?", ["Tony Stark", "Steve Rogers", "Bruce Banner", "Thor"], 0),
    (
        "What is Captain America's shield made of?",
        ["Steel", "Adamantium", "Vibranium", "Titanium"],
        2,
    ),
    ("Who is Thor's brother?", ["Odin", "Loki", "Heimdall", "Balder"], 1),
]

_SCIENCE: List[Tuple[str, Sequence[str], int]] = [
    ("What is the chemical symbol for water?", ["O", "W", "H2O", "WTR"], 2),
    ("What planet is known as the Red Planet?", ["Earth", "Venus", "Mars", "Jupiter"], 2),
    ("What is the largest organ in the human body?", ["Heart", "Liver", "Brain", "Skin"], 3),
]


def get_default_catalog() -> Catalog:
    """Return the three built-in categories.

    Deterministic and side-effect free; every call returns an equal catalog.
    """
    return (
        Category(
            id="math",
            name="Mathematics",
            image="math-logo",
            description="Learn about the universal language of numbers and patterns.",
            questions=[_question(*q) for q in _MATH],
        ),
        Category(
            id="marvel",
            name="Marvel Super Heroes",
            image="marvel-avengers-logo",
            description="Test your knowledge of Earth's mightiest heroes.",
            questions=[_question(*q) for q in _MARVEL],
        ),
        Category(
            id="science",
            name="Science",
            image="science-logo",
            description="Explore the wonders of our natural world.",
            questions=[_question(*q) for q in _SCIENCE],
        ),
    )
