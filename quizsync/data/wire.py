"""Mapping between the serialized catalog format and the data model.

The remote source and the on-disk cache share one shape, a JSON array of::

    {"title": str, "desc": str,
     "questions": [{"text": str, "answer": "<1-based index>", "answers": [str, ...]}]}

Every "missing field -> default" rule lives in the field tables below. A field
that is absent or holds a value of the wrong type takes its default.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Union

from ..errors import EmptyResponseError, MalformedJSONError
from .schemas import Answer, Catalog, Category, Question

logger = logging.getLogger(__name__)


DEFAULT_IMAGE = "quiz-logo"

IMAGE_BY_TITLE: Dict[str, str] = {
    "Mathematics": "math-logo",
    "Marvel Super Heroes": "marvel-avengers-logo",
    "Science": "science-logo",
    "Science!": "science-logo",
}


@dataclass(frozen=True)
class FieldSpec:
    """Specification for one serialized field and its fallback."""
    name: str
    type: Union[type, tuple]
    default: Union[Any, Callable[[int], Any]]

    def default_for(self, index: int) -> Any:
        if callable(self.default):
            return self.default(index)
        return self.default

    def accepts(self, value: Any) -> bool:
        # bool is an int subclass but never a valid index or text
        if isinstance(value, bool):
            return False
        return isinstance(value, self.type)


CATEGORY_FIELDS: Sequence[FieldSpec] = (
    FieldSpec("title", str, lambda idx: f"Unknown Category {idx}"),
    FieldSpec("desc", str, "No description provided."),
    FieldSpec("questions", list, lambda _idx: []),
)

QUESTION_FIELDS: Sequence[FieldSpec] = (
    FieldSpec("text", str, "Unknown Question"),
    FieldSpec("answer", (str, int), "1"),
    FieldSpec("answers", list, lambda _idx: []),
)


def image_for_title(title: str) -> str:
    return IMAGE_BY_TITLE.get(title, DEFAULT_IMAGE)


def resolve_fields(record: Dict[str, Any], specs: Sequence[FieldSpec], index: int) -> Dict[str, Any]:
    """Apply a field table to one record, substituting defaults."""
    out: Dict[str, Any] = {}
    for spec in specs:
        value = record.get(spec.name)
        if value is None or not spec.accepts(value):
            if spec.name in record:
                logger.debug("Field %r at index %d has unexpected type %s; using default",
                             spec.name, index, type(value).__name__)
            value = spec.default_for(index)
        out[spec.name] = value
    return out


def parse_answer_index(raw: Union[str, int]) -> int:
    """Convert the serialized 1-based answer marker to an int.

    Unparseable markers fall back to 1. Range is not checked: an index outside
    the answer list yields a question with no correct answer.
    """
    if isinstance(raw, int):
        return raw
    try:
        return int(raw.strip())
    except ValueError:
        logger.debug("Unparseable answer index %r; using 1", raw)
        return 1


def _parse_question(record: Dict[str, Any], index: int) -> Question:
    fields = resolve_fields(record, QUESTION_FIELDS, index)
    answer_texts = fields["answers"]
    if not all(isinstance(a, str) for a in answer_texts):
        logger.debug("Question %d has non-string answers; dropping them", index)
        answer_texts = []
    correct = parse_answer_index(fields["answer"])
    return Question(
        text=fields["text"],
        answers=[
            Answer(text=text, is_correct=(pos + 1 == correct))
            for pos, text in enumerate(answer_texts)
        ],
    )


def _parse_category(record: Dict[str, Any], index: int) -> Category:
    fields = resolve_fields(record, CATEGORY_FIELDS, index)
    questions: List[Question] = []
    for q_idx, q_record in enumerate(fields["questions"]):
        if not isinstance(q_record, dict):
            logger.debug("Skipping non-object question %d in category %d", q_idx, index)
            continue
        questions.append(_parse_question(q_record, q_idx))
    title = fields["title"]
    return Category(
        id=f"category_{index}",
        name=title,
        image=image_for_title(title),
        description=fields["desc"],
        questions=questions,
    )


def parse_catalog(payload: Any) -> Catalog:
    """Map decoded JSON to a catalog.

    Raises:
        MalformedJSONError: if payload is not an array of objects
    """
    if not isinstance(payload, list):
        raise MalformedJSONError(
            f"Expected a JSON array of categories, got {type(payload).__name__}"
        )
    categories = []
    for idx, record in enumerate(payload):
        if not isinstance(record, dict):
            raise MalformedJSONError(
                f"Category {idx} is not a JSON object: {type(record).__name__}"
            )
        categories.append(_parse_category(record, idx))
    return tuple(categories)


def parse_catalog_bytes(body: bytes) -> Catalog:
    """Decode and map a raw response body.

    Raises:
        EmptyResponseError: if the body is empty or whitespace
        MalformedJSONError: if the body is not a JSON array of objects
    """
    if not body or not body.strip():
        raise EmptyResponseError("Remote source returned an empty body")
    try:
        payload = json.loads(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedJSONError(f"Body is not valid JSON: {e}") from e
    return parse_catalog(payload)


def question_to_entry(question: Question) -> Dict[str, Any]:
    # "0" reloads as a question with no correct answer
    marker = question.correct_answer_index + 1 if question.has_correct_answer else 0
    return {
        "text": question.text,
        "answer": str(marker),
        "answers": [a.text for a in question.answers],
    }


def catalog_to_entries(catalog: Sequence[Category]) -> List[Dict[str, Any]]:
    """Serialize a catalog to the wire/cache shape."""
    return [
        {
            "title": category.name,
            "desc": category.description,
            "questions": [question_to_entry(q) for q in category.questions],
        }
        for category in catalog
    ]
