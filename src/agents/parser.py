"""Turn cleaned provider text into validated ``Question`` objects."""

import json
import logging
import re
import uuid
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.agents.sanitizer import clean_field_text
from src.errors import MalformedGeneration
from src.models.quiz import Question, QuestionType

logger = logging.getLogger(__name__)

OPTION_LABELS = "ABCDEF"
_LABELLED_OPTION = re.compile(r"^[A-Fa-f]\s*[.)]")


def parse_questions(
    cleaned_text: str,
    expected_type: QuestionType,
    expected_count: int | None = None,
) -> list[Question]:
    """
    Parse one generated batch.

    A count different from ``expected_count`` is tolerated and logged; missing
    questions are never invented. Items that cannot form a valid question are
    dropped with a warning.

    Args:
        cleaned_text: Output of ``sanitizer.clean``
        expected_type: Type that was requested for the batch
        expected_count: Number of questions that was requested

    Returns:
        Questions with cleaned fields and distinct ids

    Raises:
        MalformedGeneration: If the text is not JSON, has no ``questions``
            array, or yields no usable question
    """
    try:
        payload = json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        raise MalformedGeneration(f"invalid JSON ({e.msg})", cleaned_text) from e

    items = payload.get("questions") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise MalformedGeneration("response has no 'questions' array", cleaned_text)
    if not items:
        raise MalformedGeneration("'questions' array is empty", cleaned_text)

    questions: list[Question] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping question %d: not a JSON object", index)
            continue
        try:
            questions.append(build_question(item, expected_type))
        except PydanticValidationError as e:
            logger.warning(
                "Skipping question %d: %s",
                index,
                "; ".join(err["msg"] for err in e.errors()),
            )

    if not questions:
        raise MalformedGeneration("no usable questions in response", cleaned_text)

    if expected_count is not None and len(questions) != expected_count:
        logger.warning(
            "Requested %d %s questions, provider returned %d usable",
            expected_count,
            expected_type.value,
            len(questions),
        )

    return ensure_unique_ids(questions)


def build_question(item: dict[str, Any], expected_type: QuestionType) -> Question:
    """
    Build one question from a generated JSON object.

    The requested type always wins over whatever type the model wrote, since
    every batch is generated for a single type.

    Raises:
        pydantic.ValidationError: If required fields are missing or empty
    """
    options = None
    if expected_type == QuestionType.MULTIPLE_CHOICE:
        options = _normalize_options(item.get("options"))

    return Question(
        id=_coerce_id(item.get("id")),
        question=_text(item.get("question")),
        type=expected_type,
        options=options,
        answer=_text(item.get("answer")),
        explanation=_text(item.get("explanation")),
    )


def ensure_unique_ids(questions: list[Question]) -> list[Question]:
    """Give a fresh id to every question whose id was already used."""
    seen: set[str] = set()
    unique: list[Question] = []
    for question in questions:
        if question.id in seen:
            new_id = str(uuid.uuid4())
            logger.warning("Duplicate question id %r replaced with %s", question.id, new_id)
            question = question.model_copy(update={"id": new_id})
        seen.add(question.id)
        unique.append(question)
    return unique


def _coerce_id(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return str(uuid.uuid4())
    text = str(value).strip()
    return text or str(uuid.uuid4())


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return clean_field_text(value)


def _normalize_options(raw: Any) -> list[str] | None:
    """Accept an options list, or an ``{"A": ..., "B": ...}`` mapping."""
    if isinstance(raw, dict):
        raw = [f"{key}. {value}" for key, value in raw.items()]
    if not isinstance(raw, list):
        return None

    options = []
    for position, option in enumerate(raw):
        text = _text(option)
        if not text:
            continue
        if not _LABELLED_OPTION.match(text) and position < len(OPTION_LABELS):
            text = f"{OPTION_LABELS[position]}. {text}"
        options.append(text)
    return options
