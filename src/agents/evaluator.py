"""Answer Evaluator Agent - Grades submitted answers.

Multiple choice and fill-in-the-blank answers are compared as strings.
Descriptive answers are graded by a second provider call; that path never
raises, a failure becomes a zero score with an explanatory feedback string.
"""

import json
import logging
import math
from typing import Any

from src.agents.prompts import build_evaluation_prompt
from src.agents.sanitizer import clean
from src.errors import ProviderError, excerpt
from src.models.evaluation import (
    MAX_QUESTION_SCORE,
    NOT_AVAILABLE,
    DescriptiveEvaluation,
    EvaluationStatus,
)
from src.models.quiz import Question, QuestionType
from src.providers.base import TextProvider

logger = logging.getLogger(__name__)

FAILED_PREFIX = "Automated evaluation failed: "
PARTIAL_PREFIX = "Partial evaluation: "
NO_ANSWER_FEEDBACK = "No answer text provided."
NO_ANSWER_IMPROVEMENTS = "Provide a written or typed answer."


def matches_multiple_choice(question: Question, user_answer: str) -> bool:
    """
    Compare a submitted option letter with the letter of the answer key.

    The key is stored as e.g. ``"C. Ampere"``; only the text before the first
    ``.`` is compared, case-insensitively.
    """
    expected = question.answer.strip().upper().split(".")[0]
    return (user_answer or "").strip().upper() == expected


def matches_fill_blank(question: Question, user_answer: str) -> bool:
    """Exact match after trimming, ignoring case. No fuzzy matching."""
    return (user_answer or "").strip().lower() == question.answer.strip().lower()


def is_objective_answer_correct(question: Question, user_answer: str) -> bool:
    """Dispatch to the comparator for the question's type."""
    if question.type == QuestionType.MULTIPLE_CHOICE:
        return matches_multiple_choice(question, user_answer)
    if question.type == QuestionType.FILL_BLANK:
        return matches_fill_blank(question, user_answer)
    raise ValueError(f"{question.type!r} is not an objective question type")


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _clamp_score(value: float) -> int:
    return max(0, min(MAX_QUESTION_SCORE, int(round(value))))


def interpret_evaluation(raw_text: str) -> DescriptiveEvaluation:
    """
    Turn the grader's raw output into a ``DescriptiveEvaluation``.

    Output that is not JSON at all is a failed evaluation. JSON with missing
    or wrong-typed fields is kept as a partial evaluation with defaults.

    Args:
        raw_text: Raw provider output for an evaluation prompt

    Returns:
        The evaluation, with the score clamped to 0-10
    """
    try:
        data = json.loads(clean(raw_text))
    except json.JSONDecodeError:
        logger.warning("Evaluation response is not valid JSON")
        return DescriptiveEvaluation.failed(
            f"{FAILED_PREFIX}Could not parse AI response. "
            f'Raw response starts with: "{excerpt(raw_text)}..."'
        )

    if not isinstance(data, dict):
        data = {}

    score = data.get("score")
    feedback = data.get("feedback")
    correct_parts = data.get("correct_parts")
    improvements = data.get("improvements")

    if _is_number(score) and all(
        isinstance(value, str) for value in (feedback, correct_parts, improvements)
    ):
        return DescriptiveEvaluation(
            status=EvaluationStatus.VALID,
            score=_clamp_score(score),
            feedback=feedback,
            correct_parts=correct_parts,
            improvements=improvements,
        )

    logger.warning("Evaluation response is missing fields or has wrong types; using defaults")
    return DescriptiveEvaluation(
        status=EvaluationStatus.PARTIAL,
        score=_clamp_score(score) if _is_number(score) else 0,
        feedback=(
            f"{PARTIAL_PREFIX}{feedback}"
            if isinstance(feedback, str)
            else "Failed to parse full AI evaluation."
        ),
        correct_parts=correct_parts if isinstance(correct_parts, str) else NOT_AVAILABLE,
        improvements=improvements if isinstance(improvements, str) else NOT_AVAILABLE,
    )


async def evaluate_descriptive(
    provider: TextProvider,
    question: Question,
    typed_answer: str,
    reference_text: str,
    temperature: float | None = None,
) -> DescriptiveEvaluation:
    """
    Answer Evaluator Agent: Grade one descriptive answer with the provider.

    Args:
        provider: Provider used for grading
        question: The question, including its answer key
        typed_answer: What the student typed
        reference_text: Text extracted from the uploaded document, or ""
        temperature: Sampling temperature for the grading call

    Returns:
        The evaluation; never raises
    """
    if not (typed_answer or "").strip() and not (reference_text or "").strip():
        return DescriptiveEvaluation(
            status=EvaluationStatus.VALID,
            score=0,
            feedback=NO_ANSWER_FEEDBACK,
            improvements=NO_ANSWER_IMPROVEMENTS,
        )

    prompt = build_evaluation_prompt(question, typed_answer, reference_text)

    try:
        raw_text = await provider.generate(prompt, temperature=temperature)
    except ProviderError as e:
        logger.warning("Evaluation of question %s failed: %s", question.id, e.message)
        return DescriptiveEvaluation.failed(f"{FAILED_PREFIX}{e.user_message}")
    except Exception:
        logger.exception("Unexpected error while evaluating question %s", question.id)
        return DescriptiveEvaluation.failed(
            f"{FAILED_PREFIX}Error communicating with the AI during evaluation."
        )

    logger.debug("Raw evaluation response: %s", excerpt(raw_text, 500))
    return interpret_evaluation(raw_text)
