"""Question Generator Agent - Generates quiz questions using AI."""

import logging

from src.agents.parser import parse_questions
from src.agents.prompts import build_generation_prompt
from src.agents.sanitizer import clean
from src.errors import MalformedGeneration
from src.models.quiz import Question, QuestionType, QuizParameters
from src.providers.base import TextProvider

logger = logging.getLogger(__name__)


async def generate_questions(
    provider: TextProvider,
    question_type: QuestionType,
    params: QuizParameters,
    count: int,
    temperature: float | None = None,
) -> list[Question]:
    """
    Question Generator Agent: Generate one batch of questions of a single type.

    Builds the prompt, makes exactly one provider call, strips code fences
    and parses the result.

    Args:
        provider: Provider to send the prompt to
        question_type: Type of every question in the batch
        params: Class, curriculum, subject and chapters of the quiz
        count: Number of questions to request
        temperature: Sampling temperature for this call

    Returns:
        Parsed questions, possibly fewer than ``count``

    Raises:
        ProviderError: If the provider call fails
        MalformedGeneration: If the response cannot be parsed into questions
    """
    prompt = build_generation_prompt(
        question_type,
        params.class_label,
        params.curriculum,
        params.subject,
        params.chapters,
        count,
    )

    raw_text = await provider.generate(prompt, temperature=temperature)
    cleaned = clean(raw_text)

    try:
        questions = parse_questions(cleaned, question_type, expected_count=count)
    except MalformedGeneration as e:
        logger.error(
            "Could not parse %s batch: %s. Raw response starts with: %r",
            question_type.value,
            e.reason,
            e.excerpt,
        )
        raise

    logger.info(
        "Generated %d %s questions for %s (%s)",
        len(questions),
        question_type.value,
        params.subject,
        params.chapters,
    )
    return questions
