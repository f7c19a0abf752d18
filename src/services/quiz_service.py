"""Quiz generation and retrieval."""

import asyncio
import logging
from typing import Protocol

from src.agents.generator import generate_questions
from src.agents.parser import ensure_unique_ids
from src.config.settings import Settings
from src.errors import GenerationFailed, NotFoundError, ValidationError
from src.models.quiz import (
    Question,
    QuestionType,
    Quiz,
    QuizParameters,
    QuizSummary,
    QuizType,
    RedactedQuiz,
)
from src.providers.base import TextProvider
from src.storage.repositories import QuizRepository

logger = logging.getLogger(__name__)

QUIZ_NOT_FOUND = "Quiz not found or you do not have permission to view it."
COMBINED_FAILED = (
    "AI failed to generate questions for the combined exam. "
    "Please try again or adjust parameters."
)
COMBINED_ORDER = (
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.FILL_BLANK,
    QuestionType.DESCRIPTIVE,
)


class ProviderSource(Protocol):
    async def resolve(self, user_id: int) -> TextProvider:
        ...


class QuizService:
    """
    Generates quizzes through the user's provider and serves them back.

    A quiz is persisted only after every requested batch has been parsed, so
    a failed or abandoned generation never leaves a partial quiz behind.
    """

    def __init__(self, settings: Settings, quizzes: QuizRepository, providers: ProviderSource):
        self._settings = settings
        self._quizzes = quizzes
        self._providers = providers

    def check_single_count(self, count: int) -> None:
        """
        Raises:
            ValidationError: If ``count`` is outside 1..MAX_SINGLE_QUESTIONS
        """
        limit = self._settings.max_single_questions
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= limit:
            raise ValidationError(
                f"Number of questions must be a positive number between 1 and {limit}."
            )

    def check_combined_counts(self, counts: dict[QuestionType, int]) -> None:
        """
        Raises:
            ValidationError: If any count is negative or the total is outside
                1..MAX_COMBINED_QUESTIONS
        """
        limit = self._settings.max_combined_questions
        if any(n < 0 for n in counts.values()):
            raise ValidationError("Question counts cannot be negative.")
        total = sum(counts.values())
        if not 1 <= total <= limit:
            raise ValidationError(
                f"Total number of questions must be positive and not exceed {limit}."
            )

    async def generate(
        self,
        owner_id: int,
        question_type: QuestionType,
        params: QuizParameters,
        count: int,
    ) -> Quiz:
        """
        Generate and store a single-type quiz.

        Args:
            owner_id: User the quiz belongs to
            question_type: Type of every question
            params: What the quiz is about
            count: Number of questions to request

        Returns:
            The stored quiz

        Raises:
            ValidationError: If ``count`` is out of range
            NotFoundError: If the user has no provider key
            ProviderError: If the provider call fails
            MalformedGeneration: If the response cannot be parsed
        """
        self.check_single_count(count)
        provider = await self._providers.resolve(owner_id)

        logger.info(
            "User %s: generating %d %s questions on %s",
            owner_id,
            count,
            question_type.value,
            params.subject,
        )
        questions = await generate_questions(
            provider,
            question_type,
            params,
            count,
            temperature=self._settings.generation_temperature,
        )
        return await self._store(owner_id, QuizType(question_type.value), params, questions)

    async def generate_combined(
        self,
        owner_id: int,
        params: QuizParameters,
        counts: dict[QuestionType, int],
    ) -> Quiz:
        """
        Generate and store a combined exam.

        One batch is requested per type with a positive count; batches run
        concurrently. A failed batch is logged and skipped. Questions keep the
        MCQ, FIB, Descriptive order whatever order the batches finish in.

        Raises:
            ValidationError: If the counts are out of range
            NotFoundError: If the user has no provider key
            GenerationFailed: If every batch failed
        """
        self.check_combined_counts(counts)
        provider = await self._providers.resolve(owner_id)

        batches = [(qt, counts.get(qt, 0)) for qt in COMBINED_ORDER if counts.get(qt, 0) > 0]
        logger.info(
            "User %s: generating combined exam (%s)",
            owner_id,
            ", ".join(f"{qt.value}={n}" for qt, n in batches),
        )

        outcomes = await asyncio.gather(
            *(
                generate_questions(
                    provider,
                    qt,
                    params,
                    n,
                    temperature=self._settings.generation_temperature,
                )
                for qt, n in batches
            ),
            return_exceptions=True,
        )

        questions: list[Question] = []
        for (qt, _), outcome in zip(batches, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(
                    "User %s: error generating %s questions: %s",
                    owner_id,
                    qt.value,
                    getattr(outcome, "message", outcome),
                )
                continue
            questions.extend(outcome)

        if not questions:
            logger.error("User %s: AI failed to generate any questions for combined exam", owner_id)
            raise GenerationFailed(COMBINED_FAILED)

        return await self._store(owner_id, QuizType.COMBINED, params, ensure_unique_ids(questions))

    async def _store(
        self,
        owner_id: int,
        quiz_type: QuizType,
        params: QuizParameters,
        questions: list[Question],
    ) -> Quiz:
        quiz = Quiz(
            owner_id=owner_id,
            quiz_type=quiz_type,
            class_label=params.class_label,
            curriculum=params.curriculum,
            subject=params.subject,
            chapters=params.chapters,
            questions=questions,
        )
        await self._quizzes.add(quiz)
        logger.info(
            "User %s: saved %s quiz %s with %d questions",
            owner_id,
            quiz_type.value,
            quiz.id,
            quiz.total_questions,
        )
        return quiz

    async def get_owned(self, quiz_id: str, owner_id: int) -> Quiz:
        """
        Load a quiz with its answer key.

        Raises:
            NotFoundError: If the quiz does not exist or belongs to someone else
        """
        quiz = await self._quizzes.get_owned(quiz_id, owner_id)
        if quiz is None:
            logger.warning("User %s: quiz %s not found or not owned", owner_id, quiz_id)
            raise NotFoundError(QUIZ_NOT_FOUND)
        return quiz

    async def get_for_taking(self, quiz_id: str, owner_id: int) -> RedactedQuiz:
        """Load a quiz without answers or explanations."""
        return RedactedQuiz.from_quiz(await self.get_owned(quiz_id, owner_id))

    async def list_for_owner(self, owner_id: int) -> list[QuizSummary]:
        return await self._quizzes.list_for_owner(owner_id)
