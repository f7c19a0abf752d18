"""Grading of quiz submissions."""

import logging
from pathlib import Path

from src.agents.evaluator import (
    FAILED_PREFIX,
    evaluate_descriptive,
    is_objective_answer_correct,
)
from src.agents.prompts import NO_EXTRACTED_TEXT
from src.config.settings import Settings
from src.errors import NotFoundError, ProviderError
from src.extraction.pdf import TextExtractor
from src.models.evaluation import (
    MAX_QUESTION_SCORE,
    NOT_AVAILABLE,
    DescriptiveEvaluation,
    EvaluationResult,
    ResultDetail,
    ResultSummary,
    SubmissionRecord,
    SubmissionResult,
)
from src.models.quiz import Question, QuestionType
from src.providers.base import TextProvider
from src.services.quiz_service import ProviderSource, QuizService
from src.storage.repositories import SubmissionRepository

logger = logging.getLogger(__name__)

RESULT_NOT_FOUND = "Result not found or you do not have permission to view it."


def answer_field(question_id: str) -> str:
    """Form field name carrying the answer to one question."""
    return f"answer_{question_id}"


def overall_percent(total_score: int, question_count: int) -> float:
    """Percentage of the maximum score, 0 for an empty quiz."""
    max_score = question_count * MAX_QUESTION_SCORE
    if not max_score:
        return 0.0
    return 100 * total_score / max_score


def grade_objective(question: Question, result: EvaluationResult) -> None:
    """Fill ``result`` in place for a multiple choice or fill-in question."""
    correct = is_objective_answer_correct(question, result.user_answer)
    result.is_correct = correct
    result.score = MAX_QUESTION_SCORE if correct else 0
    result.feedback = "Correct." if correct else "Incorrect."
    result.correct_parts = question.answer if correct else NOT_AVAILABLE
    result.improvements = NOT_AVAILABLE if correct else f"The correct answer is {question.answer}."


class _LazyProvider:
    """Resolves the user's provider on first use, at most once."""

    def __init__(self, providers: ProviderSource, owner_id: int):
        self._providers = providers
        self._owner_id = owner_id
        self._resolved = False
        self._provider: TextProvider | None = None
        self._error: str | None = None

    async def get(self) -> tuple[TextProvider | None, str | None]:
        if not self._resolved:
            self._resolved = True
            try:
                self._provider = await self._providers.resolve(self._owner_id)
            except (NotFoundError, ProviderError) as e:
                logger.warning("User %s: no provider for evaluation: %s", self._owner_id, e.message)
                self._error = e.user_message
        return self._provider, self._error


class SubmissionService:
    """Grades submissions and keeps the result history."""

    def __init__(
        self,
        settings: Settings,
        quizzes: QuizService,
        submissions: SubmissionRepository,
        providers: ProviderSource,
        extractor: TextExtractor,
    ):
        self._settings = settings
        self._quizzes = quizzes
        self._submissions = submissions
        self._providers = providers
        self._extractor = extractor

    async def submit(
        self,
        owner_id: int,
        quiz_id: str,
        answers: dict[str, str],
        reference_document: Path | None = None,
    ) -> SubmissionResult:
        """
        Grade every question of a quiz and store the result.

        The uploaded reference document, if any, is deleted before this
        returns, whether grading succeeded or not.

        Args:
            owner_id: Submitting user
            quiz_id: Quiz being answered
            answers: Answers keyed by ``answer_<question id>``
            reference_document: Uploaded PDF to use as grading context

        Returns:
            Aggregate score and per-question results

        Raises:
            NotFoundError: If the quiz does not exist or belongs to someone else
            PersistenceError: If the result cannot be stored
        """
        try:
            quiz = await self._quizzes.get_owned(quiz_id, owner_id)
            reference_text = await self._extract(owner_id, reference_document)
            logger.info(
                "User %s: evaluating %d answers for quiz %s",
                owner_id,
                quiz.total_questions,
                quiz_id,
            )

            provider = _LazyProvider(self._providers, owner_id)
            results = []
            for question in quiz.questions:
                result = await self._grade(
                    owner_id, question, answers.get(answer_field(question.id), ""),
                    reference_text, provider,
                )
                results.append(result)
        finally:
            if reference_document is not None:
                self._discard(reference_document)

        total_score = sum(r.score for r in results)
        record = SubmissionRecord(
            owner_id=owner_id,
            quiz_id=quiz.id,
            score=overall_percent(total_score, len(results)),
            results=results,
        )
        await self._submissions.add(record)
        logger.info("User %s: result %s saved (%.2f%%)", owner_id, record.id, record.score)

        return SubmissionResult(
            result_id=record.id,
            score=round(record.score, 2),
            total_score=total_score,
            max_possible_score=len(results) * MAX_QUESTION_SCORE,
            results=results,
        )

    async def _grade(
        self,
        owner_id: int,
        question: Question,
        user_answer: str,
        reference_text: str,
        provider: _LazyProvider,
    ) -> EvaluationResult:
        result = EvaluationResult(
            question=question.question,
            type=question.type.value if isinstance(question.type, QuestionType) else question.type,
            correct_answer=question.answer,
            explanation=question.explanation,
            user_answer=user_answer,
            extracted_pdf_text_used=reference_text or NO_EXTRACTED_TEXT,
        )

        if question.type in (QuestionType.MULTIPLE_CHOICE, QuestionType.FILL_BLANK):
            grade_objective(question, result)
            logger.debug(
                "User %s: %s question %s correct=%s",
                owner_id,
                result.type,
                question.id,
                result.is_correct,
            )
        elif question.type == QuestionType.DESCRIPTIVE:
            evaluation = await self._evaluate_descriptive(
                question, user_answer, reference_text, provider
            )
            result.score = evaluation.score
            result.feedback = evaluation.feedback
            result.correct_parts = evaluation.correct_parts
            result.improvements = evaluation.improvements
        else:
            logger.warning("User %s: unknown question type %r", owner_id, question.type)
            result.feedback = f'Skipped: Unknown question type "{question.type}".'

        return result

    async def _evaluate_descriptive(
        self,
        question: Question,
        user_answer: str,
        reference_text: str,
        provider: _LazyProvider,
    ) -> DescriptiveEvaluation:
        has_text = bool(user_answer.strip() or reference_text.strip())
        resolved, error = await provider.get() if has_text else (None, None)
        if has_text and resolved is None:
            return DescriptiveEvaluation.failed(f"{FAILED_PREFIX}{error}")
        # evaluate_descriptive handles the empty answer case without a provider
        return await evaluate_descriptive(
            resolved,
            question,
            user_answer,
            reference_text,
            temperature=self._settings.evaluation_temperature,
        )

    async def _extract(self, owner_id: int, path: Path | None) -> str:
        if path is None:
            return ""
        try:
            return await self._extractor.extract(path)
        except Exception as e:
            logger.error("User %s: text extraction failed, continuing without it: %s", owner_id, e)
            return ""

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Could not delete uploaded file %s: %s", path, e)

    async def list_results(self, owner_id: int) -> list[ResultSummary]:
        return await self._submissions.list_for_owner(owner_id)

    async def get_result(self, result_id: str, owner_id: int) -> ResultDetail:
        """
        Raises:
            NotFoundError: If the result does not exist or belongs to someone else
        """
        detail = await self._submissions.get_owned(result_id, owner_id)
        if detail is None:
            raise NotFoundError(RESULT_NOT_FOUND)
        return detail
