"""Tests for grading submissions."""

import pytest
from conftest import (
    FakeExtractor,
    FakeProvider,
    FakeResolver,
    descriptive_item,
    evaluation_json,
    mcq_item,
)

from src.agents.prompts import NO_EXTRACTED_TEXT
from src.errors import NotFoundError, ProviderError, ProviderErrorKind
from src.models.quiz import Question, Quiz, QuizType
from src.services.quiz_service import QuizService
from src.services.submission_service import (
    RESULT_NOT_FOUND,
    SubmissionService,
    answer_field,
    overall_percent,
)


@pytest.fixture
async def stored_quiz(quiz_repository, owner_id: int) -> Quiz:
    """Two multiple choice questions and one descriptive question."""
    quiz = Quiz(
        owner_id=owner_id,
        quiz_type=QuizType.COMBINED,
        class_label="10",
        curriculum="CBSE",
        subject="Physics",
        chapters="Electricity",
        questions=[
            Question.model_validate(mcq_item("m1")),
            Question.model_validate(mcq_item("m2", answer="B. Ohm")),
            Question.model_validate(descriptive_item("d1")),
        ],
    )
    await quiz_repository.add(quiz)
    return quiz


def _service(settings, quiz_repository, submission_repository, resolver, extractor=None):
    quizzes = QuizService(settings, quiz_repository, resolver)
    return SubmissionService(
        settings, quizzes, submission_repository, resolver, extractor or FakeExtractor()
    )


class TestHelpers:
    """Test scoring helpers."""

    def test_answer_field(self):
        assert answer_field("q1") == "answer_q1"

    def test_overall_percent(self):
        assert overall_percent(17, 3) == pytest.approx(56.666, rel=1e-3)

    def test_overall_percent_empty_quiz(self):
        assert overall_percent(0, 0) == 0.0


class TestSubmit:
    """Test SubmissionService.submit."""

    async def test_mixed_quiz_scoring(
        self, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test one right, one wrong and a 7/10 descriptive answer."""
        provider = FakeProvider(evaluation_json(score=7))
        service = _service(settings, quiz_repository, submission_repository, FakeResolver(provider))

        result = await service.submit(
            owner_id,
            stored_quiz.id,
            {"answer_m1": "c", "answer_m2": "A", "answer_d1": "V equals I times R"},
        )

        assert result.score == 56.67
        assert result.total_score == 17
        assert result.max_possible_score == 30
        assert [r.score for r in result.results] == [10, 0, 7]
        assert [r.is_correct for r in result.results] == [True, False, False]
        assert result.results[0].feedback == "Correct."
        assert result.results[1].feedback == "Incorrect."
        assert result.results[1].improvements == "The correct answer is B. Ohm."
        assert result.results[2].extracted_pdf_text_used == NO_EXTRACTED_TEXT
        assert provider.temperatures == [settings.evaluation_temperature]

    async def test_result_is_stored(
        self, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that the graded submission can be read back."""
        service = _service(
            settings,
            quiz_repository,
            submission_repository,
            FakeResolver(FakeProvider(evaluation_json(score=4))),
        )

        result = await service.submit(
            owner_id, stored_quiz.id, {"answer_m1": "C", "answer_d1": "Ohm's law"}
        )

        detail = await service.get_result(result.result_id, owner_id)
        assert detail.quiz_id == stored_quiz.id
        assert detail.score == pytest.approx(100 * 14 / 30)
        assert [r.score for r in detail.feedback] == [10, 0, 4]

        [summary] = await service.list_results(owner_id)
        assert summary.result_id == result.result_id
        assert summary.subject == "Physics"

    async def test_missing_answers_are_wrong(
        self, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that an empty submission scores zero without calling the provider."""
        provider = FakeProvider()
        resolver = FakeResolver(provider)
        service = _service(settings, quiz_repository, submission_repository, resolver)

        result = await service.submit(owner_id, stored_quiz.id, {})

        assert result.total_score == 0
        assert result.score == 0
        assert result.results[2].feedback == "No answer text provided."
        assert provider.calls == 0
        assert resolver.resolved_for == []

    async def test_objective_only_without_key(
        self, settings, quiz_repository, submission_repository, owner_id
    ):
        """Test that a quiz with no descriptive question needs no provider key."""
        quiz = Quiz(
            owner_id=owner_id,
            quiz_type=QuizType.MULTIPLE_CHOICE,
            class_label="10",
            curriculum="CBSE",
            subject="Physics",
            chapters="Electricity",
            questions=[Question.model_validate(mcq_item("m1"))],
        )
        await quiz_repository.add(quiz)
        resolver = FakeResolver(error=NotFoundError("AI connection details not found."))
        service = _service(settings, quiz_repository, submission_repository, resolver)

        result = await service.submit(owner_id, quiz.id, {"answer_m1": "C"})

        assert result.score == 100.0

    async def test_missing_key_fails_descriptive_only(
        self, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that a missing key zeroes the descriptive answer but still grades."""
        resolver = FakeResolver(error=NotFoundError("AI connection details not found."))
        service = _service(settings, quiz_repository, submission_repository, resolver)

        result = await service.submit(
            owner_id, stored_quiz.id, {"answer_m1": "C", "answer_d1": "Some answer"}
        )

        assert result.total_score == 10
        assert result.results[2].feedback == (
            "Automated evaluation failed: AI connection details not found."
        )

    async def test_provider_failure_does_not_abort(
        self, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that a grading failure becomes a zero score."""
        provider = FakeProvider(
            ProviderError(ProviderErrorKind.UNREACHABLE, "AI API Error: timed out")
        )
        service = _service(settings, quiz_repository, submission_repository, FakeResolver(provider))

        result = await service.submit(
            owner_id, stored_quiz.id, {"answer_m1": "C", "answer_d1": "V = IR"}
        )

        assert result.total_score == 10
        assert result.results[2].score == 0
        assert result.results[2].feedback.startswith("Automated evaluation failed: ")

    async def test_reference_document_used_and_deleted(
        self, tmp_path, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that extracted text reaches the grader and the upload is removed."""
        upload = tmp_path / "answer.pdf"
        upload.write_bytes(b"%PDF-1.4 placeholder")
        provider = FakeProvider(evaluation_json(score=9))
        extractor = FakeExtractor(text="Current is proportional to voltage.")
        service = _service(
            settings, quiz_repository, submission_repository, FakeResolver(provider), extractor
        )

        result = await service.submit(owner_id, stored_quiz.id, {}, reference_document=upload)

        assert extractor.paths == [upload]
        assert not upload.exists()
        assert "Current is proportional to voltage." in provider.prompts[0]
        assert result.results[2].score == 9
        assert result.results[0].extracted_pdf_text_used == "Current is proportional to voltage."

    async def test_extraction_failure_degrades(
        self, tmp_path, settings, quiz_repository, submission_repository, owner_id, stored_quiz
    ):
        """Test that an unreadable upload is treated as no reference text."""
        upload = tmp_path / "broken.pdf"
        upload.write_bytes(b"not a pdf")
        provider = FakeProvider(evaluation_json(score=5))
        service = _service(
            settings,
            quiz_repository,
            submission_repository,
            FakeResolver(provider),
            FakeExtractor(error=ValueError("EOF marker not found")),
        )

        result = await service.submit(
            owner_id, stored_quiz.id, {"answer_d1": "V = IR"}, reference_document=upload
        )

        assert not upload.exists()
        assert result.results[2].score == 5
        assert "reference text from a PDF" not in provider.prompts[0]

    async def test_upload_deleted_when_quiz_missing(
        self, tmp_path, settings, quiz_repository, submission_repository, owner_id
    ):
        """Test that the upload is removed even when grading never starts."""
        upload = tmp_path / "orphan.pdf"
        upload.write_bytes(b"%PDF-1.4")
        service = _service(settings, quiz_repository, submission_repository, FakeResolver())

        with pytest.raises(NotFoundError):
            await service.submit(owner_id, "missing", {}, reference_document=upload)

        assert not upload.exists()

    async def test_other_user_cannot_submit(
        self, settings, quiz_repository, submission_repository, other_owner_id, stored_quiz
    ):
        """Test that submitting to someone else's quiz looks like a missing quiz."""
        service = _service(settings, quiz_repository, submission_repository, FakeResolver())

        with pytest.raises(NotFoundError):
            await service.submit(other_owner_id, stored_quiz.id, {"answer_m1": "C"})

    async def test_unknown_question_type_skipped(
        self, settings, quiz_repository, submission_repository, owner_id
    ):
        """Test that a stored question of an unknown type scores zero."""
        quiz = Quiz(
            owner_id=owner_id,
            quiz_type=QuizType.COMBINED,
            class_label="10",
            curriculum="CBSE",
            subject="Physics",
            chapters="Electricity",
            questions=[
                Question(id="x1", question="Match the units.", type="Matching", answer="1-b")
            ],
        )
        await quiz_repository.add(quiz)
        service = _service(settings, quiz_repository, submission_repository, FakeResolver())

        result = await service.submit(owner_id, quiz.id, {"answer_x1": "1-b"})

        assert result.results[0].score == 0
        assert result.results[0].type == "Matching"
        assert result.results[0].feedback == 'Skipped: Unknown question type "Matching".'


class TestResults:
    """Test result history access."""

    async def test_other_user_cannot_read_result(
        self,
        settings,
        quiz_repository,
        submission_repository,
        owner_id,
        other_owner_id,
        stored_quiz,
    ):
        """Test that results are scoped to their owner."""
        service = _service(settings, quiz_repository, submission_repository, FakeResolver())
        result = await service.submit(owner_id, stored_quiz.id, {"answer_m1": "C"})

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_result(result.result_id, other_owner_id)

        assert exc_info.value.message == RESULT_NOT_FOUND
        assert await service.list_results(other_owner_id) == []
