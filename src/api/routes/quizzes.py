"""Quiz generation, retrieval and submission endpoints."""

import asyncio
import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from src.api.dependencies import (
    get_app_settings,
    get_current_user,
    get_quiz_service,
    get_submission_service,
)
from src.auth.security import TokenPayload
from src.config.settings import Settings
from src.errors import ValidationError
from src.models.evaluation import SubmissionResult
from src.models.quiz import (
    CombinedExamRequest,
    DescriptiveQuizRequest,
    GenerateQuizRequest,
    QuestionType,
    QuizCreatedResponse,
    QuizSummary,
    RedactedQuiz,
)
from src.services.quiz_service import QuizService
from src.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quizzes"])

UPLOAD_FIELD = "pdfFile"
ANSWER_PREFIX = "answer_"
SUBMISSION_BODY_INVALID = "Submission body must be a JSON object."


@router.post("/generate-quiz", response_model=QuizCreatedResponse)
async def generate_quiz(
    body: GenerateQuizRequest,
    user: TokenPayload = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
):
    quiz = await service.generate(user.user_id, body.quiz_type, body.parameters, body.num_questions)
    return QuizCreatedResponse(quiz_id=quiz.id)


@router.post("/descriptive-quiz", response_model=QuizCreatedResponse)
async def generate_descriptive_quiz(
    body: DescriptiveQuizRequest,
    user: TokenPayload = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
):
    quiz = await service.generate(
        user.user_id, QuestionType.DESCRIPTIVE, body.parameters, body.num_questions
    )
    return QuizCreatedResponse(quiz_id=quiz.id, message="Descriptive quiz generated successfully")


@router.post("/combined-exam", response_model=QuizCreatedResponse)
async def generate_combined_exam(
    body: CombinedExamRequest,
    user: TokenPayload = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
):
    quiz = await service.generate_combined(user.user_id, body.parameters, body.counts)
    return QuizCreatedResponse(quiz_id=quiz.id, message="Combined exam generated successfully")


@router.get("/quiz/{quiz_id}", response_model=RedactedQuiz)
async def get_quiz(
    quiz_id: str,
    user: TokenPayload = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
):
    return await service.get_for_taking(quiz_id, user.user_id)


@router.get("/user/quizzes", response_model=list[QuizSummary])
async def list_quizzes(
    user: TokenPayload = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
):
    return await service.list_for_owner(user.user_id)


@router.post("/submit-quiz/{quiz_id}", response_model=SubmissionResult)
async def submit_quiz(
    quiz_id: str,
    request: Request,
    user: TokenPayload = Depends(get_current_user),
    service: SubmissionService = Depends(get_submission_service),
    settings: Settings = Depends(get_app_settings),
):
    """
    Grade a submission.

    Accepts multipart form data with one ``answer_<question id>`` field per
    question and an optional ``pdfFile`` upload. A JSON object of
    ``answer_<question id>`` keys is accepted as well.
    """
    answers: dict[str, str] = {}
    reference: Path | None = None

    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as e:
            raise ValidationError(SUBMISSION_BODY_INVALID) from e
        if not isinstance(payload, dict):
            raise ValidationError(SUBMISSION_BODY_INVALID)
        answers = _collect_answers(payload.items())
    else:
        async with request.form() as form:
            answers = _collect_answers(form.multi_items())
            upload = form.get(UPLOAD_FIELD)
            if isinstance(upload, UploadFile) and upload.filename:
                reference = await _save_upload(upload, Path(settings.upload_dir))
                logger.info("User %s: reference document uploaded", user.user_id)

    return await service.submit(user.user_id, quiz_id, answers, reference)


def _collect_answers(items) -> dict[str, str]:
    answers = {}
    for key, value in items:
        if not key.startswith(ANSWER_PREFIX) or isinstance(value, UploadFile):
            continue
        answers[key] = "" if value is None else str(value)
    return answers


async def _save_upload(upload: UploadFile, upload_dir: Path) -> Path:
    content = await upload.read()
    suffix = Path(upload.filename or "").suffix or ".pdf"
    path = upload_dir / f"{uuid.uuid4().hex}{suffix}"
    await asyncio.to_thread(_write_upload, path, content)
    return path


def _write_upload(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
