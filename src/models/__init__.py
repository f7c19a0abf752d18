"""Data models for quiz generation and grading."""

from .account import (
    ApiType,
    Credentials,
    LoginResponse,
    MessageResponse,
    SetApiKeyRequest,
    UserProfile,
)
from .evaluation import (
    DescriptiveEvaluation,
    EvaluationResult,
    EvaluationStatus,
    ResultDetail,
    ResultSummary,
    SubmissionRecord,
    SubmissionResult,
)
from .quiz import (
    CombinedExamRequest,
    DescriptiveQuizRequest,
    GenerateQuizRequest,
    Question,
    QuestionType,
    Quiz,
    QuizCreatedResponse,
    QuizParameters,
    QuizSummary,
    QuizType,
    RedactedQuestion,
    RedactedQuiz,
)

__all__ = [
    "ApiType",
    "Credentials",
    "LoginResponse",
    "MessageResponse",
    "SetApiKeyRequest",
    "UserProfile",
    "Question",
    "QuestionType",
    "Quiz",
    "QuizType",
    "QuizParameters",
    "QuizSummary",
    "RedactedQuestion",
    "RedactedQuiz",
    "GenerateQuizRequest",
    "DescriptiveQuizRequest",
    "CombinedExamRequest",
    "QuizCreatedResponse",
    "DescriptiveEvaluation",
    "EvaluationStatus",
    "EvaluationResult",
    "SubmissionRecord",
    "SubmissionResult",
    "ResultSummary",
    "ResultDetail",
]
