"""Pydantic models for grading and submissions."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

NOT_AVAILABLE = "N/A"
MAX_QUESTION_SCORE = 10


class EvaluationStatus(str, Enum):
    """How much of the grader's output could be used."""

    VALID = "valid"
    PARTIAL = "partial"  # parsed, but some fields were defaulted
    FAILED = "failed"  # unparseable output or provider failure


class DescriptiveEvaluation(BaseModel):
    """Outcome of grading one free-text answer."""

    status: EvaluationStatus
    score: int = Field(..., ge=0, le=MAX_QUESTION_SCORE)
    feedback: str
    correct_parts: str = NOT_AVAILABLE
    improvements: str = NOT_AVAILABLE

    @classmethod
    def failed(cls, feedback: str) -> "DescriptiveEvaluation":
        return cls(status=EvaluationStatus.FAILED, score=0, feedback=feedback)


class EvaluationResult(BaseModel):
    """Per-question result within one submission."""

    question: str
    type: str
    correct_answer: str
    explanation: str = ""
    user_answer: str = ""
    extracted_pdf_text_used: str = ""
    score: int = Field(default=0, ge=0, le=MAX_QUESTION_SCORE)
    feedback: str = "Not evaluated"
    correct_parts: str = NOT_AVAILABLE
    improvements: str = NOT_AVAILABLE
    is_correct: bool = False


class SubmissionRecord(BaseModel):
    """A stored submission; never modified after it is written."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: int
    quiz_id: str
    score: float = Field(..., ge=0.0, le=100.0, description="Overall percentage")
    results: list[EvaluationResult] = Field(default_factory=list)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SubmissionResult(BaseModel):
    """Response of ``POST /submit-quiz/{quiz_id}``."""

    result_id: str = Field(..., serialization_alias="resultId")
    score: float
    total_score: int = Field(..., serialization_alias="totalScore")
    max_possible_score: int = Field(..., serialization_alias="maxPossibleScore")
    results: list[EvaluationResult]
    message: str = "Evaluation complete"


class ResultSummary(BaseModel):
    """Result history entry joined with basic quiz info."""

    result_id: str
    quiz_id: str
    score: float
    submitted_at: datetime
    quiz_type: str
    class_label: str = Field(..., serialization_alias="class")
    subject: str
    chapters: str


class ResultDetail(BaseModel):
    """A stored submission as returned by ``GET /user/results/{id}``."""

    id: str
    quiz_id: str
    score: float
    submitted_at: datetime
    feedback: list[EvaluationResult]
