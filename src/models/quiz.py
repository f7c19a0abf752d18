"""Pydantic models for quiz data structures."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, field_validator, model_validator


class QuestionType(str, Enum):
    """Question types a quiz can contain."""

    MULTIPLE_CHOICE = "MCQ"
    FILL_BLANK = "FIB"
    DESCRIPTIVE = "Descriptive"

    @property
    def is_objective(self) -> bool:
        """Objective questions are graded by string comparison."""
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.FILL_BLANK)


class QuizType(str, Enum):
    """Quiz types; ``Combined`` mixes independently generated batches."""

    MULTIPLE_CHOICE = "MCQ"
    FILL_BLANK = "FIB"
    DESCRIPTIVE = "Descriptive"
    COMBINED = "Combined"


MIN_OPTIONS = 2
MAX_OPTIONS = 6


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Question(BaseModel):
    """A single generated question, including its answer key."""

    id: str = Field(
        default_factory=_new_id,
        min_length=1,
        description="Identifier, unique within its quiz",
    )
    question: str = Field(..., min_length=1, description="The question text")
    # Documents written by older versions may carry types we do not grade,
    # so anything that is not a known type is kept as a plain string.
    type: Union[QuestionType, str] = Field(
        ...,
        union_mode="left_to_right",
        description="Question type",
    )
    options: list[str] | None = Field(
        None,
        description="Lettered options, multiple choice only",
    )
    answer: str = Field(..., min_length=1, description="Ground-truth answer")
    explanation: str = Field(default="", description="Why the answer is right")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Accept numeric ids from the generator."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def check_options(self) -> "Question":
        """Options are present exactly when the question is multiple choice."""
        if self.type == QuestionType.MULTIPLE_CHOICE:
            if self.options is None or not MIN_OPTIONS <= len(self.options) <= MAX_OPTIONS:
                raise ValueError(
                    f"Multiple choice questions need {MIN_OPTIONS}-{MAX_OPTIONS} options"
                )
        elif self.options is not None and isinstance(self.type, QuestionType):
            raise ValueError(f"{self.type.value} questions cannot have options")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "q1",
                "question": "What is the SI unit of electric current?",
                "type": "MCQ",
                "options": ["A. Volt", "B. Ohm", "C. Ampere", "D. Watt"],
                "answer": "C. Ampere",
                "explanation": "The ampere is the SI base unit of current.",
            }
        }
    }


class QuizParameters(BaseModel):
    """What a quiz is about."""

    class_label: str = Field(..., min_length=1, description="Class / grade")
    curriculum: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    chapters: str = Field(..., min_length=1, description="Comma separated chapters")


class Quiz(BaseModel):
    """A stored quiz owned by one user."""

    id: str = Field(default_factory=_new_id)
    owner_id: int
    quiz_type: QuizType
    class_label: str
    curriculum: str
    subject: str
    chapters: str
    questions: list[Question] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def title(self) -> str:
        """Display title used in exports."""
        return f"{self.subject} Quiz"

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def get_questions_by_type(self, question_type: QuestionType) -> list[Question]:
        """Get all questions of a specific type."""
        return [q for q in self.questions if q.type == question_type]


class RedactedQuestion(BaseModel):
    """A question as shown to the quiz-taker: no answer, no explanation."""

    id: str
    question: str
    type: Union[QuestionType, str] = Field(..., union_mode="left_to_right")
    options: list[str] = Field(default_factory=list)

    @classmethod
    def from_question(cls, question: Question) -> "RedactedQuestion":
        return cls(
            id=question.id,
            question=question.question,
            type=question.type,
            options=list(question.options or []),
        )


class RedactedQuiz(BaseModel):
    """A quiz with the answer key removed, safe to send to the client."""

    id: str
    quiz_type: QuizType
    class_label: str = Field(..., serialization_alias="class")
    curriculum: str
    subject: str
    chapters: str
    questions: list[RedactedQuestion]

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "RedactedQuiz":
        return cls(
            id=quiz.id,
            quiz_type=quiz.quiz_type,
            class_label=quiz.class_label,
            curriculum=quiz.curriculum,
            subject=quiz.subject,
            chapters=quiz.chapters,
            questions=[RedactedQuestion.from_question(q) for q in quiz.questions],
        )


class QuizSummary(BaseModel):
    """Quiz history entry, without questions."""

    id: str
    quiz_type: QuizType
    class_label: str = Field(..., serialization_alias="class")
    curriculum: str
    subject: str
    chapters: str
    created_at: datetime


# Request models


def _join_chapters(v):
    if isinstance(v, (list, tuple)):
        return ", ".join(str(item).strip() for item in v if str(item).strip())
    return v


class _QuizRequestBase(BaseModel):
    class_label: str = Field(..., min_length=1, alias="class")
    curriculum: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    chapters: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}

    @field_validator("chapters", mode="before")
    @classmethod
    def validate_chapters(cls, v):
        """Chapters may arrive as a list; store them comma separated."""
        return _join_chapters(v)

    @property
    def parameters(self) -> QuizParameters:
        return QuizParameters(
            class_label=self.class_label,
            curriculum=self.curriculum,
            subject=self.subject,
            chapters=self.chapters,
        )


class GenerateQuizRequest(_QuizRequestBase):
    """Body of ``POST /generate-quiz``."""

    quiz_type: QuestionType
    num_questions: int

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "quiz_type": "MCQ",
                "class": "10",
                "curriculum": "CBSE",
                "subject": "Physics",
                "chapters": "Electricity, Magnetism",
                "num_questions": 5,
            }
        },
    }


class DescriptiveQuizRequest(_QuizRequestBase):
    """Body of ``POST /descriptive-quiz``."""

    num_questions: int


class CombinedExamRequest(_QuizRequestBase):
    """Body of ``POST /combined-exam``."""

    num_mcq: int = Field(..., ge=0)
    num_fib: int = Field(..., ge=0)
    num_descriptive: int = Field(..., ge=0)

    @property
    def counts(self) -> dict[QuestionType, int]:
        return {
            QuestionType.MULTIPLE_CHOICE: self.num_mcq,
            QuestionType.FILL_BLANK: self.num_fib,
            QuestionType.DESCRIPTIVE: self.num_descriptive,
        }


class QuizCreatedResponse(BaseModel):
    success: bool = True
    quiz_id: str = Field(..., serialization_alias="quizId")
    message: str = "Quiz generated successfully"
