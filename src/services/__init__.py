"""Orchestration of generation and grading."""

from .quiz_service import QuizService
from .submission_service import SubmissionService

__all__ = ["QuizService", "SubmissionService"]
