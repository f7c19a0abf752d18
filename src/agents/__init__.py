"""AI agents for quiz generation and grading."""

from .evaluator import (
    evaluate_descriptive,
    interpret_evaluation,
    matches_fill_blank,
    matches_multiple_choice,
)
from .generator import generate_questions
from .parser import parse_questions
from .prompts import build_evaluation_prompt, build_generation_prompt
from .sanitizer import clean, clean_field_text

__all__ = [
    "build_evaluation_prompt",
    "build_generation_prompt",
    "clean",
    "clean_field_text",
    "evaluate_descriptive",
    "generate_questions",
    "interpret_evaluation",
    "matches_fill_blank",
    "matches_multiple_choice",
    "parse_questions",
]
