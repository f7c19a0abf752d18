"""Shared test fixtures and configuration for pytest."""

import json
from datetime import datetime
from pathlib import Path

import pytest
from cryptography.fernet import Fernet

from src.auth.keys import KeyCipher
from src.config.settings import Settings
from src.errors import QuizAppError
from src.models.quiz import Question, Quiz, QuizParameters, QuizType
from src.storage.database import Database
from src.storage.repositories import (
    ApiKeyRepository,
    QuizRepository,
    SubmissionRepository,
    UserRepository,
)


class FakeProvider:
    """
    Scripted stand-in for a text provider.

    Each call pops the next scripted response; an exception instance is
    raised instead of returned. A callable receives the prompt.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []
        self.temperatures: list[float | None] = []

    async def generate(self, prompt: str, temperature: float | None = None) -> str:
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        if not self.responses:
            raise AssertionError("FakeProvider ran out of scripted responses")
        response = self.responses.pop(0)
        if callable(response):
            response = response(prompt)
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


class FakeResolver:
    """Returns a fixed provider, or raises a fixed error, for every user."""

    def __init__(self, provider=None, error: QuizAppError | None = None):
        self.provider = provider
        self.error = error
        self.resolved_for: list[int] = []

    async def resolve(self, user_id: int):
        self.resolved_for.append(user_id)
        if self.error is not None:
            raise self.error
        return self.provider


class FakeExtractor:
    """Returns fixed text, or raises, and remembers what it was given."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.paths: list[Path] = []

    async def extract(self, path: Path) -> str:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.text


def questions_json(questions: list[dict]) -> str:
    """Serialize a generated batch the way a provider would return it."""
    return json.dumps({"questions": questions})


def mcq_item(qid: str = "q1", answer: str = "C. Ampere") -> dict:
    return {
        "id": qid,
        "question": "What is the SI unit of electric current?",
        "type": "MCQ",
        "options": ["A. Volt", "B. Ohm", "C. Ampere", "D. Watt"],
        "answer": answer,
        "explanation": "The ampere is the SI base unit of current.",
    }


def fib_item(qid: str = "f1") -> dict:
    return {
        "id": qid,
        "question": "The unit of resistance is the _____.",
        "type": "FIB",
        "answer": "Ohm",
        "explanation": "Resistance is measured in ohms.",
    }


def descriptive_item(qid: str = "d1") -> dict:
    return {
        "id": qid,
        "question": "Explain Ohm's law.",
        "type": "Descriptive",
        "answer": "Current through a conductor is proportional to the voltage across it.",
        "explanation": "V = IR at constant temperature.",
    }


def evaluation_json(score=7, feedback="Good answer.", correct_parts="Mentions V = IR.",
                    improvements="Mention temperature.") -> str:
    return json.dumps(
        {
            "score": score,
            "feedback": feedback,
            "correct_parts": correct_parts,
            "improvements": improvements,
        }
    )


@pytest.fixture
def sample_params() -> QuizParameters:
    """Create sample quiz parameters for testing."""
    return QuizParameters(
        class_label="10",
        curriculum="CBSE",
        subject="Physics",
        chapters="Electricity, Magnetism",
    )


@pytest.fixture
def sample_question() -> Question:
    """Create a sample multiple choice Question for testing."""
    return Question.model_validate(mcq_item())


@pytest.fixture
def sample_fib_question() -> Question:
    """Create a sample fill-in-the-blank Question for testing."""
    return Question.model_validate(fib_item())


@pytest.fixture
def sample_descriptive_question() -> Question:
    """Create a sample descriptive Question for testing."""
    return Question.model_validate(descriptive_item())


@pytest.fixture
def sample_questions(
    sample_question: Question,
    sample_fib_question: Question,
    sample_descriptive_question: Question,
) -> list[Question]:
    """Create one question of each type."""
    return [sample_question, sample_fib_question, sample_descriptive_question]


@pytest.fixture
def sample_quiz(sample_questions: list[Question]) -> Quiz:
    """Create a sample combined Quiz for testing."""
    return Quiz(
        owner_id=1,
        quiz_type=QuizType.COMBINED,
        class_label="10",
        curriculum="CBSE",
        subject="Physics",
        chapters="Electricity, Magnetism",
        questions=sample_questions,
        created_at=datetime(2024, 1, 1, 12, 0, 0),
    )


@pytest.fixture
def fernet_key() -> str:
    return Fernet.generate_key().decode("utf-8")


@pytest.fixture
def settings(tmp_path, fernet_key: str) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        JWT_SECRET="test-secret-please-change",
        ENCRYPTION_KEY=fernet_key,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        PROVIDER_BACKEND="user_key",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def cipher(fernet_key: str) -> KeyCipher:
    return KeyCipher(fernet_key)


@pytest.fixture
async def database(settings: Settings):
    """Database with all tables created."""
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def user_repository(database: Database) -> UserRepository:
    return UserRepository(database.sessions)


@pytest.fixture
def api_key_repository(database: Database) -> ApiKeyRepository:
    return ApiKeyRepository(database.sessions)


@pytest.fixture
def quiz_repository(database: Database) -> QuizRepository:
    return QuizRepository(database.sessions)


@pytest.fixture
def submission_repository(database: Database) -> SubmissionRepository:
    return SubmissionRepository(database.sessions)


@pytest.fixture
async def owner_id(user_repository: UserRepository) -> int:
    """A registered user."""
    return await user_repository.create("alice", "not-a-real-hash")


@pytest.fixture
async def other_owner_id(user_repository: UserRepository) -> int:
    """A second registered user."""
    return await user_repository.create("bob", "not-a-real-hash")
