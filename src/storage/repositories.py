"""Repository layer: async CRUD helpers over the four tables."""

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.errors import ConflictError, PersistenceError
from src.models.evaluation import (
    EvaluationResult,
    ResultDetail,
    ResultSummary,
    SubmissionRecord,
)
from src.models.quiz import Question, Quiz, QuizSummary
from src.storage.database import ApiKeyRow, QuizRow, ResultRow, UserRow

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Turn storage-layer exceptions into ``PersistenceError``."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error while trying to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}.") from e


class UserRecord(BaseModel):
    id: int
    username: str
    password_hash: str


class StoredApiKey(BaseModel):
    encrypted_key: str
    api_type: str


class UserRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def create(self, username: str, password_hash: str) -> int:
        """
        Insert a user and return its id.

        Raises:
            ConflictError: If the username is taken
        """
        with translate_errors("register user"):
            try:
                async with self._sessions() as session, session.begin():
                    row = UserRow(username=username, password_hash=password_hash)
                    session.add(row)
                    await session.flush()
                    return row.id
            except IntegrityError as e:
                raise ConflictError("Username already exists.") from e

    async def get_by_username(self, username: str) -> UserRecord | None:
        with translate_errors("retrieve user"):
            async with self._sessions() as session:
                res = await session.execute(select(UserRow).where(UserRow.username == username))
                row = res.scalar_one_or_none()
        return _user_record(row)

    async def get_by_id(self, user_id: int) -> UserRecord | None:
        with translate_errors("retrieve profile information"):
            async with self._sessions() as session:
                row = await session.get(UserRow, user_id)
        return _user_record(row)


def _user_record(row: UserRow | None) -> UserRecord | None:
    if row is None:
        return None
    return UserRecord(id=row.id, username=row.username, password_hash=row.password_hash)


class ApiKeyRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def upsert(self, user_id: int, encrypted_key: str, api_type: str) -> None:
        """Store the user's key, replacing any previous one in a single statement."""
        with translate_errors("save API key"):
            async with self._sessions() as session, session.begin():
                dialect = session.bind.dialect.name
                insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                now = datetime.now(timezone.utc)
                stmt = insert(ApiKeyRow).values(
                    user_id=user_id,
                    encrypted_key=encrypted_key,
                    api_type=api_type,
                    created_at=now,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[ApiKeyRow.user_id],
                    set_={
                        "encrypted_key": stmt.excluded.encrypted_key,
                        "api_type": stmt.excluded.api_type,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                await session.execute(stmt)

    async def get(self, user_id: int) -> StoredApiKey | None:
        with translate_errors("retrieve AI connection details"):
            async with self._sessions() as session:
                res = await session.execute(select(ApiKeyRow).where(ApiKeyRow.user_id == user_id))
                row = res.scalar_one_or_none()
        if row is None:
            return None
        return StoredApiKey(encrypted_key=row.encrypted_key, api_type=row.api_type)


class QuizRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def add(self, quiz: Quiz) -> None:
        """Persist a quiz in a single insert."""
        payload = {
            "questions": [q.model_dump(mode="json", exclude_none=True) for q in quiz.questions]
        }
        with translate_errors("save generated quiz"):
            async with self._sessions() as session, session.begin():
                session.add(
                    QuizRow(
                        id=quiz.id,
                        user_id=quiz.owner_id,
                        quiz_type=quiz.quiz_type.value,
                        class_label=quiz.class_label,
                        curriculum=quiz.curriculum,
                        subject=quiz.subject,
                        chapters=quiz.chapters,
                        questions=json.dumps(payload),
                        created_at=quiz.created_at,
                    )
                )

    async def get_owned(self, quiz_id: str, owner_id: int) -> Quiz | None:
        """Load a quiz only if ``owner_id`` owns it."""
        with translate_errors("retrieve quiz data from database"):
            async with self._sessions() as session:
                res = await session.execute(
                    select(QuizRow).where(QuizRow.id == quiz_id, QuizRow.user_id == owner_id)
                )
                row = res.scalar_one_or_none()
        if row is None:
            return None

        try:
            questions = json.loads(row.questions)["questions"]
            return Quiz(
                id=row.id,
                owner_id=row.user_id,
                quiz_type=row.quiz_type,
                class_label=row.class_label,
                curriculum=row.curriculum,
                subject=row.subject,
                chapters=row.chapters,
                questions=[Question.model_validate(q) for q in questions],
                created_at=row.created_at,
            )
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            logger.error("Stored questions for quiz %s are unreadable: %s", quiz_id, e)
            raise PersistenceError("Failed to parse quiz questions data.") from e

    async def list_for_owner(self, owner_id: int) -> list[QuizSummary]:
        """Quiz summaries, newest first."""
        with translate_errors("retrieve quiz history"):
            async with self._sessions() as session:
                res = await session.execute(
                    select(QuizRow)
                    .where(QuizRow.user_id == owner_id)
                    .order_by(QuizRow.created_at.desc())
                )
                rows = res.scalars().all()
        return [
            QuizSummary(
                id=row.id,
                quiz_type=row.quiz_type,
                class_label=row.class_label,
                curriculum=row.curriculum,
                subject=row.subject,
                chapters=row.chapters,
                created_at=row.created_at,
            )
            for row in rows
        ]


class SubmissionRepository:
    def __init__(self, sessions: async_sessionmaker[AsyncSession]):
        self._sessions = sessions

    async def add(self, record: SubmissionRecord) -> None:
        feedback = json.dumps([r.model_dump(mode="json") for r in record.results])
        with translate_errors("save results"):
            async with self._sessions() as session, session.begin():
                session.add(
                    ResultRow(
                        id=record.id,
                        user_id=record.owner_id,
                        quiz_id=record.quiz_id,
                        score=record.score,
                        feedback=feedback,
                        submitted_at=record.submitted_at,
                    )
                )

    async def list_for_owner(self, owner_id: int) -> list[ResultSummary]:
        """Result summaries joined with quiz info, newest first."""
        with translate_errors("retrieve result history"):
            async with self._sessions() as session:
                res = await session.execute(
                    select(ResultRow, QuizRow)
                    .join(QuizRow, ResultRow.quiz_id == QuizRow.id)
                    .where(ResultRow.user_id == owner_id)
                    .order_by(ResultRow.submitted_at.desc())
                )
                rows = res.all()
        return [
            ResultSummary(
                result_id=result.id,
                quiz_id=result.quiz_id,
                score=result.score,
                submitted_at=result.submitted_at,
                quiz_type=quiz.quiz_type,
                class_label=quiz.class_label,
                subject=quiz.subject,
                chapters=quiz.chapters,
            )
            for result, quiz in rows
        ]

    async def get_owned(self, result_id: str, owner_id: int) -> ResultDetail | None:
        with translate_errors("retrieve result details from database"):
            async with self._sessions() as session:
                res = await session.execute(
                    select(ResultRow).where(
                        ResultRow.id == result_id, ResultRow.user_id == owner_id
                    )
                )
                row = res.scalar_one_or_none()
        if row is None:
            return None

        try:
            feedback = [EvaluationResult.model_validate(r) for r in json.loads(row.feedback)]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error("Stored feedback for result %s is unreadable: %s", result_id, e)
            raise PersistenceError("Failed to parse result feedback data.") from e

        return ResultDetail(
            id=row.id,
            quiz_id=row.quiz_id,
            score=row.score,
            submitted_at=row.submitted_at,
            feedback=feedback,
        )
