"""SQLAlchemy tables and async engine setup.

Four tables:
- users: accounts.
- api_keys: one encrypted provider key per user.
- quizzes: generated quizzes; questions stored as a JSON text blob.
- results: submissions; per-question results stored as a JSON text blob.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ApiKeyRow(Base):
    __tablename__ = "api_keys"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True
    )
    encrypted_key: Mapped[str] = mapped_column(Text)
    api_type: Mapped[str] = mapped_column(String(32), default="Gemini")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class QuizRow(Base):
    __tablename__ = "quizzes"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    quiz_type: Mapped[str] = mapped_column(String(32))
    class_label: Mapped[str] = mapped_column("class", String(100))
    curriculum: Mapped[str] = mapped_column(String(200))
    subject: Mapped[str] = mapped_column(String(200))
    chapters: Mapped[str] = mapped_column(Text)
    questions: Mapped[str] = mapped_column(Text)  # JSON: {"questions": [...]}
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ResultRow(Base):
    __tablename__ = "results"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"))
    score: Mapped[float] = mapped_column(Float)
    feedback: Mapped[str] = mapped_column(Text)  # JSON list of per-question results
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Database:
    """Owns the async engine and session factory for one process."""

    def __init__(self, url: str):
        self.engine: AsyncEngine = create_async_engine(url, echo=False)
        self.sessions = async_sessionmaker(self.engine, expire_on_commit=False)

        if self.engine.dialect.name == "sqlite":
            # SQLite only enforces ON DELETE CASCADE with this pragma, per connection
            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    async def create_all(self) -> None:
        """Create database schema if it doesn't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
