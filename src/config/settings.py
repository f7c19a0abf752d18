"""Application settings and configuration."""

from enum import Enum
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings

# Load .env file if present
load_dotenv()


class ProviderBackend(str, Enum):
    """Where generated text comes from."""

    USER_KEY = "user_key"  # each user stores an OpenAI or Gemini key
    BEDROCK = "bedrock"
    LOCAL = "local"  # self-hosted OpenAI-compatible endpoint


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Provider Configuration
    provider_backend: ProviderBackend = Field(
        default=ProviderBackend.USER_KEY,
        description="Provider backend: user_key, bedrock or local",
        validation_alias="PROVIDER_BACKEND",
    )

    openai_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model used for users with an OpenAI key",
        validation_alias="OPENAI_MODEL",
    )

    gemini_model: str = Field(
        default="gemini-1.5-pro-latest",
        description="Model used for users with a Gemini key",
        validation_alias="GEMINI_MODEL",
    )

    bedrock_model: str = Field(
        default="anthropic.claude-3-7-sonnet-20250219-v1:0",
        description="AWS Bedrock model ID",
        validation_alias="BEDROCK_MODEL",
    )

    aws_default_region: str | None = Field(
        default=None,
        description="AWS region for Bedrock",
        validation_alias="AWS_DEFAULT_REGION",
    )

    local_model: str = Field(
        default="llama3",
        description="Model name served by the local endpoint",
        validation_alias="LOCAL_MODEL",
    )

    local_model_url: str = Field(
        default="http://localhost:11434/v1",
        description="Base URL of the self-hosted OpenAI-compatible endpoint",
        validation_alias="LOCAL_MODEL_URL",
    )

    provider_timeout_seconds: float = Field(
        default=120.0,
        gt=0.0,
        description="Upper bound on a single provider call",
        validation_alias="PROVIDER_TIMEOUT_SECONDS",
    )

    # Generation Settings
    generation_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Temperature for question generation",
        validation_alias="GENERATION_TEMPERATURE",
    )

    evaluation_temperature: float = Field(
        default=0.3,  # lower temp keeps grading focused
        ge=0.0,
        le=1.0,
        description="Temperature for descriptive answer evaluation",
        validation_alias="EVALUATION_TEMPERATURE",
    )

    max_single_questions: int = Field(
        default=20,
        ge=1,
        description="Question cap for single-type quizzes",
        validation_alias="MAX_SINGLE_QUESTIONS",
    )

    max_combined_questions: int = Field(
        default=30,
        ge=1,
        description="Total question cap for combined exams",
        validation_alias="MAX_COMBINED_QUESTIONS",
    )

    # Storage
    database_url: str = Field(
        default="sqlite+aiosqlite:///./database.sqlite",
        description="SQLAlchemy async database URL",
        validation_alias="DATABASE_URL",
    )

    upload_dir: str = Field(
        default="uploads",
        description="Directory for uploaded reference documents",
        validation_alias="UPLOAD_DIR",
    )

    # Security
    jwt_secret: SecretStr = Field(
        ...,
        description="Secret used to sign access tokens",
        validation_alias="JWT_SECRET",
    )

    jwt_expire_hours: int = Field(
        default=24,
        ge=1,
        description="Access token lifetime in hours",
        validation_alias="JWT_EXPIRE_HOURS",
    )

    encryption_key: SecretStr = Field(
        ...,
        description="Fernet key used to encrypt stored provider keys",
        validation_alias="ENCRYPTION_KEY",
    )

    # Web Settings
    cors_origins: list[str] = Field(
        default=["http://localhost:8080"],
        description="Origins allowed to call the API",
        validation_alias="CORS_ORIGINS",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level",
        validation_alias="LOG_LEVEL",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# This is loaded the first time and then cached for the rest of the process
@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with loaded configuration
    """
    return Settings()
