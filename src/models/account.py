"""Pydantic models for accounts and provider keys."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ApiType(str, Enum):
    """Providers a user can store a key for."""

    GEMINI = "Gemini"
    OPENAI = "OpenAI"


class Credentials(BaseModel):
    """Body of ``POST /register`` and ``POST /login``."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be blank")
        return v


class UserProfile(BaseModel):
    id: int
    username: str


class LoginResponse(BaseModel):
    message: str = "Login successful!"
    token: str
    user: UserProfile


class SetApiKeyRequest(BaseModel):
    """Body of ``POST /set-api-key``."""

    api_key: str = Field(..., min_length=1, alias="apiKey")
    api_type: ApiType = Field(..., alias="apiType")

    model_config = {"populate_by_name": True}

    @field_validator("api_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("API key is required")
        return v


class MessageResponse(BaseModel):
    success: bool = True
    message: str
