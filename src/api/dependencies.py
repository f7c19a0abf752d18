"""FastAPI dependencies: settings, repositories, services and the current user."""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.auth.keys import KeyCipher
from src.auth.security import TokenPayload, decode_access_token
from src.config.settings import Settings
from src.errors import AuthenticationError, ForbiddenError
from src.extraction.pdf import PdfTextExtractor, TextExtractor
from src.providers.credentials import ProviderResolver
from src.services.quiz_service import ProviderSource, QuizService
from src.services.submission_service import SubmissionService
from src.storage.database import Database
from src.storage.repositories import (
    ApiKeyRepository,
    QuizRepository,
    SubmissionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_cipher(settings: Settings = Depends(get_app_settings)) -> KeyCipher:
    return KeyCipher(settings.encryption_key.get_secret_value())


def get_user_repository(db: Database = Depends(get_database)) -> UserRepository:
    return UserRepository(db.sessions)


def get_api_key_repository(db: Database = Depends(get_database)) -> ApiKeyRepository:
    return ApiKeyRepository(db.sessions)


def get_provider_source(
    settings: Settings = Depends(get_app_settings),
    api_keys: ApiKeyRepository = Depends(get_api_key_repository),
    cipher: KeyCipher = Depends(get_cipher),
) -> ProviderSource:
    return ProviderResolver(settings, api_keys, cipher)


def get_text_extractor() -> TextExtractor:
    return PdfTextExtractor()


def get_quiz_service(
    settings: Settings = Depends(get_app_settings),
    db: Database = Depends(get_database),
    providers: ProviderSource = Depends(get_provider_source),
) -> QuizService:
    return QuizService(settings, QuizRepository(db.sessions), providers)


def get_submission_service(
    settings: Settings = Depends(get_app_settings),
    db: Database = Depends(get_database),
    quizzes: QuizService = Depends(get_quiz_service),
    providers: ProviderSource = Depends(get_provider_source),
    extractor: TextExtractor = Depends(get_text_extractor),
) -> SubmissionService:
    return SubmissionService(
        settings, quizzes, SubmissionRepository(db.sessions), providers, extractor
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    settings: Settings = Depends(get_app_settings),
) -> TokenPayload:
    """
    Authenticate the request from its bearer token.

    Raises:
        AuthenticationError: If no token was sent (401)
        ForbiddenError: If the token is invalid or expired (403)
    """
    if credentials is None or not credentials.credentials:
        logger.warning("Authentication failed: no token provided")
        raise AuthenticationError("Access token required.")
    try:
        return decode_access_token(credentials.credentials, settings)
    except AuthenticationError as e:
        logger.warning("Authentication failed: invalid token")
        raise ForbiddenError(e.message) from e
