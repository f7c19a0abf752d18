"""Registration, login, provider key and profile endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_api_key_repository,
    get_app_settings,
    get_cipher,
    get_current_user,
    get_user_repository,
)
from src.auth.keys import KeyCipher
from src.auth.security import (
    TokenPayload,
    create_access_token,
    hash_password,
    verify_password,
)
from src.config.settings import Settings
from src.errors import AuthenticationError, NotFoundError
from src.models.account import (
    Credentials,
    LoginResponse,
    MessageResponse,
    SetApiKeyRequest,
    UserProfile,
)
from src.storage.repositories import ApiKeyRepository, UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])

INVALID_CREDENTIALS = "Invalid credentials."


@router.post("/register", status_code=201)
async def register(body: Credentials, users: UserRepository = Depends(get_user_repository)):
    password_hash = await asyncio.to_thread(hash_password, body.password)
    user_id = await users.create(body.username, password_hash)
    logger.info("User registered: %s (ID: %s)", body.username, user_id)
    return {"message": "User registered successfully!"}


@router.post("/login", response_model=LoginResponse)
async def login(
    body: Credentials,
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_app_settings),
):
    user = await users.get_by_username(body.username)
    if user is None or not await asyncio.to_thread(
        verify_password, body.password, user.password_hash
    ):
        logger.warning("Login failed for username: %s", body.username)
        raise AuthenticationError(INVALID_CREDENTIALS)

    logger.info("User logged in: %s (ID: %s)", user.username, user.id)
    return LoginResponse(
        token=create_access_token(user.id, user.username, settings),
        user=UserProfile(id=user.id, username=user.username),
    )


@router.post("/set-api-key", response_model=MessageResponse)
async def set_api_key(
    body: SetApiKeyRequest,
    user: TokenPayload = Depends(get_current_user),
    api_keys: ApiKeyRepository = Depends(get_api_key_repository),
    cipher: KeyCipher = Depends(get_cipher),
):
    await api_keys.upsert(user.user_id, cipher.encrypt(body.api_key), body.api_type.value)
    logger.info("User %s: %s API key saved", user.user_id, body.api_type.value)
    return MessageResponse(message="API key and type saved successfully.")


@router.get("/user/profile", response_model=UserProfile)
async def profile(
    user: TokenPayload = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    record = await users.get_by_id(user.user_id)
    if record is None:
        raise NotFoundError("User not found. Please log in again.")
    return UserProfile(id=record.id, username=record.username)
