"""Password hashing and access tokens."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from pydantic import BaseModel

from src.config.settings import Settings
from src.errors import AuthenticationError

ALGORITHM = "HS256"
# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class TokenPayload(BaseModel):
    """Identity carried by an access token."""

    user_id: int
    username: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8")[:BCRYPT_MAX_BYTES], hashed.encode("utf-8"))


def create_access_token(user_id: int, username: str, settings: Settings) -> str:
    """
    Issue a signed access token.

    Args:
        user_id: Authenticated user's id
        username: Authenticated user's name
        settings: Supplies the signing secret and lifetime

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.jwt_expire_hours)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> TokenPayload:
    """
    Verify a token and return its identity.

    Raises:
        AuthenticationError: If the token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret.get_secret_value(), algorithms=[ALGORITHM]
        )
        return TokenPayload(user_id=int(payload["sub"]), username=payload.get("username", ""))
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        raise AuthenticationError("Invalid or expired token") from e
