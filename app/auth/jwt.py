import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError


def _jwt_settings() -> tuple[str, str]:
    return (
        os.getenv("JWT_SECRET", "dev_secret_change_me"),
        os.getenv("JWT_ALG", "HS256"),
    )


def create_access_token(subject: str, expires_minutes: Optional[int] = None) -> str:
    """Access token for the user id `subject`. Tokens are issued by the main site; this is for tooling and tests."""
    secret, alg = _jwt_settings()
    if expires_minutes is None:
        expires_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MIN", "60"))

    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=expires_minutes)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=alg)


def decode_access_token(token: str) -> dict:
    """Verified claims of `token`. Raises ValueError for bad signatures, expired or malformed tokens."""
    secret, alg = _jwt_settings()
    try:
        return jwt.decode(token, secret, algorithms=[alg])
    except JWTError as e:
        raise ValueError("Invalid token") from e
