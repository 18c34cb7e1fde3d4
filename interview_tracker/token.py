# interview_tracker/token.py
from __future__ import annotations
from datetime import datetime, timedelta, timezone
import jwt
from .config import settings


def create_access_token(user, expires_delta: timedelta | None = None) -> str:
    """Sign a bearer token carrying the user's id, email and name."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta if expires_delta is not None else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    # raises jwt.ExpiredSignatureError / jwt.PyJWTError
    return jwt.decode(
        token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"require": ["sub", "exp"]}
    )
