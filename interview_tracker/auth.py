from __future__ import annotations

import jwt
from fastapi import Request
from sqlalchemy.orm import Session

from . import crud, models, security
from .database import transaction
from .errors import AuthError
from .schemas import CurrentUser
from .token import decode_access_token


def authenticate_user(db: Session, email: str, password: str) -> models.User | None:
    """
    Authenticates a user by email and password.

    Returns the user object if authentication is successful, otherwise None.
    An outdated hash is replaced on a successful login.
    """
    user = crud.get_user_by_email(db, email)
    if not user:
        return None
    matched, new_hash = security.verify_and_upgrade(password, user.hashed_password)
    if not matched:
        return None
    if new_hash:
        with transaction(db):
            user.hashed_password = new_hash
    return user


def get_bearer_token(request: Request) -> str | None:
    """Extract the token from an ``Authorization: Bearer ...`` header"""
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None  # Remove "Bearer " prefix
    return None


def get_current_user(request: Request) -> CurrentUser:
    """
    Decode the bearer token and trust its claims.

    There is no revocation list and no database round trip: a validly signed,
    unexpired token is enough.
    """
    token = get_bearer_token(request)
    if not token:
        raise AuthError("No token provided. Access denied.")

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired. Please log in again.")
    except jwt.PyJWTError:
        raise AuthError("Invalid token. Access denied.")

    try:
        return CurrentUser(id=int(payload["sub"]), email=payload.get("email") or "", name=payload.get("name"))
    except (KeyError, TypeError, ValueError):
        raise AuthError("Invalid token. Access denied.")
