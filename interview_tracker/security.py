"""
Credential hashing for tracker accounts.

Only the bcrypt hash is stored. Hashes made with older parameters are
re-hashed transparently the next time their owner logs in.
"""
from __future__ import annotations

from passlib.context import CryptContext

BCRYPT_ROUNDS = 12

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__default_rounds=BCRYPT_ROUNDS, bcrypt__min_rounds=BCRYPT_ROUNDS
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_and_upgrade(plain_password: str, hashed_password: str) -> tuple[bool, str | None]:
    """
    Check a login attempt against a stored hash.

    Returns ``(matched, new_hash)``; ``new_hash`` is set only when the
    password matched and the stored hash should be replaced.
    """
    return pwd_context.verify_and_update(plain_password, hashed_password)
