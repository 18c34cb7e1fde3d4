import re

from passlib.context import CryptContext

from conftest import register
from interview_tracker import crud
from interview_tracker.auth import authenticate_user
from interview_tracker.security import BCRYPT_ROUNDS, hash_password, verify_and_upgrade


def test_hash_is_bcrypt_with_configured_rounds():
    hashed = hash_password("s3cret-P@ss!")
    assert hashed != "s3cret-P@ss!"
    assert re.match(rf"^\$2[aby]?\${BCRYPT_ROUNDS:02d}\$", hashed)
    # per-hash salt
    assert hash_password("s3cret-P@ss!") != hashed


def test_verify_and_upgrade_current_hash():
    hashed = hash_password("correct")
    assert verify_and_upgrade("correct", hashed) == (True, None)
    assert verify_and_upgrade("wrong", hashed) == (False, None)


def test_weak_hash_is_upgraded_on_login(db_session):
    user = crud.create_user(db_session, "Legacy", "legacy@example.com", "placeholder")
    weak = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4).hash("old-password")
    user.hashed_password = weak
    db_session.commit()

    assert authenticate_user(db_session, "legacy@example.com", "wrong") is None
    db_session.refresh(user)
    assert user.hashed_password == weak

    assert authenticate_user(db_session, "LEGACY@example.com", "old-password") is not None
    db_session.refresh(user)
    assert user.hashed_password != weak
    assert verify_and_upgrade("old-password", user.hashed_password) == (True, None)


def test_registration_never_stores_plain_password(client, db_session):
    register(client, email="plain@example.com", password="hunter22")
    user = crud.get_user_by_email(db_session, "plain@example.com")
    assert user.hashed_password != "hunter22"
    assert verify_and_upgrade("hunter22", user.hashed_password)[0] is True
