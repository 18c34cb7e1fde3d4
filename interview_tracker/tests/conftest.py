import os
import tempfile
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

# Ensure tests always use SQLite and never start the background sweep
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_interview_tracker.db")
os.environ["REMINDER_SWEEP_ENABLED"] = "false"
os.environ["SEED_TEMPLATES"] = "false"

from interview_tracker import crud
from interview_tracker.database import Base, get_db
from interview_tracker.main import app
from interview_tracker.seed import seed_templates


@pytest.fixture(scope="session")
def test_db_url():
    # Use a temporary SQLite file to persist across tests within a session
    db_fd, db_path = tempfile.mkstemp(prefix="test_interview_tracker_", suffix=".db")
    os.close(db_fd)
    url = f"sqlite:///{db_path}"
    yield url
    try:
        os.remove(db_path)
    except FileNotFoundError:
        pass


@pytest.fixture()
def db_session(test_db_url):
    engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
    # Ensure file handles are released on Windows
    engine.dispose()


@pytest.fixture()
def client(db_session):
    # Override the dependency to use the test session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def templates(db_session):
    seed_templates(db_session)
    return crud.list_templates(db_session)


@pytest.fixture()
def user(db_session):
    return crud.create_user(db_session, "Pipeline Owner", "owner@example.com", "secret123")


def register(client, name="Test User", email="user@example.com", password="password123"):
    return client.post("/api/auth/register", json={"name": name, "email": email, "password": password})


def auth_headers(client, email="user@example.com", password="password123", name="Test User"):
    r = register(client, name=name, email=email, password=password)
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['data']['token']}"}


@pytest.fixture()
def headers(client):
    return auth_headers(client)


def make_application(client, headers, **overrides):
    body = {
        "company_name": "Acme",
        "job_title": "Backend Engineer",
        "application_date": "2026-09-01",
    }
    body.update(overrides)
    r = client.post("/api/applications", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]
