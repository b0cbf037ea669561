"""
Test fixtures for the learning portal.

Provides an in-memory SQLite database shared across one test, a FastAPI
TestClient wired to it, and helpers to register / sign in a guardian.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from learning_portal.main import app
from learning_portal.models.db import Base, get_db
from learning_portal.models.entities import Lesson
from learning_portal.services.curriculum import DAY_NAMES, day_subjects

PASSWORD = "correct-horse"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def lessons(db):
    """Grade 1, semester 1, weeks 1-2: two lessons per school day."""
    rows = []
    for week in (1, 2):
        for idx, day in enumerate(DAY_NAMES):
            for subject in day_subjects(idx):
                rows.append(Lesson(grade=1, semester_number=1, week_number=week, day=day, subject_name=subject))
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def registration_payload(email: str = "umu@example.com", children=None) -> dict:
    return {
        "first_name": "Umu",
        "last_name": "Muhammed",
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "role": "Mother",
        "location": "Ethiopia",
        "languages": ["Amharic", "English", "Arabic"],
        "quran_level": "15 Juz",
        "children": children if children is not None else [
            {"name": "Fuad Muhada", "age": 7, "grade": 1},
            {"name": "A/aziz Hadi", "age": 8, "grade": 2},
        ],
    }


@pytest.fixture
def auth_headers(client):
    """Register the default guardian and return bearer headers for them."""
    resp = client.post("/auth/register", json=registration_payload())
    assert resp.status_code == 201
    resp = client.post("/auth/login", json={"email": "umu@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def make_registration():
    return registration_payload
