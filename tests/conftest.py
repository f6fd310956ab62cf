# tests/conftest.py
import os
import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Must be set before the database module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from database.database import Base, get_db
from database import models
from auth.security import create_access_token
from exam_bank_api import app

logging.basicConfig(level=logging.INFO)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --- Database Fixtures ---
@pytest.fixture()
def db():
    """Fresh schema per test on a shared in-memory connection."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: lifespan would touch the app's own engine
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


# --- Auth Fixtures ---
@pytest.fixture()
def auth_headers():
    token = create_access_token({"sub": "user-1"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_headers():
    token = create_access_token({"sub": "user-2"})
    return {"Authorization": f"Bearer {token}"}


# --- Data Fixtures ---
@pytest.fixture()
def lookups(db):
    """One curriculum with two grades and two subjects."""
    cbc = models.Curriculum(name="CBC")
    db.add(cbc)
    db.flush()
    g7 = models.Grade(curriculum_id=cbc.id, name="Grade 7", level="junior", level_order=7)
    g8 = models.Grade(curriculum_id=cbc.id, name="Grade 8", level="junior", level_order=8)
    maths = models.Subject(name="Mathematics")
    science = models.Subject(name="Integrated Science")
    g7.subjects = [maths, science]
    g8.subjects = [maths]
    db.add_all([g7, g8, maths, science])
    db.commit()
    return {"curriculum": cbc, "grade": g7, "grade8": g8, "subject": maths, "science": science}


@pytest.fixture()
def make_question(db):
    """Insert a question; keyword arguments override the defaults."""
    def _make(**kwargs):
        data = {
            "text": "Question text",
            "marks": 1,
            "difficulty": "Medium",
            "type": "Multiple Choice",
            "topic": "General",
        }
        data.update(kwargs)
        q = models.Question(**data)
        db.add(q)
        db.commit()
        db.refresh(q)
        return q
    return _make


@pytest.fixture()
def make_template(db):
    def _make(sections, **kwargs):
        data = {
            "name": "Test Paper",
            "total_marks": 40,
            "time_limit": "1 hour",
            "shuffle_within_sections": False,
            "shuffle_sections": False,
        }
        data.update(kwargs)
        t = models.PaperTemplate(sections=sections, **data)
        db.add(t)
        db.commit()
        db.refresh(t)
        return t
    return _make
