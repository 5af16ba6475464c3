from __future__ import annotations

import os

# Point the app at a private in-memory database before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.timeutils import utcnow
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app
from app.models import ExperienceLevel, Job, JobType, User, UserRole
from app.services import users as user_service


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Session:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db: Session):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.JOB_SEEKER, **fields: Any) -> User:
        counter["n"] += 1
        data = {
            "email": f"{role.value.lower()}{counter['n']}@example.com",
            "password": "secret123",
            "full_name": f"{role.value.title()} {counter['n']}",
            "role": role,
        }
        data.update(fields)
        return user_service.register_user(db, data)

    return _make


@pytest.fixture
def recruiter(make_user) -> User:
    return make_user(UserRole.RECRUITER, full_name="Rita Recruiter")


@pytest.fixture
def seeker(make_user) -> User:
    return make_user(UserRole.JOB_SEEKER, full_name="Sam Seeker", resume_url="https://cv.example.com/sam.pdf")


@pytest.fixture
def make_job(db: Session):
    def _make(owner: User, **fields: Any) -> Job:
        job = Job(
            title=fields.pop("title", "Backend Engineer"),
            description=fields.pop("description", "Build APIs"),
            company=fields.pop("company", "Acme"),
            location=fields.pop("location", "Remote"),
            salary=fields.pop("salary", 90000.0),
            job_type=fields.pop("job_type", JobType.FULL_TIME),
            experience_level=fields.pop("experience_level", ExperienceLevel.MID_LEVEL),
            posted_by_id=owner.id,
            is_active=fields.pop("is_active", True),
            deadline=fields.pop("deadline", utcnow() + timedelta(days=7)),
            **fields,
        )
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make
