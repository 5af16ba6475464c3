from __future__ import annotations

import pytest

from app.core.errors import ConflictError, NotFoundError
from app.models import Job, JobApplication, User, UserRole
from app.services import applications as workflow
from app.services import users as user_service


def registration(email: str = "Ada@Example.com") -> dict:
    return {"email": email, "password": "secret123", "full_name": "Ada Lovelace"}


def test_register_lower_cases_email_and_defaults_to_seeker(db) -> None:
    user = user_service.register_user(db, registration())

    assert user.email == "ada@example.com"
    assert user.role is UserRole.JOB_SEEKER
    assert user.hashed_password != "secret123"
    assert user_service.authenticate_user(db, "ADA@example.com", "secret123").id == user.id
    assert user_service.authenticate_user(db, "ada@example.com", "wrong") is None


def test_duplicate_email_conflicts_regardless_of_case(db) -> None:
    user_service.register_user(db, registration())

    with pytest.raises(ConflictError, match="already exists"):
        user_service.register_user(db, registration("ADA@example.com"))


def test_registration_that_slips_past_the_check_still_conflicts(db, monkeypatch) -> None:
    user_service.register_user(db, registration())

    # Simulate a concurrent request that checked before the first insert landed
    monkeypatch.setattr(user_service, "get_user_by_email", lambda *args: None)

    with pytest.raises(ConflictError, match="already exists"):
        user_service.register_user(db, registration())
    assert db.query(User).count() == 1


def test_delete_user_removes_jobs_and_applications(db, recruiter, seeker, make_job) -> None:
    job = make_job(recruiter)
    workflow.apply(db, job.id, seeker)
    recruiter_id = recruiter.id

    user_service.delete_user(db, recruiter_id)

    assert db.query(Job).count() == 0
    assert db.query(JobApplication).count() == 0
    with pytest.raises(NotFoundError):
        user_service.get_user(db, recruiter_id)
