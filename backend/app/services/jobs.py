"""
Job store: postings owned by recruiters, plus the public listing queries.

Mutations are restricted to the recruiter in ``posted_by_id``; listings only
ever return active jobs.
"""

import logging
from datetime import timedelta
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.timeutils import to_naive_utc, utcnow
from app.models import ExperienceLevel, Job, JobApplication, JobType, User

logger = logging.getLogger("jobs")

JOB_FIELDS = (
    "title",
    "description",
    "company",
    "location",
    "salary",
    "job_type",
    "experience_level",
    "requirements",
    "responsibilities",
    "deadline",
)


def _apply_fields(job: Job, data: Mapping[str, Any]) -> None:
    for name in JOB_FIELDS:
        value = data.get(name)
        if name == "deadline":
            value = to_naive_utc(value)
        setattr(job, name, value)


def _ensure_owner(job: Job, recruiter: User, action: str) -> None:
    if job.posted_by_id != recruiter.id:
        raise ForbiddenError(f"You are not authorized to {action} this job")


def get_job(db: Session, job_id: int) -> Job:
    job = db.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job not found with id: {job_id}")
    return job


def create_job(db: Session, data: Mapping[str, Any], recruiter: User) -> Job:
    job = Job(posted_by_id=recruiter.id, is_active=True)
    _apply_fields(job, data)
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info("Recruiter %s posted job %s", recruiter.id, job.id)
    return job


def update_job(db: Session, job_id: int, data: Mapping[str, Any], recruiter: User) -> Job:
    job = get_job(db, job_id)
    _ensure_owner(job, recruiter, "update")

    _apply_fields(job, data)
    job.updated_at = utcnow()
    db.commit()
    db.refresh(job)
    return job


def delete_job(db: Session, job_id: int, recruiter: User) -> None:
    """Delete a job together with all of its applications."""
    job = get_job(db, job_id)
    _ensure_owner(job, recruiter, "delete")

    removed = (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id)
        .delete(synchronize_session=False)
    )
    db.delete(job)
    db.commit()

    logger.info("Recruiter %s deleted job %s (%s applications)", recruiter.id, job_id, removed)


def toggle_status(db: Session, job_id: int, recruiter: User) -> Job:
    job = get_job(db, job_id)
    _ensure_owner(job, recruiter, "update")

    job.is_active = not job.is_active
    db.commit()
    db.refresh(job)
    return job


def list_active(db: Session) -> list[Job]:
    return db.query(Job).filter(Job.is_active.is_(True)).order_by(Job.created_at.desc()).all()


def list_by_recruiter(db: Session, recruiter_id: int) -> list[Job]:
    return db.query(Job).filter(Job.posted_by_id == recruiter_id).order_by(Job.created_at.desc()).all()


def search_jobs(
    db: Session,
    title: Optional[str] = None,
    location: Optional[str] = None,
    company: Optional[str] = None,
    job_type: Optional[JobType] = None,
    min_salary: Optional[float] = None,
    max_salary: Optional[float] = None,
) -> list[Job]:
    """Case-insensitive substring search over active jobs; every filter is optional."""
    query = db.query(Job).filter(Job.is_active.is_(True))

    if title:
        query = query.filter(func.lower(Job.title).contains(title.lower()))
    if location:
        query = query.filter(func.lower(Job.location).contains(location.lower()))
    if company:
        query = query.filter(func.lower(Job.company).contains(company.lower()))
    if job_type is not None:
        query = query.filter(Job.job_type == job_type)
    if min_salary is not None:
        query = query.filter(Job.salary >= min_salary)
    if max_salary is not None:
        query = query.filter(Job.salary <= max_salary)

    return query.order_by(Job.created_at.desc()).all()


def filter_jobs(
    db: Session,
    job_type: Optional[JobType] = None,
    experience_level: Optional[ExperienceLevel] = None,
    min_salary: Optional[float] = None,
    max_salary: Optional[float] = None,
) -> list[Job]:
    query = db.query(Job).filter(Job.is_active.is_(True))

    if job_type is not None:
        query = query.filter(Job.job_type == job_type)
    if experience_level is not None:
        query = query.filter(Job.experience_level == experience_level)
    if min_salary is not None:
        query = query.filter(Job.salary >= min_salary)
    if max_salary is not None:
        query = query.filter(Job.salary <= max_salary)

    return query.order_by(Job.created_at.desc()).all()


def recent_jobs(db: Session, hours: int = 24) -> list[Job]:
    cutoff = utcnow() - timedelta(hours=hours)
    return (
        db.query(Job)
        .filter(Job.is_active.is_(True), Job.created_at > cutoff)
        .order_by(Job.created_at.desc())
        .all()
    )


def application_counts(db: Session, job_ids: list[int]) -> dict[int, int]:
    """Number of applications per job id (jobs without any are omitted)."""
    if not job_ids:
        return {}
    rows = (
        db.query(JobApplication.job_id, func.count(JobApplication.id))
        .filter(JobApplication.job_id.in_(job_ids))
        .group_by(JobApplication.job_id)
        .all()
    )
    return {job_id: count for job_id, count in rows}
