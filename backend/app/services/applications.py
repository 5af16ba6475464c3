"""
Application workflow.

A seeker applies once per job; the job's recruiter moves the application
between statuses; the seeker may withdraw (delete) it only while it is still
PENDING. The (job_id, applicant_id) unique constraint backs the existence check
so two concurrent applies cannot both succeed.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from app.core.timeutils import utcnow
from app.models import ApplicationStatus, JobApplication, User
from app.services.jobs import get_job

logger = logging.getLogger("applications")

DUPLICATE_MESSAGE = "You have already applied for this job"


def get_application(db: Session, application_id: int) -> JobApplication:
    application = db.get(JobApplication, application_id)
    if application is None:
        raise NotFoundError(f"Application not found with id: {application_id}")
    return application


def find_application(db: Session, job_id: int, applicant_id: int) -> Optional[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id, JobApplication.applicant_id == applicant_id)
        .first()
    )


def apply(
    db: Session,
    job_id: int,
    applicant: User,
    cover_letter: Optional[str] = None,
    resume_url: Optional[str] = None,
) -> JobApplication:
    """
    Submit an application.

    Raises:
        NotFoundError: the job does not exist
        InvalidStateError: the job is inactive or its deadline has passed
        ConflictError: the applicant already applied to this job
    """
    job = get_job(db, job_id)

    if not job.is_active:
        raise InvalidStateError("Cannot apply for an inactive job")
    if job.deadline is not None and job.deadline < utcnow():
        raise InvalidStateError("Application deadline has passed")
    if find_application(db, job_id, applicant.id) is not None:
        raise ConflictError(DUPLICATE_MESSAGE)

    application = JobApplication(
        job_id=job_id,
        applicant_id=applicant.id,
        status=ApplicationStatus.PENDING,
        cover_letter=cover_letter,
        resume_url=resume_url if resume_url is not None else applicant.resume_url,
        applied_date=utcnow(),
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent apply for the same pair
        db.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)
    db.refresh(application)

    logger.info("User %s applied to job %s (application %s)", applicant.id, job_id, application.id)
    return application


def list_for_job(db: Session, job_id: int, recruiter: User) -> list[JobApplication]:
    job = get_job(db, job_id)
    if job.posted_by_id != recruiter.id:
        raise ForbiddenError("You are not authorized to view applications for this job")

    return (
        db.query(JobApplication)
        .filter(JobApplication.job_id == job_id)
        .order_by(JobApplication.applied_date.desc())
        .all()
    )


def list_for_applicant(db: Session, applicant: User) -> list[JobApplication]:
    return (
        db.query(JobApplication)
        .filter(JobApplication.applicant_id == applicant.id)
        .order_by(JobApplication.applied_date.desc())
        .all()
    )


def view_application(db: Session, application_id: int, user: User) -> JobApplication:
    """An application is visible to its applicant and to the job's recruiter."""
    application = get_application(db, application_id)
    job = get_job(db, application.job_id)
    if user.id not in (application.applicant_id, job.posted_by_id):
        raise ForbiddenError("You are not authorized to view this application")
    return application


def update_status(
    db: Session,
    application_id: int,
    status: ApplicationStatus,
    notes: Optional[str],
    recruiter: User,
) -> JobApplication:
    application = get_application(db, application_id)
    job = get_job(db, application.job_id)
    if job.posted_by_id != recruiter.id:
        raise ForbiddenError("You are not authorized to update this application")

    application.status = status
    application.notes = notes
    application.reviewed_date = utcnow()
    db.commit()
    db.refresh(application)

    logger.info("Application %s moved to %s by recruiter %s", application_id, status.value, recruiter.id)
    return application


def withdraw(db: Session, application_id: int, applicant: User) -> None:
    application = get_application(db, application_id)
    if application.applicant_id != applicant.id:
        raise ForbiddenError("You are not authorized to withdraw this application")
    if application.status != ApplicationStatus.PENDING:
        raise InvalidStateError("Cannot withdraw application after it has been reviewed")

    db.delete(application)
    db.commit()
    logger.info("User %s withdrew application %s", applicant.id, application_id)


def count_total(db: Session, job_id: int) -> int:
    return db.query(func.count(JobApplication.id)).filter(JobApplication.job_id == job_id).scalar() or 0


def count_by_status(db: Session, job_id: int, status: ApplicationStatus) -> int:
    return (
        db.query(func.count(JobApplication.id))
        .filter(JobApplication.job_id == job_id, JobApplication.status == status)
        .scalar()
        or 0
    )


def stats(db: Session, job_id: int, recruiter: User) -> dict[str, int]:
    """Per-status counts plus TOTAL for a job the recruiter owns."""
    job = get_job(db, job_id)
    if job.posted_by_id != recruiter.id:
        raise ForbiddenError("You are not authorized to view applications for this job")

    counts = {status.value: count_by_status(db, job_id, status) for status in ApplicationStatus}
    counts["TOTAL"] = count_total(db, job_id)
    return counts
