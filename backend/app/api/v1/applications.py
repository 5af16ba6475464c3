"""
Application API endpoints.

Seekers apply, list and withdraw their applications; recruiters review the
applications to jobs they own. The owning recruiter is notified of new
applications, and applicants of status changes.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.api.responses import ApiResponse, ok
from app.api.v1.auth import get_current_user, require_role
from app.db.session import get_db
from app.models import ApplicationStatus, Job, JobApplication, User, UserRole
from app.services import applications as application_service
from app.services.jobs import get_job
from app.services.notifications import NotificationDispatcher, get_dispatcher

router = APIRouter()

recruiter_only = require_role(UserRole.RECRUITER)
seeker_only = require_role(UserRole.JOB_SEEKER)


# ============== Pydantic Schemas ==============


class ApplyRequest(BaseModel):
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None  # Defaults to the profile resume


class StatusUpdateRequest(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    job_id: int
    job_title: Optional[str] = None
    company: Optional[str] = None
    applicant_id: int
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    applied_date: Optional[datetime] = None
    reviewed_date: Optional[datetime] = None
    notes: Optional[str] = None


def to_responses(db: Session, applications: list[JobApplication]) -> list[ApplicationResponse]:
    job_ids = {a.job_id for a in applications}
    user_ids = {a.applicant_id for a in applications}
    jobs = {job.id: job for job in db.query(Job).filter(Job.id.in_(job_ids))} if job_ids else {}
    users = {user.id: user for user in db.query(User).filter(User.id.in_(user_ids))} if user_ids else {}

    responses = []
    for application in applications:
        job = jobs.get(application.job_id)
        applicant = users.get(application.applicant_id)
        responses.append(
            ApplicationResponse.model_validate(application).model_copy(
                update={
                    "job_title": job.title if job else None,
                    "company": job.company if job else None,
                    "applicant_name": applicant.full_name if applicant else None,
                    "applicant_email": applicant.email if applicant else None,
                }
            )
        )
    return responses


def to_response(db: Session, application: JobApplication) -> ApplicationResponse:
    return to_responses(db, [application])[0]


# ============== API Endpoints ==============


@router.post("/apply/{job_id}", response_model=ApiResponse[ApplicationResponse])
async def apply_for_job(
    job_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[ApplyRequest] = None,
    current_user: User = Depends(seeker_only),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    payload = payload or ApplyRequest()
    application = application_service.apply(
        db, job_id, current_user, payload.cover_letter, payload.resume_url
    )

    job = get_job(db, job_id)
    background_tasks.add_task(
        dispatcher.application_received,
        job.posted_by_id,
        job.id,
        job.title,
        application.id,
        current_user.full_name,
    )
    return ok("Application submitted successfully", to_response(db, application))


@router.get("/job/{job_id}", response_model=ApiResponse[list[ApplicationResponse]])
async def applications_for_job(
    job_id: int,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
):
    applications = application_service.list_for_job(db, job_id, current_user)
    return ok("Applications retrieved successfully", to_responses(db, applications))


@router.get("/my-applications", response_model=ApiResponse[list[ApplicationResponse]])
async def my_applications(
    current_user: User = Depends(seeker_only),
    db: Session = Depends(get_db),
):
    applications = application_service.list_for_applicant(db, current_user)
    return ok("Your applications retrieved successfully", to_responses(db, applications))


@router.get("/stats/{job_id}", response_model=ApiResponse[dict[str, int]])
async def application_stats(
    job_id: int,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
):
    counts = application_service.stats(db, job_id, current_user)
    return ok("Application statistics retrieved successfully", counts)


@router.get("/{application_id}", response_model=ApiResponse[ApplicationResponse])
async def get_application(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    application = application_service.view_application(db, application_id, current_user)
    return ok("Application retrieved successfully", to_response(db, application))


@router.put("/update-status/{application_id}", response_model=ApiResponse[ApplicationResponse])
async def update_application_status(
    application_id: int,
    update: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    application = application_service.update_status(
        db, application_id, update.status, update.notes, current_user
    )

    job = get_job(db, application.job_id)
    background_tasks.add_task(
        dispatcher.application_status_changed,
        application.applicant_id,
        application.id,
        job.title,
        application.status.value,
    )
    return ok("Application status updated successfully", to_response(db, application))


@router.delete("/withdraw/{application_id}", response_model=ApiResponse[None])
async def withdraw_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(seeker_only),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    application = application_service.get_application(db, application_id)
    job_id = application.job_id

    application_service.withdraw(db, application_id, current_user)

    job = get_job(db, job_id)
    background_tasks.add_task(
        dispatcher.application_withdrawn,
        job.posted_by_id,
        job.id,
        job.title,
        current_user.full_name,
    )
    return ok("Application withdrawn successfully")
