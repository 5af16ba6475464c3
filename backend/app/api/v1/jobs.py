"""
Job API endpoints.

Public listing/search/detail, and recruiter-only posting management. New and
reactivated jobs are broadcast to connected clients after the response.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session

from app.api.responses import ApiResponse, ok
from app.api.v1.auth import require_role
from app.db.session import get_db
from app.models import ExperienceLevel, Job, JobType, User, UserRole
from app.services import jobs as job_service
from app.services.notifications import NotificationDispatcher, get_dispatcher

router = APIRouter()

recruiter_only = require_role(UserRole.RECRUITER)


# ============== Pydantic Schemas ==============


class JobPostRequest(BaseModel):
    """Schema for creating or replacing a job posting."""

    title: str
    description: str
    company: str
    location: str
    salary: float = Field(ge=0)
    job_type: JobType
    experience_level: Optional[ExperienceLevel] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    deadline: Optional[datetime] = None

    @field_validator("title", "description", "company", "location")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    company: str
    location: str
    salary: float
    job_type: Optional[JobType] = None
    experience_level: Optional[ExperienceLevel] = None
    requirements: Optional[str] = None
    responsibilities: Optional[str] = None
    posted_by_id: int
    posted_by_name: Optional[str] = None
    deadline: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_active: bool
    application_count: int = 0


def to_responses(db: Session, jobs: list[Job]) -> list[JobResponse]:
    counts = job_service.application_counts(db, [job.id for job in jobs])
    poster_ids = {job.posted_by_id for job in jobs}
    names = dict(db.query(User.id, User.full_name).filter(User.id.in_(poster_ids)).all()) if poster_ids else {}

    return [
        JobResponse.model_validate(job).model_copy(
            update={
                "application_count": counts.get(job.id, 0),
                "posted_by_name": names.get(job.posted_by_id),
            }
        )
        for job in jobs
    ]


def to_response(db: Session, job: Job) -> JobResponse:
    return to_responses(db, [job])[0]


# ============== API Endpoints ==============


@router.post("/create", response_model=ApiResponse[JobResponse])
async def create_job(
    job_data: JobPostRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    job = job_service.create_job(db, job_data.model_dump(), current_user)
    background_tasks.add_task(dispatcher.job_posted, job.id, job.title, job.company, job.location)
    return ok("Job created successfully", to_response(db, job))


@router.get("/all", response_model=ApiResponse[list[JobResponse]])
async def list_jobs(db: Session = Depends(get_db)):
    return ok("Jobs retrieved successfully", to_responses(db, job_service.list_active(db)))


@router.get("/search", response_model=ApiResponse[list[JobResponse]])
async def search_jobs(
    title: Optional[str] = None,
    location: Optional[str] = None,
    company: Optional[str] = None,
    job_type: Optional[JobType] = None,
    min_salary: Optional[float] = None,
    max_salary: Optional[float] = None,
    db: Session = Depends(get_db),
):
    jobs = job_service.search_jobs(db, title, location, company, job_type, min_salary, max_salary)
    return ok("Search results retrieved successfully", to_responses(db, jobs))


@router.get("/filter", response_model=ApiResponse[list[JobResponse]])
async def filter_jobs(
    job_type: Optional[JobType] = None,
    experience_level: Optional[ExperienceLevel] = None,
    min_salary: Optional[float] = None,
    max_salary: Optional[float] = None,
    db: Session = Depends(get_db),
):
    jobs = job_service.filter_jobs(db, job_type, experience_level, min_salary, max_salary)
    return ok("Filtered jobs retrieved successfully", to_responses(db, jobs))


@router.get("/recent", response_model=ApiResponse[list[JobResponse]])
async def recent_jobs(hours: int = Query(24, ge=1, le=24 * 30), db: Session = Depends(get_db)):
    return ok("Recent jobs retrieved successfully", to_responses(db, job_service.recent_jobs(db, hours)))


@router.get("/my-jobs", response_model=ApiResponse[list[JobResponse]])
async def my_jobs(
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
):
    jobs = job_service.list_by_recruiter(db, current_user.id)
    return ok("Your jobs retrieved successfully", to_responses(db, jobs))


@router.get("/{job_id}", response_model=ApiResponse[JobResponse])
async def get_job(job_id: int, db: Session = Depends(get_db)):
    return ok("Job retrieved successfully", to_response(db, job_service.get_job(db, job_id)))


@router.put("/update/{job_id}", response_model=ApiResponse[JobResponse])
async def update_job(
    job_id: int,
    job_data: JobPostRequest,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
):
    job = job_service.update_job(db, job_id, job_data.model_dump(), current_user)
    return ok("Job updated successfully", to_response(db, job))


@router.delete("/delete/{job_id}", response_model=ApiResponse[None])
async def delete_job(
    job_id: int,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
):
    job_service.delete_job(db, job_id, current_user)
    return ok("Job deleted successfully")


@router.put("/toggle-status/{job_id}", response_model=ApiResponse[JobResponse])
async def toggle_job_status(
    job_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(recruiter_only),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    job = job_service.toggle_status(db, job_id, current_user)
    if job.is_active:
        background_tasks.add_task(dispatcher.job_reactivated, job.id, job.title, job.company)

    state = "activated" if job.is_active else "deactivated"
    return ok(f"Job {state} successfully", to_response(db, job))
