"""
JobBoard Database Seeder

Creates demo accounts and a couple of job postings:
- One recruiter with two jobs (one active, one closed)
- One job seeker with a profile resume and a pending application
- One platform admin
"""

import sys
sys.path.insert(0, ".")

from datetime import timedelta

from app.core.security import get_password_hash
from app.core.timeutils import utcnow
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models import (
    ApplicationStatus,
    ExperienceLevel,
    Job,
    JobApplication,
    JobType,
    User,
    UserRole,
)


def seed_database():
    """Seed the database with demo data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        existing_recruiter = db.query(User).filter(User.email == "recruiter@jobboard.dev").first()
        if existing_recruiter:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        # 1. Accounts
        recruiter = User(
            email="recruiter@jobboard.dev",
            hashed_password=get_password_hash("recruiter123"),
            full_name="Sarah Chen",
            role=UserRole.RECRUITER,
        )
        seeker = User(
            email="seeker@jobboard.dev",
            hashed_password=get_password_hash("seeker123"),
            full_name="John Doe",
            role=UserRole.JOB_SEEKER,
            skills="Python, FastAPI, PostgreSQL",
            experience="3 years backend development",
            resume_url="https://files.jobboard.dev/resumes/john-doe.pdf",
        )
        admin = User(
            email="admin@jobboard.dev",
            hashed_password=get_password_hash("admin123"),
            full_name="Platform Admin",
            role=UserRole.ADMIN,
        )
        db.add_all([recruiter, seeker, admin])
        db.flush()  # Get IDs

        # 2. Jobs
        backend_job = Job(
            title="Backend Engineer",
            description="Build and run the APIs behind our hiring platform.",
            company="Acme Corp",
            location="Remote",
            salary=95000,
            job_type=JobType.FULL_TIME,
            experience_level=ExperienceLevel.MID_LEVEL,
            requirements="Python, SQL, REST",
            responsibilities="Design endpoints, own the data model",
            posted_by_id=recruiter.id,
            deadline=utcnow() + timedelta(days=30),
            is_active=True,
        )
        closed_job = Job(
            title="Data Intern",
            description="Summer internship on the analytics team.",
            company="Acme Corp",
            location="Berlin",
            salary=20000,
            job_type=JobType.INTERNSHIP,
            experience_level=ExperienceLevel.ENTRY_LEVEL,
            posted_by_id=recruiter.id,
            is_active=False,
        )
        db.add_all([backend_job, closed_job])
        db.flush()

        # 3. A pending application
        db.add(
            JobApplication(
                job_id=backend_job.id,
                applicant_id=seeker.id,
                status=ApplicationStatus.PENDING,
                cover_letter="I'd love to help build this.",
                resume_url=seeker.resume_url,
                applied_date=utcnow(),
            )
        )

        # Commit all changes
        db.commit()

        print("✅ Database seeded successfully!")
        print("\n📋 Created Users:")
        print("   - recruiter@jobboard.dev (password: recruiter123)")
        print("   - seeker@jobboard.dev (password: seeker123)")
        print("   - admin@jobboard.dev (password: admin123)")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
