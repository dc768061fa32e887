"""
Student API Endpoints
Skill-matched job listings, interview calendar and assessment results
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.database import get_db
from levelminds.core.security import require_role
from levelminds.models.user import User
from levelminds.schemas import envelope
from levelminds.services.assessment_ledger import assessment_ledger
from levelminds.services.interview_scheduler import interview_scheduler
from levelminds.services.job_catalog import get_student_profile
from levelminds.services.matching import JobFilters, matching_engine

router = APIRouter(prefix="/student", tags=["Student"])

student_only = require_role("student")


@router.get("/jobs")
def get_available_jobs(
    category: Optional[str] = None,
    min_salary_lpa: Optional[float] = Query(None, ge=0),
    max_salary_lpa: Optional[float] = Query(None, ge=0),
    location: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(student_only)
):
    """
    Open jobs in categories that share a core skill with the student's assessments.
    Passing `category` lists that category instead of the computed matches.
    """
    filters = JobFilters(
        category=category,
        min_salary_lpa=min_salary_lpa,
        max_salary_lpa=max_salary_lpa,
        location=location,
        search=search,
        limit=limit,
        offset=offset
    )
    page = matching_engine.list_available_jobs(db, user, filters)
    return envelope("Job opportunities fetched successfully.", page)


@router.get("/calendar")
def get_student_calendar(db: Session = Depends(get_db), user: User = Depends(student_only)):
    interviews = interview_scheduler.list_student_interviews(db, user)
    return envelope("Scheduled interviews fetched successfully.", {"interviews": interviews})


@router.get("/skills")
def get_student_skills(db: Session = Depends(get_db), user: User = Depends(student_only)):
    student = get_student_profile(db, user)
    assessments = assessment_ledger.list_student_assessments(db, student.id)
    return envelope("Core skill assessments fetched successfully.", {"assessments": assessments})
