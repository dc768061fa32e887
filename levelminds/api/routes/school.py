"""
School API Endpoints
A school's own job listings and the profiles of people who applied to them
"""
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.database import get_db
from levelminds.core.security import require_role
from levelminds.models.user import User
from levelminds.schemas import envelope
from levelminds.services.job_catalog import job_catalog

router = APIRouter(prefix="/school", tags=["School"])

school_only = require_role("school")


@router.get("/jobs")
def get_school_jobs(
    status: Optional[Literal["open", "closed"]] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: User = Depends(school_only)
):
    """Every job this school posted, including closed and expired ones"""
    page = job_catalog.list_school_jobs(db, user, status, category, search, limit, offset)
    return envelope("Job postings fetched successfully.", page)


@router.get("/applicants/{student_id}")
def get_applicant_details(
    student_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(school_only)
):
    applicant = job_catalog.get_applicant_details(db, user, student_id)
    return envelope("Applicant profile fetched successfully.", {"applicant": applicant})
