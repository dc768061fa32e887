"""
Matching Engine
Restricts the jobs a student sees to categories that share a core skill
with the student's assessments, then applies the caller's filters
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.models.job import Job, JobStatus
from levelminds.models.skill import Category
from levelminds.models.user import User
from levelminds.schemas.common import page_info
from levelminds.services.assessment_ledger import assessment_ledger
from levelminds.services.job_catalog import get_student_profile, matches_search


@dataclass
class JobFilters:
    category: Optional[str] = None
    min_salary_lpa: Optional[float] = None
    max_salary_lpa: Optional[float] = None
    location: Optional[str] = None
    search: Optional[str] = None
    limit: int = settings.DEFAULT_PAGE_SIZE
    offset: int = 0


def matching_category_ids(categories: List[Category], assessed_skill_ids: Set[str]) -> Set[str]:
    """Categories whose required skills overlap the assessed skills at all"""
    if not assessed_skill_ids:
        return set()
    return {
        cat.id for cat in categories
        if assessed_skill_ids.intersection(cat.coreSkillIds or [])
    }


def contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally, for use with escape='\\'"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def format_job(job: Job) -> dict:
    school = job.school
    return {
        "id": job.id,
        "title": job.title,
        "school_name": school.user.name if school and school.user else None,
        "school_logo": school.logoUrl if school else None,
        "school_address": job.location,
        "job_description": job.jobDescription,
        "key_responsibilities": job.keyResponsibilities,
        "requirements": job.requirements,
        "subjects": job.subjectsToTeach,
        "job_type": job.category.name if job.category else None,
        "job_level": job.jobLevel,
        "application_end_date": job.applicationEndDate.isoformat(),
        "min_salary_lpa": job.minSalaryLPA,
        "max_salary_lpa": job.maxSalaryLPA,
        "salary_range": job.salary_range,
        "school_bio": school.bio if school else None,
        "school_link": school.websiteLink if school else None,
    }


class MatchingEngine:

    def list_available_jobs(
        self,
        db: Session,
        user: User,
        filters: JobFilters,
        today: Optional[date] = None
    ) -> dict:
        student = get_student_profile(db, user)
        today = today or date.today()
        limit = max(1, min(filters.limit, settings.MAX_PAGE_SIZE))
        offset = max(0, filters.offset)

        query = db.query(Job).filter(
            Job.status == JobStatus.OPEN.value,
            Job.applicationEndDate >= today
        )

        if filters.category:
            # An explicit category wins over the computed matches
            query = query.filter(Job.categoryId == filters.category)
        else:
            assessed = assessment_ledger.assessed_core_skill_ids(db, student.id)
            category_ids = matching_category_ids(db.query(Category).all(), assessed)
            if not category_ids:
                return self._page([], 0, limit, offset)
            query = query.filter(Job.categoryId.in_(category_ids))

        if filters.min_salary_lpa is not None:
            query = query.filter(Job.minSalaryLPA >= filters.min_salary_lpa)
        if filters.max_salary_lpa is not None:
            # A job without a stated maximum tops out at its minimum
            query = query.filter(
                func.coalesce(Job.maxSalaryLPA, Job.minSalaryLPA) <= filters.max_salary_lpa
            )
        if filters.location:
            query = query.filter(Job.location.ilike(contains_pattern(filters.location), escape="\\"))

        query = query.order_by(Job.createdAt.desc(), Job.id)

        if filters.search:
            # subjectsToTeach is a JSON list, so the search runs over loaded rows
            jobs = [job for job in query.all() if matches_search(job, filters.search)]
            return self._page(jobs[offset:offset + limit], len(jobs), limit, offset)

        total = query.count()
        jobs = query.offset(offset).limit(limit).all()
        return self._page(jobs, total, limit, offset)

    def _page(self, jobs: List[Job], total: int, limit: int, offset: int) -> dict:
        return {
            "availableJobs": [format_job(job) for job in jobs],
            **page_info(total, limit, offset),
        }


# Singleton instance
matching_engine = MatchingEngine()
