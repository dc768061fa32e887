"""
Job Catalog Service
Schools post jobs, manage their open/closed status and review the people who applied
"""
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.errors import InvalidInput, NotFound
from levelminds.models.application import Application, ApplicationStatus
from levelminds.models.job import Job, JobStatus
from levelminds.models.skill import Category, MAX_MARK
from levelminds.models.user import School, Student, User
from levelminds.schemas.common import page_info
from levelminds.schemas.job import JobCreate


def get_school_profile(db: Session, user: User) -> School:
    school = db.query(School).filter(School.userId == user.id).first()
    if not school:
        raise NotFound("School profile not found.")
    return school


def get_student_profile(db: Session, user: User) -> Student:
    student = db.query(Student).filter(Student.userId == user.id).first()
    if not student:
        raise NotFound("Student profile not found.")
    return student


def matches_search(job: Job, term: str) -> bool:
    """Case-insensitive substring over the text fields, or an exact subject"""
    needle = term.lower()
    for text in (job.title, job.jobDescription, job.keyResponsibilities, job.requirements):
        if text and needle in text.lower():
            return True
    return term in (job.subjectsToTeach or [])


def _lines(text: Optional[str]) -> List[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def _school_job_row(job: Job) -> dict:
    return {
        "id": job.id,
        "title": job.title,
        "location": job.location,
        "jobType": job.category.name if job.category else None,
        "salary": job.salary_range,
        "status": job.status,
        "postedDate": job.createdAt.date().isoformat() if job.createdAt else None,
        "applicationEndDate": job.applicationEndDate.isoformat(),
        "applicationCount": len(job.applications),
    }


def _core_skill_scores(student: Student) -> List[dict]:
    skills = []
    for assessment in student.assessments:
        subskills = assessment.coreSkill.subSkills
        marks = assessment.subSkillMarks or {}
        skills.append({
            "name": assessment.coreSkill.name,
            "score": {"obtained": assessment.total_score, "total": MAX_MARK * len(subskills)},
            "subSkills": [
                {"name": name, "score": {"obtained": marks.get(name, 0), "total": MAX_MARK}}
                for name in subskills
            ],
        })
    return sorted(skills, key=lambda item: item["name"])


def _applicant_preview(application: Application) -> dict:
    student = application.student
    interview = application.interview
    return {
        "id": application.id,
        "applicantUserId": student.id,
        "name": student.display_name,
        "email": student.user.email,
        "phone": student.mobile,
        "status": application.status,
        "date": application.applicationDate.isoformat(),
        "resumeUrl": application.resumeUrl,
        "interviewDetails": {
            "date": interview.date.isoformat(),
            "startTime": interview.startTime,
            "endTime": interview.endTime,
            "location": interview.location,
        } if interview else None,
    }


class JobCatalog:

    def create_job(self, db: Session, user: User, payload: JobCreate) -> Job:
        school = get_school_profile(db, user)

        category = db.query(Category).filter(Category.id == payload.type).first()
        if not category:
            raise InvalidInput("Invalid Job Type (Category) ID provided.")

        job = Job(
            schoolId=school.id,
            categoryId=category.id,
            title=payload.title,
            location=school.full_address,  # Snapshot; not re-synced on address change
            applicationEndDate=payload.application_end_date,
            subjectsToTeach=payload.subjects,
            minSalaryLPA=payload.salary_min,
            maxSalaryLPA=payload.salary_max,
            jobDescription=payload.description,
            keyResponsibilities=payload.responsibilities,
            requirements=payload.requirements,
            jobLevel=payload.jobLevel or None,
            status=JobStatus.OPEN.value
        )
        db.add(job)
        db.commit()
        db.refresh(job)

        logger.info(f"Job '{job.title}' posted by school #{school.id} in category '{category.name}'")
        return job

    def update_job_status(self, db: Session, user: User, job_id: str, status: str) -> Job:
        school = get_school_profile(db, user)
        job = db.query(Job).filter(Job.id == job_id, Job.schoolId == school.id).first()
        if not job:
            raise NotFound("Job not found or you do not have permission to update it.")

        job.status = status
        db.commit()
        db.refresh(job)
        return job

    def list_job_applicants(self, db: Session, user: User, job_id: str) -> dict:
        """Applicants of one of the school's jobs, grouped the way the dashboard tabs show them"""
        school = get_school_profile(db, user)
        job = db.query(Job).filter(Job.id == job_id, Job.schoolId == school.id).first()
        if not job:
            raise NotFound("Job not found or you do not have permission to view applicants for it.")

        applications: List[Application] = db.query(Application).filter(
            Application.jobId == job.id
        ).order_by(Application.createdAt.desc()).all()

        previews = [_applicant_preview(app) for app in applications]
        in_progress = {ApplicationStatus.SHORTLISTED.value, ApplicationStatus.INTERVIEW_SCHEDULED.value}
        return {
            "all": previews,
            "shortlisted": [p for p in previews if p["status"] in in_progress],
            "interviews": [p for p in previews if p["status"] == ApplicationStatus.INTERVIEW_SCHEDULED.value],
        }

    def list_school_jobs(
        self,
        db: Session,
        user: User,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = settings.DEFAULT_PAGE_SIZE,
        offset: int = 0
    ) -> dict:
        """The school's own postings, newest first, whatever their status or end date"""
        school = get_school_profile(db, user)

        query = db.query(Job).filter(Job.schoolId == school.id)
        if status:
            query = query.filter(Job.status == status)
        if category:
            query = query.filter(Job.categoryId == category)
        query = query.order_by(Job.createdAt.desc(), Job.id)

        if search:
            jobs = [job for job in query.all() if matches_search(job, search)]
            total, jobs = len(jobs), jobs[offset:offset + limit]
        else:
            total = query.count()
            jobs = query.offset(offset).limit(limit).all()

        return {"jobs": [_school_job_row(job) for job in jobs], **page_info(total, limit, offset)}

    def get_job_details(self, db: Session, job_id: str) -> dict:
        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found.")

        school = job.school
        return {
            "id": job.id,
            "title": job.title,
            "location": job.location,
            "type": job.category.name if job.category else None,
            "postedDate": job.createdAt.date().isoformat() if job.createdAt else None,
            "endDate": job.applicationEndDate.isoformat(),
            "jobLevel": job.jobLevel or "N/A",
            "salary": job.salary_range,
            "status": job.status,
            "institution": school.user.name if school.user else None,
            "overview": job.jobDescription,
            "responsibilities": _lines(job.keyResponsibilities),
            "requirements": _lines(job.requirements),
            "subjects": job.subjectsToTeach or [],
            "about": school.bio,
            "aboutLink": school.websiteLink,
            "logo": school.logoUrl,
            # Where the school is now; `location` stays as posted
            "schoolAddress": school.full_address,
        }

    def get_applicant_details(self, db: Session, user: User, student_id: str) -> dict:
        """
        Full profile of a student who applied to one of the requesting school's jobs.
        Students who never applied there are reported as not found.
        """
        school = get_school_profile(db, user)

        applications: List[Application] = db.query(Application).join(Job).filter(
            Application.studentId == student_id,
            Job.schoolId == school.id
        ).order_by(Application.createdAt.desc()).all()
        if not applications:
            raise NotFound("Applicant (Student) not found.")

        student = applications[0].student
        return {
            "id": student.id,
            "name": student.display_name,
            "email": student.user.email,
            "phone": student.mobile,
            "about": student.about,
            "imageUrl": student.imageUrl,
            "coreSkills": _core_skill_scores(student),
            "applications": [
                {
                    "applicationId": app.id,
                    "jobId": app.jobId,
                    "jobTitle": app.job.title,
                    "status": app.status,
                    "date": app.applicationDate.isoformat(),
                    "resumeUrl": app.resumeUrl,
                }
                for app in applications
            ],
        }


# Singleton instance
job_catalog = JobCatalog()
