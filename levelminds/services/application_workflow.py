"""
Application State Machine

    applied -> shortlisted -> interview_scheduled
    rejected is reachable from any other state and is terminal

interview_scheduled is only entered through the interview scheduler.
Every accepted transition leaves exactly one notification for the student.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from fastapi import UploadFile
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelminds.core.errors import Conflict, InvalidInput, NotFound
from levelminds.models.application import Application, ApplicationStatus
from levelminds.models.job import Job, JobStatus
from levelminds.models.notification import Notification
from levelminds.models.user import User
from levelminds.schemas.application import ApplicationForm
from levelminds.services import file_storage
from levelminds.services.job_catalog import get_school_profile, get_student_profile
from levelminds.services.notifications import notify_application_status, notify_new_application

APPLIED = ApplicationStatus.APPLIED.value
SHORTLISTED = ApplicationStatus.SHORTLISTED.value
INTERVIEW_SCHEDULED = ApplicationStatus.INTERVIEW_SCHEDULED.value
REJECTED = ApplicationStatus.REJECTED.value


@dataclass
class Transition:
    """Outcome of an accepted status change, plus the email still to be sent"""
    application: Application
    notification: Notification
    email: dict = field(default_factory=dict)


def check_transition(current: str, requested: str) -> None:
    """Raise InvalidInput unless a direct status update from `current` to `requested` is allowed"""
    if requested not in (SHORTLISTED, INTERVIEW_SCHEDULED, REJECTED):
        raise InvalidInput(f"Invalid status '{requested}'.")
    if current == REJECTED:
        raise InvalidInput("This application has already been rejected.")
    if requested == current:
        raise InvalidInput(f"Application is already {current}.")
    if requested == INTERVIEW_SCHEDULED:
        if current == APPLIED:
            raise InvalidInput("Cannot schedule interview for non-shortlisted applicant. Please shortlist first.")
        raise InvalidInput("Interviews are scheduled through the schedule endpoint, which sets this status.")
    if requested == SHORTLISTED and current == INTERVIEW_SCHEDULED:
        raise InvalidInput("Cannot mark as shortlisted if interview is already scheduled.")


def is_accepting_applications(job: Job, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return job.status == JobStatus.OPEN.value and job.applicationEndDate >= today


def status_email(application: Application, status: str, interview: Optional[dict] = None) -> dict:
    student = application.student
    return {
        "to_email": student.user.email,
        "name": student.display_name,
        "job_title": application.job.title,
        "status": status,
        "interview": interview,
    }


def get_owned_application(db: Session, school_id: str, application_id: str) -> Application:
    """Application whose job belongs to `school_id`; others look absent"""
    application = db.query(Application).join(Job).filter(
        Application.id == application_id,
        Job.schoolId == school_id
    ).first()
    if not application:
        raise NotFound("Application not found or you do not have permission to update it.")
    return application


class ApplicationWorkflow:

    def apply_for_job(
        self,
        db: Session,
        user: User,
        job_id: str,
        form: ApplicationForm,
        resume: Optional[UploadFile] = None
    ) -> Application:
        student = get_student_profile(db, user)

        job = db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFound("Job not found.")
        if not is_accepting_applications(job):
            raise InvalidInput("Applications for this job are closed.")

        existing = db.query(Application.id).filter(
            Application.studentId == student.id,
            Application.jobId == job.id
        ).first()
        if existing:
            raise Conflict("You have already applied for this job.")

        resume_url = file_storage.save_resume(resume) if resume is not None and resume.filename else None

        application = Application(
            studentId=student.id,
            jobId=job.id,
            coverLetter=form.coverLetter,
            experience=form.experience or None,
            availability=form.availability or None,
            resumeUrl=resume_url,
            applicationDate=date.today(),
            status=APPLIED
        )
        try:
            db.add(application)
            db.flush()
            notify_new_application(db, application)
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent application for the same pair
            db.rollback()
            file_storage.delete_stored_file(resume_url)
            raise Conflict("You have already applied for this job.")
        except Exception:
            db.rollback()
            file_storage.delete_stored_file(resume_url)
            raise

        db.refresh(application)
        logger.info(f"Student #{student.id} applied to job #{job.id}")
        return application

    def update_status(self, db: Session, user: User, application_id: str, status: str) -> Transition:
        school = get_school_profile(db, user)
        application = get_owned_application(db, school.id, application_id)

        previous = application.status
        check_transition(previous, status)

        application.status = status
        notification = notify_application_status(db, application, status)
        db.commit()
        db.refresh(application)

        logger.info(f"Application #{application.id} moved {previous} -> {status}")
        return Transition(application, notification, status_email(application, status))


# Singleton instance
application_workflow = ApplicationWorkflow()
