"""
Notification side effects of application workflow transitions
In-app rows are written with the transition; emails go out afterwards and may fail
"""
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session

from levelminds.models.application import Application, ApplicationStatus
from levelminds.models.notification import Notification
from levelminds.services.email_service import email_service

STUDENT_DASHBOARD_LINK = "/student/dashboard"
STUDENT_CALENDAR_LINK = "/student/calendar"


def status_message(
    status: str,
    job_title: str,
    school_name: str,
    interview: Optional[dict] = None
) -> Tuple[str, str, str]:
    """Return (message, type, link) for a student whose application moved to `status`"""
    if status == ApplicationStatus.SHORTLISTED.value:
        return (
            f"Your application for '{job_title}' has been shortlisted by {school_name}.",
            "success",
            STUDENT_DASHBOARD_LINK,
        )
    if status == ApplicationStatus.INTERVIEW_SCHEDULED.value:
        when = ""
        if interview:
            when = f" for {interview['date'].strftime('%b %d, %Y')} at {interview['startTime']}"
        return (
            f"An interview for your application to '{job_title}' has been scheduled{when}.",
            "info",
            STUDENT_CALENDAR_LINK,
        )
    if status == ApplicationStatus.REJECTED.value:
        return (
            f"Your application for '{job_title}' was not successful at this time.",
            "error",
            STUDENT_DASHBOARD_LINK,
        )
    raise ValueError(f"No notification defined for status '{status}'")


def notify(db: Session, user_id: str, message: str, type: str, link: Optional[str] = None) -> Notification:
    """Append a notification row; committed together with the caller's change"""
    notification = Notification(userId=user_id, message=message, type=type, link=link)
    db.add(notification)
    return notification


def notify_application_status(
    db: Session,
    application: Application,
    status: str,
    interview: Optional[dict] = None
) -> Notification:
    job = application.job
    message, type, link = status_message(status, job.title, job.school.user.name, interview)
    return notify(db, application.student.userId, message, type, link)


def notify_new_application(db: Session, application: Application) -> Optional[Notification]:
    """Let the school that owns the job know a student applied"""
    job = application.job
    if not job.school or not job.school.user:
        return None
    return notify(
        db,
        job.school.userId,
        f"A new student ({application.student.display_name}) applied to your '{job.title}' job.",
        "info",
        f"/school/jobs/{job.id}/applicants",
    )


def send_status_email(
    to_email: str,
    name: str,
    job_title: str,
    status: str,
    interview: Optional[dict] = None
) -> None:
    """Background task body: the transition is already committed, so only log failures"""
    if not email_service.send_application_status_update(to_email, name, job_title, status, interview):
        logger.error(f"Status email '{status}' for '{job_title}' could not be delivered to {to_email}")
