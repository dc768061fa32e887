"""
Application API Endpoints
Schools move applications through shortlisting, interviews and rejection
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session

from levelminds.core.database import get_db
from levelminds.core.security import require_role
from levelminds.models.user import User
from levelminds.schemas import ApplicationStatusUpdate, InterviewSchedule, envelope
from levelminds.services.application_workflow import application_workflow
from levelminds.services.interview_scheduler import interview_scheduler
from levelminds.services.notifications import send_status_email

router = APIRouter(prefix="/applications", tags=["Applications"])

school_only = require_role("school")


@router.patch("/{application_id}/status")
def update_application_status(
    application_id: str,
    payload: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(school_only)
):
    """
    Shortlist or reject an applicant.
    interview_scheduled is only reached by scheduling an interview.
    """
    transition = application_workflow.update_status(db, user, application_id, payload.status)
    background_tasks.add_task(send_status_email, **transition.email)
    return envelope("Application status updated.", {"status": transition.application.status})


@router.post("/{application_id}/schedule")
def schedule_interview(
    application_id: str,
    payload: InterviewSchedule,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(school_only)
):
    """Schedule (201) or reschedule (200) the application's interview"""
    result = interview_scheduler.schedule_interview(
        db,
        user,
        application_id,
        title=payload.title,
        date=payload.date,
        start_time=payload.startTime,
        end_time=payload.endTime
    )
    background_tasks.add_task(send_status_email, **result.email)

    if result.created:
        response.status_code = status.HTTP_201_CREATED
        return envelope("Interview scheduled successfully.", {"interviewId": result.interview.id})
    response.status_code = status.HTTP_200_OK
    return envelope("Interview updated successfully.", {"interviewId": result.interview.id})
