"""
Interview Scheduling Service
Attaches a single interview to a shortlisted application; scheduling again reschedules it
"""
from dataclasses import dataclass
from datetime import date
from typing import List

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelminds.core.errors import Conflict, InvalidInput
from levelminds.models.application import Application, ApplicationStatus
from levelminds.models.interview import Interview
from levelminds.models.job import Job
from levelminds.models.notification import Notification
from levelminds.models.user import User
from levelminds.services.application_workflow import get_owned_application, status_email
from levelminds.services.job_catalog import get_school_profile, get_student_profile
from levelminds.services.notifications import notify_application_status

SCHEDULABLE_STATUSES = (
    ApplicationStatus.SHORTLISTED.value,
    ApplicationStatus.INTERVIEW_SCHEDULED.value,
)


@dataclass
class ScheduleResult:
    interview: Interview
    created: bool
    notification: Notification
    email: dict


class InterviewScheduler:

    def schedule_interview(
        self,
        db: Session,
        user: User,
        application_id: str,
        title: str,
        date: date,
        start_time: str,
        end_time: str
    ) -> ScheduleResult:
        school = get_school_profile(db, user)
        application = get_owned_application(db, school.id, application_id)

        if application.status not in SCHEDULABLE_STATUSES:
            raise InvalidInput("Interview can only be scheduled for shortlisted applicants.")

        # Read the school's address now, not the job's snapshot
        location = school.full_address
        details = {"date": date, "startTime": start_time, "endTime": end_time, "location": location}

        interview = db.query(Interview).filter(Interview.applicationId == application.id).first()
        created = interview is None

        if created:
            interview = Interview(applicationId=application.id, **details, title=title)
            db.add(interview)
            application.status = ApplicationStatus.INTERVIEW_SCHEDULED.value
        else:
            interview.title = title
            interview.date = date
            interview.startTime = start_time
            interview.endTime = end_time
            interview.location = location

        notification = notify_application_status(
            db, application, ApplicationStatus.INTERVIEW_SCHEDULED.value, details
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("An interview was scheduled for this application at the same time. Please retry.")
        db.refresh(interview)

        logger.info(
            f"Interview {'scheduled' if created else 'rescheduled'} for application #{application.id} "
            f"on {date} {start_time}-{end_time}"
        )
        return ScheduleResult(
            interview=interview,
            created=created,
            notification=notification,
            email=status_email(application, ApplicationStatus.INTERVIEW_SCHEDULED.value, details),
        )

    def list_student_interviews(self, db: Session, user: User) -> List[dict]:
        """Upcoming and past interviews for the student's calendar"""
        student = get_student_profile(db, user)
        interviews = db.query(Interview).join(Application).filter(
            Application.studentId == student.id
        ).order_by(Interview.date, Interview.startTime).all()

        result = []
        for interview in interviews:
            job: Job = interview.application.job
            result.append({
                "id": interview.id,
                "applicationId": interview.applicationId,
                "title": interview.title,
                "jobTitle": job.title,
                "schoolName": job.school.user.name,
                "date": interview.date.isoformat(),
                "startTime": interview.startTime,
                "endTime": interview.endTime,
                "location": interview.location,
            })
        return result


# Singleton instance
interview_scheduler = InterviewScheduler()
