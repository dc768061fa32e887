"""
Job API Endpoints
Schools post and manage jobs; students apply to them
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from levelminds.core.database import get_db
from levelminds.core.security import require_role
from levelminds.models.user import User
from levelminds.schemas import ApplicationForm, JobCreate, JobStatusUpdate, envelope
from levelminds.services.application_workflow import application_workflow
from levelminds.services.job_catalog import job_catalog

router = APIRouter(prefix="/jobs", tags=["Jobs"])


# ============== SCHOOL ENDPOINTS ==============

@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("school"))
):
    """Post a job; its location is copied from the school's current address"""
    job = job_catalog.create_job(db, user, payload)
    return envelope("Job posted successfully", {"jobId": job.id})


@router.get("/{job_id}")
def get_job_details(
    job_id: str,
    db: Session = Depends(get_db),
    _: User = Depends(require_role("school", "student"))
):
    job = job_catalog.get_job_details(db, job_id)
    return envelope("Job details fetched successfully.", {"job": job})


@router.patch("/{job_id}/status")
def update_job_status(
    job_id: str,
    payload: JobStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("school"))
):
    job_catalog.update_job_status(db, user, job_id, payload.status)
    return envelope("Job status updated successfully.")


@router.get("/{job_id}/applicants")
def get_job_applicants(
    job_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_role("school"))
):
    tabs = job_catalog.list_job_applicants(db, user, job_id)
    return envelope("Applicants fetched successfully.", {"tabs": tabs})


# ============== STUDENT ENDPOINTS ==============

@router.post("/{job_id}/apply", status_code=status.HTTP_201_CREATED)
def apply_for_job(
    job_id: str,
    firstName: str = Form(...),
    lastName: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    coverLetter: str = Form(...),
    middleName: Optional[str] = Form(None),
    experience: Optional[str] = Form(None),
    availability: Optional[str] = Form(None),
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_role("student"))
):
    """Apply with an optional resume (PDF or Word document)"""
    form = ApplicationForm(
        firstName=firstName,
        middleName=middleName,
        lastName=lastName,
        email=email,
        phone=phone,
        coverLetter=coverLetter,
        experience=experience,
        availability=availability
    )
    application = application_workflow.apply_for_job(db, user, job_id, form, resume)
    return envelope(
        "Applied successfully. You will be notified of updates.",
        {"applicationId": application.id, "status": application.status}
    )
