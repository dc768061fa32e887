"""
Admin API Endpoints
Skill taxonomy, student assessments, user accounts and spreadsheet bulk uploads
"""
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from levelminds.core.config import settings
from levelminds.core.database import get_db
from levelminds.core.security import require_role
from levelminds.models.user import User
from levelminds.schemas import (
    CategoryCreate, CoreSkillCreate, CoreSkillUpdate, PasswordReset, SubSkillMarksUpload, envelope
)
from levelminds.services.assessment_ledger import assessment_ledger
from levelminds.services.bulk_ingestion import bulk_ingestion, parse_tabular_upload
from levelminds.services.email_service import email_service
from levelminds.services.file_storage import staged_upload
from levelminds.services.taxonomy import skill_taxonomy
from levelminds.services.user_admin import user_admin

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_role("admin")


# ============== SKILL TAXONOMY ==============

@router.post("/skills", status_code=status.HTTP_201_CREATED)
def create_core_skill(
    payload: CoreSkillCreate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    core_skill = skill_taxonomy.create_core_skill(db, payload.name, payload.subskills)
    return envelope(
        "Core skill created successfully.",
        {"skill_id": core_skill.id, "name": core_skill.name, "subskills": core_skill.subSkills}
    )


@router.get("/skills")
def list_core_skills(db: Session = Depends(get_db), _: User = Depends(admin_only)):
    return envelope("Core skills fetched successfully.", {"skills": skill_taxonomy.list_core_skills(db)})


@router.patch("/skills/{core_skill_id}")
def update_core_skill(
    core_skill_id: str,
    payload: CoreSkillUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    """Sub-skills can only change while no student has been assessed on the skill"""
    core_skill = skill_taxonomy.update_core_skill(db, core_skill_id, payload.name, payload.subskills)
    return envelope(
        "Core skill updated successfully.",
        {"skill_id": core_skill.id, "name": core_skill.name, "subskills": core_skill.subSkills}
    )


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    category = skill_taxonomy.create_category(db, payload.name, payload.skills)
    return envelope(
        "Category created successfully.",
        {"category_id": category.id, "name": category.name, "skills": category.coreSkillIds}
    )


@router.get("/categories")
def list_categories(db: Session = Depends(get_db), _: User = Depends(admin_only)):
    return envelope("Categories fetched successfully.", {"categories": skill_taxonomy.list_categories(db)})


# ============== ASSESSMENTS ==============

@router.post("/skills/{student_id}/marks")
def upload_student_marks(
    student_id: str,
    payload: SubSkillMarksUpload,
    response: Response,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    """Create or overwrite a student's marks for one core skill (201 on create, 200 on update)"""
    _, created = assessment_ledger.upsert_assessment(
        db,
        student_id,
        payload.skill_id,
        [sub.model_dump() for sub in payload.subskills]
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return envelope(
        "Core skill marks uploaded successfully." if created else "Core skill marks updated successfully."
    )


# ============== BULK UPLOADS ==============

@router.post("/skills/{core_skill_id}/bulk-marks-upload")
def bulk_upload_marks(
    core_skill_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    """
    Upload marks for many students from a spreadsheet.
    Columns: Email, plus one column per sub-skill of the core skill.
    """
    with staged_upload(file) as path:
        rows = parse_tabular_upload(path)
        result = bulk_ingestion.upload_marks(db, core_skill_id, rows)

    return envelope(
        f"Bulk upload for core skill marks completed. Successfully updated {result.uploaded_count} student profiles.",
        result.model_dump()
    )


@router.post("/users/bulk-create")
def bulk_create_users(
    role: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    """
    Create student or school accounts from a spreadsheet with Name and Email columns.
    Each new user is emailed a temporary password.
    """
    with staged_upload(file) as path:
        rows = parse_tabular_upload(path)
        result = bulk_ingestion.create_users(db, rows, role)

    return envelope(
        f"Bulk user creation process completed. Successfully created {result.uploaded_count} users.",
        result.model_dump()
    )


# ============== USERS ==============

@router.get("/users")
def list_users(
    role: Optional[str] = None,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    return envelope("Users fetched successfully.", user_admin.list_users(db, role, limit, offset))


@router.patch("/users/{user_id}/password")
def reset_user_password(
    user_id: str,
    payload: PasswordReset,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only)
):
    """Set a new password and email it to the user"""
    user = user_admin.reset_password(db, user_id, payload.newPassword)
    background_tasks.add_task(email_service.send_password_reset, user.email, user.name, payload.newPassword)
    return envelope("User password updated successfully and notification sent.")
