"""
Bulk Ingestion Pipeline
Spreadsheet-driven user creation and assessment-mark upload.

Each row is validated and persisted on its own; a failing row is recorded
and skipped, and never undoes or blocks any other row.
"""
import csv
import os
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from loguru import logger
from openpyxl import load_workbook
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelminds.core.errors import InvalidInput, NotFound
from levelminds.core.security import generate_temp_password, hash_password
from levelminds.models.skill import CoreSkill, MIN_MARK, MAX_MARK
from levelminds.models.user import School, Student, User, UserRole
from levelminds.schemas.bulk import BulkMarksUploadResult, BulkUserCreateResult, FailedRow
from levelminds.services.assessment_ledger import is_valid_mark, save_marks
from levelminds.services.email_service import EmailService, email_service

BULK_ROLES = (UserRole.STUDENT.value, UserRole.SCHOOL.value)

DUPLICATE_USER = "User with this email already exists."
PROCESSING_ERROR = "Processing error."


def parse_tabular_upload(file_path: str) -> List[Dict[str, Any]]:
    """
    Read the first sheet (xlsx) or the table (csv) into row dicts keyed by header.
    Fully blank rows are dropped. Any read failure aborts with InvalidInput.
    """
    file_ext = os.path.splitext(file_path)[1].lower()
    try:
        if file_ext == ".csv":
            with open(file_path, newline="", encoding="utf-8-sig") as handle:
                table = [list(row) for row in csv.reader(handle)]
        else:
            workbook = load_workbook(file_path, read_only=True, data_only=True)
            try:
                sheet = workbook.worksheets[0]
                table = [list(row) for row in sheet.iter_rows(values_only=True)]
            finally:
                workbook.close()
    except Exception as e:
        logger.warning(f"Failed to parse bulk upload {file_path}: {e}")
        raise InvalidInput(
            "Failed to parse file. Ensure it is a valid Excel (.xlsx) or CSV (.csv) format."
        )

    if not table:
        return []

    headers = [str(h).strip() if h is not None else "" for h in table[0]]
    rows = []
    for values in table[1:]:
        if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
            continue
        rows.append({
            header: value for header, value in zip(headers, values) if header
        })
    return rows


def cell(row: Dict[str, Any], name: str) -> Any:
    """Value under `name`, falling back to a case-insensitive header match"""
    if name in row:
        value = row[name]
    else:
        lowered = name.lower()
        value = next((v for k, v in row.items() if k.lower() == lowered), None)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def normalize_email(value: Any) -> Optional[str]:
    """Syntax-checked, lowercased address, or None"""
    if not value or not isinstance(value, str):
        return None
    try:
        return validate_email(value, check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        return None


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    """Case-insensitive lookup, so `Asha@x.com` and `asha@x.com` are one account"""
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def parse_mark(value: Any) -> Optional[int]:
    """Spreadsheet cell to an integral mark, or None when absent or out of policy"""
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return None
    if not is_valid_mark(value):
        return None
    return int(value)


class BulkIngestionService:

    def __init__(self, mailer: EmailService = None):
        self.mailer = mailer or email_service

    def create_users(self, db: Session, rows: List[Dict[str, Any]], role: str) -> BulkUserCreateResult:
        if role not in BULK_ROLES:
            raise InvalidInput('Invalid or missing user role for bulk creation (must be "student" or "school").')

        result = BulkUserCreateResult()

        for index, row in enumerate(rows, start=1):
            name = cell(row, "Name")
            raw_email = cell(row, "Email")
            email = normalize_email(raw_email)

            if not name or not email:
                self._fail(result, FailedRow(
                    email=str(raw_email) if raw_email else "N/A",
                    row=index,
                    reason="Missing name/email or invalid email format."
                ))
                continue

            if find_user_by_email(db, email):
                self._fail(result, FailedRow(email=email, row=index, reason=DUPLICATE_USER))
                continue

            temp_password = generate_temp_password()
            try:
                user = User(
                    name=str(name),
                    email=email,
                    password=hash_password(temp_password),
                    role=role,
                    isOnboardingComplete=False
                )
                db.add(user)
                db.flush()
                profile = Student(userId=user.id) if role == UserRole.STUDENT.value else School(userId=user.id)
                db.add(profile)
                db.commit()
            except IntegrityError:
                # Another request created the same email after the existence check
                db.rollback()
                logger.warning(f"Bulk user row {index}: {email} was created concurrently")
                self._fail(result, FailedRow(email=email, row=index, reason=DUPLICATE_USER))
                continue
            except Exception:
                # Rolls back only this row; earlier rows are already committed
                db.rollback()
                logger.exception(f"Error processing bulk user row {index} for {email}")
                self._fail(result, FailedRow(email=email, row=index, reason=PROCESSING_ERROR))
                continue

            if not self.mailer.send_account_credentials(email, str(name), role, temp_password):
                result.failed_deliveries.append(email)
            result.successful_emails.append(email)
            result.uploaded_count += 1

        logger.info(
            f"Bulk {role} creation finished: {result.uploaded_count} created, {result.failed_count} failed, "
            f"{len(result.failed_deliveries)} credential email(s) undelivered"
        )
        return result

    def upload_marks(self, db: Session, core_skill_id: str, rows: List[Dict[str, Any]]) -> BulkMarksUploadResult:
        core_skill = db.query(CoreSkill).filter(CoreSkill.id == core_skill_id).first()
        if not core_skill:
            raise NotFound("Core skill not found for the provided ID.")

        subskills = list(core_skill.subSkills)
        skill_name = core_skill.name
        result = BulkMarksUploadResult(coreSkillName=skill_name)

        for index, row in enumerate(rows, start=1):
            raw_email = cell(row, "Email")
            email = normalize_email(raw_email)
            if not email:
                self._fail(result, FailedRow(
                    email=str(raw_email) if raw_email else "N/A",
                    row=index,
                    reason="Missing or invalid student email."
                ))
                continue

            try:
                user = find_user_by_email(db, email)
                if not user or user.role != UserRole.STUDENT.value:
                    self._fail(result, FailedRow(email=email, row=index, reason="User not found or is not a student profile."))
                    continue

                student = db.query(Student).filter(Student.userId == user.id).first()
                if not student:
                    self._fail(result, FailedRow(email=email, row=index, reason="Student profile not found for this user."))
                    continue

                marks = {name: parse_mark(cell(row, name)) for name in subskills}
                bad = [name for name, mark in marks.items() if mark is None]
                if bad:
                    self._fail(result, FailedRow(
                        email=email,
                        row=index,
                        reason=(
                            f"Incomplete marks: every sub-skill of '{skill_name}' needs a whole-number mark "
                            f"between {MIN_MARK} and {MAX_MARK} (missing or invalid: {', '.join(bad)})."
                        )
                    ))
                    continue

                save_marks(db, student.id, core_skill_id, marks)
            except IntegrityError:
                db.rollback()
                logger.exception(f"Integrity error saving marks row {index} for {email}")
                self._fail(result, FailedRow(email=email, row=index, reason="Assessment could not be saved."))
                continue
            except Exception:
                db.rollback()
                logger.exception(f"Error processing marks row {index} for {email}")
                self._fail(result, FailedRow(email=email, row=index, reason=PROCESSING_ERROR))
                continue

            result.successful_updates.append(email)
            result.uploaded_count += 1

        logger.info(
            f"Bulk marks upload for '{skill_name}' finished: "
            f"{result.uploaded_count} updated, {result.failed_count} failed"
        )
        return result

    def _fail(self, result, failure: FailedRow) -> None:
        logger.warning(f"Bulk row {failure.row} ({failure.email}) failed: {failure.reason}")
        result.failed_details.append(failure)
        result.failed_count += 1


# Singleton instance
bulk_ingestion = BulkIngestionService()
