"""
Assessment Ledger
One marks record per (student, core skill); every sub-skill must be marked
"""
from typing import Any, Dict, Iterable, List, Tuple

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelminds.core.errors import InvalidInput, NotFound
from levelminds.models.skill import CoreSkill, StudentCoreSkillAssessment, MIN_MARK, MAX_MARK, compute_total
from levelminds.models.user import Student, UserRole


def is_valid_mark(mark: Any) -> bool:
    """Integral number within [MIN_MARK, MAX_MARK]; 7.0 counts, 7.5 and True do not"""
    if isinstance(mark, bool) or not isinstance(mark, (int, float)):
        return False
    return float(mark).is_integer() and MIN_MARK <= mark <= MAX_MARK


def missing_subskills(core_skill: CoreSkill, marks: Dict[str, int]) -> List[str]:
    return [name for name in core_skill.subSkills if name not in marks]


def save_marks(
    db: Session,
    student_id: str,
    core_skill_id: str,
    marks: Dict[str, int]
) -> Tuple[StudentCoreSkillAssessment, bool]:
    """
    Find-or-create the assessment for the pair and store `marks`.
    Returns (assessment, created). A concurrent insert of the same pair
    trips the unique constraint, in which case the winner's row is overwritten.
    """
    query = db.query(StudentCoreSkillAssessment).filter(
        StudentCoreSkillAssessment.studentId == student_id,
        StudentCoreSkillAssessment.coreSkillId == core_skill_id
    )

    existing = query.first()
    if existing is None:
        assessment = StudentCoreSkillAssessment(
            studentId=student_id,
            coreSkillId=core_skill_id,
            subSkillMarks=dict(marks)
        )
        db.add(assessment)
        try:
            db.commit()
            db.refresh(assessment)
            return assessment, True
        except IntegrityError:
            db.rollback()
            existing = query.one()

    existing.subSkillMarks = dict(marks)
    db.commit()
    db.refresh(existing)
    return existing, False


class AssessmentLedger:
    """Records the marks students receive on core skills"""

    def _resolve_student(self, db: Session, student_id: str) -> Student:
        student = db.query(Student).filter(Student.id == student_id).first()
        if not student:
            raise NotFound("Student not found.")
        if not student.user or student.user.role != UserRole.STUDENT.value:
            raise NotFound("Provided ID does not belong to a student.")
        return student

    def upsert_assessment(
        self,
        db: Session,
        student_id: str,
        core_skill_id: str,
        subskills: Iterable[Dict[str, Any]]
    ) -> Tuple[StudentCoreSkillAssessment, bool]:
        student = self._resolve_student(db, student_id)

        core_skill = db.query(CoreSkill).filter(CoreSkill.id == core_skill_id).first()
        if not core_skill:
            raise NotFound("Core skill not found.")

        subskills = list(subskills)
        defined = set(core_skill.subSkills)

        for sub in subskills:
            if sub.get("name") not in defined:
                raise InvalidInput(
                    f"Subskill \"{sub.get('name')}\" is not part of the core skill \"{core_skill.name}\"."
                )

        marks: Dict[str, int] = {}
        for sub in subskills:
            if not is_valid_mark(sub.get("mark")):
                raise InvalidInput(
                    f"Invalid mark for \"{sub['name']}\". Marks must be whole numbers between {MIN_MARK}-{MAX_MARK}."
                )
            if sub["name"] in marks:
                raise InvalidInput(f"Subskill \"{sub['name']}\" was given more than once.")
            marks[sub["name"]] = int(sub["mark"])

        missing = missing_subskills(core_skill, marks)
        if missing:
            raise InvalidInput(
                f"Marks not provided for all expected subskills of \"{core_skill.name}\". Missing: {', '.join(missing)}."
            )

        assessment, created = save_marks(db, student.id, core_skill.id, marks)
        logger.info(
            f"Assessment {'created' if created else 'updated'} for student #{student.id} "
            f"on '{core_skill.name}' (total {compute_total(marks)})"
        )
        return assessment, created

    def list_student_assessments(self, db: Session, student_id: str) -> List[dict]:
        assessments = db.query(StudentCoreSkillAssessment).filter(
            StudentCoreSkillAssessment.studentId == student_id
        ).all()
        result = [
            {
                "skill_id": a.coreSkillId,
                "name": a.coreSkill.name,
                "subSkillMarks": a.subSkillMarks,
                "totalScore": a.total_score,
                "maxScore": MAX_MARK * len(a.coreSkill.subSkills),
            }
            for a in assessments
        ]
        return sorted(result, key=lambda item: item["name"])

    def assessed_core_skill_ids(self, db: Session, student_id: str) -> set:
        """Core skills the student has any assessment for, regardless of score"""
        rows = db.query(StudentCoreSkillAssessment.coreSkillId).filter(
            StudentCoreSkillAssessment.studentId == student_id
        ).all()
        return {row[0] for row in rows}


# Singleton instance
assessment_ledger = AssessmentLedger()
