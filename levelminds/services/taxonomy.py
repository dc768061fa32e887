"""
Skill Taxonomy Service
CoreSkills with their sub-skills, and Categories that reference CoreSkills
"""
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from levelminds.core.errors import Conflict, InvalidInput, NotFound
from levelminds.models.skill import Category, CoreSkill, StudentCoreSkillAssessment, MIN_SUBSKILLS, MAX_SUBSKILLS


def _validate_subskills(subskills: List[str]) -> List[str]:
    if not MIN_SUBSKILLS <= len(subskills) <= MAX_SUBSKILLS:
        raise InvalidInput(f"A core skill needs between {MIN_SUBSKILLS} and {MAX_SUBSKILLS} sub-skills.")
    cleaned = [(name or "").strip() for name in subskills]
    if any(not name for name in cleaned):
        raise InvalidInput("Sub-skill names cannot be blank.")
    if len(set(cleaned)) != len(cleaned):
        raise InvalidInput("Sub-skill names must be unique within a core skill.")
    return cleaned


class SkillTaxonomyService:
    """Admin-managed skill taxonomy used by matching and assessments"""

    def create_core_skill(self, db: Session, name: str, subskills: List[str]) -> CoreSkill:
        subskills = _validate_subskills(subskills)
        if db.query(CoreSkill).filter(CoreSkill.name == name).first():
            raise Conflict("Core skill with this name already exists.")

        core_skill = CoreSkill(name=name, subSkills=subskills)
        db.add(core_skill)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Core skill with this name already exists.")
        db.refresh(core_skill)

        logger.info(f"Core skill '{name}' created with sub-skills {subskills}")
        return core_skill

    def update_core_skill(
        self,
        db: Session,
        core_skill_id: str,
        name: Optional[str] = None,
        subskills: Optional[List[str]] = None
    ) -> CoreSkill:
        """
        Rename a core skill or redefine its sub-skills.
        Sub-skills are frozen once any assessment references the skill,
        since stored marks are keyed by sub-skill name.
        """
        core_skill = db.query(CoreSkill).filter(CoreSkill.id == core_skill_id).first()
        if not core_skill:
            raise NotFound("Core skill not found.")

        if name is not None and name != core_skill.name:
            if db.query(CoreSkill).filter(CoreSkill.name == name).first():
                raise Conflict("Core skill with this name already exists.")
            core_skill.name = name

        if subskills is not None:
            subskills = _validate_subskills(subskills)
            if subskills != list(core_skill.subSkills):
                in_use = db.query(StudentCoreSkillAssessment.id).filter(
                    StudentCoreSkillAssessment.coreSkillId == core_skill.id
                ).first()
                if in_use:
                    raise Conflict(
                        f"Sub-skills of '{core_skill.name}' cannot change after students have been assessed on it."
                    )
                core_skill.subSkills = subskills

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Core skill with this name already exists.")
        db.refresh(core_skill)
        return core_skill

    def list_core_skills(self, db: Session) -> List[dict]:
        core_skills = db.query(CoreSkill).order_by(CoreSkill.name.asc()).all()
        return [
            {"id": skill.id, "name": skill.name, "subskills": skill.subSkills}
            for skill in core_skills
        ]

    def create_category(self, db: Session, name: str, core_skill_ids: List[str]) -> Category:
        if db.query(Category).filter(Category.name == name).first():
            raise Conflict("Category with this name already exists.")

        requested = list(dict.fromkeys(core_skill_ids or []))
        if requested:
            found = db.query(CoreSkill.id).filter(CoreSkill.id.in_(requested)).count()
            if found != len(requested):
                raise InvalidInput("One or more provided core skill IDs are invalid.")

        category = Category(name=name, coreSkillIds=requested)
        db.add(category)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Category with this name already exists.")
        db.refresh(category)

        logger.info(f"Category '{name}' created referencing {len(requested)} core skill(s)")
        return category

    def list_categories(self, db: Session) -> List[dict]:
        categories = db.query(Category).order_by(Category.name.asc()).all()

        # One lookup for every referenced skill instead of one per category
        skill_ids = {skill_id for cat in categories for skill_id in (cat.coreSkillIds or [])}
        names = {}
        if skill_ids:
            names = dict(db.query(CoreSkill.id, CoreSkill.name).filter(CoreSkill.id.in_(skill_ids)).all())

        return [
            {
                "id": cat.id,
                "name": cat.name,
                "coreSkillIds": cat.coreSkillIds,
                "skills": [
                    {"id": skill_id, "name": names[skill_id]}
                    for skill_id in (cat.coreSkillIds or []) if skill_id in names
                ],
            }
            for cat in categories
        ]


# Singleton instance
skill_taxonomy = SkillTaxonomyService()
