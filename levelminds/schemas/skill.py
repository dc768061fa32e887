"""
Pydantic schemas for the skill taxonomy and assessment marks
"""
from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator
from typing import List, Optional, Union

from levelminds.models.skill import MIN_SUBSKILLS, MAX_SUBSKILLS


def _clean_subskills(v: List[str]) -> List[str]:
    cleaned = [name.strip() for name in v]
    if any(not name for name in cleaned):
        raise ValueError("Sub-skill names cannot be blank")
    if len(set(cleaned)) != len(cleaned):
        raise ValueError("Sub-skill names must be unique")
    return cleaned


class CoreSkillCreate(BaseModel):
    name: str = Field(..., min_length=1)
    subskills: List[str] = Field(..., min_length=MIN_SUBSKILLS, max_length=MAX_SUBSKILLS)
    
    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v
    
    @field_validator("subskills")
    @classmethod
    def validate_subskills(cls, v):
        return _clean_subskills(v)


class CoreSkillUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    subskills: Optional[List[str]] = Field(None, min_length=MIN_SUBSKILLS, max_length=MAX_SUBSKILLS)
    
    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v
    
    @field_validator("subskills")
    @classmethod
    def validate_subskills(cls, v):
        if v is None:
            return v
        return _clean_subskills(v)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    skills: List[str] = []  # CoreSkill ids
    
    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class SubSkillMark(BaseModel):
    name: str
    # Range and integrality are checked by the assessment ledger
    mark: Union[StrictInt, StrictFloat]


class SubSkillMarksUpload(BaseModel):
    skill_id: str
    subskills: List[SubSkillMark] = Field(..., min_length=1)
