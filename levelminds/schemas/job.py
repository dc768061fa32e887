"""
Pydantic schemas for Job API
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import date


class JobCreate(BaseModel):
    """Payload a school submits to post a job"""
    title: str = Field(..., min_length=1)
    type: str  # Category id
    application_end_date: date
    subjects: List[str] = []
    salary_min: float = Field(..., ge=0)
    salary_max: Optional[float] = None
    description: str = Field(..., min_length=1)
    responsibilities: str = Field(..., min_length=1)
    requirements: str = Field(..., min_length=1)
    jobLevel: Optional[str] = None
    
    @field_validator("application_end_date")
    @classmethod
    def end_date_not_past(cls, v):
        if v < date.today():
            raise ValueError("Application end date must be today or in the future")
        return v
    
    @field_validator("subjects")
    @classmethod
    def strip_subjects(cls, v):
        return [s.strip() for s in v if s and s.strip()]
    
    @model_validator(mode="after")
    def salary_bounds(self):
        if self.salary_max is not None and self.salary_max < self.salary_min:
            raise ValueError("salary_max must be greater than or equal to salary_min")
        return self


class JobStatusUpdate(BaseModel):
    status: Literal["open", "closed"]
