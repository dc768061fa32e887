"""
Pydantic schemas for Interview API
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date as date_type

from levelminds.models.interview import DEFAULT_INTERVIEW_TITLE

TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"


class InterviewSchedule(BaseModel):
    title: str = DEFAULT_INTERVIEW_TITLE
    date: date_type
    startTime: str = Field(..., pattern=TIME_PATTERN)
    endTime: str = Field(..., pattern=TIME_PATTERN)
    
    @field_validator("date")
    @classmethod
    def date_not_past(cls, v):
        if v < date_type.today():
            raise ValueError("Interview date must be today or in the future")
        return v
    
    @model_validator(mode="after")
    def end_after_start(self):
        # Zero-padded HH:MM strings compare chronologically
        if self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self
