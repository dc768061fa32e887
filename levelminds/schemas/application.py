"""
Pydantic schemas for Application API
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional


class ApplicationForm(BaseModel):
    """Applicant fields sent alongside the resume upload"""
    firstName: str = Field(..., min_length=1)
    middleName: Optional[str] = None
    lastName: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$")
    coverLetter: str = Field(..., min_length=1)
    experience: Optional[str] = None
    availability: Optional[str] = None


class ApplicationStatusUpdate(BaseModel):
    status: Literal["shortlisted", "interview_scheduled", "rejected"]
