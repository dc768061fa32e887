"""
Pydantic schemas for admin user management
"""
from pydantic import BaseModel, Field


class PasswordReset(BaseModel):
    newPassword: str = Field(..., min_length=8, max_length=72)  # bcrypt reads at most 72 bytes
