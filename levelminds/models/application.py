"""
Application database model
Join entity between a Student and a Job with its own status lifecycle
"""
from sqlalchemy import Column, String, Text, DateTime, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, date
import enum

from levelminds.core.database import Base
from levelminds.models.user import new_id


class ApplicationStatus(str, enum.Enum):
    APPLIED = "applied"                          # Initial state
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview_scheduled"  # Only via interview scheduling
    REJECTED = "rejected"                        # Terminal


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("studentId", "jobId", name="uq_application_student_job"),
    )
    
    id = Column(String(36), primary_key=True, default=new_id)
    studentId = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    jobId = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(30), nullable=False, default=ApplicationStatus.APPLIED.value)
    
    resumeUrl = Column(String(500), nullable=True)
    coverLetter = Column(Text, nullable=True)
    experience = Column(String(100), nullable=True)    # e.g. "3 years", "Fresh"
    availability = Column(String(100), nullable=True)  # e.g. "Immediately"
    applicationDate = Column(Date, default=date.today, nullable=False)
    
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    student = relationship("Student", back_populates="applications")
    job = relationship("Job", back_populates="applications")
    interview = relationship("Interview", back_populates="application", uselist=False, cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<Application student #{self.studentId} for Job #{self.jobId} [{self.status}]>"
