"""
Job posting database model
"""
from sqlalchemy import Column, String, Text, DateTime, Date, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from levelminds.core.database import Base
from levelminds.models.user import new_id


class JobStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Job(Base):
    __tablename__ = "jobs"
    
    id = Column(String(36), primary_key=True, default=new_id)
    schoolId = Column(String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    categoryId = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    
    title = Column(String(200), nullable=False)
    location = Column(String(500), nullable=False)  # School address at posting time
    applicationEndDate = Column(Date, nullable=False)
    subjectsToTeach = Column(JSON, nullable=False, default=list)
    minSalaryLPA = Column(Float, nullable=False)  # Lakhs per annum
    maxSalaryLPA = Column(Float, nullable=True)
    jobDescription = Column(Text, nullable=False)
    keyResponsibilities = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    # Closing a job and its end date passing are independent
    status = Column(String(20), nullable=False, default=JobStatus.OPEN.value)
    jobLevel = Column(String(50), nullable=True)
    
    createdAt = Column(DateTime, default=datetime.utcnow, index=True)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    school = relationship("School", back_populates="jobs")
    category = relationship("Category", back_populates="jobs")
    applications = relationship("Application", back_populates="job", cascade="all, delete-orphan")
    
    @property
    def salary_range(self) -> str:
        if self.maxSalaryLPA is not None:
            return f"{self.minSalaryLPA:g}-{self.maxSalaryLPA:g} LPA"
        return f"{self.minSalaryLPA:g} LPA"
    
    def __repr__(self):
        return f"<Job {self.title}>"
