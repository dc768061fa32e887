"""
Skill taxonomy and assessment ledger models
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from levelminds.core.database import Base
from levelminds.models.user import new_id

MIN_SUBSKILLS = 1
MAX_SUBSKILLS = 4
MIN_MARK = 0
MAX_MARK = 10


class CoreSkill(Base):
    __tablename__ = "core_skills"
    
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, unique=True)
    subSkills = Column(JSON, nullable=False, default=list)  # Ordered sub-skill names
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    assessments = relationship("StudentCoreSkillAssessment", back_populates="coreSkill", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<CoreSkill {self.name}>"


class Category(Base):
    """Job type; its core skills drive which students see its jobs"""
    __tablename__ = "categories"
    
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, unique=True)
    coreSkillIds = Column(JSON, nullable=False, default=list)
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    jobs = relationship("Job", back_populates="category")
    
    def __repr__(self):
        return f"<Category {self.name}>"


class StudentCoreSkillAssessment(Base):
    __tablename__ = "student_core_skill_assessments"
    __table_args__ = (
        UniqueConstraint("studentId", "coreSkillId", name="uq_assessment_student_core_skill"),
    )
    
    id = Column(String(36), primary_key=True, default=new_id)
    studentId = Column(String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    coreSkillId = Column(String(36), ForeignKey("core_skills.id", ondelete="CASCADE"), nullable=False)
    # e.g. {"Algebra": 8, "Geometry": 7}
    subSkillMarks = Column(JSON, nullable=False, default=dict)
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    student = relationship("Student", back_populates="assessments")
    coreSkill = relationship("CoreSkill", back_populates="assessments")
    
    @property
    def total_score(self) -> int:
        return compute_total(self.subSkillMarks)
    
    def __repr__(self):
        return f"<Assessment student #{self.studentId} skill #{self.coreSkillId}>"


def compute_total(marks) -> int:
    """Sum of sub-skill marks; derived on read, never stored"""
    if hasattr(marks, "subSkillMarks"):
        marks = marks.subSkillMarks
    return sum((marks or {}).values())
