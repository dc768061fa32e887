"""
User accounts and their role profiles
A User owns at most one School or one Student profile, matching its role
"""
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from levelminds.core.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SCHOOL = "school"
    STUDENT = "student"


class User(Base):
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(String(20), nullable=False)
    isOnboardingComplete = Column(Boolean, default=False, nullable=False)
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    school = relationship("School", back_populates="user", uselist=False, cascade="all, delete-orphan")
    student = relationship("Student", back_populates="user", uselist=False, cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class School(Base):
    __tablename__ = "schools"
    
    id = Column(String(36), primary_key=True, default=new_id)
    userId = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    
    # Profile fields stay null until onboarding completes
    logoUrl = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    websiteLink = Column(String(500), nullable=True)
    address = Column(String(300), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="school")
    jobs = relationship("Job", back_populates="school", cascade="all, delete-orphan")
    
    @property
    def full_address(self) -> str:
        """Address in the form snapshotted onto jobs and interviews"""
        return f"{self.address}, {self.city}, {self.state}, {self.pincode}"
    
    def __repr__(self):
        return f"<School for User #{self.userId}>"


class Student(Base):
    __tablename__ = "students"
    
    id = Column(String(36), primary_key=True, default=new_id)
    userId = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    
    firstName = Column(String(100), nullable=True)
    lastName = Column(String(100), nullable=True)
    mobile = Column(String(20), nullable=True)
    about = Column(Text, nullable=True)
    imageUrl = Column(String(500), nullable=True)
    
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="student")
    assessments = relationship("StudentCoreSkillAssessment", back_populates="student", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="student", cascade="all, delete-orphan")
    
    @property
    def display_name(self) -> str:
        if self.firstName or self.lastName:
            return " ".join(part for part in (self.firstName, self.lastName) if part)
        return self.user.name if self.user else ""
    
    def __repr__(self):
        return f"<Student for User #{self.userId}>"
