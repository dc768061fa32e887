"""
Interview scheduling database model
At most one interview per application; rescheduling overwrites it
"""
from sqlalchemy import Column, String, DateTime, Date, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from levelminds.core.database import Base
from levelminds.models.user import new_id

DEFAULT_INTERVIEW_TITLE = "Scheduled Interview"


class Interview(Base):
    __tablename__ = "interviews"
    
    id = Column(String(36), primary_key=True, default=new_id)
    applicationId = Column(String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, unique=True)
    
    title = Column(String(200), nullable=False, default=DEFAULT_INTERVIEW_TITLE)
    date = Column(Date, nullable=False)
    startTime = Column(String(5), nullable=False)  # HH:MM
    endTime = Column(String(5), nullable=False)
    location = Column(String(500), nullable=False)  # School address at scheduling time
    
    createdAt = Column(DateTime, default=datetime.utcnow)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    application = relationship("Application", back_populates="interview")
    
    def __repr__(self):
        return f"<Interview {self.date} {self.startTime} for Application #{self.applicationId}>"
