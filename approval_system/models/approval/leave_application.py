from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class LeaveApplication(BaseModel):
    __tablename__ = 'leave_applications'

    app_id = Column(Integer, ForeignKey('applications.id'), unique=True, nullable=False)
    leave_type = Column(Integer, nullable=False)  # LeaveType
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    days = Column(Numeric(5, 1), nullable=False)
    reason = Column(Text, nullable=False)
    attachment = Column(String(500), nullable=True)

    # Relationships
    application = relationship("Application", back_populates="leave_detail")
