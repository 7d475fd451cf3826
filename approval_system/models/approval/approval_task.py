from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class ApprovalTask(BaseModel):
    __tablename__ = 'approval_tasks'

    app_id = Column(Integer, ForeignKey('applications.id'), nullable=False, index=True)
    node_name = Column(String(100), nullable=False)
    assignee_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    assignee_name = Column(String(100), nullable=True)
    status = Column(Integer, default=0, nullable=False)  # 0 todo, 1 done
    action = Column(Integer, nullable=True)  # 1 agree, 2 reject
    comment = Column(Text, nullable=True)
    finish_time = Column(DateTime, nullable=True)

    # Relationships
    application = relationship("Application", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assignee_id])
