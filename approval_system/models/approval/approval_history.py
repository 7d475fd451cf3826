from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class ApprovalHistory(BaseModel):
    __tablename__ = 'approval_histories'

    app_id = Column(Integer, ForeignKey('applications.id'), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey('approval_tasks.id'), nullable=True)
    node_name = Column(String(100), nullable=False)
    approver_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    approver_name = Column(String(100), nullable=True)
    action = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    approve_time = Column(DateTime, nullable=False)

    # Relationships
    application = relationship("Application", back_populates="histories")
