from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class Application(BaseModel):
    __tablename__ = 'applications'

    app_no = Column(String(32), unique=True, index=True, nullable=False)
    app_type = Column(String(20), nullable=False, index=True)  # leave / reimburse
    title = Column(String(200), nullable=False)
    applicant_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    dept_id = Column(Integer, ForeignKey('departments.id'), nullable=True)
    status = Column(Integer, default=0, nullable=False, index=True)
    current_node = Column(String(100), nullable=True)
    # Planned route: [{"node": "dept", "name": ..., "assignee_id": ...}, ...]
    route = Column(JSON, nullable=True)
    node_index = Column(Integer, default=0, nullable=False)
    submit_time = Column(DateTime, nullable=True)
    finish_time = Column(DateTime, nullable=True)

    # Relationships
    applicant = relationship("User", foreign_keys=[applicant_id])
    department = relationship("Department", foreign_keys=[dept_id])
    leave_detail = relationship("LeaveApplication", back_populates="application", uselist=False, cascade="all, delete-orphan")
    reimburse_detail = relationship("ReimburseApplication", back_populates="application", uselist=False, cascade="all, delete-orphan")
    tasks = relationship("ApprovalTask", back_populates="application", cascade="all, delete-orphan")
    histories = relationship("ApprovalHistory", back_populates="application", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Application {self.app_no} status={self.status}>"
