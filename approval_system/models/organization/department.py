from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class Department(BaseModel):
    __tablename__ = 'departments'

    parent_id = Column(Integer, default=0, nullable=False, index=True)  # 0 = top level
    dept_name = Column(String(100), nullable=False)
    leader = Column(String(100), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    order_num = Column(Integer, default=0)
    status = Column(Integer, default=1, nullable=False)

    # Relationships
    users = relationship("User", back_populates="department")

    def __repr__(self):
        return f"<Department {self.dept_name}>"
