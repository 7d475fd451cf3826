from sqlalchemy import Boolean, Column, String, Text
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class Permission(BaseModel):
    __tablename__ = "permissions"

    code = Column(String(100), unique=True, index=True, nullable=False)  # e.g., 'APPROVAL_REVIEW'
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    resource = Column(String(100), nullable=False)  # e.g., 'approval', 'application', 'system'
    action = Column(String(50), nullable=False)     # e.g., 'review', 'submit', 'admin'
    is_active = Column(Boolean, default=True)

    # Relationships
    post_permissions = relationship("PostPermission", back_populates="permission", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Permission {self.code}>"
