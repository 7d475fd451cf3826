from sqlalchemy import Boolean, Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class PostPermission(BaseModel):
    __tablename__ = "post_permissions"

    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    permission_id = Column(Integer, ForeignKey("permissions.id"), nullable=False)
    is_active = Column(Boolean, default=True)

    # Relationships
    post = relationship("Post", back_populates="post_permissions")
    permission = relationship("Permission", back_populates="post_permissions")

    def __repr__(self):
        return f"<PostPermission post_id={self.post_id} permission_id={self.permission_id}>"
