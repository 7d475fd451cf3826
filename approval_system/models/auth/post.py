from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from approval_system.db.base import BaseModel

class Post(BaseModel):
    __tablename__ = "posts"

    post_code = Column(String(64), unique=True, index=True, nullable=False)
    post_name = Column(String(100), nullable=False)
    post_sort = Column(Integer, default=0)
    status = Column(Integer, default=1, nullable=False)
    remark = Column(Text, nullable=True)

    # Relationships
    users = relationship("User", back_populates="post")
    post_permissions = relationship("PostPermission", back_populates="post", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Post {self.post_code}>"
