# approval_system/models/auth/__init__.py

# Import models in dependency order
from .permission import Permission
from .post import Post
from .user import User
from .refresh_token import RefreshToken
from .post_permission import PostPermission
from .audit_log import AuditLog

__all__ = [
    "Permission",
    "Post",
    "User",
    "RefreshToken",
    "PostPermission",
    "AuditLog",
]
