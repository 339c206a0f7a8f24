from .base import Base
from .user import User
from .post import Post, PostStatus

__all__ = ["Base", "User", "Post", "PostStatus"]
