from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, UUIDMixin


class User(Base, UUIDMixin, TimestampMixin):
    """관리자(작성자) 모델 - 계정 생성은 인증 시스템에서 처리"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    image = Column(String(500), nullable=True, comment="프로필 이미지 URL")
    is_active = Column(Boolean, default=True, nullable=False)

    posts = relationship("Post", back_populates="author")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
