import enum

from sqlalchemy import Column, String, Text, Integer, ForeignKey, Enum
from sqlalchemy.orm import relationship

from .base import Base, GUID, TimestampMixin, UUIDMixin


class PostStatus(enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Post(Base, UUIDMixin, TimestampMixin):
    """블로그 게시글 모델"""
    __tablename__ = "posts"
    __table_args__ = {"comment": "블로그 게시글"}

    author_id = Column(GUID(), ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    read_time = Column(Integer, nullable=False, comment="읽는 시간 (분)")
    status = Column(
        Enum(PostStatus, values_callable=lambda e: [m.value for m in e], name="post_status"),
        nullable=False,
        default=PostStatus.DRAFT,
        index=True
    )

    # 대표 이미지 - URL과 public_id는 항상 함께 존재하거나 함께 없음
    image_url = Column(String(1000), nullable=True)
    image_public_id = Column(String(255), nullable=True, index=True, comment="Cloudinary public_id (삭제용)")

    author = relationship("User", back_populates="posts")

    @property
    def has_image(self) -> bool:
        return bool(self.image_public_id)

    def __repr__(self):
        return f"<Post(id={self.id}, title={self.title!r}, status={self.status})>"
