import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from .base import BaseCRUD
from ..models.post import Post, PostStatus
from ..schemas.post import PostPayload

logger = logging.getLogger(__name__)


def _post_fields(payload: PostPayload) -> Dict[str, Any]:
    """검증된 payload를 컬럼 값으로 변환 (이미지 필드 누락 시 None으로 명시)"""
    return {
        "title": payload.title,
        "excerpt": payload.excerpt,
        "content": payload.content,
        "read_time": payload.read_time,
        "status": PostStatus(payload.status.value),
        "image_url": payload.image_url,
        "image_public_id": payload.image_public_id,
    }


class PostCRUD(BaseCRUD[Post, PostPayload, PostPayload]):

    async def create_post(
        self,
        db: AsyncSession,
        payload: PostPayload,
        author_id: UUID
    ) -> Post:
        """새 게시글 작성"""
        db_post = Post(author_id=author_id, **_post_fields(payload))
        db.add(db_post)
        await db.flush()
        # Transaction management moved to upper layer
        logger.info(f"게시글 생성: author_id={author_id}, status={payload.status.value}, has_image={bool(payload.image_public_id)}")
        return db_post

    async def update_post(
        self,
        db: AsyncSession,
        db_post: Post,
        payload: PostPayload
    ) -> Post:
        """게시글 전체 필드 갱신"""
        return await self.update(db, db_post, _post_fields(payload))

    async def get_with_author(
        self,
        db: AsyncSession,
        post_id: UUID
    ) -> Optional[Post]:
        """작성자 정보와 함께 단건 조회"""
        result = await db.execute(
            select(Post)
            .where(Post.id == post_id)
            .options(joinedload(Post.author))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_posts_with_author(
        self,
        db: AsyncSession,
        statuses: Optional[Sequence[PostStatus]] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[Post]:
        """게시글 목록 최신순 조회"""
        query = select(Post).options(joinedload(Post.author))
        if statuses is not None:
            query = query.where(Post.status.in_(list(statuses)))

        result = await db.execute(
            query
            .order_by(desc(Post.created_at))
            .offset(skip)
            .limit(limit)
        )
        return result.scalars().unique().all()

    async def count_by_image_public_id(
        self,
        db: AsyncSession,
        public_id: str,
        exclude_post_id: Optional[UUID] = None
    ) -> int:
        """해당 이미지를 참조 중인 게시글 수 (exclude_post_id 게시글 제외)"""
        query = select(func.count(Post.id)).where(Post.image_public_id == public_id)
        if exclude_post_id is not None:
            query = query.where(Post.id != exclude_post_id)
        result = await db.execute(query)
        return result.scalar() or 0

    async def delete_post(self, db: AsyncSession, db_post: Post) -> Post:
        """게시글 DB에서 삭제 (commit은 호출자에서)"""
        logger.info(f"게시글 삭제: post_id={db_post.id}, has_image={db_post.has_image}")
        return await self.remove(db, db_post)

# 싱글톤 인스턴스
post_crud = PostCRUD(Post)
