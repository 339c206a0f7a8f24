import logging
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ImageInUseException, PostNotFoundException
from ..crud.post_crud import post_crud
from ..models.post import Post, PostStatus
from ..schemas.post import PostStatusEnum, validate_post_payload
from .storage_service import DeletionResult, ImageStore

logger = logging.getLogger(__name__)


def _parse_post_id(post_id: Any) -> Optional[UUID]:
    if isinstance(post_id, UUID):
        return post_id
    try:
        return UUID(str(post_id))
    except (TypeError, ValueError):
        return None


class PostService:
    """
    게시글 생명주기 서비스

    검증 → 저장 → 대표 이미지 정리 순서를 담당합니다.
    기존 이미지 삭제는 항상 DB 커밋이 성공한 뒤에 수행하며,
    삭제 실패는 로그만 남기고 호출자에게 전파하지 않습니다.
    """

    def __init__(self, image_store: ImageStore):
        self.image_store = image_store

    async def _release_image(self, db: AsyncSession, public_id: str, post_id: Any) -> Optional[DeletionResult]:
        # 다른 게시글이 아직 참조 중이면 자산을 남겨둠
        if await self.is_image_in_use(db, public_id):
            logger.warning(
                f"Skipping delete of image still referenced by another post: post_id={post_id}, public_id={public_id}"
            )
            return None

        result = await self.image_store.delete(public_id)
        if not result.ok:
            logger.warning(
                f"Failed to delete old image, continuing anyway: post_id={post_id}, "
                f"public_id={public_id}, error={result.error}"
            )
        return result

    async def _ensure_image_available(
        self,
        db: AsyncSession,
        public_id: Optional[str],
        post_id: Optional[UUID] = None
    ):
        """대표 이미지는 한 번에 하나의 게시글만 소유"""
        if public_id and await self.is_image_in_use(db, public_id, exclude_post_id=post_id):
            raise ImageInUseException(public_id)

    async def _load(self, db: AsyncSession, post_id: Any) -> Post:
        parsed_id = _parse_post_id(post_id)
        post = await post_crud.get_with_author(db, parsed_id) if parsed_id else None
        if post is None:
            raise PostNotFoundException(post_id)
        return post

    async def list(
        self,
        db: AsyncSession,
        *,
        include_drafts: bool,
        status: Optional[PostStatusEnum] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[Post]:
        """게시글 목록 (최신순) - 비로그인 조회는 발행된 글만"""
        if status is not None:
            statuses = [PostStatus(status.value)]
            if not include_drafts and statuses[0] is PostStatus.DRAFT:
                return []
        elif include_drafts:
            statuses = None
        else:
            statuses = [PostStatus.PUBLISHED]

        return await post_crud.get_posts_with_author(db, statuses=statuses, skip=skip, limit=limit)

    async def get(self, db: AsyncSession, post_id: Any, *, include_drafts: bool) -> Post:
        post = await self._load(db, post_id)
        if not include_drafts and post.status is not PostStatus.PUBLISHED:
            raise PostNotFoundException(post_id)
        return post

    async def create(self, db: AsyncSession, record: Any, author_id: UUID) -> Post:
        payload = validate_post_payload(record)
        await self._ensure_image_available(db, payload.image_public_id)

        try:
            new_post = await post_crud.create_post(db, payload, author_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(f"게시글 작성 완료: post_id={new_post.id}")
        return await post_crud.get_with_author(db, new_post.id)

    async def update(self, db: AsyncSession, post_id: Any, record: Any) -> Post:
        payload = validate_post_payload(record)
        current = await self._load(db, post_id)
        await self._ensure_image_available(db, payload.image_public_id, current.id)

        # 기존 이미지가 있고, 새 payload가 이미지를 빼거나 다른 이미지로 바꾼 경우
        stale_public_id = None
        if current.image_public_id and payload.image_public_id != current.image_public_id:
            stale_public_id = current.image_public_id

        try:
            await post_crud.update_post(db, current, payload)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if stale_public_id:
            await self._release_image(db, stale_public_id, current.id)

        logger.info(f"게시글 수정 완료: post_id={current.id}, image_replaced={bool(stale_public_id)}")
        return await post_crud.get_with_author(db, current.id)

    async def delete(self, db: AsyncSession, post_id: Any) -> Post:
        post = await self._load(db, post_id)
        public_id = post.image_public_id

        try:
            await post_crud.delete_post(db, post)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if public_id:
            await self._release_image(db, public_id, post.id)

        return post

    async def is_image_in_use(
        self,
        db: AsyncSession,
        public_id: str,
        exclude_post_id: Optional[UUID] = None
    ) -> bool:
        count = await post_crud.count_by_image_public_id(db, public_id, exclude_post_id=exclude_post_id)
        return count > 0
