from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...api.dependencies import get_current_user, get_current_user_optional, get_post_service
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...database.session import get_db
from ...models.user import User
from ...schemas.post import PostResponse, PostStatusEnum, SuccessResponse
from ...services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[PostResponse])
async def list_posts(
    status_filter: Optional[PostStatusEnum] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """게시글 목록 - 비로그인 사용자는 발행된 글만 조회"""
    return await post_service.list(
        db,
        include_drafts=current_user is not None,
        status=status_filter,
        skip=skip,
        limit=limit
    )

@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    record: Any = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """게시글 작성"""
    logger.info(f"게시글 작성 요청: user_id={current_user.id}")
    return await post_service.create(db, record, current_user.id)

@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """게시글 단건 조회"""
    return await post_service.get(db, post_id, include_drafts=current_user is not None)

@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    record: Any = Body(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """게시글 수정 - 대표 이미지 교체/삭제 시 기존 이미지는 저장 후 정리"""
    logger.info(f"게시글 수정 요청: post_id={post_id}, user_id={current_user.id}")
    return await post_service.update(db, post_id, record)

@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """게시글 삭제 (대표 이미지 포함)"""
    post = await post_service.delete(db, post_id)
    logger.info(f"게시글 삭제 완료: post_id={post.id}, user_id={current_user.id}")
    return SuccessResponse(success=True)
