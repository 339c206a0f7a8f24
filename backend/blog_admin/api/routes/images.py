import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...api.dependencies import get_current_user, get_post_service
from ...core.config import settings
from ...core.constants import ALLOWED_UPLOAD_CONTENT_PREFIX
from ...core.exceptions import ImageInUseException, UpstreamException
from ...database.session import get_db
from ...models.user import User
from ...schemas.post import DeleteImageRequest, ImageUploadResponse, SuccessResponse
from ...services.post_service import PostService

router = APIRouter(tags=["images"])
logger = logging.getLogger(__name__)


@router.post("/upload", response_model=ImageUploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service)
):
    """대표 이미지 업로드 - 게시글 저장 전에 먼저 호출"""
    content_type = file.content_type or ""
    if not content_type.startswith(ALLOWED_UPLOAD_CONTENT_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files can be uploaded"
        )

    file_bytes = await file.read()
    if not file_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    if len(file_bytes) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Image must be at most {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )

    reference = await post_service.image_store.upload(file_bytes, filename=file.filename)
    logger.info(f"이미지 업로드: user_id={current_user.id}, public_id={reference.public_id}, size={len(file_bytes)}")
    return ImageUploadResponse(url=reference.url, publicId=reference.public_id)

@router.post("/delete-image", response_model=SuccessResponse)
async def delete_image(
    request_data: DeleteImageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service)
):
    """저장되지 않은(게시글에 연결되지 않은) 이미지 삭제"""
    public_id = request_data.public_id
    if not public_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No public ID provided"
        )

    # 게시글이 참조 중인 이미지는 게시글 수정/삭제 경로에서만 정리
    if await post_service.is_image_in_use(db, public_id):
        raise ImageInUseException(public_id)

    result = await post_service.image_store.delete(public_id)
    if not result.ok:
        raise UpstreamException("Failed to delete image", code="delete_failed")

    logger.info(f"이미지 삭제: user_id={current_user.id}, public_id={public_id}")
    return SuccessResponse(success=True)
