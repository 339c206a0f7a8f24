"""
이미지 저장소 어댑터

업로드는 실패 시 ImageUploadException을 던지고,
삭제는 예외 대신 DeletionResult를 반환합니다 (호출자가 로그만 남기고 계속 진행).
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.exceptions import ImageUploadException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageReference:
    """저장소가 업로드 시 돌려주는 (공개 URL, 삭제용 public_id) 쌍"""
    url: str
    public_id: str


@dataclass(frozen=True)
class DeletionResult:
    public_id: str
    ok: bool
    error: Optional[str] = None


class ImageStore(ABC):
    @abstractmethod
    async def upload(self, file_bytes: bytes, filename: Optional[str] = None) -> ImageReference:
        """이미지를 고정 폴더에 저장하고 참조를 반환"""

    @abstractmethod
    async def delete(self, public_id: str) -> DeletionResult:
        """이미지 삭제 시도 - 실패해도 예외를 던지지 않음"""

    def is_configured(self) -> bool:
        return True


class CloudinaryImageStore(ImageStore):
    """Cloudinary 기반 이미지 저장소"""

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
        folder: str = "blog-posts"
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self._initialized = False

    def is_configured(self) -> bool:
        return all([self.cloud_name, self.api_key, self.api_secret])

    def _ensure_initialized(self):
        if self._initialized:
            return
        if not self.is_configured():
            raise ValueError("Cloudinary 설정이 없습니다. CLOUDINARY_* 환경변수를 확인하세요.")
        cloudinary.config(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self.api_secret,
            secure=True
        )
        self._initialized = True
        logger.info(f"Cloudinary 초기화 완료: folder={self.folder}")

    async def upload(self, file_bytes: bytes, filename: Optional[str] = None) -> ImageReference:
        try:
            self._ensure_initialized()
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                file_bytes,
                folder=self.folder,
                resource_type="auto"
            )
        except Exception as e:
            logger.error(f"Cloudinary 업로드 실패: filename={filename}, error={str(e)}")
            raise ImageUploadException()

        url = result.get("secure_url")
        public_id = result.get("public_id")
        if not url or not public_id:
            logger.error(f"Cloudinary 업로드 응답에 URL/public_id 누락: {result}")
            raise ImageUploadException()

        logger.info(f"이미지 업로드 완료: public_id={public_id}")
        return ImageReference(url=url, public_id=public_id)

    async def delete(self, public_id: str) -> DeletionResult:
        try:
            self._ensure_initialized()
            result = await run_in_threadpool(cloudinary.uploader.destroy, public_id)
        except Exception as e:
            logger.error(f"Cloudinary deletion error: public_id={public_id}, error={str(e)}")
            return DeletionResult(public_id=public_id, ok=False, error=str(e))

        outcome = result.get("result") if isinstance(result, dict) else None
        if outcome != "ok":
            logger.warning(f"Cloudinary 삭제 실패 응답: public_id={public_id}, result={outcome}")
            return DeletionResult(public_id=public_id, ok=False, error=str(outcome))

        logger.info(f"이미지 삭제 완료: public_id={public_id}")
        return DeletionResult(public_id=public_id, ok=True)


# 전역 저장소 인스턴스 (지연 로딩)
_image_store: Optional[ImageStore] = None

def get_image_store() -> ImageStore:
    global _image_store
    if _image_store is None:
        _image_store = CloudinaryImageStore(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER
        )
    return _image_store
