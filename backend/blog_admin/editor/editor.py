import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from .client import ApiError, PostsApiClient
from .state import (
    EditorState,
    FormPhase,
    NoImage,
    PostForm,
    StoredImage,
    Uploading,
)

logger = logging.getLogger(__name__)


class PostEditor:
    """
    게시글 작성/수정 화면의 상태 머신

    저장된(persisted) 대표 이미지는 클라이언트에서 지우지 않습니다.
    교체/제거된 기존 이미지는 서버가 게시글 저장 후 정리합니다.
    클라이언트는 저장되지 않은 업로드만 직접 정리합니다.
    """

    def __init__(self, client: PostsApiClient, post_id: Optional[str] = None):
        self.client = client
        self.post_id = post_id
        initial = FormPhase.LOADING if post_id else FormPhase.IDLE
        self.state = EditorState(phase=initial)

    @property
    def phase(self) -> FormPhase:
        return self.state.phase

    def _fail(self, error: ApiError):
        self.state = self.state.move_to(
            FormPhase.ERROR, error=error.message, field_errors=error.details
        )

    def _require_idle(self):
        if self.state.phase is not FormPhase.IDLE:
            raise RuntimeError(f"Editor is busy ({self.state.phase.value})")

    def _require_no_upload(self):
        if isinstance(self.state.image, Uploading):
            raise RuntimeError("Image upload still in progress")

    async def _discard_upload(self, image) -> None:
        if not isinstance(image, StoredImage) or image.persisted:
            return
        try:
            await self.client.delete_image(image.public_id)
        except ApiError as e:
            logger.warning(f"Failed to delete unsaved image {image.public_id}: {e.message}")

    async def load(self) -> None:
        if not self.post_id:
            raise RuntimeError("Nothing to load for a new post")
        if self.state.phase is not FormPhase.LOADING:
            self.state = self.state.move_to(FormPhase.LOADING)
        try:
            post = await self.client.get_post(self.post_id)
        except ApiError as e:
            self._fail(e)
            return
        self._apply_saved(post)

    def _apply_saved(self, post: Dict[str, Any]):
        image = NoImage()
        if post.get("imagePublicId") and post.get("imageUrl"):
            image = StoredImage(url=post["imageUrl"], public_id=post["imagePublicId"], persisted=True)
        self.post_id = post["id"]
        self.state = self.state.move_to(
            FormPhase.IDLE, form=PostForm.from_post(post), image=image
        )

    def update_fields(self, **changes) -> None:
        self._require_idle()
        self.state = replace(self.state, form=replace(self.state.form, **changes))

    async def select_image(self, file_bytes: bytes, filename: str, content_type: str = "image/jpeg") -> None:
        self._require_idle()
        self._require_no_upload()
        previous = self.state.image
        self.state = replace(self.state, image=Uploading(filename=filename))
        try:
            uploaded = await self.client.upload_image(file_bytes, filename, content_type)
        except ApiError as e:
            self.state = replace(self.state, image=previous)
            self._fail(e)
            return

        await self._discard_upload(previous)
        self.state = replace(
            self.state,
            image=StoredImage(url=uploaded["url"], public_id=uploaded["publicId"], persisted=False)
        )

    async def remove_image(self) -> None:
        self._require_idle()
        await self._discard_upload(self.state.image)
        self.state = replace(self.state, image=NoImage())

    async def save(self) -> Optional[Dict[str, Any]]:
        self._require_idle()
        self._require_no_upload()
        self.state = self.state.move_to(FormPhase.SUBMITTING)
        payload = self.state.form.to_payload(self.state.image)
        try:
            if self.post_id:
                post = await self.client.update_post(self.post_id, payload)
            else:
                post = await self.client.create_post(payload)
        except ApiError as e:
            self._fail(e)
            return None

        self._apply_saved(post)
        return post

    def dismiss_error(self) -> None:
        self.state = self.state.move_to(FormPhase.IDLE)

    async def discard(self) -> None:
        """편집 취소 - 저장되지 않은 업로드 정리"""
        await self._discard_upload(self.state.image)
        self.state = replace(self.state, image=NoImage())
