from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class FormPhase(str, Enum):
    LOADING = "loading"
    IDLE = "idle"
    SUBMITTING = "submitting"
    ERROR = "error"


# 허용되는 단계 전이
_TRANSITIONS = {
    FormPhase.LOADING: {FormPhase.IDLE, FormPhase.ERROR},
    FormPhase.IDLE: {FormPhase.LOADING, FormPhase.SUBMITTING, FormPhase.ERROR},
    FormPhase.SUBMITTING: {FormPhase.IDLE, FormPhase.ERROR},
    FormPhase.ERROR: {FormPhase.IDLE, FormPhase.LOADING},
}


class InvalidTransition(Exception):
    def __init__(self, current: FormPhase, target: FormPhase):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move editor from {current.value} to {target.value}")


@dataclass(frozen=True)
class NoImage:
    pass


@dataclass(frozen=True)
class Uploading:
    filename: Optional[str] = None


@dataclass(frozen=True)
class StoredImage:
    url: str
    public_id: str
    # False: 업로드만 되고 아직 게시글과 함께 저장되지 않음
    persisted: bool = False


ImageState = Union[NoImage, Uploading, StoredImage]


@dataclass(frozen=True)
class PostForm:
    title: str = ""
    excerpt: str = ""
    content: str = ""
    read_time: Any = 5
    status: str = "draft"

    @classmethod
    def from_post(cls, post: Dict[str, Any]) -> "PostForm":
        return cls(
            title=post.get("title", ""),
            excerpt=post.get("excerpt", ""),
            content=post.get("content", ""),
            read_time=post.get("readTime", 5),
            status=post.get("status", "draft"),
        )

    def to_payload(self, image: ImageState) -> Dict[str, Any]:
        payload = {
            "title": self.title,
            "excerpt": self.excerpt,
            "content": self.content,
            "readTime": self.read_time,
            "status": self.status,
            "imageUrl": None,
            "imagePublicId": None,
        }
        if isinstance(image, StoredImage):
            payload["imageUrl"] = image.url
            payload["imagePublicId"] = image.public_id
        return payload


@dataclass(frozen=True)
class EditorState:
    """편집 화면 상태 - 단계, 폼 값, 이미지 하위 상태를 한 곳에서 관리"""
    phase: FormPhase = FormPhase.IDLE
    form: PostForm = field(default_factory=PostForm)
    image: ImageState = field(default_factory=NoImage)
    error: Optional[str] = None
    field_errors: List[Dict[str, str]] = field(default_factory=list)

    def move_to(self, target: FormPhase, **changes) -> "EditorState":
        if target not in _TRANSITIONS[self.phase]:
            raise InvalidTransition(self.phase, target)
        if target is not FormPhase.ERROR:
            changes.setdefault("error", None)
            changes.setdefault("field_errors", [])
        return replace(self, phase=target, **changes)
