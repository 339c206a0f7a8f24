from typing import Any, Dict, List, Mapping, Optional
from datetime import datetime
from enum import Enum
from uuid import UUID
import math

from pydantic import (
    AliasChoices,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..core.constants import (
    TITLE_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    EXCERPT_MIN_LENGTH,
    CONTENT_MIN_LENGTH,
    MAX_READ_TIME,
    IMAGE_URL_MAX_LENGTH,
    IMAGE_PUBLIC_ID_MAX_LENGTH,
)
from ..core.exceptions import PostValidationException


class PostStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


_http_url = TypeAdapter(HttpUrl)

# 검증 오류 위치(loc)를 JSON 필드명으로 변환
_WIRE_FIELD_NAMES = {
    "title": "title",
    "excerpt": "excerpt",
    "content": "content",
    "read_time": "readTime",
    "status": "status",
    "image_url": "imageUrl",
    "image_public_id": "imagePublicId",
}


class PostPayload(BaseModel):
    """생성/수정 시 검증을 통과한 게시글 데이터"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    excerpt: str
    content: str
    read_time: int = Field(..., validation_alias=AliasChoices("readTime", "read_time"))
    status: PostStatusEnum
    image_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("imageUrl", "image_url")
    )
    image_public_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("imagePublicId", "cloudinaryPublicId", "image_public_id")
    )

    @field_validator('title')
    def validate_title(cls, v):
        if len(v) < TITLE_MIN_LENGTH:
            raise ValueError(f'Title must be at least {TITLE_MIN_LENGTH} characters')
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f'Title must be at most {TITLE_MAX_LENGTH} characters')
        return v

    @field_validator('excerpt')
    def validate_excerpt(cls, v):
        if len(v) < EXCERPT_MIN_LENGTH:
            raise ValueError(f'Excerpt must be at least {EXCERPT_MIN_LENGTH} characters')
        return v

    @field_validator('content')
    def validate_content(cls, v):
        if len(v) < CONTENT_MIN_LENGTH:
            raise ValueError(f'Content must be at least {CONTENT_MIN_LENGTH} characters')
        return v

    @field_validator('read_time', mode='before')
    def coerce_read_time(cls, v):
        """숫자 또는 숫자 문자열을 양의 정수(분)로 변환"""
        if isinstance(v, bool):
            raise ValueError('Read time must be a number')
        if isinstance(v, str):
            try:
                v = float(v.strip())
            except ValueError:
                raise ValueError('Read time must be a number')
        if not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ValueError('Read time must be a number')
        if v <= 0:
            raise ValueError('Read time must be a positive number')
        if v > MAX_READ_TIME:
            raise ValueError(f'Read time must be at most {MAX_READ_TIME} minutes')
        if v != int(v):
            raise ValueError('Read time must be a whole number of minutes')
        return int(v)

    @field_validator('status', mode='before')
    def validate_status(cls, v):
        allowed = [s.value for s in PostStatusEnum]
        if hasattr(v, 'value'):
            v = v.value
        if v not in allowed:
            raise ValueError('Status must be either draft or published')
        return v

    @field_validator('image_url', mode='before')
    def validate_image_url(cls, v):
        if v is None or v == "":
            return None
        if not isinstance(v, str):
            raise ValueError('Image URL must be a string')
        if len(v) > IMAGE_URL_MAX_LENGTH:
            raise ValueError(f'Image URL must be at most {IMAGE_URL_MAX_LENGTH} characters')
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError('Image URL must be a valid URL')
        return v

    @field_validator('image_public_id', mode='before')
    def validate_image_public_id(cls, v):
        if v is None or v == "":
            return None
        if not isinstance(v, str):
            raise ValueError('Image reference must be a string')
        if len(v) > IMAGE_PUBLIC_ID_MAX_LENGTH:
            raise ValueError(f'Image reference must be at most {IMAGE_PUBLIC_ID_MAX_LENGTH} characters')
        return v

    @model_validator(mode='after')
    def validate_image_consistency(self):
        if bool(self.image_url) != bool(self.image_public_id):
            raise ValueError('imageUrl and imagePublicId must be provided together')
        return self


def _format_errors(exc: ValidationError) -> List[Dict[str, str]]:
    details = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        field = _WIRE_FIELD_NAMES.get(loc[0], str(loc[0])) if loc else "image"
        if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = error.get("msg", "Invalid value")
        details.append({"field": field, "message": message})
    return details


def validate_post_payload(record: Any) -> PostPayload:
    """
    검증되지 않은 입력(dict)을 PostPayload로 변환
    위반된 제약조건을 모두 담은 PostValidationException 발생
    """
    if not isinstance(record, Mapping):
        raise PostValidationException(
            [{"field": "body", "message": "Post data must be a JSON object"}]
        )
    try:
        return PostPayload.model_validate(dict(record))
    except ValidationError as e:
        raise PostValidationException(_format_errors(e))


class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    image: Optional[str] = None


class PostResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel)
    )

    id: UUID
    title: str
    excerpt: str
    content: str
    read_time: int
    status: PostStatusEnum
    image_url: Optional[str] = None
    image_public_id: Optional[str] = None
    author_id: UUID
    author: Optional[AuthorSummary] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer('id', 'author_id')
    def serialize_uuid_to_str(self, value: UUID) -> str:
        return str(value)

    @field_validator('status', mode='before')
    def validate_status_enum(cls, v):
        """SQLAlchemy Enum 객체를 스키마 Enum으로 변환"""
        if hasattr(v, 'value'):
            return PostStatusEnum(v.value)
        return v


class ImageUploadResponse(BaseModel):
    url: str
    publicId: str


class DeleteImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("publicId", "public_id")
    )


class SuccessResponse(BaseModel):
    success: bool = True
