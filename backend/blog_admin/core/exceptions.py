from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from .config import settings

logger = logging.getLogger(__name__)


def _get_allowed_origins_set() -> set[str]:
    """허용된 오리진 목록을 집합으로 반환"""
    origins = set(settings.ALLOWED_ORIGINS)
    if settings.FRONTEND_URL:
        origins.add(settings.FRONTEND_URL)
    return origins

ALLOWED_ORIGINS_SET = _get_allowed_origins_set()

def _conditionally_set_cors_headers(request: Request, response: JSONResponse):
    """요청 Origin이 허용 목록에 있을 때만 CORS 헤더 설정"""
    origin = request.headers.get("origin")
    if origin and origin in ALLOWED_ORIGINS_SET:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Credentials"] = "true"

class BlogAdminException(Exception):
    """애플리케이션 기본 예외 클래스"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(self.message)

class PostValidationException(BlogAdminException):
    """게시글 입력 데이터가 제약조건을 위반한 경우"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, details: List[Dict[str, str]], message: str = "Invalid post data"):
        super().__init__(message, code="validation_error")
        self.details = details

class AuthenticationException(BlogAdminException):
    """세션이 없거나 유효하지 않은 경우"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="unauthorized")

class PostNotFoundException(BlogAdminException):
    """게시글을 찾을 수 없는 경우"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, post_id: Any = None):
        super().__init__("Post not found", code="post_not_found")
        self.post_id = post_id

class ImageInUseException(BlogAdminException):
    """아직 게시글이 참조 중인 이미지를 삭제하려는 경우"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, public_id: str):
        super().__init__("Image is still attached to a post", code="image_in_use")
        self.public_id = public_id

class UpstreamException(BlogAdminException):
    """이미지 저장소/데이터베이스 등 외부 의존성 실패"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

class ImageUploadException(UpstreamException):
    """이미지 업로드 실패"""

    def __init__(self, message: str = "Image upload failed"):
        super().__init__(message, code="upload_failed")


def _error_body(exc: BlogAdminException) -> Dict[str, Any]:
    content: Dict[str, Any] = {"error": exc.message, "code": exc.code}
    details: Optional[list] = getattr(exc, "details", None)
    if details:
        content["details"] = details
    return content

# 전역 예외 처리기
async def blog_admin_exception_handler(request: Request, exc: BlogAdminException):
    if exc.status_code >= 500:
        logger.error(f"Application error: {exc.__class__.__name__}: {exc.message}")
    else:
        logger.warning(f"Request rejected ({exc.status_code}): {exc.message}")
    response = JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc)
    )
    if isinstance(exc, AuthenticationException):
        response.headers["WWW-Authenticate"] = "Bearer"
    _conditionally_set_cors_headers(request, response)
    return response

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error: {exc.errors()}")
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            "message": error.get("msg", "")
        }
        for error in exc.errors()
    ]
    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "code": "validation_error",
            "details": details
        }
    )
    _conditionally_set_cors_headers(request, response)
    return response

async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"HTTP error: {exc.status_code} - {exc.detail}")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )
    _conditionally_set_cors_headers(request, response)
    return response

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"전역 예외: {type(exc).__name__}: {str(exc)}")
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"}
    )
    _conditionally_set_cors_headers(request, response)
    return response
