from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError

from ..core.config import settings
from ..core.exceptions import AuthenticationException
from ..core.security import verify_token
from ..crud.user_crud import user_crud
from ..database.session import get_db
from ..models.user import User
from ..services.post_service import PostService
from ..services.storage_service import ImageStore, get_image_store

security = HTTPBearer(auto_error=False)  # auto_error=False로 설정


def _extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    # 1. 세션 쿠키 우선 확인
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)

    # 2. 쿠키에 없으면 Authorization 헤더에서 확인 (fallback)
    if not token and credentials and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    return token


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> User:
    token = _extract_token(request, credentials)
    if not token:
        raise AuthenticationException()

    try:
        payload = verify_token(token)
        user_id = UUID(str(payload.get("sub")))
    except (JWTError, ValueError):
        raise AuthenticationException()

    user = await user_crud.get_active(db, user_id)
    if user is None:
        raise AuthenticationException()

    return user

async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[User]:
    try:
        return await get_current_user(request, db, credentials)
    except AuthenticationException:
        return None

def get_post_service(image_store: ImageStore = Depends(get_image_store)) -> PostService:
    return PostService(image_store)
