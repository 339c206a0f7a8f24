from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseCRUD
from ..models.user import User


class UserCRUD(BaseCRUD[User, dict, dict]):
    async def get_active(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        """활성 사용자만 조회"""
        user = await self.get(db, user_id)
        if user is None or not user.is_active:
            return None
        return user


# 싱글톤 인스턴스
user_crud = UserCRUD(User)
