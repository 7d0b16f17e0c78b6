from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.utils import utc_now
from app.models.user_model import User as UserModel
from app.repositories.base import BaseRepository
from app.schemas.user_schemas import UserStatus


class UserRepository(BaseRepository):
    """Repository layer for user data access."""

    async def get_user_by_id(self, user_id: int) -> Optional[UserModel]:
        async def op(db: AsyncSession):
            return await db.get(UserModel, user_id)

        return await self._read(op)

    async def get_user_by_email(self, email: str) -> Optional[UserModel]:
        """
        Get user by email address.

        Args:
            email: User's email address

        Returns:
            User model or None if not found
        """

        async def op(db: AsyncSession):
            result = await db.execute(
                select(UserModel).where(UserModel.email == email.lower())
            )
            return result.scalars().first()

        return await self._read(op)

    async def get_user_by_mobile(self, mobile: str) -> Optional[UserModel]:
        async def op(db: AsyncSession):
            result = await db.execute(select(UserModel).where(UserModel.mobile == mobile))
            return result.scalars().first()

        return await self._read(op)

    async def has_admin(self) -> bool:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(UserModel.id).where(UserModel.is_admin.is_(True)).limit(1)
            )
            return result.first() is not None

        return await self._read(op)

    async def create_user(self, user: UserModel) -> UserModel:
        """
        Create a new user in the database.

        Raises:
            DuplicateRecordError: mobile or email already taken
        """
        return await self._add(user)

    async def list_pending_approvals(self) -> List[UserModel]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(UserModel)
                .where(UserModel.is_admin.is_(False), UserModel.is_approved.is_(False))
                .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            )
            return list(result.scalars().all())

        return await self._read(op)

    async def _update(self, user_id: int, **values) -> bool:
        values["updated_at"] = utc_now()

        async def op(db: AsyncSession):
            result = await db.execute(
                update(UserModel).where(UserModel.id == user_id).values(**values)
            )
            return result.rowcount > 0

        return await self._write(op)

    async def update_password(self, user_id: int, password_hash: str) -> bool:
        return await self._update(user_id, password_hash=password_hash)

    async def approve_user(self, user_id: int, approved_by: int) -> bool:
        return await self._update(user_id, is_approved=True, approved_by=approved_by)

    async def update_status(self, user_id: int, status: UserStatus) -> bool:
        return await self._update(user_id, status=status)

    async def mark_verified(self, user_id: int) -> bool:
        return await self._update(user_id, is_verified=True)

    async def update_last_login(self, user_id: int) -> bool:
        return await self._update(user_id, last_login_at=utc_now())
