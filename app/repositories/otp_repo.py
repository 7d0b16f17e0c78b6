from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.utils import utc_now
from app.models.otp_model import OTPCode
from app.repositories.base import BaseRepository
from app.schemas.user_schemas import OTPType


class OTPRepository(BaseRepository):
    """Persistence for one-time codes."""

    async def create_otp(
        self,
        email: str,
        code: str,
        otp_type: OTPType,
        expiry: datetime,
        mobile: str = "",
    ) -> OTPCode:
        return await self._add(
            OTPCode(
                mobile=mobile or "",
                email=email.lower(),
                otp=code,
                expiry=expiry,
                otp_type=otp_type,
                is_validated=False,
                retry_count=0,
            )
        )

    async def get_latest_unvalidated(
        self, email: str, otp_type: OTPType
    ) -> Optional[OTPCode]:
        """Most recently created unvalidated code for (email, otp_type)."""

        async def op(db: AsyncSession):
            result = await db.execute(
                select(OTPCode)
                .where(
                    OTPCode.email == email.lower(),
                    OTPCode.otp_type == otp_type,
                    OTPCode.is_validated.is_(False),
                )
                .order_by(OTPCode.created_at.desc(), OTPCode.id.desc())
                .limit(1)
            )
            return result.scalars().first()

        return await self._read(op)

    async def mark_validated(self, otp_id: int) -> bool:
        """Flip ``is_validated`` once. False if the code was already used."""

        async def op(db: AsyncSession):
            result = await db.execute(
                update(OTPCode)
                .where(OTPCode.id == otp_id, OTPCode.is_validated.is_(False))
                .values(is_validated=True, updated_at=utc_now())
            )
            return result.rowcount > 0

        return await self._write(op)

    async def increment_retry(self, otp_id: int) -> None:
        async def op(db: AsyncSession):
            await db.execute(
                update(OTPCode)
                .where(OTPCode.id == otp_id)
                .values(retry_count=OTPCode.retry_count + 1, updated_at=utc_now())
            )

        await self._write(op)

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        cutoff = now or utc_now()

        async def op(db: AsyncSession):
            result = await db.execute(delete(OTPCode).where(OTPCode.expiry < cutoff))
            return result.rowcount or 0

        return await self._write(op)
