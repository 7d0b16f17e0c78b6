from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patient_model import OPDRecord, Patient
from app.repositories.base import BaseRepository


class OPDRepository(BaseRepository):
    """Persistence for OPD consultation records. Append-only."""

    async def create_record(self, record: OPDRecord) -> OPDRecord:
        return await self._add(record)

    async def get_record_by_id(self, record_id: int) -> Optional[OPDRecord]:
        async def op(db: AsyncSession):
            return await db.get(OPDRecord, record_id)

        return await self._read(op)

    async def list_for_patient(self, patient_id: int) -> List[OPDRecord]:
        """Records of one visit row, newest first."""

        async def op(db: AsyncSession):
            result = await db.execute(
                select(OPDRecord)
                .where(OPDRecord.patient_id == patient_id)
                .order_by(OPDRecord.created_at.desc(), OPDRecord.id.desc())
            )
            return list(result.scalars().unique().all())

        return await self._read(op)

    async def get_latest_for_patient(self, patient_id: int) -> Optional[OPDRecord]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(OPDRecord)
                .where(OPDRecord.patient_id == patient_id)
                .order_by(OPDRecord.created_at.desc(), OPDRecord.id.desc())
                .limit(1)
            )
            return result.scalars().first()

        return await self._read(op)

    async def list_for_opd_id(self, opd_id: str) -> List[OPDRecord]:
        """Records across every visit sharing ``opd_id``, newest first."""

        async def op(db: AsyncSession):
            result = await db.execute(
                select(OPDRecord)
                .join(Patient, OPDRecord.patient_id == Patient.id)
                .where(Patient.opd_id == opd_id)
                .order_by(OPDRecord.created_at.desc(), OPDRecord.id.desc())
            )
            return list(result.scalars().unique().all())

        return await self._read(op)

    async def list_for_doctor(
        self, doctor_id: int, limit: int = 20, offset: int = 0
    ) -> List[OPDRecord]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(OPDRecord)
                .where(OPDRecord.doctor_id == doctor_id)
                .order_by(OPDRecord.created_at.desc(), OPDRecord.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return list(result.scalars().unique().all())

        return await self._read(op)
