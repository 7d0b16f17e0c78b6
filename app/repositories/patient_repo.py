from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patient_model import Patient
from app.repositories.base import BaseRepository


class PatientRepository(BaseRepository):
    """Persistence for patient visits. Rows are inserted, never updated."""

    async def create_patient(self, patient: Patient) -> Patient:
        """
        Insert a visit row.

        Raises:
            DuplicateRecordError: the (opd_id, visit_number) pair already exists
        """
        return await self._add(patient)

    async def get_patient_by_id(self, patient_id: int) -> Optional[Patient]:
        async def op(db: AsyncSession):
            return await db.get(Patient, patient_id)

        return await self._read(op)

    async def get_all_visits_by_mobile(self, mobile: str) -> List[Patient]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(Patient)
                .where(Patient.mobile == mobile)
                .order_by(Patient.visit_number.asc(), Patient.id.asc())
            )
            return list(result.scalars().all())

        return await self._read(op)

    async def get_latest_visit_by_opd_id(self, opd_id: str) -> Optional[Patient]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(Patient)
                .where(Patient.opd_id == opd_id)
                .order_by(Patient.visit_number.desc())
                .limit(1)
            )
            return result.scalars().first()

        return await self._read(op)

    async def get_visits_by_opd_id(self, opd_id: str) -> List[Patient]:
        async def op(db: AsyncSession):
            result = await db.execute(
                select(Patient)
                .where(Patient.opd_id == opd_id)
                .order_by(Patient.visit_number.asc())
            )
            return list(result.scalars().all())

        return await self._read(op)
