from typing import List

from app.core.errors import DuplicateRecordError, ErrorCode, ServiceResult, gateway_guard
from app.core.utils import LoggerMixin
from app.models.patient_model import OPDRecord
from app.models.user_model import User
from app.repositories.opd_repo import OPDRepository
from app.repositories.patient_repo import PatientRepository
from app.schemas.opd_schemas import (
    DoctorOPDRecordSchema,
    OPDRecordCreateSchema,
    OPDRecordSchema,
)
from app.schemas.user_schemas import Designation


MAX_PAGE_SIZE = 100


class OPDService(LoggerMixin):
    """Consultation records written by doctors against a patient visit."""

    def __init__(self, opd_repo: OPDRepository, patient_repo: PatientRepository):
        super().__init__()
        self.opd_repo = opd_repo
        self.patient_repo = patient_repo

    @staticmethod
    def _validate(request: OPDRecordCreateSchema):
        if request.template_version < 1:
            return "template_version must be at least 1"
        if not (request.symptoms or request.prescription or request.medicines):
            return "symptoms, prescription or medicines required"
        if any(not m.name.strip() for m in request.medicines):
            return "medicine name required"
        return None

    @gateway_guard
    async def create_record(
        self, doctor: User, request: OPDRecordCreateSchema
    ) -> ServiceResult[OPDRecordSchema]:
        if not (doctor.is_admin or doctor.designation == Designation.DOCTOR):
            return ServiceResult.failure(ErrorCode.FORBIDDEN, "only doctors write OPD records")

        problem = self._validate(request)
        if problem:
            return ServiceResult.failure(ErrorCode.INVALID_OPD_DATA, problem)

        patient = await self.patient_repo.get_patient_by_id(request.patient_id)
        if patient is None:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)

        try:
            record = await self.opd_repo.create_record(
                OPDRecord(
                    patient_id=patient.id,
                    doctor_id=doctor.id,
                    symptoms=[s.strip() for s in request.symptoms if s.strip()],
                    prescription=[p.strip() for p in request.prescription if p.strip()],
                    medicines=[m.model_dump() for m in request.medicines],
                    future_suggestion=[
                        f.strip() for f in request.future_suggestion if f.strip()
                    ],
                    template_version=request.template_version,
                )
            )
        except DuplicateRecordError as e:
            return ServiceResult.failure(ErrorCode.OPD_ALREADY_EXISTS, str(e))

        self.log_info(
            {
                "event_type": "opd_record_created",
                "record_id": record.id,
                "patient_id": patient.id,
                "doctor_id": doctor.id,
            }
        )
        return ServiceResult.success(OPDRecordSchema.model_validate(record))

    @gateway_guard
    async def get_record(self, record_id: int) -> ServiceResult[OPDRecordSchema]:
        record = await self.opd_repo.get_record_by_id(record_id)
        if record is None:
            return ServiceResult.failure(ErrorCode.OPD_NOT_FOUND)
        return ServiceResult.success(OPDRecordSchema.model_validate(record))

    @gateway_guard
    async def list_for_patient(self, patient_id: int) -> ServiceResult[List[OPDRecordSchema]]:
        if await self.patient_repo.get_patient_by_id(patient_id) is None:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)
        records = await self.opd_repo.list_for_patient(patient_id)
        return ServiceResult.success([OPDRecordSchema.model_validate(r) for r in records])

    @gateway_guard
    async def get_latest_for_patient(self, patient_id: int) -> ServiceResult[OPDRecordSchema]:
        if await self.patient_repo.get_patient_by_id(patient_id) is None:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)
        record = await self.opd_repo.get_latest_for_patient(patient_id)
        if record is None:
            return ServiceResult.failure(ErrorCode.OPD_NOT_FOUND)
        return ServiceResult.success(OPDRecordSchema.model_validate(record))

    @gateway_guard
    async def list_history(self, opd_id: str) -> ServiceResult[List[OPDRecordSchema]]:
        """Records across every visit of the patient holding ``opd_id``."""
        if await self.patient_repo.get_latest_visit_by_opd_id(opd_id) is None:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)
        records = await self.opd_repo.list_for_opd_id(opd_id)
        return ServiceResult.success([OPDRecordSchema.model_validate(r) for r in records])

    @gateway_guard
    async def list_for_doctor(
        self, doctor: User, limit: int = 20, offset: int = 0
    ) -> ServiceResult[List[DoctorOPDRecordSchema]]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)
        records = await self.opd_repo.list_for_doctor(doctor.id, limit=limit, offset=offset)
        return ServiceResult.success([DoctorOPDRecordSchema.from_record(r) for r in records])
