import secrets
import string
import time

from app.core.errors import DuplicateRecordError, ErrorCode, ServiceResult, gateway_guard
from app.core.utils import LoggerMixin, is_valid_mobile
from app.models.patient_model import Patient
from app.repositories.patient_repo import PatientRepository
from app.schemas.patient_schemas import (
    PatientLookupResponse,
    PatientRegisterResponse,
    PatientRegisterSchema,
    PatientVisitSchema,
    Sex,
)


BASE36_ALPHABET = string.digits + string.ascii_uppercase
MIN_AGE = 1
MAX_AGE = 150


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_opd_id(prefix: str = "LAEL") -> str:
    """
    Time-ordered OPD id: ``PREFIX-<ms timestamp><random>``.

    The timestamp part is nine base36 digits so ids sort by creation time;
    eight random base36 characters (~41 bits) keep ids created in the same
    millisecond apart.
    """
    timestamp = to_base36(time.time_ns() // 1_000_000).rjust(9, "0")
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(8))
    return f"{prefix}-{timestamp}{suffix}"


def _parse_sex(value: str):
    try:
        return Sex(value.lower())
    except ValueError:
        return None


class PatientService(LoggerMixin):
    """Patient lookup and visit registration."""

    def __init__(self, patient_repo: PatientRepository, opd_id_prefix: str = "LAEL"):
        super().__init__()
        self.patient_repo = patient_repo
        self.opd_id_prefix = opd_id_prefix

    @gateway_guard
    async def lookup(self, mobile: str) -> ServiceResult[PatientLookupResponse]:
        """Every visit registered under ``mobile``, oldest first."""
        mobile = (mobile or "").strip()
        if not is_valid_mobile(mobile):
            return ServiceResult.failure(ErrorCode.INVALID_MOBILE)

        visits = await self.patient_repo.get_all_visits_by_mobile(mobile)
        if not visits:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)

        latest = max(visits, key=lambda v: v.visit_number)
        return ServiceResult.success(
            PatientLookupResponse(
                mobile=mobile,
                opd_id=latest.opd_id,
                visits=[PatientVisitSchema.from_patient(v) for v in visits],
                latest_visit=PatientVisitSchema.from_patient(latest),
            )
        )

    @gateway_guard
    async def register(
        self, request: PatientRegisterSchema
    ) -> ServiceResult[PatientRegisterResponse]:
        if not request.mobile:
            return ServiceResult.failure(ErrorCode.INVALID_PATIENT_DATA, "mobile is required")
        if not is_valid_mobile(request.mobile):
            return ServiceResult.failure(ErrorCode.INVALID_MOBILE)

        if request.opd_id:
            return await self._register_revisit(request)
        return await self._register_new(request)

    async def _register_new(
        self, request: PatientRegisterSchema
    ) -> ServiceResult[PatientRegisterResponse]:
        if not request.name or not request.age or not request.sex:
            return ServiceResult.failure(
                ErrorCode.INVALID_PATIENT_DATA, "name, age and sex are required"
            )
        if not MIN_AGE <= request.age <= MAX_AGE:
            return ServiceResult.failure(ErrorCode.INVALID_PATIENT_DATA, "age out of range")
        sex = _parse_sex(request.sex)
        if sex is None:
            return ServiceResult.failure(ErrorCode.INVALID_PATIENT_DATA, "invalid sex")

        patient = Patient(
            name=request.name,
            mobile=request.mobile,
            opd_id=generate_opd_id(self.opd_id_prefix),
            age=request.age,
            sex=sex,
            address_locality=request.address.locality,
            address_city=request.address.city,
            address_state=request.address.state,
            address_pincode=request.address.pincode,
            visit_number=1,
        )
        return await self._insert(patient)

    async def _register_revisit(
        self, request: PatientRegisterSchema
    ) -> ServiceResult[PatientRegisterResponse]:
        previous = await self.patient_repo.get_latest_visit_by_opd_id(request.opd_id)
        if previous is None:
            return ServiceResult.failure(ErrorCode.PATIENT_NOT_FOUND)
        if previous.mobile != request.mobile:
            self.log_security_event(
                {"event_type": "opd_mobile_mismatch", "opd_id": request.opd_id}
            )
            return ServiceResult.failure(ErrorCode.OPD_MOBILE_MISMATCH)

        age = previous.age
        if request.age:
            if not MIN_AGE <= request.age <= MAX_AGE:
                return ServiceResult.failure(ErrorCode.INVALID_PATIENT_DATA, "age out of range")
            age = request.age

        sex = previous.sex
        if request.sex:
            sex = _parse_sex(request.sex)
            if sex is None:
                return ServiceResult.failure(ErrorCode.INVALID_PATIENT_DATA, "invalid sex")

        address = request.address
        patient = Patient(
            name=request.name or previous.name,
            mobile=previous.mobile,
            opd_id=previous.opd_id,
            age=age,
            sex=sex,
            address_locality=address.locality or previous.address_locality,
            address_city=address.city or previous.address_city,
            address_state=address.state or previous.address_state,
            address_pincode=address.pincode or previous.address_pincode,
            visit_number=previous.visit_number + 1,
        )
        return await self._insert(patient)

    async def _insert(self, patient: Patient) -> ServiceResult[PatientRegisterResponse]:
        try:
            created = await self.patient_repo.create_patient(patient)
        except DuplicateRecordError as e:
            return ServiceResult.failure(ErrorCode.PATIENT_ALREADY_REGISTERED, str(e))

        self.log_info(
            {
                "event_type": "patient_visit_registered",
                "patient_id": created.id,
                "opd_id": created.opd_id,
                "visit_number": created.visit_number,
            }
        )
        return ServiceResult.success(
            PatientRegisterResponse(
                id=created.id, opd_id=created.opd_id, visit_number=created.visit_number
            )
        )
