"""
Patient Service Tests

Lookup by mobile, new patient registration and revisits with field merge.
"""

import re

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import ErrorCode
from app.schemas.patient_schemas import AddressSchema, PatientRegisterSchema, Sex
from app.services.patient_service import generate_opd_id, to_base36


def new_patient(**overrides) -> PatientRegisterSchema:
    data = {
        "mobile": "9999999999",
        "name": "Ravi Kumar",
        "age": 30,
        "sex": "male",
        "address": AddressSchema(
            locality="MG Road", city="Pune", state="Maharashtra", pincode="411001"
        ),
    }
    data.update(overrides)
    return PatientRegisterSchema(**data)


@pytest.mark.unit
@pytest.mark.patient
class TestOPDIdGeneration:
    def test_format(self):
        opd_id = generate_opd_id("LAEL")

        assert re.fullmatch(r"LAEL-[0-9A-Z]{17}", opd_id)

    def test_unique(self):
        ids = {generate_opd_id() for _ in range(2000)}

        assert len(ids) == 2000

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "Z"
        assert to_base36(36) == "10"


@pytest.mark.patient
class TestNewPatient:
    async def test_register_then_lookup(self, patient_service):
        registered = await patient_service.register(new_patient())

        assert registered.is_success
        assert registered.value.visit_number == 1

        lookup = await patient_service.lookup("9999999999")

        assert lookup.is_success
        assert len(lookup.value.visits) == 1
        assert lookup.value.visits[0].visit_number == 1
        assert lookup.value.opd_id == registered.value.opd_id
        assert lookup.value.latest_visit.id == registered.value.id
        assert lookup.value.latest_visit.address.city == "Pune"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": ""},
            {"age": 0},
            {"sex": ""},
            {"age": 151},
            {"age": -3},
            {"sex": "unknown"},
        ],
    )
    async def test_invalid_new_patient_data(self, patient_service, overrides):
        result = await patient_service.register(new_patient(**overrides))

        assert result.error_code == ErrorCode.INVALID_PATIENT_DATA

    async def test_age_bounds_inclusive(self, patient_service):
        young = await patient_service.register(new_patient(age=1))
        old = await patient_service.register(new_patient(age=150, mobile="9999999998"))

        assert young.is_success and old.is_success

    async def test_missing_mobile(self, patient_service):
        result = await patient_service.register(new_patient(mobile=""))

        assert result.error_code == ErrorCode.INVALID_PATIENT_DATA

    async def test_malformed_mobile(self, patient_service):
        result = await patient_service.register(new_patient(mobile="99999"))

        assert result.error_code == ErrorCode.INVALID_MOBILE

    async def test_address_is_optional(self, patient_service):
        result = await patient_service.register(new_patient(address=AddressSchema()))

        assert result.is_success


@pytest.mark.patient
class TestLookup:
    @pytest.mark.parametrize("mobile", ["12345", "abcdefghij", "99999999999", ""])
    async def test_invalid_mobile_is_validation_error(self, patient_service, mobile):
        result = await patient_service.lookup(mobile)

        assert result.error_code == ErrorCode.INVALID_MOBILE

    async def test_unknown_mobile_is_not_found(self, patient_service):
        result = await patient_service.lookup("9123456780")

        assert result.error_code == ErrorCode.PATIENT_NOT_FOUND


@pytest.mark.patient
class TestRevisit:
    async def test_revisit_with_only_age_keeps_other_fields(self, patient_service):
        first = await patient_service.register(new_patient())

        revisit = await patient_service.register(
            PatientRegisterSchema(mobile="9999999999", opd_id=first.value.opd_id, age=31)
        )

        assert revisit.is_success
        assert revisit.value.visit_number == 2
        assert revisit.value.opd_id == first.value.opd_id

        lookup = await patient_service.lookup("9999999999")
        before, after = lookup.value.visits
        assert after.age == 31
        assert after.name == before.name
        assert after.sex == before.sex == Sex.MALE
        assert after.address == before.address
        assert lookup.value.latest_visit.visit_number == 2

    async def test_revisit_merges_partial_address(self, patient_service):
        first = await patient_service.register(new_patient())

        await patient_service.register(
            PatientRegisterSchema(
                mobile="9999999999",
                opd_id=first.value.opd_id,
                name="Ravi K.",
                address=AddressSchema(city="Mumbai"),
            )
        )

        latest = (await patient_service.lookup("9999999999")).value.latest_visit
        assert latest.name == "Ravi K."
        assert latest.age == 30
        assert latest.address.city == "Mumbai"
        assert latest.address.locality == "MG Road"
        assert latest.address.pincode == "411001"

    async def test_visit_numbers_increase(self, patient_service):
        first = await patient_service.register(new_patient())
        opd_id = first.value.opd_id

        numbers = []
        for _ in range(3):
            result = await patient_service.register(
                PatientRegisterSchema(mobile="9999999999", opd_id=opd_id)
            )
            numbers.append(result.value.visit_number)

        assert numbers == [2, 3, 4]
        visits = (await patient_service.lookup("9999999999")).value.visits
        assert [v.visit_number for v in visits] == [1, 2, 3, 4]

    async def test_mobile_mismatch(self, patient_service):
        other = await patient_service.register(new_patient(mobile="7777777777"))

        result = await patient_service.register(
            PatientRegisterSchema(mobile="9999999999", opd_id=other.value.opd_id)
        )

        assert result.error_code == ErrorCode.OPD_MOBILE_MISMATCH

    async def test_unknown_opd_id(self, patient_service):
        result = await patient_service.register(
            PatientRegisterSchema(mobile="9999999999", opd_id="LAEL-DOESNOTEXIST")
        )

        assert result.error_code == ErrorCode.PATIENT_NOT_FOUND

    async def test_revisit_rejects_invalid_override(self, patient_service):
        first = await patient_service.register(new_patient())

        result = await patient_service.register(
            PatientRegisterSchema(mobile="9999999999", opd_id=first.value.opd_id, sex="x")
        )

        assert result.error_code == ErrorCode.INVALID_PATIENT_DATA

    async def test_concurrent_revisit_conflict_is_already_registered(
        self, patient_service, patient_repo, monkeypatch
    ):
        first = await patient_service.register(new_patient())
        opd_id = first.value.opd_id
        await patient_service.register(PatientRegisterSchema(mobile="9999999999", opd_id=opd_id))
        stale = (await patient_repo.get_visits_by_opd_id(opd_id))[0]

        async def latest_visit(_opd_id):
            return stale

        # another request already took visit 2
        monkeypatch.setattr(patient_repo, "get_latest_visit_by_opd_id", latest_visit)

        result = await patient_service.register(
            PatientRegisterSchema(mobile="9999999999", opd_id=opd_id)
        )

        assert result.error_code == ErrorCode.PATIENT_ALREADY_REGISTERED
        assert result.error_code == "4002"
        assert len(await patient_repo.get_visits_by_opd_id(opd_id)) == 2


@pytest.mark.patient
class TestPatientModel:
    async def test_opd_records_are_never_loaded_implicitly(self, patient_service, patient_repo):
        registered = await patient_service.register(new_patient())
        patient = await patient_repo.get_patient_by_id(registered.value.id)

        assert patient.name == "Ravi Kumar"
        with pytest.raises(SQLAlchemyError):
            patient.opd_records
