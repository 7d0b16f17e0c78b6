from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MedicineSchema(BaseModel):
    name: str
    dose: str = ""
    morning: bool = False
    afternoon: bool = False
    night: bool = False


class OPDRecordCreateSchema(BaseModel):
    """Consultation notes for one patient visit."""

    patient_id: int
    symptoms: List[str] = Field(default_factory=list)
    prescription: List[str] = Field(default_factory=list)
    medicines: List[MedicineSchema] = Field(default_factory=list)
    future_suggestion: List[str] = Field(default_factory=list)
    template_version: int = 1


class OPDRecordSchema(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    symptoms: List[str]
    prescription: List[str]
    medicines: List[MedicineSchema]
    future_suggestion: List[str]
    template_version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DoctorOPDRecordSchema(OPDRecordSchema):
    """OPD record with the patient's name and mobile, for a doctor's list."""

    patient_name: Optional[str] = None
    patient_mobile: Optional[str] = None
    opd_id: Optional[str] = None

    @classmethod
    def from_record(cls, record) -> "DoctorOPDRecordSchema":
        data = OPDRecordSchema.model_validate(record).model_dump()
        patient = record.patient
        return cls(
            **data,
            patient_name=patient.name if patient else None,
            patient_mobile=patient.mobile if patient else None,
            opd_id=patient.opd_id if patient else None,
        )
