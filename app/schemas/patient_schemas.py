from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Sex(str, Enum):
    """Sex enumeration"""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class AddressSchema(BaseModel):
    """Patient address. Every part is optional."""

    locality: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    @field_validator("locality", "city", "state", "pincode")
    @classmethod
    def strip_value(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class PatientRegisterSchema(BaseModel):
    """
    New patient or revisit registration.

    Leave ``opd_id`` empty for a first visit. On a revisit any field left
    empty (or zero for age) keeps the value from the previous visit.
    """

    mobile: str = ""
    opd_id: Optional[str] = None
    name: str = ""
    age: int = 0
    sex: str = ""
    address: AddressSchema = Field(default_factory=AddressSchema)

    @field_validator("mobile", "name", "sex")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("opd_id")
    @classmethod
    def validate_opd_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class PatientVisitSchema(BaseModel):
    id: int
    name: str
    age: int
    sex: Sex
    address: AddressSchema
    visit_number: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_patient(cls, patient) -> "PatientVisitSchema":
        return cls(
            id=patient.id,
            name=patient.name,
            age=patient.age,
            sex=patient.sex,
            address=AddressSchema(
                locality=patient.address_locality,
                city=patient.address_city,
                state=patient.address_state,
                pincode=patient.address_pincode,
            ),
            visit_number=patient.visit_number,
            created_at=patient.created_at,
        )


class PatientLookupResponse(BaseModel):
    mobile: str
    opd_id: str
    visits: List[PatientVisitSchema]
    latest_visit: PatientVisitSchema


class PatientRegisterResponse(BaseModel):
    id: int
    opd_id: str
    visit_number: int
