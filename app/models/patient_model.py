from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin
from app.models.user_model import BigIntId, enum_column
from app.schemas.patient_schemas import Sex


class Patient(Base, TimestampMixin):
    """One visit of a patient. Visits sharing an opd_id form the patient's history."""

    __tablename__ = "patients"
    __table_args__ = (
        UniqueConstraint("opd_id", "visit_number", name="uq_patients_opd_visit"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    mobile: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    opd_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    sex: Mapped[Sex] = mapped_column(enum_column(Sex, "sex"), nullable=False)
    address_locality: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address_state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    address_pincode: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    visit_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    opd_records: Mapped[List["OPDRecord"]] = relationship(
        "OPDRecord", back_populates="patient", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, opd_id={self.opd_id}, visit={self.visit_number})>"


class OPDRecord(Base, TimestampMixin):
    """Clinical content of a single consultation. Append-only."""

    __tablename__ = "opd_records"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    doctor_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("users.id"), nullable=False, index=True
    )
    symptoms: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    prescription: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    medicines: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    future_suggestion: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    template_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    patient: Mapped["Patient"] = relationship(
        "Patient", back_populates="opd_records", lazy="joined"
    )
