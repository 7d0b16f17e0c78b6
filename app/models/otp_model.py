from datetime import datetime

from sqlalchemy import TIMESTAMP, Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin
from app.models.user_model import BigIntId, enum_column
from app.schemas.user_schemas import OTPType


class OTPCode(Base, TimestampMixin):
    """One-time verification code sent by email."""

    __tablename__ = "otp_codes"
    __table_args__ = (Index("ix_otp_codes_email_type", "email", "otp_type"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    mobile: Mapped[str] = mapped_column(String(10), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    otp: Mapped[str] = mapped_column(String(12), nullable=False)
    expiry: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), index=True, nullable=False)
    otp_type: Mapped[OTPType] = mapped_column(enum_column(OTPType, "otp_type"), nullable=False)
    is_validated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<OTPCode(id={self.id}, email={self.email}, type={self.otp_type})>"
