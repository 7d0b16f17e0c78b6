"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _timestamps():
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(10), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "designation",
            sa.Enum("doctor", "nurse", "staff", name="designation", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(
                "active",
                "inactive",
                "temporarily_inactive",
                name="user_status",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column(
            "approved_by",
            BigIntId,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("last_login_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_mobile", "users", ["mobile"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "otp_codes",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
        sa.Column("mobile", sa.String(10), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("otp", sa.String(12), nullable=False),
        sa.Column("expiry", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "otp_type",
            sa.Enum(
                "registration",
                "login",
                "forgot_password",
                name="otp_type",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("is_validated", sa.Boolean(), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_otp_codes_email_type", "otp_codes", ["email", "otp_type"])
    op.create_index("ix_otp_codes_expiry", "otp_codes", ["expiry"])

    op.create_table(
        "patients",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(10), nullable=False),
        sa.Column("opd_id", sa.String(64), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column(
            "sex",
            sa.Enum("male", "female", "other", name="sex", native_enum=False),
            nullable=False,
        ),
        sa.Column("address_locality", sa.String(255), nullable=True),
        sa.Column("address_city", sa.String(100), nullable=True),
        sa.Column("address_state", sa.String(100), nullable=True),
        sa.Column("address_pincode", sa.String(10), nullable=True),
        sa.Column("visit_number", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("opd_id", "visit_number", name="uq_patients_opd_visit"),
    )
    op.create_index("ix_patients_name", "patients", ["name"])
    op.create_index("ix_patients_mobile", "patients", ["mobile"])
    op.create_index("ix_patients_opd_id", "patients", ["opd_id"])

    op.create_table(
        "opd_records",
        sa.Column("id", BigIntId, primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            BigIntId,
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("doctor_id", BigIntId, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("symptoms", sa.JSON(), nullable=False),
        sa.Column("prescription", sa.JSON(), nullable=False),
        sa.Column("medicines", sa.JSON(), nullable=False),
        sa.Column("future_suggestion", sa.JSON(), nullable=False),
        sa.Column("template_version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_opd_records_patient_id", "opd_records", ["patient_id"])
    op.create_index("ix_opd_records_doctor_id", "opd_records", ["doctor_id"])


def downgrade() -> None:
    op.drop_table("opd_records")
    op.drop_table("patients")
    op.drop_table("otp_codes")
    op.drop_table("users")
