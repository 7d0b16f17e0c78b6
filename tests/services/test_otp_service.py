"""
OTP Service Tests

Code format, persistence, single use, expiry and retry counting.
"""

from datetime import timedelta

import pytest

from app.core.utils import utc_now
from app.schemas.user_schemas import OTPType
from app.services.otp_service import (
    OTPSendStatus,
    OTPService,
    OTPVerificationStatus,
)


EMAIL = "a@x.com"


@pytest.mark.unit
@pytest.mark.auth
class TestOTPGeneration:
    def test_codes_are_six_digits(self, otp_service):
        for _ in range(500):
            code = otp_service.generate_code()
            assert len(code) == 6
            assert code.isdigit()

    def test_leading_zeros_preserved(self, otp_service, monkeypatch):
        monkeypatch.setattr("app.services.otp_service.secrets.randbelow", lambda n: 42)

        assert otp_service.generate_code() == "000042"

    async def test_generate_and_send_persists_and_emails(self, otp_service, otp_repo, fake_email):
        status = await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)

        assert status is OTPSendStatus.SENT
        record = await otp_repo.get_latest_unvalidated(EMAIL, OTPType.LOGIN)
        assert record.otp == fake_email.last_otp(EMAIL)
        assert record.retry_count == 0
        assert record.is_validated is False
        assert fake_email.sent[-1]["to"] == EMAIL
        assert record.otp in fake_email.sent[-1]["html"]
        assert "sign in" in fake_email.sent[-1]["text"]

    async def test_send_failure_keeps_record(self, otp_service, otp_repo, fake_email):
        fake_email.fail = True

        status = await otp_service.generate_and_send(EMAIL, "Asha", OTPType.REGISTRATION)

        assert status is OTPSendStatus.SEND_FAILED
        assert await otp_repo.get_latest_unvalidated(EMAIL, OTPType.REGISTRATION) is not None


@pytest.mark.auth
class TestOTPVerification:
    async def test_valid_code_is_single_use(self, otp_service, fake_email):
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        code = fake_email.last_otp(EMAIL)

        assert await otp_service.verify(EMAIL, code, OTPType.LOGIN) is OTPVerificationStatus.VALID
        assert await otp_service.verify(EMAIL, code, OTPType.LOGIN) is not OTPVerificationStatus.VALID

    async def test_no_code_is_not_found(self, otp_service):
        status = await otp_service.verify(EMAIL, "123456", OTPType.LOGIN)

        assert status is OTPVerificationStatus.NOT_FOUND

    async def test_code_is_scoped_to_type(self, otp_service, fake_email):
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        code = fake_email.last_otp(EMAIL)

        status = await otp_service.verify(EMAIL, code, OTPType.FORGOT_PASSWORD)

        assert status is OTPVerificationStatus.NOT_FOUND

    async def test_expired_code_is_expired_without_retry(self, otp_service, otp_repo):
        await otp_repo.create_otp(
            email=EMAIL,
            code="123456",
            otp_type=OTPType.LOGIN,
            expiry=utc_now() - timedelta(minutes=1),
        )

        for submitted in ("123456", "000000"):
            status = await otp_service.verify(EMAIL, submitted, OTPType.LOGIN)
            assert status is OTPVerificationStatus.EXPIRED

        record = await otp_repo.get_latest_unvalidated(EMAIL, OTPType.LOGIN)
        assert record.retry_count == 0

    async def test_wrong_codes_count_retries_without_blocking(self, otp_service, otp_repo, fake_email):
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        code = fake_email.last_otp(EMAIL)
        wrong = "111111" if code != "111111" else "222222"

        for _ in range(3):
            status = await otp_service.verify(EMAIL, wrong, OTPType.LOGIN)
            assert status is OTPVerificationStatus.INVALID

        record = await otp_repo.get_latest_unvalidated(EMAIL, OTPType.LOGIN)
        assert record.retry_count == 3
        assert await otp_service.verify(EMAIL, code, OTPType.LOGIN) is OTPVerificationStatus.VALID

    async def test_latest_code_wins(self, otp_service, fake_email):
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        first = fake_email.last_otp(EMAIL)
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        second = fake_email.last_otp(EMAIL)

        if first != second:
            assert await otp_service.verify(EMAIL, first, OTPType.LOGIN) is OTPVerificationStatus.INVALID
        assert await otp_service.verify(EMAIL, second, OTPType.LOGIN) is OTPVerificationStatus.VALID

    async def test_retry_cap_exhausts_code(self, otp_repo, fake_email):
        service = OTPService(otp_repo, fake_email, max_retries=2)
        await service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)
        code = fake_email.last_otp(EMAIL)
        wrong = "111111" if code != "111111" else "222222"

        assert await service.verify(EMAIL, wrong, OTPType.LOGIN) is OTPVerificationStatus.INVALID
        assert await service.verify(EMAIL, wrong, OTPType.LOGIN) is OTPVerificationStatus.INVALID
        assert await service.verify(EMAIL, code, OTPType.LOGIN) is OTPVerificationStatus.EXHAUSTED


@pytest.mark.auth
class TestOTPCleanup:
    async def test_cleanup_removes_only_expired(self, otp_service, otp_repo, fake_email):
        await otp_repo.create_otp(
            email="old@x.com",
            code="123456",
            otp_type=OTPType.LOGIN,
            expiry=utc_now() - timedelta(minutes=10),
        )
        await otp_service.generate_and_send(EMAIL, "Asha", OTPType.LOGIN)

        assert await otp_service.cleanup_expired() == 1
        assert await otp_service.cleanup_expired() == 0
        assert await otp_repo.get_latest_unvalidated("old@x.com", OTPType.LOGIN) is None
        assert await otp_repo.get_latest_unvalidated(EMAIL, OTPType.LOGIN) is not None
