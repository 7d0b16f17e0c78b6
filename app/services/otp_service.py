import secrets
from datetime import timedelta
from enum import Enum

from app.core.notifications import EmailService
from app.core.utils import LoggerMixin, as_utc, mask_email, utc_now
from app.repositories.otp_repo import OTPRepository
from app.schemas.user_schemas import OTPType


class OTPSendStatus(str, Enum):
    SENT = "sent"
    SEND_FAILED = "send_failed"


class OTPVerificationStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"


OTP_PURPOSES = {
    OTPType.REGISTRATION: "account verification",
    OTPType.LOGIN: "sign in",
    OTPType.FORGOT_PASSWORD: "password reset",
}


class OTPService(LoggerMixin):
    """
    Issues and checks one-time codes.

    Lifecycle per (email, otp_type): a freshly generated code is active until
    it is validated once, expires, or (when ``max_retries`` is set) runs out
    of attempts. Only the most recently created unvalidated code is checked.
    """

    def __init__(
        self,
        otp_repo: OTPRepository,
        email_service: EmailService,
        length: int = 6,
        expire_minutes: int = 5,
        max_retries: int = 0,
    ):
        super().__init__()
        self.otp_repo = otp_repo
        self.email_service = email_service
        self.length = length
        self.ttl = timedelta(minutes=expire_minutes)
        self.max_retries = max_retries

    def generate_code(self) -> str:
        """Uniformly random numeric code, zero padded to ``length`` digits."""
        return f"{secrets.randbelow(10 ** self.length):0{self.length}d}"

    async def generate_and_send(
        self,
        email: str,
        display_name: str,
        otp_type: OTPType,
        mobile: str = "",
    ) -> OTPSendStatus:
        """
        Persist a new code and email it.

        The stored code is kept even if delivery fails, so a later resend
        can supersede it.
        """
        code = self.generate_code()
        expiry = utc_now() + self.ttl
        await self.otp_repo.create_otp(
            email=email, code=code, otp_type=otp_type, expiry=expiry, mobile=mobile
        )

        sent = await self.email_service.send_otp(
            to=email,
            name=display_name,
            otp_code=code,
            purpose=OTP_PURPOSES[otp_type],
            expires_in_minutes=int(self.ttl.total_seconds() // 60),
        )
        if not sent:
            self.log_error(
                {
                    "event_type": "otp_send_failed",
                    "email": mask_email(email),
                    "otp_type": otp_type.value,
                }
            )
            return OTPSendStatus.SEND_FAILED

        self.log_info(
            {"event_type": "otp_sent", "email": mask_email(email), "otp_type": otp_type.value}
        )
        return OTPSendStatus.SENT

    async def verify(
        self, email: str, submitted_code: str, otp_type: OTPType
    ) -> OTPVerificationStatus:
        record = await self.otp_repo.get_latest_unvalidated(email, otp_type)
        if record is None:
            return OTPVerificationStatus.NOT_FOUND

        if utc_now() > as_utc(record.expiry):
            return OTPVerificationStatus.EXPIRED

        if self.max_retries > 0 and record.retry_count >= self.max_retries:
            self.log_security_event(
                {
                    "event_type": "otp_attempts_exhausted",
                    "email": mask_email(email),
                    "otp_type": otp_type.value,
                }
            )
            return OTPVerificationStatus.EXHAUSTED

        submitted = (submitted_code or "").strip().encode("utf-8")
        if not secrets.compare_digest(record.otp.encode("utf-8"), submitted):
            await self.otp_repo.increment_retry(record.id)
            self.log_info(
                {
                    "event_type": "otp_mismatch",
                    "email": mask_email(email),
                    "otp_type": otp_type.value,
                    "retry_count": record.retry_count + 1,
                }
            )
            return OTPVerificationStatus.INVALID

        # Conditional update; a concurrent verify that got here first wins.
        if not await self.otp_repo.mark_validated(record.id):
            return OTPVerificationStatus.NOT_FOUND

        return OTPVerificationStatus.VALID

    async def cleanup_expired(self) -> int:
        deleted = await self.otp_repo.delete_expired(utc_now())
        if deleted:
            self.log_info({"event_type": "otp_cleanup", "deleted": deleted})
        return deleted
