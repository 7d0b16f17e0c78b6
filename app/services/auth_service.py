"""
Authentication workflows.

Registration, OTP verification, password and OTP login, password reset and
token refresh. Every operation returns a ``ServiceResult``; expected
failures are reported as error codes, never raised.
"""
from typing import Optional

from app.core.errors import (
    DuplicateRecordError,
    ErrorCode,
    PasswordHashingError,
    ServiceResult,
    gateway_guard,
)
from app.core.notifications import EmailService
from app.core.security import PasswordCheck, PasswordService
from app.core.tokens import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenService
from app.core.utils import LoggerMixin, is_valid_mobile, mask_email
from app.models.user_model import User
from app.repositories.user_repo import UserRepository
from app.schemas.user_schemas import (
    Designation,
    OTPType,
    TokenResponse,
    UserRegisterSchema,
    UserSchema,
    UserStatus,
)
from app.services.otp_service import (
    OTPSendStatus,
    OTPService,
    OTPVerificationStatus,
)


GENERIC_OTP_MESSAGE = "If the account exists, an OTP has been sent."

OTP_FAILURE_CODES = {
    OTPVerificationStatus.INVALID: ErrorCode.INVALID_OTP,
    OTPVerificationStatus.NOT_FOUND: ErrorCode.INVALID_OTP,
    OTPVerificationStatus.EXPIRED: ErrorCode.OTP_EXPIRED,
    OTPVerificationStatus.EXHAUSTED: ErrorCode.MAX_OTP_ATTEMPTS,
}


class AuthService(LoggerMixin):
    """Service layer for authentication business logic."""

    def __init__(
        self,
        user_repo: UserRepository,
        password_service: PasswordService,
        otp_service: OTPService,
        token_service: TokenService,
        email_service: EmailService,
        password_min_length: int = 8,
    ):
        super().__init__()
        self.user_repo = user_repo
        self.password_service = password_service
        self.otp_service = otp_service
        self.token_service = token_service
        self.email_service = email_service
        self.password_min_length = password_min_length

    def _password_ok(self, password: Optional[str]) -> bool:
        return bool(password) and len(password) >= self.password_min_length

    async def _find_by_identifier(self, identifier: str) -> Optional[User]:
        if "@" in identifier:
            return await self.user_repo.get_user_by_email(identifier)
        return await self.user_repo.get_user_by_mobile(identifier)

    def _gate(self, user: User) -> Optional[str]:
        """
        Account checks applied after the credential is proven.

        Order: approval (staff only), then status, then verification.
        """
        if not user.is_admin and not user.is_approved:
            return ErrorCode.STAFF_NOT_APPROVED
        if user.status != UserStatus.ACTIVE:
            return ErrorCode.ACCOUNT_INACTIVE
        if not user.is_verified:
            return ErrorCode.ACCOUNT_NOT_VERIFIED
        return None

    def _issue_tokens(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=self.token_service.issue_access(user.id, user.email, user.is_admin),
            refresh_token=self.token_service.issue_refresh(user.id),
            expires_in=self.token_service.access_expires_in,
            user=UserSchema.model_validate(user),
        )

    async def _complete_login(self, user: User, method: str) -> ServiceResult[TokenResponse]:
        error_code = self._gate(user)
        if error_code:
            self.log_security_event(
                {
                    "event_type": "login_blocked",
                    "user_id": user.id,
                    "method": method,
                    "error_code": error_code,
                }
            )
            return ServiceResult.failure(error_code)

        await self.user_repo.update_last_login(user.id)
        refreshed = await self.user_repo.get_user_by_id(user.id) or user
        self.log_info({"event_type": "login_success", "user_id": user.id, "method": method})
        return ServiceResult.success(self._issue_tokens(refreshed))

    @gateway_guard
    async def register(
        self, request: UserRegisterSchema, is_admin: bool = False
    ) -> ServiceResult[UserSchema]:
        """
        Create a staff or admin account and send a registration OTP.

        The user row is kept even when the OTP email fails; the caller can
        ask for a resend.
        """
        if not is_valid_mobile(request.mobile):
            return ServiceResult.failure(ErrorCode.INVALID_MOBILE)
        if not self._password_ok(request.password):
            return ServiceResult.failure(ErrorCode.INVALID_PASSWORD)
        try:
            designation = Designation(request.designation.lower())
        except ValueError:
            return ServiceResult.failure(ErrorCode.INVALID_DESIGNATION)

        if await self.user_repo.get_user_by_mobile(request.mobile):
            return ServiceResult.failure(ErrorCode.USER_ALREADY_EXISTS, "mobile taken")
        if await self.user_repo.get_user_by_email(request.email):
            return ServiceResult.failure(ErrorCode.USER_ALREADY_EXISTS, "email taken")

        try:
            password_hash = self.password_service.hash(request.password)
        except PasswordHashingError as e:
            return ServiceResult.failure(ErrorCode.INTERNAL, str(e))

        try:
            user = await self.user_repo.create_user(
                User(
                    name=request.name,
                    mobile=request.mobile,
                    email=request.email.lower(),
                    designation=designation,
                    status=UserStatus.ACTIVE,
                    is_admin=is_admin,
                    is_approved=is_admin,
                    is_verified=False,
                    password_hash=password_hash,
                )
            )
        except DuplicateRecordError as e:
            return ServiceResult.failure(ErrorCode.USER_ALREADY_EXISTS, str(e))

        self.log_info(
            {
                "event_type": "user_registered",
                "user_id": user.id,
                "email": mask_email(user.email),
                "is_admin": is_admin,
            }
        )

        status = await self.otp_service.generate_and_send(
            user.email, user.name, OTPType.REGISTRATION, mobile=user.mobile
        )
        if status is OTPSendStatus.SEND_FAILED:
            return ServiceResult.failure(
                ErrorCode.INTERNAL, f"registration OTP not delivered to user {user.id}"
            )

        return ServiceResult.success(
            UserSchema.model_validate(user),
            message="Registration successful. Please verify the OTP sent to your email.",
        )

    @gateway_guard
    async def register_admin(
        self, request: UserRegisterSchema, requested_by: Optional[User] = None
    ) -> ServiceResult[UserSchema]:
        """
        Create an administrator account.

        Only an existing administrator may do this, except while the system
        has no administrator at all, when an anonymous caller may create the
        first one.

        Returns:
            ServiceResult as for ``register``; 1001 for an anonymous caller
            once an administrator exists, 1002 for a non-admin caller
        """
        if requested_by is None:
            if await self.user_repo.has_admin():
                self.log_security_event(
                    {"event_type": "admin_registration_denied", "reason": "anonymous"}
                )
                return ServiceResult.failure(ErrorCode.UNAUTHORIZED)
        elif not requested_by.is_admin:
            self.log_security_event(
                {
                    "event_type": "admin_registration_denied",
                    "reason": "not_admin",
                    "user_id": requested_by.id,
                }
            )
            return ServiceResult.failure(ErrorCode.FORBIDDEN)

        return await self.register(request, is_admin=True)

    @gateway_guard
    async def verify_otp(
        self, email: str, code: str, otp_type: OTPType = OTPType.REGISTRATION
    ) -> ServiceResult[TokenResponse]:
        """Check a registration OTP and issue tokens for the verified account."""
        if otp_type is OTPType.LOGIN:
            return await self.login_with_otp(email, code)
        if otp_type is not OTPType.REGISTRATION:
            return ServiceResult.failure(
                ErrorCode.BAD_REQUEST, "use reset-password for this OTP type"
            )

        status = await self.otp_service.verify(email, code, OTPType.REGISTRATION)
        if status is not OTPVerificationStatus.VALID:
            return ServiceResult.failure(OTP_FAILURE_CODES[status])

        user = await self.user_repo.get_user_by_email(email)
        if user is None:
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)

        if not user.is_verified:
            await self.user_repo.mark_verified(user.id)
            user = await self.user_repo.get_user_by_id(user.id) or user
            if not await self.email_service.send_welcome(user.email, user.name):
                self.log_warning(
                    {"event_type": "welcome_email_failed", "user_id": user.id}
                )

        self.log_info({"event_type": "registration_verified", "user_id": user.id})
        return ServiceResult.success(self._issue_tokens(user))

    @gateway_guard
    async def login_with_password(
        self, identifier: str, password: str
    ) -> ServiceResult[TokenResponse]:
        user = await self._find_by_identifier(identifier)

        # Unknown account, unset hash and wrong password look the same.
        if user is None or not user.password_hash:
            self.password_service.verify_dummy(password)
            self.log_security_event({"event_type": "login_failed", "reason": "credentials"})
            return ServiceResult.failure(ErrorCode.INVALID_CREDENTIALS)

        check = self.password_service.verify(user.password_hash, password)
        if check is not PasswordCheck.SUCCESS:
            self.log_security_event(
                {"event_type": "login_failed", "reason": "credentials", "user_id": user.id}
            )
            return ServiceResult.failure(ErrorCode.INVALID_CREDENTIALS)

        if self.password_service.needs_rehash(user.password_hash):
            try:
                await self.user_repo.update_password(
                    user.id, self.password_service.hash(password)
                )
            except PasswordHashingError:
                self.log_warning({"event_type": "password_rehash_failed", "user_id": user.id})

        return await self._complete_login(user, "password")

    @gateway_guard
    async def request_login_otp(self, identifier: str) -> ServiceResult[None]:
        """Send a login OTP. Unknown or blocked accounts get the same answer."""
        user = await self._find_by_identifier(identifier)
        if user is None or self._gate(user):
            return ServiceResult.success(message=GENERIC_OTP_MESSAGE)

        status = await self.otp_service.generate_and_send(
            user.email, user.name, OTPType.LOGIN, mobile=user.mobile
        )
        if status is OTPSendStatus.SEND_FAILED:
            return ServiceResult.failure(ErrorCode.INTERNAL, "login OTP not delivered")
        return ServiceResult.success(message=GENERIC_OTP_MESSAGE)

    @gateway_guard
    async def login_with_otp(self, email: str, code: str) -> ServiceResult[TokenResponse]:
        status = await self.otp_service.verify(email, code, OTPType.LOGIN)
        if status is not OTPVerificationStatus.VALID:
            return ServiceResult.failure(OTP_FAILURE_CODES[status])

        user = await self.user_repo.get_user_by_email(email)
        if user is None:
            return ServiceResult.failure(ErrorCode.INVALID_CREDENTIALS)
        return await self._complete_login(user, "otp")

    @gateway_guard
    async def resend_otp(self, email: str, otp_type: OTPType) -> ServiceResult[None]:
        user = await self.user_repo.get_user_by_email(email)
        if user is None:
            return ServiceResult.success(message=GENERIC_OTP_MESSAGE)
        if otp_type is OTPType.REGISTRATION and user.is_verified:
            return ServiceResult.success(message="Account already verified.")

        status = await self.otp_service.generate_and_send(
            user.email, user.name, otp_type, mobile=user.mobile
        )
        if status is OTPSendStatus.SEND_FAILED:
            return ServiceResult.failure(ErrorCode.INTERNAL, "OTP resend not delivered")
        return ServiceResult.success(message=GENERIC_OTP_MESSAGE)

    @gateway_guard
    async def forgot_password(self, identifier: str) -> ServiceResult[None]:
        user = await self._find_by_identifier(identifier)
        if user is None:
            self.log_info({"event_type": "forgot_password_unknown_account"})
            return ServiceResult.success(message=GENERIC_OTP_MESSAGE)

        status = await self.otp_service.generate_and_send(
            user.email, user.name, OTPType.FORGOT_PASSWORD, mobile=user.mobile
        )
        if status is OTPSendStatus.SEND_FAILED:
            return ServiceResult.failure(ErrorCode.INTERNAL, "reset OTP not delivered")
        return ServiceResult.success(message=GENERIC_OTP_MESSAGE)

    @gateway_guard
    async def reset_password(
        self, email: str, code: str, new_password: str
    ) -> ServiceResult[None]:
        if not self._password_ok(new_password):
            return ServiceResult.failure(ErrorCode.INVALID_PASSWORD)

        status = await self.otp_service.verify(email, code, OTPType.FORGOT_PASSWORD)
        if status is not OTPVerificationStatus.VALID:
            return ServiceResult.failure(OTP_FAILURE_CODES[status])

        user = await self.user_repo.get_user_by_email(email)
        if user is None:
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)

        try:
            password_hash = self.password_service.hash(new_password)
        except PasswordHashingError as e:
            return ServiceResult.failure(ErrorCode.INTERNAL, str(e))

        await self.user_repo.update_password(user.id, password_hash)
        self.log_security_event({"event_type": "password_reset", "user_id": user.id})

        if not await self.email_service.send_password_reset_confirmation(user.email, user.name):
            self.log_warning({"event_type": "reset_confirmation_failed", "user_id": user.id})

        return ServiceResult.success(message="Password reset successful.")

    @gateway_guard
    async def refresh_token(self, refresh_token: str) -> ServiceResult[TokenResponse]:
        """
        Exchange a refresh token for a new token pair.

        The user is re-read so approval or status changes made since the
        refresh token was issued take effect. Old refresh tokens are not
        revoked.
        """
        validation = self.token_service.validate(refresh_token)
        if not validation.is_valid:
            return ServiceResult.failure(ErrorCode.SESSION_EXPIRED, validation.failure.value)
        if validation.claims.token_type != REFRESH_TOKEN_TYPE:
            return ServiceResult.failure(ErrorCode.WRONG_TOKEN_TYPE)

        user = await self.user_repo.get_user_by_id(validation.claims.user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)

        error_code = self._gate(user)
        if error_code:
            return ServiceResult.failure(error_code)

        return ServiceResult.success(self._issue_tokens(user))

    @gateway_guard
    async def get_user_from_access_token(self, token: str) -> ServiceResult[User]:
        """Resolve the account behind a bearer token for request authentication."""
        validation = self.token_service.validate(token)
        if not validation.is_valid:
            return ServiceResult.failure(ErrorCode.SESSION_EXPIRED, validation.failure.value)
        if validation.claims.token_type != ACCESS_TOKEN_TYPE:
            return ServiceResult.failure(ErrorCode.WRONG_TOKEN_TYPE)

        user = await self.user_repo.get_user_by_id(validation.claims.user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.UNAUTHORIZED, "user no longer exists")

        error_code = self._gate(user)
        if error_code:
            return ServiceResult.failure(error_code)
        return ServiceResult.success(user)
