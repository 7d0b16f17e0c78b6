from typing import Optional

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_user, get_optional_user, provide
from app.api.responses import respond
from app.core import bootstrap
from app.models.user_model import User
from app.schemas.common import ApiResponse, ok
from app.schemas.user_schemas import (
    IdentifierSchema,
    OTPLoginSchema,
    RefreshTokenSchema,
    ResendOTPSchema,
    ResetPasswordSchema,
    UserLoginSchema,
    UserRegisterSchema,
    UserSchema,
    VerifyOTPSchema,
)
from app.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["auth"])

auth_service_dep = provide(bootstrap.AUTH_SERVICE)


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register_staff(
    user_data: UserRegisterSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    """
    Register a staff account.

    The account must verify the emailed OTP and be approved by an admin
    before it can sign in.
    """
    return respond(await auth_service.register(user_data, is_admin=False))


@router.post(
    "/register-admin", response_model=ApiResponse, status_code=status.HTTP_201_CREATED
)
async def register_admin(
    user_data: UserRegisterSchema,
    current_user: Optional[User] = Depends(get_optional_user),
    auth_service: AuthService = Depends(auth_service_dep),
):
    """
    Register an administrator. Requires an admin token once the first
    administrator exists.
    """
    return respond(await auth_service.register_admin(user_data, requested_by=current_user))


@router.post("/verify-otp", response_model=ApiResponse)
async def verify_otp(
    data: VerifyOTPSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.verify_otp(data.email, data.otp, data.otp_type))


@router.post("/login", response_model=ApiResponse)
async def login(
    credentials: UserLoginSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    """Sign in with email or mobile and password."""
    return respond(
        await auth_service.login_with_password(credentials.identifier, credentials.password)
    )


@router.post("/login/otp/request", response_model=ApiResponse)
async def request_login_otp(
    data: IdentifierSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.request_login_otp(data.identifier))


@router.post("/login/otp", response_model=ApiResponse)
async def login_with_otp(
    data: OTPLoginSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.login_with_otp(data.email, data.otp))


@router.post("/resend-otp", response_model=ApiResponse)
async def resend_otp(
    data: ResendOTPSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.resend_otp(data.email, data.otp_type))


@router.post("/forgot-password", response_model=ApiResponse)
async def forgot_password(
    data: IdentifierSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.forgot_password(data.identifier))


@router.post("/reset-password", response_model=ApiResponse)
async def reset_password(
    data: ResetPasswordSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(
        await auth_service.reset_password(data.email, data.otp, data.new_password)
    )


@router.post("/refresh-token", response_model=ApiResponse)
async def refresh_token(
    data: RefreshTokenSchema,
    auth_service: AuthService = Depends(auth_service_dep),
):
    return respond(await auth_service.refresh_token(data.refresh_token))


@router.get("/me", response_model=ApiResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return ok(UserSchema.model_validate(current_user))
