from typing import Any, Callable, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core import bootstrap
from app.core.container import Container
from app.core.errors import AppException, ErrorCode, raise_for_result
from app.models.user_model import User
from app.services.auth_service import AuthService


security = HTTPBearer(
    scheme_name="Bearer",
    description="Access token returned by login or verify-otp",
    auto_error=False,
)


def get_container(request: Request) -> Container:
    return request.app.state.container


def provide(key: str) -> Callable[..., Any]:
    """Route dependency resolving ``key`` from the application container."""

    def _resolve(container: Container = Depends(get_container)) -> Any:
        return container.resolve(key)

    _resolve.__name__ = f"provide_{key}"
    return _resolve


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(provide(bootstrap.AUTH_SERVICE)),
) -> User:
    """
    Authenticate the request from its bearer access token.

    Raises:
        AppException: 1001 without a token, otherwise the code reported by
            the auth service (expired token, wrong token type, blocked account)
    """
    if credentials is None or not credentials.credentials:
        raise AppException(ErrorCode.UNAUTHORIZED, "missing bearer token")

    result = await auth_service.get_user_from_access_token(credentials.credentials)
    return raise_for_result(result)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AppException(ErrorCode.FORBIDDEN, "admin privileges required")
    return current_user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(provide(bootstrap.AUTH_SERVICE)),
) -> Optional[User]:
    """The authenticated user, or None when no bearer token was sent."""
    if credentials is None or not credentials.credentials:
        return None
    result = await auth_service.get_user_from_access_token(credentials.credentials)
    return raise_for_result(result)
