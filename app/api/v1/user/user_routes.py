from fastapi import APIRouter, Depends

from app.api.dependencies import provide, require_admin
from app.api.responses import respond
from app.core import bootstrap
from app.core.errors import ServiceResult
from app.models.user_model import User
from app.schemas.common import ApiResponse
from app.schemas.user_schemas import PendingApprovalsResponse, UserStatusUpdateSchema
from app.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["users"])

user_service_dep = provide(bootstrap.USER_SERVICE)


@router.get("/pending", response_model=ApiResponse)
async def list_pending_approvals(
    current_user: User = Depends(require_admin),
    user_service: UserService = Depends(user_service_dep),
):
    """Staff accounts waiting for admin approval, newest first."""
    result = await user_service.list_pending_approvals()
    if result.is_success:
        result = ServiceResult.success(
            PendingApprovalsResponse(users=result.value, total=len(result.value))
        )
    return respond(result)


@router.post("/{user_id}/approve", response_model=ApiResponse)
async def approve_staff(
    user_id: int,
    current_user: User = Depends(require_admin),
    user_service: UserService = Depends(user_service_dep),
):
    return respond(await user_service.approve_staff(current_user, user_id))


@router.patch("/{user_id}/status", response_model=ApiResponse)
async def update_user_status(
    user_id: int,
    data: UserStatusUpdateSchema,
    current_user: User = Depends(require_admin),
    user_service: UserService = Depends(user_service_dep),
):
    return respond(await user_service.update_status(current_user, user_id, data.status))
