from typing import List

from app.core.errors import ErrorCode, ServiceResult, gateway_guard
from app.core.utils import LoggerMixin
from app.models.user_model import User
from app.repositories.user_repo import UserRepository
from app.schemas.user_schemas import UserSchema, UserStatus


class UserService(LoggerMixin):
    """Admin-facing account management."""

    def __init__(self, user_repo: UserRepository):
        super().__init__()
        self.user_repo = user_repo

    @gateway_guard
    async def list_pending_approvals(self) -> ServiceResult[List[UserSchema]]:
        users = await self.user_repo.list_pending_approvals()
        return ServiceResult.success([UserSchema.model_validate(u) for u in users])

    @gateway_guard
    async def approve_staff(self, admin: User, user_id: int) -> ServiceResult[UserSchema]:
        """
        Approve a staff account.

        Args:
            admin: The approving administrator
            user_id: Account to approve

        Returns:
            ServiceResult with the updated user, 1002 if ``admin`` is not an
            administrator or 3000 if the account does not exist
        """
        if not admin.is_admin:
            return ServiceResult.failure(ErrorCode.FORBIDDEN)

        user = await self.user_repo.get_user_by_id(user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)
        if user.is_admin or user.is_approved:
            return ServiceResult.success(UserSchema.model_validate(user), "Already approved.")

        await self.user_repo.approve_user(user_id, admin.id)
        self.log_info(
            {"event_type": "staff_approved", "user_id": user_id, "approved_by": admin.id}
        )
        user = await self.user_repo.get_user_by_id(user_id)
        return ServiceResult.success(UserSchema.model_validate(user), "Staff approved.")

    @gateway_guard
    async def update_status(
        self, admin: User, user_id: int, status: UserStatus
    ) -> ServiceResult[UserSchema]:
        if not admin.is_admin:
            return ServiceResult.failure(ErrorCode.FORBIDDEN)
        if admin.id == user_id and status != UserStatus.ACTIVE:
            return ServiceResult.failure(ErrorCode.FORBIDDEN, "admins cannot deactivate themselves")

        if not await self.user_repo.update_status(user_id, status):
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)

        self.log_info(
            {
                "event_type": "user_status_updated",
                "user_id": user_id,
                "status": status.value,
                "updated_by": admin.id,
            }
        )
        user = await self.user_repo.get_user_by_id(user_id)
        return ServiceResult.success(UserSchema.model_validate(user))

    @gateway_guard
    async def get_profile(self, user_id: int) -> ServiceResult[UserSchema]:
        user = await self.user_repo.get_user_by_id(user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.USER_NOT_FOUND)
        return ServiceResult.success(UserSchema.model_validate(user))
