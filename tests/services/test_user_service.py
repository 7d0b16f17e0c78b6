"""
Admin User Management Tests
"""

import pytest

from app.core.errors import ErrorCode
from app.schemas.user_schemas import UserStatus


@pytest.fixture
async def pending_nurse(register_user):
    return await register_user(
        name="Nurse Priya",
        mobile="9876543211",
        email="priya@laelhospital.in",
        designation="nurse",
    )


@pytest.fixture
async def admin_model(user_repo, admin_user):
    return await user_repo.get_user_by_id(admin_user.id)


@pytest.mark.auth
class TestApprovals:
    async def test_pending_list_excludes_admins(self, user_service, admin_user, pending_nurse):
        result = await user_service.list_pending_approvals()

        assert [u.id for u in result.value] == [pending_nurse.id]

    async def test_approval_unlocks_login(
        self, user_service, auth_service, admin_model, pending_nurse, password
    ):
        result = await user_service.approve_staff(admin_model, pending_nurse.id)

        assert result.is_success
        assert result.value.is_approved
        assert result.value.approved_by == admin_model.id
        assert (await user_service.list_pending_approvals()).value == []
        login = await auth_service.login_with_password("9876543211", password)
        assert login.is_success

    async def test_non_admin_cannot_approve(self, user_service, user_repo, pending_nurse):
        nurse = await user_repo.get_user_by_id(pending_nurse.id)

        result = await user_service.approve_staff(nurse, pending_nurse.id)

        assert result.error_code == ErrorCode.FORBIDDEN

    async def test_approve_unknown_user(self, user_service, admin_model):
        result = await user_service.approve_staff(admin_model, 9999)

        assert result.error_code == ErrorCode.USER_NOT_FOUND


@pytest.mark.auth
class TestStatusUpdates:
    async def test_deactivate_staff(self, user_service, admin_model, doctor_user):
        result = await user_service.update_status(
            admin_model, doctor_user.id, UserStatus.INACTIVE
        )

        assert result.value.status == UserStatus.INACTIVE

    async def test_admin_cannot_deactivate_self(self, user_service, admin_model):
        result = await user_service.update_status(
            admin_model, admin_model.id, UserStatus.INACTIVE
        )

        assert result.error_code == ErrorCode.FORBIDDEN

    async def test_unknown_user(self, user_service, admin_model):
        result = await user_service.update_status(admin_model, 9999, UserStatus.ACTIVE)

        assert result.error_code == ErrorCode.USER_NOT_FOUND

    async def test_get_profile(self, user_service, admin_user):
        result = await user_service.get_profile(admin_user.id)

        assert result.value.email == admin_user.email
        assert (await user_service.get_profile(9999)).error_code == ErrorCode.USER_NOT_FOUND
