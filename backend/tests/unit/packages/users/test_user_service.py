import pytest

from common.core.exceptions import PermissionDeniedError
from packages.billing.models.domain.enums import UserRole
from packages.users.services.user_service import UserService


@pytest.mark.asyncio
class TestUserService:
    async def test_find_user(self, employer_user):
        user = await UserService().find_user(employer_user.id)

        assert user.email == "employer@example.com"
        assert user.role == UserRole.EMPLOYER
        assert user.is_admin is False

    async def test_find_deleted_user(self, test_db, employer_user):
        employer_user.deleted = True
        await test_db.commit()

        assert await UserService().find_user(employer_user.id) is None

    async def test_require_admin(self, admin_user):
        user = await UserService().require_admin(admin_user.id)

        assert user.is_admin

    async def test_require_admin_rejects_other_roles(self, model_user):
        with pytest.raises(PermissionDeniedError):
            await UserService().require_admin(model_user.id)

    async def test_require_admin_rejects_unknown_user(self):
        with pytest.raises(PermissionDeniedError):
            await UserService().require_admin(4242)
