"""
Password Hashing Tests
"""

import pytest

from app.core.security import PasswordCheck, PasswordService


@pytest.fixture
def password_service() -> PasswordService:
    return PasswordService(time_cost=1, memory_cost=8192)


@pytest.mark.unit
class TestPasswordService:
    @pytest.mark.parametrize("password", ["Passw0rd!", "a" * 8, "ünïcødé-pässwörd", " spaced out "])
    def test_hash_is_salted_and_verifies(self, password_service, password):
        first = password_service.hash(password)
        second = password_service.hash(password)

        assert first != second
        assert password_service.verify(first, password) is PasswordCheck.SUCCESS
        assert password_service.verify(second, password) is PasswordCheck.SUCCESS

    def test_wrong_password_is_mismatch(self, password_service):
        hashed = password_service.hash("Passw0rd!")

        assert password_service.verify(hashed, "passw0rd!") is PasswordCheck.MISMATCH

    def test_malformed_hash_is_error(self, password_service):
        assert password_service.verify("not-a-hash", "Passw0rd!") is PasswordCheck.ERROR

    def test_needs_rehash_after_parameter_change(self, password_service):
        hashed = password_service.hash("Passw0rd!")
        stronger = PasswordService(time_cost=2, memory_cost=8192)

        assert not password_service.needs_rehash(hashed)
        assert stronger.needs_rehash(hashed)

    def test_verify_dummy_hashes_once(self, password_service):
        password_service.verify_dummy("Passw0rd!")
        dummy = password_service._dummy_hash

        password_service.verify_dummy("another-guess")

        assert dummy is not None
        assert password_service._dummy_hash == dummy
