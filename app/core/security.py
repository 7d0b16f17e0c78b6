import secrets
from enum import Enum
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)

from app.core.errors import PasswordHashingError
from app.core.utils import LoggerMixin


class PasswordCheck(str, Enum):
    SUCCESS = "success"
    MISMATCH = "mismatch"
    ERROR = "error"


class PasswordService(LoggerMixin):
    """Argon2 password hashing and verification."""

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 1,
    ):
        super().__init__()
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )
        self._dummy_hash: Optional[str] = None

    def hash(self, password: str) -> str:
        """Hash a plaintext password with a fresh random salt."""
        try:
            return self.ph.hash(password)
        except HashingError as e:
            self.log_error(
                {"event_type": "password_hashing_failed", "error": str(e)}, exc_info=True
            )
            raise PasswordHashingError("Password hashing failed") from e

    def verify(self, hashed_password: str, plain_password: str) -> PasswordCheck:
        """Verify a plaintext password against a stored Argon2 hash."""
        try:
            self.ph.verify(hashed_password, plain_password)
            return PasswordCheck.SUCCESS
        except VerifyMismatchError:
            return PasswordCheck.MISMATCH
        except (VerificationError, InvalidHashError) as e:
            self.log_error(
                {
                    "event_type": "password_verification_error",
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return PasswordCheck.ERROR

    def verify_dummy(self, plain_password: str) -> None:
        """
        Verify against a throwaway hash and discard the outcome.

        Lets a login for an unknown account spend the same argon2 work as a
        login with a wrong password.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.ph.hash(secrets.token_urlsafe(16))
        self.verify(self._dummy_hash, plain_password)

    def needs_rehash(self, hashed_password: str) -> bool:
        """Check if a hash was produced with outdated parameters."""
        try:
            return self.ph.check_needs_rehash(hashed_password)
        except InvalidHashError:
            return True
