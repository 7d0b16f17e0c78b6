"""
Shared test fixtures and configuration for pytest.
"""

from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from app.config.config import Settings
from app.core import bootstrap
from app.core.container import Container
from app.core.notifications import EmailService
from app.db.base import Base
from app.main import create_app
from app.schemas.user_schemas import UserRegisterSchema, UserSchema


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "Passw0rd!"


class FakeEmailService(EmailService):
    """Email capability that records messages instead of sending them."""

    def __init__(self):
        super().__init__(
            smtp_host="localhost",
            smtp_port=25,
            smtp_user="",
            smtp_password="",
            from_email="noreply@laelhospital.in",
            from_name="Lael Test",
        )
        self.sent: List[Dict[str, Optional[str]]] = []
        self.otps: List[Dict[str, str]] = []
        self.fail = False

    async def send(self, to, subject, html_body, text_body=None) -> bool:
        if self.fail:
            return False
        self.sent.append(
            {"to": to, "subject": subject, "html": html_body, "text": text_body}
        )
        return True

    async def send_otp(self, to, name, otp_code, purpose, expires_in_minutes) -> bool:
        sent = await super().send_otp(to, name, otp_code, purpose, expires_in_minutes)
        if sent:
            self.otps.append({"to": to, "otp": otp_code, "purpose": purpose})
        return sent

    def last_otp(self, email: str) -> str:
        for entry in reversed(self.otps):
            if entry["to"] == email:
                return entry["otp"]
        raise AssertionError(f"no OTP sent to {email}")

    def subjects_for(self, email: str) -> List[str]:
        return [m["subject"] for m in self.sent if m["to"] == email]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test-secret-key",
        PASSWORD_HASH_TIME_COST=1,
        PASSWORD_HASH_MEMORY_COST=8192,
        EMAIL_ENABLED=False,
        OTP_CLEANUP_INTERVAL_SECONDS=3600,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def fake_email() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
async def container(
    test_settings: Settings, fake_email: FakeEmailService
) -> AsyncGenerator[Container, None]:
    """
    Application container backed by a fresh in-memory database.

    Creates all tables before the test and drops them afterwards.
    """
    container = bootstrap.build_container(test_settings)
    container.register(bootstrap.EMAIL_SERVICE, fake_email)

    engine = container.resolve(bootstrap.DB_ENGINE)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield container

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(container: Container) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_service(container: Container):
    return container.resolve(bootstrap.AUTH_SERVICE)


@pytest.fixture
def otp_service(container: Container):
    return container.resolve(bootstrap.OTP_SERVICE)


@pytest.fixture
def user_service(container: Container):
    return container.resolve(bootstrap.USER_SERVICE)


@pytest.fixture
def patient_service(container: Container):
    return container.resolve(bootstrap.PATIENT_SERVICE)


@pytest.fixture
def opd_service(container: Container):
    return container.resolve(bootstrap.OPD_SERVICE)


@pytest.fixture
def user_repo(container: Container):
    return container.resolve(bootstrap.USER_REPOSITORY)


@pytest.fixture
def otp_repo(container: Container):
    return container.resolve(bootstrap.OTP_REPOSITORY)


@pytest.fixture
def patient_repo(container: Container):
    return container.resolve(bootstrap.PATIENT_REPOSITORY)


@pytest.fixture
def password() -> str:
    """Password used for every account the fixtures create."""
    return DEFAULT_PASSWORD


async def _register_user(
    auth_service,
    fake_email: FakeEmailService,
    *,
    name: str,
    mobile: str,
    email: str,
    designation: str = "staff",
    password: str = DEFAULT_PASSWORD,
    is_admin: bool = False,
    verify: bool = True,
) -> UserSchema:
    """Register an account and, unless ``verify`` is False, confirm its OTP."""
    result = await auth_service.register(
        UserRegisterSchema(
            name=name,
            mobile=mobile,
            email=email,
            designation=designation,
            password=password,
        ),
        is_admin=is_admin,
    )
    assert result.is_success, result.error_code
    if verify:
        verified = await auth_service.verify_otp(email, fake_email.last_otp(email))
        assert verified.is_success, verified.error_code
        return verified.value.user
    return result.value


@pytest.fixture
async def admin_user(auth_service, fake_email) -> UserSchema:
    """Verified administrator."""
    return await _register_user(
        auth_service,
        fake_email,
        name="Admin User",
        mobile="9000000001",
        email="admin@laelhospital.in",
        is_admin=True,
    )


@pytest.fixture
async def doctor_user(auth_service, fake_email, user_repo, admin_user) -> UserSchema:
    """Verified and approved doctor."""
    doctor = await _register_user(
        auth_service,
        fake_email,
        name="Dr. Mehta",
        mobile="9000000002",
        email="doctor@laelhospital.in",
        designation="doctor",
    )
    await user_repo.approve_user(doctor.id, admin_user.id)
    return doctor



@pytest.fixture
def register_user(auth_service, fake_email) -> Callable[..., Awaitable[UserSchema]]:
    """Factory registering (and by default verifying) an account."""

    async def register(**kwargs) -> UserSchema:
        return await _register_user(auth_service, fake_email, **kwargs)

    return register


@pytest.fixture
def login_tokens(client: AsyncClient) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Factory logging in through the API and returning the token payload."""

    async def login(identifier: str, password: str = DEFAULT_PASSWORD) -> Dict[str, Any]:
        response = await client.post(
            "/api/auth/login", json={"identifier": identifier, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["model"]

    return login


@pytest.fixture
def bearer() -> Callable[[str], Dict[str, str]]:
    def headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return headers
