"""
Container wiring.

Settings are bound eagerly; everything else is a lazy factory, so nothing
touches the database or SMTP until a request needs it.
"""
from app.config.config import Settings
from app.core.container import Container
from app.core.errors import load_error_registry
from app.core.notifications import EmailService
from app.core.security import PasswordService
from app.core.tokens import TokenService
from app.db.session import build_engine, build_session_factory
from app.repositories.opd_repo import OPDRepository
from app.repositories.otp_repo import OTPRepository
from app.repositories.patient_repo import PatientRepository
from app.repositories.user_repo import UserRepository
from app.services.auth_service import AuthService
from app.services.opd_service import OPDService
from app.services.otp_service import OTPService
from app.services.patient_service import PatientService
from app.services.user_service import UserService
from app.task.otp_cleanup import OTPCleanupScheduler


SETTINGS = "settings"
ERROR_REGISTRY = "error_registry"
DB_ENGINE = "db_engine"
SESSION_FACTORY = "session_factory"

USER_REPOSITORY = "user_repository"
OTP_REPOSITORY = "otp_repository"
PATIENT_REPOSITORY = "patient_repository"
OPD_REPOSITORY = "opd_repository"

PASSWORD_SERVICE = "password_service"
TOKEN_SERVICE = "token_service"
EMAIL_SERVICE = "email_service"
OTP_SERVICE = "otp_service"

AUTH_SERVICE = "auth_service"
USER_SERVICE = "user_service"
PATIENT_SERVICE = "patient_service"
OPD_SERVICE = "opd_service"
OTP_CLEANUP_SCHEDULER = "otp_cleanup_scheduler"


def register_defaults(container: Container) -> None:
    """Bind every capability to its default factory."""
    container.register_factory(
        ERROR_REGISTRY, lambda c: load_error_registry(c.resolve(SETTINGS).ERROR_CODES_PATH)
    )
    container.register_factory(
        DB_ENGINE,
        lambda c: build_engine(
            c.resolve(SETTINGS).DATABASE_URL, echo=c.resolve(SETTINGS).DATABASE_ECHO
        ),
    )
    container.register_factory(SESSION_FACTORY, lambda c: build_session_factory(c.resolve(DB_ENGINE)))

    container.register_factory(USER_REPOSITORY, lambda c: UserRepository(c.resolve(SESSION_FACTORY)))
    container.register_factory(OTP_REPOSITORY, lambda c: OTPRepository(c.resolve(SESSION_FACTORY)))
    container.register_factory(
        PATIENT_REPOSITORY, lambda c: PatientRepository(c.resolve(SESSION_FACTORY))
    )
    container.register_factory(OPD_REPOSITORY, lambda c: OPDRepository(c.resolve(SESSION_FACTORY)))

    container.register_factory(
        PASSWORD_SERVICE,
        lambda c: PasswordService(
            time_cost=c.resolve(SETTINGS).PASSWORD_HASH_TIME_COST,
            memory_cost=c.resolve(SETTINGS).PASSWORD_HASH_MEMORY_COST,
        ),
    )
    container.register_factory(TOKEN_SERVICE, _build_token_service)
    container.register_factory(EMAIL_SERVICE, lambda c: EmailService.from_settings(c.resolve(SETTINGS)))
    container.register_factory(OTP_SERVICE, _build_otp_service)

    container.register_factory(AUTH_SERVICE, _build_auth_service)
    container.register_factory(USER_SERVICE, lambda c: UserService(c.resolve(USER_REPOSITORY)))
    container.register_factory(
        PATIENT_SERVICE,
        lambda c: PatientService(
            c.resolve(PATIENT_REPOSITORY), opd_id_prefix=c.resolve(SETTINGS).OPD_ID_PREFIX
        ),
    )
    container.register_factory(
        OPD_SERVICE,
        lambda c: OPDService(c.resolve(OPD_REPOSITORY), c.resolve(PATIENT_REPOSITORY)),
    )
    container.register_factory(
        OTP_CLEANUP_SCHEDULER,
        lambda c: OTPCleanupScheduler(
            c.resolve(OTP_SERVICE),
            interval_seconds=c.resolve(SETTINGS).OTP_CLEANUP_INTERVAL_SECONDS,
        ),
    )


def _build_token_service(c: Container) -> TokenService:
    settings = c.resolve(SETTINGS)
    return TokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        access_token_expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_expire_days=settings.REFRESH_TOKEN_EXPIRE_DAYS,
        issuer=settings.TOKEN_ISSUER,
    )


def _build_otp_service(c: Container) -> OTPService:
    settings = c.resolve(SETTINGS)
    return OTPService(
        c.resolve(OTP_REPOSITORY),
        c.resolve(EMAIL_SERVICE),
        length=settings.OTP_LENGTH,
        expire_minutes=settings.OTP_EXPIRE_MINUTES,
        max_retries=settings.OTP_MAX_RETRIES,
    )


def _build_auth_service(c: Container) -> AuthService:
    return AuthService(
        user_repo=c.resolve(USER_REPOSITORY),
        password_service=c.resolve(PASSWORD_SERVICE),
        otp_service=c.resolve(OTP_SERVICE),
        token_service=c.resolve(TOKEN_SERVICE),
        email_service=c.resolve(EMAIL_SERVICE),
        password_min_length=c.resolve(SETTINGS).PASSWORD_MIN_LENGTH,
    )


def build_container(settings: Settings) -> Container:
    container = Container()
    container.register(SETTINGS, settings)
    register_defaults(container)
    return container
