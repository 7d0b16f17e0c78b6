import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
MOBILE_PATTERN = re.compile(r"[0-9]{10}")

LogMessage = Union[str, Dict[str, Any]]


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logging.getLogger("lael").setLevel(level.upper())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from drivers that drop tzinfo."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_mobile(mobile: Optional[str]) -> bool:
    """Exactly ten ASCII digits."""
    return bool(mobile) and MOBILE_PATTERN.fullmatch(mobile) is not None


def mask_email(email: Optional[str]) -> str:
    """Mask the local part of an email address for logs."""
    if not email or "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def format_event(message: LogMessage) -> str:
    """
    Render a log message.

    Dict messages become ``<event_type> key=value ...`` so every line for an
    event starts with the same token and can be grepped.
    """
    if not isinstance(message, dict):
        return message
    fields = dict(message)
    event = fields.pop("event_type", "event")
    pairs = " ".join(f"{key}={value!r}" for key, value in fields.items())
    return f"{event} {pairs}".rstrip()


class LoggerMixin:
    """
    Structured logging for services and repositories.

    Loggers are named ``lael.<ClassName>``.

    Example:
        class OTPService(LoggerMixin):
            def send(self):
                self.log_info({"event_type": "otp_sent", "email": "..."})
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._logger: Optional[logging.Logger] = None

    @property
    def logger(self) -> logging.Logger:
        if getattr(self, "_logger", None) is None:
            self._logger = logging.getLogger(f"lael.{self.__class__.__name__}")
        return self._logger

    def log_debug(self, message: LogMessage, **kwargs) -> None:
        self.logger.debug(format_event(message), **kwargs)

    def log_info(self, message: LogMessage, **kwargs) -> None:
        self.logger.info(format_event(message), **kwargs)

    def log_warning(self, message: LogMessage, **kwargs) -> None:
        self.logger.warning(format_event(message), **kwargs)

    def log_error(self, message: LogMessage, exc_info: bool = False, **kwargs) -> None:
        self.logger.error(format_event(message), exc_info=exc_info, **kwargs)

    def log_security_event(self, message: LogMessage, **kwargs) -> None:
        """Warning-level line prefixed with ``SECURITY`` for alerting."""
        self.logger.warning(f"SECURITY {format_event(message)}", **kwargs)


class _NamedLogger(LoggerMixin):
    def __init__(self, name: str):
        self._logger = logging.getLogger(name)


logger = _NamedLogger("lael.app")
