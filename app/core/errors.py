"""
Error codes, the error registry and the tagged result type.

Orchestrators never raise for expected outcomes. They return a
``ServiceResult`` carrying either a value or an error code; the HTTP layer
resolves the code through the ``ErrorRegistry`` into a response body.
"""
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Generic, Mapping, Optional, TypeVar, Union

import yaml

from app.core.utils import logger


T = TypeVar("T")


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    BUSINESS = "business"
    SYSTEM = "system"
    DEPENDENCY = "dependency"


class ErrorCode:
    """String error codes, grouped by family."""

    # 1xxx generic
    BAD_REQUEST = "1000"
    UNAUTHORIZED = "1001"
    FORBIDDEN = "1002"
    INTERNAL = "1004"
    DEPENDENCY_UNAVAILABLE = "1005"

    # 2xxx authentication
    INVALID_CREDENTIALS = "2000"
    OTP_EXPIRED = "2001"
    INVALID_OTP = "2002"
    SESSION_EXPIRED = "2003"
    MAX_OTP_ATTEMPTS = "2004"
    STAFF_NOT_APPROVED = "2005"
    ACCOUNT_INACTIVE = "2006"
    WRONG_TOKEN_TYPE = "2007"
    ACCOUNT_NOT_VERIFIED = "2008"

    # 3xxx users
    USER_NOT_FOUND = "3000"
    USER_ALREADY_EXISTS = "3001"
    INVALID_MOBILE = "3002"
    INVALID_PASSWORD = "3003"
    INVALID_DESIGNATION = "3004"

    # 4xxx patients
    PATIENT_NOT_FOUND = "4000"
    INVALID_PATIENT_DATA = "4001"
    PATIENT_ALREADY_REGISTERED = "4002"
    OPD_MOBILE_MISMATCH = "4003"

    # 5xxx OPD records
    OPD_NOT_FOUND = "5000"
    INVALID_OPD_DATA = "5001"
    OPD_ALREADY_EXISTS = "5002"


@dataclass(frozen=True)
class ErrorRecord:
    code: str
    message: str
    display_message: str
    category: ErrorCategory


FALLBACK_DISPLAY_MESSAGE = "Something went wrong. Please try again."


class ErrorRegistry:
    """
    Read-only lookup table from error code to messages and category.

    The table is frozen at construction time, so concurrent readers never
    see a partially populated mapping.
    """

    def __init__(self, records: Optional[Mapping[str, ErrorRecord]] = None):
        self._records: Mapping[str, ErrorRecord] = MappingProxyType(dict(records or {}))

    def lookup(self, code: str) -> ErrorRecord:
        record = self._records.get(str(code))
        if record is None:
            return ErrorRecord(
                code=str(code),
                message=f"Unregistered error code {code}",
                display_message=FALLBACK_DISPLAY_MESSAGE,
                category=ErrorCategory.SYSTEM,
            )
        return record

    def has(self, code: str) -> bool:
        return str(code) in self._records

    def __len__(self) -> int:
        return len(self._records)

    @classmethod
    def from_mapping(cls, raw: Mapping[Any, Mapping[str, Any]]) -> "ErrorRegistry":
        records: Dict[str, ErrorRecord] = {}
        for code, entry in raw.items():
            code = str(code)
            try:
                category = ErrorCategory(entry.get("category", ErrorCategory.SYSTEM.value))
            except ValueError:
                logger.log_warning(
                    {
                        "event_type": "error_registry_unknown_category",
                        "code": code,
                        "category": entry.get("category"),
                    }
                )
                category = ErrorCategory.SYSTEM
            message = entry.get("message") or FALLBACK_DISPLAY_MESSAGE
            records[code] = ErrorRecord(
                code=code,
                message=message,
                display_message=entry.get("display_message") or message,
                category=category,
            )
        return cls(records)


def load_error_registry(path: Union[str, Path]) -> ErrorRegistry:
    """
    Load the error registry from a YAML file.

    A missing file yields an empty registry, so every lookup falls back to
    the generic system error instead of failing startup.
    """
    path = Path(path)
    if not path.exists():
        logger.log_warning({"event_type": "error_registry_missing", "path": str(path)})
        return ErrorRegistry()

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    registry = ErrorRegistry.from_mapping(raw)
    logger.log_info(
        {"event_type": "error_registry_loaded", "path": str(path), "count": len(registry)}
    )
    return registry


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Success value XOR error code."""

    value: Optional[T] = None
    error_code: Optional[str] = None
    detail: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.error_code is None

    @classmethod
    def success(cls, value: Optional[T] = None, message: Optional[str] = None) -> "ServiceResult[T]":
        return cls(value=value, message=message)

    @classmethod
    def failure(cls, error_code: str, detail: Optional[str] = None) -> "ServiceResult[T]":
        return cls(error_code=error_code, detail=detail)


class GatewayError(Exception):
    """A data gateway call failed for reasons other than a duplicate key."""


class DuplicateRecordError(GatewayError):
    """An insert violated a unique constraint."""


class PasswordHashingError(Exception):
    """The password hasher could not produce a hash."""


class AppException(Exception):
    """Raised at the HTTP edge to turn a failed result into a response."""

    def __init__(self, code: str, detail: Optional[str] = None):
        self.code = code
        self.detail = detail
        super().__init__(f"[{code}] {detail or ''}".strip())


def raise_for_result(result: ServiceResult[T]) -> Optional[T]:
    if not result.is_success:
        raise AppException(result.error_code, result.detail)
    return result.value


def gateway_guard(func):
    """Convert data gateway failures into a dependency error result."""

    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except GatewayError as e:
            logger.log_error(
                {
                    "event_type": "gateway_failure",
                    "operation": f"{self.__class__.__name__}.{func.__name__}",
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return ServiceResult.failure(ErrorCode.DEPENDENCY_UNAVAILABLE, str(e))

    return wrapper
