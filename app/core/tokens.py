from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from app.core.utils import LoggerMixin, utc_now


ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenFailure(str, Enum):
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: Optional[str]
    is_admin: bool
    token_type: str


@dataclass(frozen=True)
class TokenValidation:
    claims: Optional[TokenClaims] = None
    failure: Optional[TokenFailure] = None

    @property
    def is_valid(self) -> bool:
        return self.claims is not None


class TokenService(LoggerMixin):
    """Issues and validates signed access and refresh tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
        refresh_token_expire_days: int = 7,
        issuer: str = "lael-hospital",
    ):
        super().__init__()
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = timedelta(minutes=access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=refresh_token_expire_days)
        self.issuer = issuer

    def _encode(self, claims: dict, ttl: timedelta) -> str:
        now = utc_now()
        to_encode = claims.copy()
        to_encode.update(
            {
                "iat": now,
                "nbf": now,
                "exp": now + ttl,
                "iss": self.issuer,
                "jti": str(uuid4()),
            }
        )
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def issue_access(self, user_id: int, email: str, is_admin: bool) -> str:
        """Create a short-lived access token carrying identity and role."""
        return self._encode(
            {
                "sub": str(user_id),
                "user_id": user_id,
                "email": email,
                "is_admin": is_admin,
                "type": ACCESS_TOKEN_TYPE,
            },
            self.access_ttl,
        )

    def issue_refresh(self, user_id: int) -> str:
        """Create a long-lived refresh token. Carries identity only."""
        return self._encode(
            {"sub": str(user_id), "user_id": user_id, "type": REFRESH_TOKEN_TYPE},
            self.refresh_ttl,
        )

    @property
    def access_expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    def validate(self, token: str) -> TokenValidation:
        """
        Verify signature, algorithm, issuer and expiry of ``token``.

        Every failure is reported as a ``TokenFailure``; nothing raises.
        The caller must still check ``claims.token_type``.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            return TokenValidation(failure=TokenFailure.MALFORMED)

        if header.get("alg") != self.algorithm:
            self.log_security_event(
                {"event_type": "token_algorithm_rejected", "alg": header.get("alg")}
            )
            return TokenValidation(failure=TokenFailure.INVALID_SIGNATURE)

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require_exp": True},
            )
        except ExpiredSignatureError:
            return TokenValidation(failure=TokenFailure.EXPIRED)
        except JWTClaimsError as e:
            self.log_debug({"event_type": "token_claims_rejected", "error": str(e)})
            return TokenValidation(failure=TokenFailure.MALFORMED)
        except JWTError as e:
            self.log_debug({"event_type": "token_signature_rejected", "error": str(e)})
            return TokenValidation(failure=TokenFailure.INVALID_SIGNATURE)

        user_id = payload.get("user_id")
        token_type = payload.get("type")
        if not isinstance(user_id, int) or token_type not in (
            ACCESS_TOKEN_TYPE,
            REFRESH_TOKEN_TYPE,
        ):
            return TokenValidation(failure=TokenFailure.MALFORMED)

        return TokenValidation(
            claims=TokenClaims(
                user_id=user_id,
                email=payload.get("email"),
                is_admin=bool(payload.get("is_admin", False)),
                token_type=token_type,
            )
        )
