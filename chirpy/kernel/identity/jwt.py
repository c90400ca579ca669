"""
JWT access token minting and validation.

Access tokens are stateless: they carry the user id and expiry and are
signed with a single symmetric secret. Revocation happens at the
renewal-token layer, never here.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import jwt
from jose.exceptions import JOSEError, JWTClaimsError, JWTError
from pydantic import BaseModel, ConfigDict, ValidationError

from chirpy.config import Settings
from chirpy.kernel.identity.errors import (
    InvalidSignature,
    MalformedToken,
    SigningFailure,
    TokenExpired,
    UnparseableSubject,
)
from chirpy.logging_config import get_logger

logger = get_logger(__name__)

TOKEN_ISSUER = "chirpy"
DEFAULT_ALGORITHM = "HS256"
DEFAULT_ACCESS_TOKEN_TTL = timedelta(seconds=3600)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccessTokenClaims(BaseModel):
    """JWT access token claim set."""

    model_config = ConfigDict(strict=True)

    iss: str
    sub: str  # User ID
    iat: int
    exp: int

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.iat, tz=timezone.utc)


class AccessTokenCodec:
    """
    Access token creation and verification.

    The signing secret is passed into every call rather than held by the
    codec, so one codec can serve callers with distinct secrets.
    """

    def __init__(
        self,
        issuer: str = TOKEN_ISSUER,
        algorithm: str = DEFAULT_ALGORITHM,
        default_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL,
        subject_parser: Callable[[str], Any] = uuid.UUID,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not algorithm.startswith("HS"):
            raise ValueError(f"Access tokens require an HMAC algorithm, got {algorithm}")
        self.issuer = issuer
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self.subject_parser = subject_parser
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "AccessTokenCodec":
        return cls(
            issuer=settings.jwt_issuer,
            algorithm=settings.jwt_algorithm,
            default_ttl=timedelta(seconds=settings.access_token_ttl_seconds),
            **kwargs,
        )

    def mint(
        self,
        user_id: Any,
        secret: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a new access token.

        Args:
            user_id: User's unique identifier (stored as its string form)
            secret: Signing secret
            expires_delta: Optional custom lifetime (default one hour)

        Returns:
            Signed token string

        Raises:
            SigningFailure: If the secret is empty or unusable for HMAC
            ValueError: If the lifetime is not positive
        """
        if not secret:
            raise SigningFailure("signing secret must not be empty")

        ttl = self.default_ttl if expires_delta is None else expires_delta
        if ttl <= timedelta(0):
            raise ValueError("Access token lifetime must be positive")

        now = self._clock()
        payload = {
            "iss": self.issuer,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }

        try:
            token = jwt.encode(payload, secret, algorithm=self.algorithm)
        except JOSEError as exc:
            raise SigningFailure("access token could not be signed") from exc

        logger.debug(
            "Access token minted",
            extra={"user_id": payload["sub"], "expires_at": payload["exp"]},
        )
        return token

    def decode_claims(self, token: str, secret: str) -> AccessTokenClaims:
        """
        Verify an access token and return its claim set.

        Checks run in order: structure, signature, claim shape, issuer,
        expiry. The first failing check decides the error.

        Raises:
            MalformedToken: Token is not a JWS with the expected claims
            InvalidSignature: Signature does not verify under ``secret``
            TokenExpired: Current time is past the token's expiry
        """
        if not isinstance(token, str) or not token:
            raise MalformedToken("access token is empty")

        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken("access token could not be parsed") from exc

        if not secret:
            raise InvalidSignature("no signing secret configured")

        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTClaimsError as exc:
            raise MalformedToken("access token claims are invalid") from exc
        except JWTError as exc:
            raise InvalidSignature("access token signature verification failed") from exc
        except JOSEError as exc:
            raise InvalidSignature("signing secret is not usable for HMAC") from exc

        try:
            claims = AccessTokenClaims.model_validate(payload)
        except ValidationError as exc:
            raise MalformedToken("access token claims are missing or mistyped") from exc

        if claims.iss != self.issuer:
            raise MalformedToken(f"unexpected token issuer {claims.iss!r}")

        if self._clock().timestamp() > claims.exp:
            raise TokenExpired("access token has expired")

        return claims

    def validate(self, token: str, secret: str) -> Any:
        """
        Verify an access token and return the user id it was minted for.

        Raises:
            AccessTokenError: Any subclass; see decode_claims
            UnparseableSubject: Subject is not a well-formed user id
        """
        try:
            claims = self.decode_claims(token, secret)
        except (MalformedToken, InvalidSignature, TokenExpired) as exc:
            logger.debug("Access token rejected", extra={"reason": type(exc).__name__})
            raise

        try:
            return self.subject_parser(claims.sub)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.debug("Access token rejected", extra={"reason": "UnparseableSubject"})
            raise UnparseableSubject("access token subject is not a user id") from exc


_default_codec: Optional[AccessTokenCodec] = None


def get_token_codec() -> AccessTokenCodec:
    """Get or create the default access token codec."""
    global _default_codec
    if _default_codec is None:
        _default_codec = AccessTokenCodec()
    return _default_codec


# Convenience functions
def create_access_token(
    user_id: Any,
    secret: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create an access token."""
    return get_token_codec().mint(user_id, secret, expires_delta)


def verify_access_token(token: str, secret: str) -> Any:
    """Verify an access token and return the user id."""
    return get_token_codec().validate(token, secret)
