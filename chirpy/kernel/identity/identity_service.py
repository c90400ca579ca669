"""
Identity service composing password hashing, access tokens, renewal
tokens and header credentials for the HTTP tier.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from pydantic import BaseModel

from chirpy.config import Settings
from chirpy.kernel.identity.credentials import (
    HeaderValues,
    get_api_key,
    get_bearer_token,
    verify_api_key,
)
from chirpy.kernel.identity.errors import (
    InvalidCredentials,
    MalformedHash,
    RenewalTokenExpired,
    RenewalTokenRevoked,
    RenewalTokenUnknown,
)
from chirpy.kernel.identity.jwt import AccessTokenCodec, utcnow
from chirpy.kernel.identity.password import PasswordHasher
from chirpy.kernel.identity.renewal import (
    DEFAULT_RENEWAL_TOKEN_TTL,
    RenewalTokenGenerator,
    RenewalTokenRecord,
    RenewalTokenStatus,
    RenewalTokenStore,
)
from chirpy.logging_config import get_logger

logger = get_logger(__name__)


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    user_id: Any
    tokens: TokenPair
    # Fresh hash to persist when the stored one uses outdated parameters
    upgraded_password_hash: Optional[str] = None


class IdentityService:
    """
    Service for credential operations.

    Holds the signing secret and API key it was constructed with and
    never reads process-wide configuration itself.
    """

    def __init__(
        self,
        *,
        signing_secret: str,
        token_store: RenewalTokenStore,
        api_key: str = "",
        password_hasher: Optional[PasswordHasher] = None,
        token_codec: Optional[AccessTokenCodec] = None,
        renewal_generator: Optional[RenewalTokenGenerator] = None,
        refresh_token_ttl: timedelta = DEFAULT_RENEWAL_TOKEN_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.signing_secret = signing_secret
        self.token_store = token_store
        self.api_key = api_key
        self.password_hasher = password_hasher or PasswordHasher()
        self.token_codec = token_codec or AccessTokenCodec(clock=clock)
        self.renewal_generator = renewal_generator or RenewalTokenGenerator()
        self.refresh_token_ttl = refresh_token_ttl
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token_store: RenewalTokenStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> "IdentityService":
        return cls(
            signing_secret=settings.jwt_secret,
            token_store=token_store,
            api_key=settings.polka_key,
            password_hasher=PasswordHasher.from_settings(settings),
            token_codec=AccessTokenCodec.from_settings(settings, clock=clock),
            refresh_token_ttl=timedelta(days=settings.refresh_token_ttl_days),
            clock=clock,
        )

    async def hash_password(self, password: str) -> str:
        """Hash a password in a worker thread so the event loop keeps running."""
        return await asyncio.to_thread(self.password_hasher.hash, password)

    async def verify_password(self, password: str, stored_hash: str) -> bool:
        """Verify a password in a worker thread. MalformedHash propagates."""
        return await asyncio.to_thread(self.password_hasher.verify, password, stored_hash)

    async def login(self, user_id: Any, password: str, stored_hash: str) -> LoginResult:
        """
        Check a password and issue a token pair.

        Args:
            user_id: Id of the user record the caller looked up
            password: Plain text password from the request
            stored_hash: Hash stored on that user record

        Returns:
            LoginResult with tokens and, if due, an upgraded hash

        Raises:
            InvalidCredentials: Password does not match
            MalformedHash: Stored hash record is corrupt
        """
        try:
            matched = await self.verify_password(password, stored_hash)
        except MalformedHash:
            logger.error("Stored password hash is corrupt", extra={"user_id": str(user_id)})
            raise

        if not matched:
            logger.info("Login rejected", extra={"user_id": str(user_id)})
            raise InvalidCredentials("incorrect email or password")

        upgraded = None
        if self.password_hasher.needs_rehash(stored_hash):
            upgraded = await self.hash_password(password)

        tokens = await self.issue_tokens(user_id)
        logger.info("Login succeeded", extra={"user_id": str(user_id)})
        return LoginResult(user_id=user_id, tokens=tokens, upgraded_password_hash=upgraded)

    async def issue_tokens(self, user_id: Any) -> TokenPair:
        """Mint an access token and store a new renewal token for the user."""
        access_token = self.token_codec.mint(user_id, self.signing_secret)
        refresh_token = self.renewal_generator.generate()
        await self.token_store.add(
            RenewalTokenRecord.issue(
                token=refresh_token,
                user_id=user_id,
                now=self._clock(),
                ttl=self.refresh_token_ttl,
            )
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.token_codec.default_ttl.total_seconds()),
        )

    async def refresh(self, authorization: HeaderValues) -> str:
        """
        Exchange a renewal token presented as a bearer credential for a
        new access token.

        Raises:
            CredentialError: Header missing or malformed
            RenewalTokenUnknown / RenewalTokenRevoked / RenewalTokenExpired
        """
        token = get_bearer_token(authorization)
        record = await self.token_store.get(token)
        if record is None:
            raise RenewalTokenUnknown("renewal token not recognised")

        status = record.status(self._clock())
        if status is RenewalTokenStatus.REVOKED:
            logger.info("Revoked renewal token presented", extra={"user_id": str(record.user_id)})
            raise RenewalTokenRevoked("renewal token has been revoked")
        if status is RenewalTokenStatus.EXPIRED:
            raise RenewalTokenExpired("renewal token has expired")

        return self.token_codec.mint(record.user_id, self.signing_secret)

    async def revoke(self, authorization: HeaderValues) -> bool:
        """Revoke the renewal token presented as a bearer credential."""
        token = get_bearer_token(authorization)
        revoked = await self.token_store.revoke(token, self._clock())
        if revoked:
            logger.info("Renewal token revoked")
        return revoked

    def authenticate(self, authorization: HeaderValues) -> Any:
        """
        Resolve the user id from a bearer access token.

        Raises:
            CredentialError: Header missing or malformed
            AccessTokenError: Token rejected
        """
        token = get_bearer_token(authorization)
        return self.token_codec.validate(token, self.signing_secret)

    def authorize_webhook(self, authorization: HeaderValues) -> None:
        """
        Gate for webhook calls authenticated by API key.

        Raises:
            CredentialError: Header missing or malformed
            InvalidAPIKey: Key does not match the configured one
        """
        verify_api_key(get_api_key(authorization), self.api_key)
