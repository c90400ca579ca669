"""
Renewal (refresh) tokens.

A renewal token is an opaque random string with no embedded structure.
Whether it is valid lives entirely in the external store; this module
generates the value and defines the record contract that store keeps.
"""

import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from chirpy.kernel.identity.errors import EntropySourceFailure

# 32 bytes = 256 bits of entropy, 64 hex characters
RENEWAL_TOKEN_BYTES = 32
DEFAULT_RENEWAL_TOKEN_TTL = timedelta(days=60)


class RenewalTokenGenerator:
    """Generates renewal tokens from the OS secure random source."""

    def __init__(
        self,
        token_bytes: int = RENEWAL_TOKEN_BYTES,
        randbytes: Callable[[int], bytes] = secrets.token_bytes,
    ):
        self.token_bytes = token_bytes
        self._randbytes = randbytes

    def generate(self) -> str:
        """
        Generate a new renewal token.

        Returns:
            Lowercase hex string, two characters per random byte

        Raises:
            EntropySourceFailure: If the random source cannot supply bytes
        """
        try:
            raw = self._randbytes(self.token_bytes)
        except (OSError, NotImplementedError) as exc:
            raise EntropySourceFailure("secure random source unavailable") from exc
        if len(raw) != self.token_bytes:
            raise EntropySourceFailure(
                f"secure random source returned {len(raw)} of {self.token_bytes} bytes"
            )
        return raw.hex()


def make_refresh_token() -> str:
    """Generate a renewal token with the default generator."""
    return RenewalTokenGenerator().generate()


class RenewalTokenStatus(str, Enum):
    """Lifecycle state of a stored renewal token."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class RenewalTokenRecord(BaseModel):
    """Fields the external store must keep for each renewal token."""

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: Any
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None

    @classmethod
    def issue(
        cls,
        token: str,
        user_id: Any,
        now: datetime,
        ttl: timedelta = DEFAULT_RENEWAL_TOKEN_TTL,
    ) -> "RenewalTokenRecord":
        return cls(token=token, user_id=user_id, created_at=now, expires_at=now + ttl)

    def status(self, now: datetime) -> RenewalTokenStatus:
        # Revocation wins over expiry
        if self.revoked_at is not None:
            return RenewalTokenStatus.REVOKED
        if now >= self.expires_at:
            return RenewalTokenStatus.EXPIRED
        return RenewalTokenStatus.ACTIVE

    def is_active(self, now: datetime) -> bool:
        return self.status(now) is RenewalTokenStatus.ACTIVE


class RenewalTokenStore(Protocol):
    """Persistence contract for renewal tokens, implemented outside the core."""

    async def add(self, record: RenewalTokenRecord) -> None: ...

    async def get(self, token: str) -> Optional[RenewalTokenRecord]: ...

    async def revoke(self, token: str, revoked_at: datetime) -> bool: ...


class InMemoryRenewalTokenStore:
    """Dict-backed store for tests and local development. Single event loop only."""

    def __init__(self) -> None:
        self._records: dict[str, RenewalTokenRecord] = {}

    async def add(self, record: RenewalTokenRecord) -> None:
        if record.token in self._records:
            raise ValueError("Renewal token already stored")
        self._records[record.token] = record

    async def get(self, token: str) -> Optional[RenewalTokenRecord]:
        return self._records.get(token)

    async def revoke(self, token: str, revoked_at: Optional[datetime] = None) -> bool:
        """Mark a token revoked. Returns False if unknown or already revoked."""
        record = self._records.get(token)
        if record is None or record.revoked_at is not None:
            return False
        self._records[token] = record.model_copy(
            update={"revoked_at": revoked_at or datetime.now(timezone.utc)}
        )
        return True

    def __len__(self) -> int:
        return len(self._records)
