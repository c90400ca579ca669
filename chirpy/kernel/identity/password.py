"""
Password hashing utilities using argon2id.

Legacy bcrypt records are still verified so that existing accounts can
log in and be upgraded to argon2id on their next successful login.
"""

from typing import Optional

import argon2
import bcrypt
from argon2.exceptions import (
    HashingError,
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)
from argon2.low_level import ARGON2_VERSION

from chirpy.config import Settings
from chirpy.kernel.identity.errors import HashingFailure, MalformedHash

# argon2id cost defaults (RFC 9106 low-memory profile)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # KiB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32
ARGON2_SALT_LEN = 16

# Records with a shorter salt or digest are truncated or forged
MIN_SALT_LEN = 8
MIN_HASH_LEN = 16

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordHasher:
    """Password hashing service."""

    def __init__(
        self,
        time_cost: int = ARGON2_TIME_COST,
        memory_cost: int = ARGON2_MEMORY_COST,
        parallelism: int = ARGON2_PARALLELISM,
        hash_len: int = ARGON2_HASH_LEN,
        salt_len: int = ARGON2_SALT_LEN,
    ):
        self._argon2 = argon2.PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=hash_len,
            salt_len=salt_len,
            type=argon2.Type.ID,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    @staticmethod
    def _encode_password(password: str) -> bytes:
        # A str may hold lone surrogates; they must still hash
        return password.encode("utf-8", "surrogatepass")

    @staticmethod
    def _truncate_password(password: str) -> bytes:
        """
        Truncate password to 72 bytes (bcrypt limit) and encode.

        Only used for legacy bcrypt records; bcrypt ignores anything
        past the first 72 bytes and newer releases reject longer input.
        """
        return PasswordHasher._encode_password(password)[:72]

    def hash(self, password: str) -> str:
        """
        Hash a password using argon2id with a fresh random salt.

        Args:
            password: Plain text password (may be empty)

        Returns:
            PHC-formatted hash string

        Raises:
            HashingFailure: If the hashing primitive or entropy source fails
        """
        try:
            return self._argon2.hash(self._encode_password(password))
        except (HashingError, OSError, NotImplementedError) as exc:
            raise HashingFailure("password hashing failed") from exc

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored hash record

        Returns:
            True if password matches, False otherwise

        Raises:
            MalformedHash: If the stored record cannot be parsed
        """
        if not isinstance(hashed_password, str) or not hashed_password:
            raise MalformedHash("empty password hash record")

        if hashed_password.startswith(BCRYPT_PREFIXES):
            return self._verify_bcrypt(plain_password, hashed_password)

        self._check_argon2_record(hashed_password)
        try:
            return self._argon2.verify(hashed_password, self._encode_password(plain_password))
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise MalformedHash("password hash record could not be decoded") from exc

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a password hash needs to be upgraded.

        Legacy bcrypt records always do; argon2 records do when their
        embedded parameters differ from this hasher's.

        Raises:
            MalformedHash: If the stored record cannot be parsed
        """
        if not isinstance(hashed_password, str) or not hashed_password:
            raise MalformedHash("empty password hash record")
        if hashed_password.startswith(BCRYPT_PREFIXES):
            return True
        self._check_argon2_record(hashed_password)
        return self._argon2.check_needs_rehash(hashed_password)

    @staticmethod
    def _check_argon2_record(hashed_password: str) -> None:
        try:
            params = argon2.extract_parameters(hashed_password)
        except InvalidHashError as exc:
            raise MalformedHash("unrecognised password hash format") from exc
        if params.version != ARGON2_VERSION:
            raise MalformedHash(f"unsupported argon2 version {params.version}")
        if params.salt_len < MIN_SALT_LEN or params.hash_len < MIN_HASH_LEN:
            raise MalformedHash("password hash record is truncated")

    def _verify_bcrypt(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(
                self._truncate_password(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError as exc:
            raise MalformedHash("bcrypt hash record could not be decoded") from exc


_default_hasher: Optional[PasswordHasher] = None


def get_password_hasher() -> PasswordHasher:
    """Get or create the default password hasher."""
    global _default_hasher
    if _default_hasher is None:
        _default_hasher = PasswordHasher()
    return _default_hasher


# Convenience functions
def hash_password(password: str) -> str:
    """Hash a password."""
    return get_password_hasher().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return get_password_hasher().verify(plain_password, hashed_password)
