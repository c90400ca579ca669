"""
Identity error taxonomy.

Every failure in the identity core is raised as one of these types.
Subclasses of AuthenticationError all map to the same "unauthenticated"
outcome for the caller; the remaining types are server-side failures.
"""

from typing import Optional


class IdentityError(Exception):
    """Base class for identity core failures."""


class AuthenticationError(IdentityError):
    """The presented credential does not authenticate anyone."""


# Password hashing

class PasswordHashError(IdentityError):
    """Base class for password hash failures."""


class HashingFailure(PasswordHashError):
    """The hashing primitive or its entropy source failed."""


class MalformedHash(PasswordHashError):
    """A stored hash record cannot be parsed. Not the same as a wrong password."""


class InvalidCredentials(AuthenticationError):
    """Password does not match the stored hash."""


# Access tokens

class SigningFailure(IdentityError):
    """An access token could not be signed (empty or unusable secret)."""


class AccessTokenError(AuthenticationError):
    """Base class for access token rejections."""


class InvalidSignature(AccessTokenError):
    """Signature check failed, including a secret mismatch."""


class TokenExpired(AccessTokenError):
    """Token expiry is in the past."""


class MalformedToken(AccessTokenError):
    """Token cannot be parsed into the expected claim set."""


class UnparseableSubject(AccessTokenError):
    """Token subject is not a well-formed user identifier."""


# Renewal tokens

class EntropySourceFailure(IdentityError):
    """The secure random source could not supply bytes."""


class RenewalTokenError(AuthenticationError):
    """Base class for renewal token rejections."""


class RenewalTokenUnknown(RenewalTokenError):
    """No record exists for the presented renewal token."""


class RenewalTokenRevoked(RenewalTokenError):
    """Renewal token was revoked."""


class RenewalTokenExpired(RenewalTokenError):
    """Renewal token is past its expiry."""


# Header credentials

class CredentialError(AuthenticationError):
    """Base class for Authorization header extraction failures."""

    def __init__(self, scheme: str, message: Optional[str] = None):
        self.scheme = scheme
        super().__init__(message or self.default_message())

    def default_message(self) -> str:
        return f"{self.scheme} credential rejected"


class HeaderMissing(CredentialError):
    def default_message(self) -> str:
        return "authorization header not found"


class SchemeMismatch(CredentialError):
    def default_message(self) -> str:
        return f"authorization header does not contain {self.scheme} credential"


class EmptyCredential(CredentialError):
    def default_message(self) -> str:
        return f"{self.scheme} credential is empty"


class InvalidAPIKey(AuthenticationError):
    """Presented API key does not match the configured key."""
