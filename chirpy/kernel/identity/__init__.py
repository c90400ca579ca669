"""
Identity Core - Password hashing, access tokens, renewal tokens and
Authorization header credentials.
"""

from chirpy.kernel.identity.credentials import (
    CredentialExtractor,
    get_api_key,
    get_bearer_token,
    header_values,
    verify_api_key,
)
from chirpy.kernel.identity.errors import (
    AccessTokenError,
    AuthenticationError,
    CredentialError,
    EmptyCredential,
    EntropySourceFailure,
    HashingFailure,
    HeaderMissing,
    IdentityError,
    InvalidAPIKey,
    InvalidCredentials,
    InvalidSignature,
    MalformedHash,
    MalformedToken,
    RenewalTokenError,
    RenewalTokenExpired,
    RenewalTokenRevoked,
    RenewalTokenUnknown,
    SchemeMismatch,
    SigningFailure,
    TokenExpired,
    UnparseableSubject,
)
from chirpy.kernel.identity.identity_service import IdentityService, LoginResult, TokenPair
from chirpy.kernel.identity.jwt import (
    AccessTokenClaims,
    AccessTokenCodec,
    create_access_token,
    verify_access_token,
)
from chirpy.kernel.identity.password import PasswordHasher, hash_password, verify_password
from chirpy.kernel.identity.renewal import (
    InMemoryRenewalTokenStore,
    RenewalTokenGenerator,
    RenewalTokenRecord,
    RenewalTokenStatus,
    RenewalTokenStore,
    make_refresh_token,
)

__all__ = [
    # Password hashing
    "PasswordHasher",
    "hash_password",
    "verify_password",
    # Access tokens
    "AccessTokenCodec",
    "AccessTokenClaims",
    "create_access_token",
    "verify_access_token",
    # Renewal tokens
    "RenewalTokenGenerator",
    "RenewalTokenRecord",
    "RenewalTokenStatus",
    "RenewalTokenStore",
    "InMemoryRenewalTokenStore",
    "make_refresh_token",
    # Header credentials
    "CredentialExtractor",
    "get_bearer_token",
    "get_api_key",
    "header_values",
    "verify_api_key",
    # Composition
    "IdentityService",
    "LoginResult",
    "TokenPair",
    # Errors
    "IdentityError",
    "AuthenticationError",
    "HashingFailure",
    "MalformedHash",
    "InvalidCredentials",
    "SigningFailure",
    "AccessTokenError",
    "InvalidSignature",
    "TokenExpired",
    "MalformedToken",
    "UnparseableSubject",
    "EntropySourceFailure",
    "RenewalTokenError",
    "RenewalTokenUnknown",
    "RenewalTokenRevoked",
    "RenewalTokenExpired",
    "CredentialError",
    "HeaderMissing",
    "SchemeMismatch",
    "EmptyCredential",
    "InvalidAPIKey",
]
