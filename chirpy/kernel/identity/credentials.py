"""
Authorization header parsing.

Bearer tokens and API keys share one header but must never be
cross-accepted, so each scheme has its own exact, case-sensitive prefix.
"""

import hmac
from typing import Mapping, Sequence, Union

from chirpy.kernel.identity.errors import (
    EmptyCredential,
    HeaderMissing,
    InvalidAPIKey,
    SchemeMismatch,
)

AUTHORIZATION_HEADER = "Authorization"

BEARER_SCHEME = "Bearer"
API_KEY_SCHEME = "ApiKey"

HeaderValues = Union[str, Sequence[str]]


def header_values(
    headers: Mapping[str, HeaderValues],
    name: str = AUTHORIZATION_HEADER,
) -> list[str]:
    """
    Collect the values of one header from a mapping, matching the name
    case-insensitively. Single string values are treated as one value.
    """
    wanted = name.lower()
    values: list[str] = []
    for key, value in headers.items():
        if key.lower() != wanted:
            continue
        if isinstance(value, str):
            values.append(value)
        else:
            values.extend(value)
    return values


def _extract(values: HeaderValues, scheme: str) -> str:
    if isinstance(values, str):
        values = [values]
    if not values:
        raise HeaderMissing(scheme)

    # Only the first value counts
    header = values[0]
    prefix = scheme + " "
    if not header.startswith(prefix):
        raise SchemeMismatch(scheme)

    credential = header[len(prefix):].strip()
    if not credential:
        raise EmptyCredential(scheme)
    return credential


def get_bearer_token(values: HeaderValues) -> str:
    """
    Extract a bearer token from Authorization header values.

    Raises:
        HeaderMissing: No header value present
        SchemeMismatch: First value does not start with "Bearer "
        EmptyCredential: Nothing left after the prefix
    """
    return _extract(values, BEARER_SCHEME)


def get_api_key(values: HeaderValues) -> str:
    """
    Extract an API key from Authorization header values.

    Raises:
        HeaderMissing: No header value present
        SchemeMismatch: First value does not start with "ApiKey "
        EmptyCredential: Nothing left after the prefix
    """
    return _extract(values, API_KEY_SCHEME)


def verify_api_key(presented: str, expected: str) -> None:
    """
    Compare an extracted API key with the configured one in constant time.

    Raises:
        InvalidAPIKey: Keys differ, or no key is configured
    """
    if not expected:
        raise InvalidAPIKey("no API key configured")
    if not hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidAPIKey("API key does not match")


class CredentialExtractor:
    """Header credential extraction, grouped for injection into callers."""

    header_values = staticmethod(header_values)
    extract_bearer = staticmethod(get_bearer_token)
    extract_api_key = staticmethod(get_api_key)
    verify_api_key = staticmethod(verify_api_key)
