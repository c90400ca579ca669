"""
Pytest fixtures for identity core tests.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from chirpy.config import Settings
from chirpy.kernel.identity.identity_service import IdentityService
from chirpy.kernel.identity.jwt import AccessTokenCodec
from chirpy.kernel.identity.password import PasswordHasher
from chirpy.kernel.identity.renewal import InMemoryRenewalTokenStore


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def secret() -> str:
    """A distinct signing secret per test."""
    return f"test-secret-{uuid.uuid4().hex}"


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def fast_hasher() -> PasswordHasher:
    """argon2id with minimal cost so the suite stays quick."""
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def codec(clock: FakeClock) -> AccessTokenCodec:
    return AccessTokenCodec(clock=clock)


@pytest.fixture
def token_store() -> InMemoryRenewalTokenStore:
    return InMemoryRenewalTokenStore()


@pytest.fixture
def identity_service(
    secret: str,
    token_store: InMemoryRenewalTokenStore,
    fast_hasher: PasswordHasher,
    codec: AccessTokenCodec,
    clock: FakeClock,
) -> IdentityService:
    return IdentityService(
        signing_secret=secret,
        token_store=token_store,
        api_key="polka-test-key",
        password_hasher=fast_hasher,
        token_codec=codec,
        clock=clock,
    )


@pytest.fixture
def settings(secret: str) -> Settings:
    """Settings that ignore any local .env file."""
    return Settings(
        _env_file=None,
        jwt_secret=secret,
        polka_key="polka-test-key",
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
    )
