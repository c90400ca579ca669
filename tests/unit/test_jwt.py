"""Unit tests for access token minting and validation."""

import base64
import json
import uuid
from datetime import timedelta

import pytest
from jose import jwt

from chirpy.kernel.identity.errors import (
    AccessTokenError,
    AuthenticationError,
    InvalidSignature,
    MalformedToken,
    SigningFailure,
    TokenExpired,
    UnparseableSubject,
)
from chirpy.kernel.identity.jwt import (
    AccessTokenCodec,
    create_access_token,
    verify_access_token,
)


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _tamper(token: str, **changes) -> str:
    """Rewrite payload claims while keeping the issued signature."""
    header, _, signature = token.split(".")
    claims = jwt.get_unverified_claims(token)
    claims.update(changes)
    return ".".join([header, _b64(claims), signature])


class TestMint:
    """Tests for AccessTokenCodec.mint."""

    def test_claims(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret)
        claims = codec.decode_claims(token, secret)

        assert claims.iss == "chirpy"
        assert claims.sub == str(user_id)
        assert claims.iat == int(clock.now.timestamp())
        assert claims.exp - claims.iat == 3600
        assert claims.expires_at == clock.now + timedelta(hours=1)

    def test_custom_lifetime(self, codec, secret, user_id):
        token = codec.mint(user_id, secret, expires_delta=timedelta(minutes=5))
        claims = codec.decode_claims(token, secret)

        assert claims.exp - claims.iat == 300

    def test_deterministic_for_same_clock(self, codec, secret, user_id):
        assert codec.mint(user_id, secret) == codec.mint(user_id, secret)

    def test_header_algorithm(self, codec, secret, user_id):
        token = codec.mint(user_id, secret)

        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_empty_secret_raises(self, codec, user_id):
        with pytest.raises(SigningFailure):
            codec.mint(user_id, "")

    @pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-5)])
    def test_non_positive_lifetime_rejected(self, codec, secret, user_id, ttl):
        with pytest.raises(ValueError):
            codec.mint(user_id, secret, expires_delta=ttl)

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValueError):
            AccessTokenCodec(algorithm="RS256")


class TestValidate:
    """Tests for AccessTokenCodec.validate."""

    def test_round_trip(self, codec, secret, user_id):
        token = codec.mint(user_id, secret)

        assert codec.validate(token, secret) == user_id

    def test_wrong_secret(self, codec, secret, user_id):
        token = codec.mint(user_id, secret)

        with pytest.raises(InvalidSignature):
            codec.validate(token, "wrongsecret")

    def test_empty_secret_never_validates(self, codec, secret, user_id):
        token = codec.mint(user_id, secret)

        with pytest.raises(InvalidSignature):
            codec.validate(token, "")

    def test_expired(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret, expires_delta=timedelta(seconds=1))
        clock.advance(seconds=2)

        with pytest.raises(TokenExpired):
            codec.validate(token, secret)

    def test_valid_at_exact_expiry(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret, expires_delta=timedelta(seconds=1))
        clock.advance(seconds=1)

        assert codec.validate(token, secret) == user_id

    def test_default_lifetime_expires_after_an_hour(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret)
        clock.advance(minutes=59)
        assert codec.validate(token, secret) == user_id

        clock.advance(minutes=2)
        with pytest.raises(TokenExpired):
            codec.validate(token, secret)

    def test_key_shaped_secret(self, codec, secret, user_id):
        token = codec.mint(user_id, secret)
        pem = "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----"

        with pytest.raises(InvalidSignature):
            codec.validate(token, pem)

    def test_signature_checked_before_expiry(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret, expires_delta=timedelta(seconds=1))
        clock.advance(hours=10)

        with pytest.raises(InvalidSignature):
            codec.validate(token, "wrongsecret")

    @pytest.mark.parametrize("token", ["invalid.token.string", "abc", "", "a.b"])
    def test_malformed(self, codec, secret, token):
        with pytest.raises(MalformedToken):
            codec.validate(token, secret)

    def test_tampered_subject(self, codec, secret, user_id):
        token = _tamper(codec.mint(user_id, secret), sub=str(uuid.uuid4()))

        with pytest.raises(InvalidSignature):
            codec.validate(token, secret)

    def test_tampered_expiry(self, codec, secret, user_id, clock):
        token = codec.mint(user_id, secret, expires_delta=timedelta(seconds=1))
        forged = _tamper(token, exp=int(clock.now.timestamp()) + 86400)
        clock.advance(seconds=5)

        with pytest.raises(InvalidSignature):
            codec.validate(forged, secret)

    def test_other_algorithm_rejected(self, codec, secret, user_id, clock):
        issued = int(clock.now.timestamp())
        token = jwt.encode(
            {"iss": "chirpy", "sub": str(user_id), "iat": issued, "exp": issued + 60},
            secret,
            algorithm="HS512",
        )

        with pytest.raises(InvalidSignature):
            codec.validate(token, secret)

    def test_missing_claims(self, codec, secret, user_id):
        token = jwt.encode({"sub": str(user_id)}, secret, algorithm="HS256")

        with pytest.raises(MalformedToken):
            codec.validate(token, secret)

    def test_mistyped_expiry(self, codec, secret, user_id, clock):
        issued = int(clock.now.timestamp())
        token = jwt.encode(
            {"iss": "chirpy", "sub": str(user_id), "iat": issued, "exp": "tomorrow"},
            secret,
            algorithm="HS256",
        )

        with pytest.raises(MalformedToken):
            codec.validate(token, secret)

    def test_foreign_issuer(self, codec, secret, user_id, clock):
        other = AccessTokenCodec(issuer="not-chirpy", clock=clock)
        token = other.mint(user_id, secret)

        with pytest.raises(MalformedToken):
            codec.validate(token, secret)

    def test_unparseable_subject(self, codec, secret):
        token = codec.mint("not-a-uuid", secret)

        with pytest.raises(UnparseableSubject):
            codec.validate(token, secret)

    def test_integer_subject_parser(self, secret, clock):
        codec = AccessTokenCodec(subject_parser=int, clock=clock)
        token = codec.mint(42, secret)

        assert codec.validate(token, secret) == 42

    @pytest.mark.parametrize(
        "error",
        [InvalidSignature, TokenExpired, MalformedToken, UnparseableSubject],
    )
    def test_rejections_are_authentication_errors(self, error):
        assert issubclass(error, AccessTokenError)
        assert issubclass(error, AuthenticationError)
        assert not issubclass(SigningFailure, AuthenticationError)


class TestCodecConfiguration:
    def test_from_settings(self, settings, user_id, clock):
        settings.access_token_ttl_seconds = 120
        codec = AccessTokenCodec.from_settings(settings, clock=clock)
        token = codec.mint(user_id, settings.jwt_secret)

        claims = codec.decode_claims(token, settings.jwt_secret)
        assert claims.exp - claims.iat == 120
        assert codec.validate(token, settings.jwt_secret) == user_id

    def test_convenience_functions(self, secret, user_id):
        token = create_access_token(user_id, secret)

        assert verify_access_token(token, secret) == user_id
        with pytest.raises(InvalidSignature):
            verify_access_token(token, "wrongsecret")
