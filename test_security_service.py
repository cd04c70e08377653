import pytest
from unittest.mock import patch, MagicMock
from datetime import datetime, timedelta
from jose import jwt

from src.schemas.auth import Actor
from src.services.security_service import SecurityService


def make_settings(secret="test-secret", audience="authenticated"):
    settings = MagicMock()
    settings.JWT_SECRET = secret
    settings.JWT_ALGORITHM = "HS256"
    settings.JWT_AUDIENCE = audience
    return settings


def make_token(secret="test-secret", expires_in=timedelta(hours=1), **claims):
    payload = {"exp": datetime.utcnow() + expires_in}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestSecurityService:
    """Tests for SecurityService token verification"""

    def setup_method(self):
        self.patcher = patch("src.services.security_service.settings", make_settings())
        self.patcher.start()

    def teardown_method(self):
        self.patcher.stop()

    def test_valid_token_resolves_actor(self):
        token = make_token(sub="u1", email="u1@example.com", aud="authenticated")

        actor = SecurityService.verify_token(token)

        assert actor == Actor(id="u1", email="u1@example.com")

    def test_token_without_email(self):
        token = make_token(sub="u1", aud="authenticated")

        actor = SecurityService.verify_token(token)

        assert actor.id == "u1"
        assert actor.email is None

    def test_wrong_secret_is_rejected(self):
        token = make_token(secret="other-secret", sub="u1", aud="authenticated")

        assert SecurityService.verify_token(token) is None

    def test_expired_token_is_rejected(self):
        token = make_token(expires_in=timedelta(minutes=-5), sub="u1", aud="authenticated")

        assert SecurityService.verify_token(token) is None

    def test_token_without_subject_is_rejected(self):
        token = make_token(email="u1@example.com", aud="authenticated")

        assert SecurityService.verify_token(token) is None

    def test_wrong_audience_is_rejected(self):
        token = make_token(sub="u1", aud="anon")

        assert SecurityService.verify_token(token) is None

    def test_garbage_is_rejected(self):
        assert SecurityService.verify_token("not-a-jwt") is None
        assert SecurityService.decode_token("not-a-jwt") == {}

    def test_missing_token_is_rejected(self):
        assert SecurityService.verify_token(None) is None
        assert SecurityService.verify_token("") is None


class TestSecurityServiceConfiguration:
    """Verification depends on how the identity provider is configured"""

    def test_unconfigured_secret_rejects_everything(self):
        token = make_token(sub="u1", aud="authenticated")

        with patch("src.services.security_service.settings", make_settings(secret="")):
            assert SecurityService.verify_token(token) is None

    def test_audience_check_can_be_disabled(self):
        token = make_token(sub="u1")

        with patch("src.services.security_service.settings", make_settings(audience=None)):
            actor = SecurityService.verify_token(token)

        assert actor.id == "u1"
