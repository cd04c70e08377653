import pytest
from unittest.mock import patch
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.services.security_service import SecurityService


class TestGetCurrentActor:
    """Tests for the get_current_actor dependency"""

    def setup_method(self):
        self.actor = Actor(id="u1", email="u1@example.com")

    @pytest.mark.asyncio
    async def test_valid_token(self):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="good-token")

        with patch.object(SecurityService, 'verify_token', return_value=self.actor) as mock_verify:
            result = await get_current_actor(credentials)

        mock_verify.assert_called_once_with("good-token")
        assert result == self.actor

    @pytest.mark.asyncio
    async def test_missing_token(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_actor(None)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail == "No token provided"
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_other_scheme_is_treated_as_missing(self):
        credentials = HTTPAuthorizationCredentials(scheme="Basic", credentials="dTE6cGFzcw==")

        with pytest.raises(HTTPException) as exc_info:
            await get_current_actor(credentials)

        assert exc_info.value.detail == "No token provided"

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="forged-token")

        with patch.object(SecurityService, 'verify_token', return_value=None):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_actor(credentials)

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc_info.value.detail == "Invalid token"
