"""Tests for the SSO token service client.

Covers the three backend calls and how their outcomes are reported:
- Token issuance accepts only 200
- Refresh and sign-out send the token as Authorization header
- Transport errors become failed results instead of exceptions
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from portal_sso.auth.client.models.errors import TokenServiceError
from portal_sso.auth.client.models.session import ServiceResult
from portal_sso.auth.client.models.settings import SsoSettings
from portal_sso.auth.client.services.token_service import SsoTokenService


def make_response(status_code: int, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestFetchToken:
    """Test silent token issuance."""

    def setup_method(self):
        # Arrange
        self.service = SsoTokenService()
        self.service._http_client = AsyncMock()

    async def test_successful_fetch_returns_body(self):
        # Arrange
        self.service._http_client.get.return_value = make_response(200, "sig123")

        # Act
        result = await self.service.fetch_token()

        # Assert
        assert result.is_success()
        assert result.body == "sig123"
        self.service._http_client.get.assert_awaited_once()
        assert self.service._http_client.get.call_args[0][0] == "/token"

    async def test_non_200_success_status_is_a_failure(self):
        self.service._http_client.get.return_value = make_response(204)

        result = await self.service.fetch_token()

        assert not result.is_success()
        assert result.status_code == 204

    async def test_unauthorized_is_a_failure(self):
        self.service._http_client.get.return_value = make_response(401, "denied")

        result = await self.service.fetch_token()

        assert not result.is_success()
        assert result.status_code == 401

    async def test_network_error_is_captured(self):
        # Arrange
        self.service._http_client.get.side_effect = httpx.ConnectError(
            "Connection failed"
        )

        # Act
        result = await self.service.fetch_token()

        # Assert
        assert not result.is_success()
        assert result.status_code is None
        assert "Connection failed" in result.error


class TestAuthorizedCalls:
    """Test SSO refresh acknowledgment and sign-out."""

    def setup_method(self):
        # Arrange
        self.settings = SsoSettings(
            refresh_path="/api/sso-refresh", signout_path="/api/signout"
        )
        self.service = SsoTokenService(self.settings)
        self.service._http_client = AsyncMock()
        self.token = "SharedAccessSignature integration&209901011200&abc"

    async def test_acknowledge_sends_token_as_authorization(self):
        # Arrange
        self.service._http_client.get.return_value = make_response(200)

        # Act
        result = await self.service.acknowledge(self.token)

        # Assert
        assert result.is_success()
        call_args = self.service._http_client.get.call_args
        assert call_args[0][0] == "/api/sso-refresh"
        assert call_args[1]["headers"] == {"Authorization": self.token}

    async def test_sign_out_sends_token_as_authorization(self):
        self.service._http_client.get.return_value = make_response(204)

        result = await self.service.sign_out(self.token)

        assert result.is_success()
        call_args = self.service._http_client.get.call_args
        assert call_args[0][0] == "/api/signout"
        assert call_args[1]["headers"] == {"Authorization": self.token}

    async def test_server_error_is_a_failure(self):
        self.service._http_client.get.return_value = make_response(500)

        result = await self.service.sign_out(self.token)

        assert not result.is_success()
        assert result.status_code == 500

    async def test_timeout_is_captured(self):
        self.service._http_client.get.side_effect = httpx.ReadTimeout("timed out")

        result = await self.service.acknowledge(self.token)

        assert not result.is_success()
        assert result.error is not None

    async def test_close_closes_http_client(self):
        await self.service.close()

        self.service._http_client.aclose.assert_awaited_once()


class TestServiceResult:
    """Test result helpers."""

    def test_raise_for_failure_on_error(self):
        with pytest.raises(TokenServiceError) as exc_info:
            ServiceResult(error="boom").raise_for_failure()

        assert "boom" in str(exc_info.value)

    def test_raise_for_failure_on_status(self):
        with pytest.raises(TokenServiceError) as exc_info:
            ServiceResult(status_code=503).raise_for_failure()

        assert "503" in str(exc_info.value)

    def test_raise_for_failure_on_success_is_silent(self):
        ServiceResult(status_code=200, body="ok").raise_for_failure()


class TestSettings:
    """Test settings validation."""

    def test_defaults_match_backend_contract(self):
        settings = SsoSettings()

        assert settings.token_path == "/token"
        assert settings.refresh_path == "/sso-refresh"
        assert settings.signout_path == "/signout"
        assert settings.callback_path == "/signin-sso"
        assert settings.refresh_header == "Ocp-Apim-Sas-Token"
        assert settings.client_token_key == "accessToken"
        assert settings.server_token_key == "serverToken"

    def test_relative_path_is_rejected(self):
        with pytest.raises(ValueError):
            SsoSettings(token_path="token")

    def test_non_positive_timeout_is_rejected(self):
        with pytest.raises(ValueError):
            SsoSettings(timeout=0)
