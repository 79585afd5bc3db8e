"""SSO token service client.

Talks to the three backend endpoints involved in an SSO session:
token issuance, SSO refresh acknowledgment and sign-out.
"""

from __future__ import annotations

import logging

import httpx

from portal_sso.auth.client.models.session import ServiceResult
from portal_sso.auth.client.models.settings import SsoSettings

logger = logging.getLogger(__name__)


class SsoTokenService:
    """HTTP client for the backend token endpoints.

    Every call returns a ``ServiceResult``. Transport failures are captured
    in the result instead of being raised, so callers decide how to degrade.
    """

    def __init__(self, settings: SsoSettings | None = None):
        """Initialize the token service.

        Args:
            settings: Endpoint configuration, defaults to ``SsoSettings()``
        """
        self.settings = settings or SsoSettings()
        self._http_client = httpx.AsyncClient(
            base_url=self.settings.base_url, timeout=self.settings.timeout
        )

    async def fetch_token(self) -> ServiceResult:
        """Request a new shared access signature.

        Only a 200 response counts as issued. The response body is the
        signature as plain text, without scheme prefix.
        """
        logger.debug(f"Requesting token from {self.settings.token_path}")

        result = await self._get(self.settings.token_path)
        if result.status_code is not None and result.status_code != 200:
            return ServiceResult(
                status_code=result.status_code,
                body=result.body,
                error=f"Unexpected status {result.status_code}",
            )
        return result

    async def acknowledge(self, token: str) -> ServiceResult:
        """Ask the backend to adopt ``token`` for the SSO session.

        Args:
            token: Scheme-prefixed token, sent as the Authorization header
        """
        logger.debug(f"Sending SSO refresh to {self.settings.refresh_path}")
        return await self._get(
            self.settings.refresh_path, headers={"Authorization": token}
        )

    async def sign_out(self, token: str) -> ServiceResult:
        """End the backend session authorized by ``token``."""
        logger.debug(f"Signing out at {self.settings.signout_path}")
        return await self._get(
            self.settings.signout_path, headers={"Authorization": token}
        )

    async def _get(
        self, path: str, headers: dict[str, str] | None = None
    ) -> ServiceResult:
        try:
            response = await self._http_client.get(path, headers=headers)
        except httpx.HTTPError as e:
            return ServiceResult(error=f"HTTP error calling {path}: {e}")

        result = ServiceResult(status_code=response.status_code, body=response.text)
        if not result.is_success():
            logger.debug(f"{path} responded with {response.status_code}")
        return result

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
