"""httpx integration for SSO sessions.

Attach ``SessionTokenAuth`` to the application's ``httpx.AsyncClient`` so
every backend call carries the session token and every response gets a
chance to refresh it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Generator

import httpx

from portal_sso.auth.client.services.session import SessionTokenManager

logger = logging.getLogger(__name__)


class SessionTokenAuth(httpx.Auth):
    """Authorizes requests with the current SSO session token.

    After each response the refresh header is handed to the session
    manager, which may replace the token for the next request.
    """

    def __init__(self, session_manager: SessionTokenManager):
        self.session_manager = session_manager

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("SessionTokenAuth requires an httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        access_token = await self.session_manager.get_access_token()
        if access_token:
            request.headers["Authorization"] = access_token
        else:
            logger.debug(f"Sending unauthenticated request to {request.url.path}")

        response = yield request

        await self.session_manager.refresh_access_token_from_header(response.headers)
