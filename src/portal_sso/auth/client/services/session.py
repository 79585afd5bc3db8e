"""SSO session token management service.

Acquires, validates, refreshes and invalidates the token that authorizes
requests from the portal to the backend API. A session is bootstrapped
either from the SSO redirect callback or from the silent token endpoint,
and is kept in two storage slots:

- client token: sent on outbound requests, may be set speculatively
- server token: the token the backend last acknowledged

Network failures never raise out of this service. They are logged and the
affected slot keeps its previous value. Token parse failures do raise.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from urllib.parse import unquote

from portal_sso.auth.client.models.session import (
    Completed,
    Redirect,
    SessionOutcome,
    SessionState,
)
from portal_sso.auth.client.models.settings import SsoSettings
from portal_sso.auth.client.models.tokens import AccessToken, TokenScheme
from portal_sso.auth.client.primitives.navigation import (
    BrowserLocation,
    Navigator,
    build_callback_url,
    extract_callback_token,
    is_callback_url,
)
from portal_sso.auth.client.primitives.parsing import (
    Headers,
    find_header,
    parse_access_token,
    unwrap_refresh_token,
)
from portal_sso.auth.client.primitives.storage import (
    MemorySessionStorage,
    SessionStorage,
    TokenSlots,
)
from portal_sso.auth.client.services.token_service import SsoTokenService

logger = logging.getLogger(__name__)

SAS = TokenScheme.SHARED_ACCESS_SIGNATURE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionTokenManager:
    """Client-side SSO session and token manager.

    Handles:
    - SSO callback consumption and redirect handshake
    - Silent token issuance when no session exists
    - Expiry checks on the stored token
    - Reconciliation with the refresh header sent on backend responses
    - Sign-out
    """

    def __init__(
        self,
        settings: SsoSettings | None = None,
        storage: SessionStorage | None = None,
        navigator: Navigator | None = None,
        token_service: SsoTokenService | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the session manager.

        Args:
            settings: Endpoint, header and storage key configuration
            storage: Session-scoped key/value storage
            navigator: Current page location and navigation
            token_service: Client for the backend token endpoints
            clock: Returns the current UTC time
        """
        self.settings = settings or SsoSettings()
        self.navigator = navigator or BrowserLocation()
        self.token_service = token_service or SsoTokenService(self.settings)
        self._slots = TokenSlots(
            storage if storage is not None else MemorySessionStorage(),
            client_key=self.settings.client_token_key,
            server_key=self.settings.server_token_key,
        )
        self._clock = clock

    @property
    def state(self) -> SessionState:
        """Current session lifecycle state."""
        return self._slots.state

    async def get_access_token(self) -> str | None:
        """Get the token to authorize outbound requests.

        Consumes the SSO callback URL if the page is on it, otherwise uses
        the stored client token, fetching one from the backend if none is
        stored. An expired stored token ends the session.

        Returns:
            Scheme-prefixed token, or None when unauthenticated

        Raises:
            TokenFormatError: If the stored token cannot be parsed
        """
        current_url = self.navigator.current_url
        if is_callback_url(current_url, self.settings.callback_path):
            access_token = SAS.prefix(extract_callback_token(current_url))
            self._slots.adopt(access_token)
            logger.info("Consumed SSO callback, returning to site root")
            self.navigator.assign(self.settings.root_path)
            return access_token

        access_token = self._slots.client
        if not access_token:
            return await self._fetch_access_token()

        if self._is_token_expired(access_token):
            logger.info("Stored access token has expired, clearing session")
            await self.clear_access_token()
            return None

        return access_token

    async def set_access_token(self, access_token: str) -> SessionOutcome:
        """Adopt an externally supplied token.

        Without an existing session this starts the SSO handshake: the token
        is stored and the browser is sent to the callback path with it.
        Otherwise the stored token is replaced in place.

        Args:
            access_token: Scheme-prefixed token, possibly percent-encoded

        Returns:
            Redirect if the browser was navigated away, Completed otherwise
        """
        sso_required = not self._slots.client
        decoded = unquote(access_token)
        self._slots.adopt(decoded)

        if sso_required:
            url = build_callback_url(self.settings.callback_path, SAS.strip(decoded))
            logger.info("No active session, starting SSO handshake")
            self.navigator.assign(url)
            return Redirect(url)

        return Completed()

    async def refresh_access_token_from_header(
        self, headers: Headers | None = None
    ) -> str | None:
        """Reconcile session state with a backend response.

        A new token in the refresh header replaces the client token and is
        sent to the refresh endpoint. Without one, a client token the backend
        has not acknowledged yet is acknowledged now.

        Args:
            headers: Response headers, as a mapping or (name, value) pairs

        Returns:
            The new scheme-prefixed token if the header changed it, else None
        """
        header_value = find_header(headers, self.settings.refresh_header)
        if header_value:
            signature = unwrap_refresh_token(header_value)
            if signature is None:
                logger.warning("Token format is not valid.")
                signature = header_value

            access_token = SAS.prefix(signature)
            if access_token != self._slots.client:
                self._slots.adopt(access_token)
                logger.info("Access token replaced from refresh header")
                await self._acknowledge(access_token)
                return access_token

        if not self._slots.server:
            client_token = self._slots.client
            if not client_token:
                return None

            if self._is_token_expired(client_token):
                await self.clear_access_token(client_only=True)
                return None

            await self._acknowledge(client_token)

        return None

    async def clear_access_token(self, client_only: bool = False) -> None:
        """Remove the client token and, unless ``client_only``, sign out.

        The server token is only removed once sign-out succeeds.
        """
        access_token = self._slots.client
        if not access_token:
            return

        self._slots.drop_client()
        if client_only:
            logger.debug("Cleared client token")
            return

        result = await self.token_service.sign_out(access_token)
        if result.is_success():
            self._slots.drop_server()
            logger.info("Signed out")
        else:
            logger.error(
                f"Error on clear access token: {result.error or result.status_code}"
            )

    async def is_authenticated(self) -> bool:
        """Check if a usable token is available. May bootstrap a session."""
        return bool(await self.get_access_token())

    def parse_access_token(self, access_token: str | None) -> AccessToken:
        """Parse a scheme-prefixed token. See ``parse_access_token``."""
        return parse_access_token(access_token)

    def _is_token_expired(self, access_token: str) -> bool:
        return self.parse_access_token(access_token).is_expired(self._clock())

    async def _fetch_access_token(self) -> str | None:
        result = await self.token_service.fetch_token()
        if not result.is_success():
            logger.error(
                f"Error on token request: {result.error or result.status_code}"
            )
            return None

        if not result.body.strip():
            logger.error("Error on token request: empty token")
            return None

        access_token = SAS.prefix(result.body.strip())
        self._slots.establish(access_token)
        logger.info("Session established from token endpoint")
        return access_token

    async def _acknowledge(self, access_token: str) -> bool:
        result = await self.token_service.acknowledge(access_token)
        if not result.is_success():
            logger.error(f"Error on sso-refresh: {result.error or result.status_code}")
            return False

        self._slots.acknowledge(access_token)
        return True

    async def close(self) -> None:
        """Close the token service connections."""
        await self.token_service.close()
