"""Session storage primitive.

The manager never touches a storage backend directly. It goes through
``TokenSlots``, which owns the two storage keys and performs every state
transition as a single synchronous update.
"""

from __future__ import annotations

import logging
from typing import Protocol

from portal_sso.auth.client.models.session import SessionState

logger = logging.getLogger(__name__)


class SessionStorage(Protocol):
    """Key/value storage scoped to one browser session."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemorySessionStorage:
    """Dict-backed session storage. Lives as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class TokenSlots:
    """The client and server token slots of one session.

    ``client`` is the token sent on outbound requests. ``server`` is the
    token the backend last acknowledged, and is only written after a
    successful backend call.
    """

    def __init__(
        self,
        storage: SessionStorage,
        client_key: str = "accessToken",
        server_key: str = "serverToken",
    ):
        self._storage = storage
        self._client_key = client_key
        self._server_key = server_key

    @property
    def client(self) -> str | None:
        return self._storage.get_item(self._client_key)

    @property
    def server(self) -> str | None:
        return self._storage.get_item(self._server_key)

    @property
    def state(self) -> SessionState:
        """Current lifecycle state derived from the slots."""
        if not self.client:
            return SessionState.UNAUTHENTICATED
        if not self.server:
            return SessionState.CLIENT_ONLY
        return SessionState.ACKNOWLEDGED

    def adopt(self, token: str) -> None:
        """Store a token locally before the backend has seen it."""
        self._storage.set_item(self._client_key, token)
        logger.debug(f"Session state: {self.state.value}")

    def establish(self, token: str) -> None:
        """Store a token the backend issued, so both slots agree."""
        self._storage.set_item(self._client_key, token)
        self._storage.set_item(self._server_key, token)
        logger.debug(f"Session state: {self.state.value}")

    def acknowledge(self, token: str) -> None:
        """Record that the backend accepted ``token``."""
        self._storage.set_item(self._server_key, token)
        logger.debug(f"Session state: {self.state.value}")

    def drop_client(self) -> None:
        self._storage.remove_item(self._client_key)

    def drop_server(self) -> None:
        self._storage.remove_item(self._server_key)

    def drop_all(self) -> None:
        self._storage.remove_item(self._client_key)
        self._storage.remove_item(self._server_key)
