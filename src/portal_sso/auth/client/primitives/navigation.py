"""Browser navigation primitive.

Navigation is a side effect the session manager performs while
bootstrapping SSO. It is injected so it can be observed without a browser.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import quote, unquote, urljoin, urlsplit

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    """Access to the current page location."""

    @property
    def current_url(self) -> str: ...

    def assign(self, url: str) -> None:
        """Navigate to ``url``. Nothing else should run on the current page."""
        ...


class BrowserLocation:
    """In-memory navigator that records every navigation."""

    def __init__(self, url: str = "http://localhost/"):
        self._url = url
        self.history: list[str] = []

    @property
    def current_url(self) -> str:
        return self._url

    def assign(self, url: str) -> None:
        self._url = urljoin(self._url, url)
        self.history.append(url)
        logger.debug(f"Navigated to {urlsplit(self._url).path}")


def is_callback_url(url: str, callback_path: str) -> bool:
    """Check if ``url`` points at the SSO callback path."""
    return urlsplit(url).path.startswith(callback_path)


def extract_callback_token(url: str) -> str:
    """Extract and percent-decode the token from an SSO callback URL.

    Everything after ``token=`` is taken, since an unencoded signature
    contains ``&`` separators. ``+`` is kept as is.
    """
    query = urlsplit(url).query
    _, _, raw_token = query.partition("token=")
    return unquote(raw_token)


def build_callback_url(callback_path: str, signature: str) -> str:
    """Build the callback URL that carries ``signature`` back to this app."""
    return f"{callback_path}?token={quote(signature, safe='')}"
