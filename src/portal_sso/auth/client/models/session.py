"""Session state and outcome models.

Describes where a session is in its lifecycle and what a session
operation asks the browser to do next.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from portal_sso.auth.client.models.errors import TokenServiceError


class SessionState(Enum):
    """Lifecycle of the two token slots.

    UNAUTHENTICATED -> CLIENT_ONLY -> ACKNOWLEDGED -> UNAUTHENTICATED
    """

    UNAUTHENTICATED = "unauthenticated"
    CLIENT_ONLY = "client_only"
    ACKNOWLEDGED = "acknowledged"


@dataclass(frozen=True)
class Completed:
    """The operation finished and the current page keeps running."""

    def is_redirect(self) -> bool:
        return False


@dataclass(frozen=True)
class Redirect:
    """The browser was sent elsewhere; nothing else runs on this page."""

    url: str

    def is_redirect(self) -> bool:
        return True


SessionOutcome = Completed | Redirect


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of a single token service call.

    ``status_code`` is None when the request never got a response.
    """

    status_code: int | None = None
    body: str = ""
    error: str | None = None

    def is_success(self) -> bool:
        """Check if the call got a successful response."""
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )

    def raise_for_failure(self) -> None:
        """Raise TokenServiceError unless the call succeeded."""
        if not self.is_success():
            reason = self.error or f"HTTP {self.status_code}"
            raise TokenServiceError(f"Token service call failed: {reason}")
