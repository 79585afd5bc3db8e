"""Access token models for SSO sessions.

Contains the two supported token schemes and the immutable parsed token.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class TokenScheme(str, Enum):
    """Authorization scheme prefixes accepted by the backend."""

    BEARER = "Bearer"
    SHARED_ACCESS_SIGNATURE = "SharedAccessSignature"

    @property
    def marker(self) -> str:
        """Prefix as it appears in a stored token, including the space."""
        return f"{self.value} "

    def prefix(self, value: str) -> str:
        """Build the scheme-prefixed form of a raw token value."""
        return f"{self.marker}{value}"

    def strip(self, token: str) -> str:
        """Remove this scheme's prefix from a token, if present."""
        if token.startswith(self.marker):
            return token[len(self.marker) :]
        return token


@dataclass(frozen=True)
class AccessToken:
    """Parsed access token.

    Immutable once parsed. ``expires_at`` is always derived from ``value``,
    so parsing the same raw token twice gives equal instances.
    """

    scheme: TokenScheme
    value: str
    expires_at: datetime  # timezone-aware, UTC

    @property
    def raw_value(self) -> str:
        """Scheme-prefixed form, suitable for an Authorization header."""
        return self.scheme.prefix(self.value)

    def is_expired(self, now: datetime) -> bool:
        """Check expiry against ``now``. A token expiring exactly now is valid."""
        return self.expires_at < now


class BearerClaims(BaseModel):
    """Unverified JWT claims of a bearer token.

    Only ``exp`` is required; other claims are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    exp: float  # Seconds since epoch
    sub: str | None = None
    iss: str | None = None
