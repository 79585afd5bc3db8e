"""Exception hierarchy for SSO session token errors.

Only parse failures are raised out of the session manager. Network
failures are reported as failed results and logged instead.
"""

from __future__ import annotations


class SsoError(Exception):
    """Base exception for all SSO session related errors."""

    pass


class TokenFormatError(SsoError):
    """Raised when an access token cannot be parsed.

    Covers a missing or unrecognized scheme prefix, a shared access
    signature without a valid expiration digit group, and bearer tokens
    whose claims cannot be decoded.
    """

    pass


class MissingTokenError(TokenFormatError):
    """Raised when an empty or absent token is handed to the parser."""

    pass


class TokenServiceError(SsoError):
    """Raised when a token service call is required to succeed but did not."""

    pass
