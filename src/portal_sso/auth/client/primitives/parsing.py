"""Access token parsing primitive.

Parses the two token encodings accepted by the backend into an
``AccessToken`` with an absolute UTC expiration:

- ``Bearer <jwt>``: expiration is the ``exp`` claim of the JWT payload.
  Claims are read without signature verification.
- ``SharedAccessSignature <sig>``: expiration is the ``YYYYMMDDHHmm`` digit
  group embedded in ``<identifier>&<digits>&<signature>``. The value may
  also arrive wrapped as ``token="<sig>",refresh=...``.

All functions here are pure. Failures raise ``TokenFormatError``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from jose import JWTError, jwt
from pydantic import ValidationError

from portal_sso.auth.client.models.errors import MissingTokenError, TokenFormatError
from portal_sso.auth.client.models.tokens import AccessToken, BearerClaims, TokenScheme

logger = logging.getLogger(__name__)

_REFRESH_WRAPPER = re.compile(r'token="([^"]*)",refresh')
_SIGNATURE_EXPIRY = re.compile(r"^[\w\-]*&(\d{12})&")
_EXPIRY_FORMAT = "%Y%m%d%H%M"

Headers = Mapping[str, str] | Iterable[tuple[str, str]]


def parse_access_token(token: str | None) -> AccessToken:
    """Parse a scheme-prefixed access token.

    Args:
        token: Token as stored, e.g. ``"SharedAccessSignature uid&202501011200&sig"``

    Returns:
        AccessToken: Parsed token with its expiration

    Raises:
        MissingTokenError: If token is empty or None
        TokenFormatError: If the scheme is unknown or the value is malformed
    """
    if not token:
        raise MissingTokenError("Access token is missing.")

    if token.startswith(TokenScheme.BEARER.marker):
        return parse_bearer_token(TokenScheme.BEARER.strip(token))

    if token.startswith(TokenScheme.SHARED_ACCESS_SIGNATURE.marker):
        return parse_shared_access_signature(
            TokenScheme.SHARED_ACCESS_SIGNATURE.strip(token)
        )

    raise TokenFormatError(
        'Access token format is not valid. Please use "Bearer" or '
        '"SharedAccessSignature".'
    )


def parse_bearer_token(value: str) -> AccessToken:
    """Parse the JWT part of a bearer token."""
    try:
        claims = BearerClaims.model_validate(jwt.get_unverified_claims(value))
    except JWTError as e:
        raise TokenFormatError(f"Bearer token could not be decoded: {e}") from e
    except ValidationError as e:
        raise TokenFormatError(f"Bearer token claims are not valid: {e}") from e

    try:
        expires_at = datetime.fromtimestamp(claims.exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise TokenFormatError(f"Bearer token exp claim is out of range: {e}") from e

    return AccessToken(
        scheme=TokenScheme.BEARER,
        value=value,
        expires_at=expires_at,
    )


def parse_shared_access_signature(value: str) -> AccessToken:
    """Parse the value part of a shared access signature token.

    A ``token="...",refresh`` wrapper is removed once before looking for the
    expiration. Without a wrapper the whole value is treated as the signature.
    """
    signature = unwrap_refresh_token(value)
    if signature is None:
        logger.debug("Shared access signature is not wrapped, using value as is")
        signature = value

    match = _SIGNATURE_EXPIRY.match(signature)
    if not match:
        raise TokenFormatError("SharedAccessSignature token format is not valid.")

    try:
        expires_at = datetime.strptime(match.group(1), _EXPIRY_FORMAT).replace(
            tzinfo=timezone.utc
        )
    except ValueError as e:
        raise TokenFormatError(
            f"SharedAccessSignature expiration is not a valid date: {e}"
        ) from e

    return AccessToken(
        scheme=TokenScheme.SHARED_ACCESS_SIGNATURE,
        value=signature,
        expires_at=expires_at,
    )


def unwrap_refresh_token(value: str) -> str | None:
    """Extract ``<sig>`` from ``token="<sig>",refresh=...``.

    Returns:
        The inner signature, or None if the wrapper is not present
    """
    match = _REFRESH_WRAPPER.search(value)
    return match.group(1) if match else None


def is_token_expired(token: str, now: datetime | None = None) -> bool:
    """Check whether a scheme-prefixed token has expired.

    Raises:
        TokenFormatError: If the token cannot be parsed
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return parse_access_token(token).is_expired(now)


def find_header(headers: Headers | None, name: str) -> str | None:
    """Case-insensitive header lookup over a mapping or (name, value) pairs."""
    if not headers:
        return None

    items = headers.items() if isinstance(headers, Mapping) else headers
    wanted = name.lower()
    for header_name, header_value in items:
        if header_name.lower() == wanted:
            return header_value
    return None
