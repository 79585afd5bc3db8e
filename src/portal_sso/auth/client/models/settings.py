"""Configuration for the SSO session client."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class SsoSettings(BaseModel):
    """Endpoints, storage keys and header names used by the session manager."""

    base_url: str = ""
    timeout: float = Field(default=30.0, gt=0)

    # Backend endpoints
    token_path: str = "/token"
    refresh_path: str = "/sso-refresh"
    signout_path: str = "/signout"

    # Browser navigation
    callback_path: str = "/signin-sso"
    root_path: str = "/"

    refresh_header: str = "Ocp-Apim-Sas-Token"

    # Session storage keys
    client_token_key: str = "accessToken"
    server_token_key: str = "serverToken"

    @field_validator(
        "token_path", "refresh_path", "signout_path", "callback_path", "root_path"
    )
    @classmethod
    def validate_paths(cls, v: str) -> str:
        """Paths are resolved against the site root, so must be absolute."""
        if not v.startswith("/"):
            raise ValueError(f"Path must start with '/': {v}")
        return v

    @field_validator("client_token_key", "server_token_key", "refresh_header")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Value must not be empty")
        return v
