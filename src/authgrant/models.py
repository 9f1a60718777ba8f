"""Pydantic models shared across authgrant modules.

Two shapes live here:

* :class:`OAuthClientConfig` -- the resolved, in-memory configuration the
  :class:`~authgrant.client.AuthorizationCodeClient` operates on. It holds the
  client secret itself and is never written to disk.
* :class:`ClientSettings` -- the persisted form, serialised as JSON in the
  user's config directory. It stores a credential *source* for the secret
  rather than the secret.

``TokenResponse`` is the decoded token endpoint body. Its shape is owned by
the provider, so it stays a plain mapping.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authgrant.exceptions import ConfigurationIncompleteError

TokenResponse = dict[str, Any]


def _join_scopes(value: Any) -> Any:  # noqa: ANN401
    """Accept a list of scopes and join it with single spaces."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return " ".join(str(scope) for scope in value)
    return value


class OAuthClientConfig(BaseModel):
    """OAuth client configuration for the authorization code grant.

    Every field except ``scopes`` is optional so that a config can be filled
    in piecemeal (see the fluent setters on
    :class:`~authgrant.client.AuthorizationCodeClient`). Operations call
    :meth:`require` before doing any work.

    Example::

        config = OAuthClientConfig(
            provider_url="https://auth.example.com",
            client_id=3,
            client_secret="s3cret",
            redirect_uri="https://app.example.com/callback",
            scopes=["read", "write"],
        )
        assert config.scopes == "read write"
    """

    model_config = ConfigDict(validate_assignment=True)

    provider_url: Optional[str] = Field(
        default=None, description="Base URL of the OAuth provider"
    )
    client_id: Optional[Union[int, str]] = Field(
        default=None, description="OAuth client identifier"
    )
    client_secret: Optional[str] = Field(
        default=None, description="OAuth client secret"
    )
    redirect_uri: Optional[str] = Field(
        default=None, description="Callback URI registered with the provider"
    )
    scopes: str = Field(
        default="", description="Space-separated list of requested scopes"
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def normalize_scopes(cls, value: Any) -> Any:  # noqa: ANN401
        return _join_scopes(value)

    def missing(self, *fields: str) -> list[str]:
        """Return the names among *fields* whose value is ``None``."""
        return [name for name in fields if getattr(self, name) is None]

    def require(self, *fields: str, operation: str = "this operation") -> None:
        """Raise if any of *fields* is unset.

        Raises:
            ConfigurationIncompleteError: Listing every unset field.
        """
        absent = self.missing(*fields)
        if absent:
            raise ConfigurationIncompleteError(absent, operation)


class ClientSettings(BaseModel):
    """Persisted client settings stored at ``<config_dir>/config.json``.

    The client secret is referenced by ``client_secret_source`` (``env:VAR``,
    ``file:/path``, ``prompt`` or ``literal:VALUE``) and resolved at runtime
    by :func:`authgrant.config.resolve_credential`.
    """

    provider_url: Optional[str] = None
    client_id: Optional[Union[int, str]] = None
    client_secret_source: Optional[str] = Field(
        default=None,
        description="Credential source: env:VAR, file:/path, prompt, literal:VALUE",
    )
    redirect_uri: Optional[str] = None
    scopes: str = ""
    timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds for the token request"
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def normalize_scopes(cls, value: Any) -> Any:  # noqa: ANN401
        return _join_scopes(value)
