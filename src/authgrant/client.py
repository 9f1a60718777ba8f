"""OAuth2 authorization code grant client.

This module provides :class:`AuthorizationCodeClient`, which covers the two
server-side halves of the authorization code grant:

1. :meth:`~AuthorizationCodeClient.build_authorization_url` -- builds the
   provider's ``/oauth/authorize`` URL and stores a fresh CSRF state in the
   caller's session.
2. :meth:`~AuthorizationCodeClient.exchange_code` -- consumes that state,
   checks it against the value the provider echoed back, and POSTs the code
   to ``/oauth/token``.

The HTTP client and the session store are both supplied by the caller. The
client itself keeps no state between the two calls.

Example::

    with httpx.Client(timeout=30.0) as http:
        client = (
            AuthorizationCodeClient(http)
            .set_provider_url("https://auth.example.com")
            .set_client_id(3)
            .set_client_secret("s3cret")
            .set_redirect_uri("https://app.example.com/callback")
            .set_scopes("read write")
        )
        url = client.build_authorization_url(session)
        ...
        token = client.exchange_code(code, session, presented_state=state)
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any, Optional, Union
from urllib.parse import urlencode

import httpx

from authgrant.exceptions import (
    MalformedResponseError,
    StateMismatchError,
    TransportError,
)
from authgrant.models import OAuthClientConfig, TokenResponse
from authgrant.session import STATE_KEY, SessionStore
from authgrant.state import generate_state

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = "/oauth/authorize"
TOKEN_PATH = "/oauth/token"


class AuthorizationCodeClient:
    """Build authorization URLs and exchange codes for tokens.

    Args:
        http_client: HTTP client used for the token request. Timeouts and
            transport settings belong to it.
        config: Optional pre-built configuration. When omitted, an empty
            :class:`~authgrant.models.OAuthClientConfig` is created and
            filled in through the ``set_*`` methods.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        config: Optional[OAuthClientConfig] = None,
    ) -> None:
        self._http = http_client
        self._config = config if config is not None else OAuthClientConfig()

    @property
    def config(self) -> OAuthClientConfig:
        """The configuration this client operates on."""
        return self._config

    # ------------------------------------------------------------------ #
    # Fluent setters
    # ------------------------------------------------------------------ #

    def set_provider_url(self, url: str) -> AuthorizationCodeClient:
        self._config.provider_url = url
        return self

    def set_client_id(self, client_id: Union[int, str]) -> AuthorizationCodeClient:
        self._config.client_id = client_id
        return self

    def set_client_secret(self, secret: str) -> AuthorizationCodeClient:
        self._config.client_secret = secret
        return self

    def set_redirect_uri(self, uri: str) -> AuthorizationCodeClient:
        self._config.redirect_uri = uri
        return self

    def set_scopes(self, scopes: Union[str, list[str]]) -> AuthorizationCodeClient:
        """Set the requested scopes as a space-separated string or a list."""
        self._config.scopes = scopes  # type: ignore[assignment]
        return self

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def build_authorization_url(self, session: SessionStore) -> str:
        """Build the provider authorization URL and remember its state.

        A new state token is written to *session* under ``"state"`` on every
        call, replacing any earlier pending value.

        Args:
            session: Store that will hold the state until the callback.

        Returns:
            ``<provider_url>/oauth/authorize?client_id=...&response_type=code
            &scope=...&state=...`` (``redirect_uri`` follows ``client_id``
            when configured).

        Raises:
            ConfigurationIncompleteError: If ``provider_url`` or
                ``client_id`` is unset.
        """
        cfg = self._config
        cfg.require("provider_url", "client_id", operation="building an authorization URL")

        state = generate_state()
        session.put(STATE_KEY, state)

        params: dict[str, str] = {"client_id": str(cfg.client_id)}
        if cfg.redirect_uri is not None:
            params["redirect_uri"] = cfg.redirect_uri
        params["response_type"] = "code"
        params["scope"] = cfg.scopes
        params["state"] = state

        logger.debug("Built authorization URL for client %s", cfg.client_id)
        return f"{cfg.provider_url}{AUTHORIZE_PATH}?{urlencode(params)}"

    def exchange_code(
        self,
        code: str,
        session: SessionStore,
        presented_state: Optional[str],
    ) -> TokenResponse:
        """Exchange an authorization code for a token.

        The stored state is pulled from *session* before anything else, so
        it is gone afterwards whether the exchange succeeds or fails.

        Args:
            code: The authorization code from the provider redirect.
            session: The store passed to :meth:`build_authorization_url`.
            presented_state: The ``state`` query value from the redirect.

        Returns:
            The decoded token endpoint body, typically containing
            ``access_token``, ``token_type`` and ``expires_in``.

        Raises:
            ConfigurationIncompleteError: If ``provider_url``, ``client_id``
                or ``client_secret`` is unset.
            StateMismatchError: If no state was stored, none was presented,
                or the two differ. No request is sent in that case.
            TransportError: If the POST fails at the network layer.
            MalformedResponseError: If the body is not a JSON object.
        """
        stored_state = session.pull(STATE_KEY)
        logger.debug("Consumed pending state from session")

        cfg = self._config
        cfg.require(
            "provider_url",
            "client_id",
            "client_secret",
            operation="exchanging an authorization code",
        )

        if not stored_state:
            raise StateMismatchError(
                "No pending authorization state; start a new authorization request"
            )
        if not presented_state or not secrets.compare_digest(
            stored_state.encode("utf-8"), presented_state.encode("utf-8")
        ):
            raise StateMismatchError("Authorization state does not match")

        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "client_id": str(cfg.client_id),
            "client_secret": str(cfg.client_secret),
        }
        if cfg.redirect_uri is not None:
            data["redirect_uri"] = cfg.redirect_uri
        data["code"] = code

        token_url = f"{cfg.provider_url}{TOKEN_PATH}"
        logger.debug("Requesting token from %s", token_url)
        try:
            response = self._http.post(
                token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Token request to {token_url} failed: {exc}") from exc

        return _decode_token_response(response)


def _decode_token_response(response: httpx.Response) -> TokenResponse:
    """Decode the token endpoint body without judging its status or fields."""
    try:
        payload: Any = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(
            f"Token endpoint returned a non-JSON body (HTTP {response.status_code})"
        ) from exc

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Token endpoint returned JSON {type(payload).__name__}, expected an object"
        )
    return payload
