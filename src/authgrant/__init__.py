"""authgrant -- OAuth2 authorization code grant helper.

Builds the provider's authorization URL with a one-time CSRF state and
exchanges the returned code for a token with a single form POST.

Typical usage::

    from authgrant import AuthorizationCodeClient, MemorySessionStore

    session = MemorySessionStore()
    with httpx.Client(timeout=30.0) as http:
        client = AuthorizationCodeClient(http, config)
        url = client.build_authorization_url(session)
        # ... user approves, provider redirects back with code + state ...
        token = client.exchange_code(code, session, presented_state=state)

Modules:
    client: The authorization code client.
    models: Pydantic models for client configuration and persisted settings.
    state: CSRF state token generation.
    session: Session store protocol and implementations.
    config: XDG-aware settings persistence and precedence resolution.
    callback: Loopback redirect receiver used by ``authgrant login``.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from authgrant.client import AuthorizationCodeClient  # noqa: E402
from authgrant.exceptions import (  # noqa: E402
    AuthgrantError,
    ConfigurationIncompleteError,
    MalformedResponseError,
    StateMismatchError,
    TransportError,
)
from authgrant.models import OAuthClientConfig, TokenResponse  # noqa: E402
from authgrant.session import FileSessionStore, MemorySessionStore, SessionStore  # noqa: E402
from authgrant.state import generate_state  # noqa: E402

__all__ = [
    "AuthorizationCodeClient",
    "AuthgrantError",
    "ConfigurationIncompleteError",
    "FileSessionStore",
    "MalformedResponseError",
    "MemorySessionStore",
    "OAuthClientConfig",
    "SessionStore",
    "StateMismatchError",
    "TokenResponse",
    "TransportError",
    "generate_state",
]
