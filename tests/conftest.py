"""Shared test fixtures for authgrant.

Provides config isolation, output reset, a mocked ``httpx.Client`` and a
ready-to-use client configuration. Fixtures are discovered automatically by
pytest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import httpx
import pytest

from authgrant.models import OAuthClientConfig
from authgrant.output import reset_output
from authgrant.session import MemorySessionStore


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    CliRunner swaps sys.stdout/sys.stderr during a test; a manager created
    then would keep references to the closed streams.
    """
    yield
    reset_output()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories at tmp_path and clear AUTHGRANT_* variables."""
    monkeypatch.setattr("authgrant.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "AUTHGRANT_PROVIDER_URL",
        "AUTHGRANT_CLIENT_ID",
        "AUTHGRANT_CLIENT_SECRET",
        "AUTHGRANT_REDIRECT_URI",
        "AUTHGRANT_SCOPES",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def client_config() -> OAuthClientConfig:
    return OAuthClientConfig(
        provider_url="https://auth.example.com",
        client_id=3,
        client_secret="s3cret",
        redirect_uri="https://app.example.com/callback",
        scopes="read write",
    )


@pytest.fixture
def session() -> MemorySessionStore:
    return MemorySessionStore()


def _build_response(
    payload: Any = None,
    status_code: int = 200,
    content: bytes | None = None,
) -> httpx.Response:
    """Build a real httpx.Response carrying *payload* as JSON (or raw *content*)."""
    request = httpx.Request("POST", "https://auth.example.com/oauth/token")
    if content is not None:
        return httpx.Response(status_code, content=content, request=request)
    return httpx.Response(status_code, json=payload, request=request)


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """Factory for token endpoint responses."""
    return _build_response


@pytest.fixture
def http_client() -> MagicMock:
    """A MagicMock standing in for httpx.Client, returning a bearer token."""
    mock = MagicMock(spec=httpx.Client)
    mock.post.return_value = _build_response(
        {"access_token": "abc", "token_type": "bearer"}
    )
    return mock
