"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for authgrant:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.authgrant/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Client settings** -- A single :class:`~authgrant.models.ClientSettings`
  JSON file. Managed via :func:`load_settings` and :func:`save_settings`.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI
  flags, ``AUTHGRANT_*`` environment variables, and the settings file into
  the :class:`~authgrant.models.OAuthClientConfig` the client runs with.
* **Credential resolution** -- :func:`resolve_credential` reads the client
  secret from env vars, files, interactive prompts, or a literal value.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from authgrant.exceptions import ConfigError
from authgrant.models import ClientSettings, OAuthClientConfig

_APP_NAME = "authgrant"
_CONFIG_FILENAME = "config.json"
_ENV_PREFIX = "AUTHGRANT_"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/authgrant/`` (default ``~/.config/authgrant/``).
    On macOS/Windows: ``~/.authgrant/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (pending sessions, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/authgrant/`` (default ``~/.local/share/authgrant/``).
    On macOS/Windows: ``~/.authgrant/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Client settings ---


def settings_path() -> Path:
    """Path to the client settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> ClientSettings:
    """Load client settings from the config directory.

    Returns:
        The deserialised :class:`~authgrant.models.ClientSettings`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = settings_path()
    if not path.is_file():
        return ClientSettings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientSettings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: ClientSettings) -> None:
    """Persist client settings atomically to disk."""
    data = settings.model_dump(mode="json")
    atomic_write(settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)
        - ``"literal:VALUE"`` -- uses ``VALUE`` verbatim

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for client secret: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Client secret: ")

    if source.startswith("literal:"):
        return source[8:]

    raise ConfigError(f"Unknown credential source format: {source}")


# --- Precedence resolution ---


def _env(name: str) -> Optional[str]:
    value = os.environ.get(_ENV_PREFIX + name)
    return value if value else None


def resolve_client_config(
    provider_url: Optional[str] = None,
    client_id: Optional[Union[int, str]] = None,
    client_secret: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    scopes: Optional[str] = None,
    resolve_secret: bool = True,
) -> tuple[OAuthClientConfig, ClientSettings]:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. Explicit arguments (CLI flags)
        2. Environment variables (``AUTHGRANT_PROVIDER_URL``,
           ``AUTHGRANT_CLIENT_ID``, ``AUTHGRANT_CLIENT_SECRET``,
           ``AUTHGRANT_REDIRECT_URI``, ``AUTHGRANT_SCOPES``)
        3. Settings file (``~/.config/authgrant/config.json``)
        4. Defaults

    The settings file's ``client_secret_source`` is only resolved when
    neither an argument nor ``AUTHGRANT_CLIENT_SECRET`` supplies the
    secret, and only when *resolve_secret* is true. Building an
    authorization URL never needs the secret, so callers pass ``False``
    there to avoid an unnecessary prompt.

    Returns:
        A tuple of ``(client_config, settings)``.
    """
    settings = load_settings()

    layers: dict[str, Any] = {
        "provider_url": settings.provider_url,
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "scopes": settings.scopes,
    }
    for field in layers:
        env_value = _env(field.upper())
        if env_value is not None:
            layers[field] = env_value

    overrides = {
        "provider_url": provider_url,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scopes": scopes,
    }
    for field, value in overrides.items():
        if value is not None:
            layers[field] = value

    secret = client_secret if client_secret is not None else _env("CLIENT_SECRET")
    if secret is None and resolve_secret and settings.client_secret_source:
        secret = resolve_credential(settings.client_secret_source)

    return OAuthClientConfig(client_secret=secret, **layers), settings
