"""Session stores that carry the CSRF state between authorize and exchange.

:class:`~authgrant.client.AuthorizationCodeClient` only needs two calls on
a session: ``put(key, value)`` and ``pull(key)`` (get-and-delete). Anything
with that shape satisfies :class:`SessionStore`, including a thin adapter
over a web framework's session.

Two implementations ship here:

- :class:`MemorySessionStore` -- a dict, for request handlers and tests.
- :class:`FileSessionStore` -- a JSON file under the data directory, so a
  state written by ``authgrant authorize`` survives until
  ``authgrant exchange`` runs in a later process.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from authgrant.config import atomic_write, get_data_dir
from authgrant.exceptions import ConfigError

logger = logging.getLogger(__name__)

STATE_KEY = "state"
"""Session key under which the pending CSRF state is stored."""


@runtime_checkable
class SessionStore(Protocol):
    """Minimal key-value session interface."""

    def put(self, key: str, value: str) -> None:
        ...

    def pull(self, key: str) -> Optional[str]:
        """Return the value stored under *key* and remove it."""
        ...


class MemorySessionStore:
    """In-memory session store backed by a dict.

    Args:
        initial: Optional starting contents, copied on construction.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def pull(self, key: str) -> Optional[str]:
        return self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


def _sessions_dir() -> Path:
    """Return the pending-sessions directory, creating it if needed."""
    path = get_data_dir() / "sessions"
    path.mkdir(parents=True, exist_ok=True)
    return path


class FileSessionStore:
    """Session store persisted as a JSON object on disk.

    Each named session maps to ``<data_dir>/sessions/<name>.json``. Writes
    are atomic with ``0o600`` permissions; the file is removed once the last
    key has been pulled.

    Args:
        name: Session name used to derive the file name. It must not
            contain a path separator.

    Raises:
        ConfigError: If *name* is not a plain file name.

    Example::

        store = FileSessionStore("default")
        store.put("state", "abc")
        assert store.pull("state") == "abc"
        assert store.pull("state") is None
    """

    def __init__(self, name: str = "default") -> None:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ConfigError(f"Invalid session name: {name!r}")
        self._name = name
        self._path = _sessions_dir() / f"{name}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this session's file."""
        return self._path

    def put(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def pull(self, key: str) -> Optional[str]:
        data = self._read()
        value = data.pop(key, None)
        if value is not None:
            self._write(data)
        return value

    def clear(self) -> None:
        """Delete the session file if it exists."""
        if self._path.is_file():
            self._path.unlink()

    def _read(self) -> dict[str, str]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.debug("Discarding unreadable session file %s", self._path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        if not data:
            self.clear()
            return
        atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)
