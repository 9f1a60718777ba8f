"""Exception hierarchy for authgrant.

All exceptions inherit from :class:`AuthgrantError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authgrant.exit_codes`.
The core client raises these to its immediate caller; only
:func:`authgrant.app.main` turns them into stderr messages and exit codes.

Subclass hierarchy::

    AuthgrantError (exit 1)
    +-- ConfigurationIncompleteError (exit 2)
    +-- StateMismatchError           (exit 3)
    +-- CallbackError                (exit 3)
    +-- MalformedResponseError       (exit 5)
    +-- TransportError               (exit 6)
    +-- ConfigError                  (exit 1)
"""

from __future__ import annotations

from authgrant.exit_codes import (
    EXIT_CONFIG_INCOMPLETE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_MALFORMED_RESPONSE,
    EXIT_STATE_MISMATCH,
)


class AuthgrantError(Exception):
    """Base exception for all authgrant errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationIncompleteError(AuthgrantError):
    """Raised when an operation needs client settings that were never set.

    The missing field names are kept on :attr:`missing` so callers can
    branch on them instead of matching the message text.

    Args:
        missing: Names of the unset fields, e.g. ``["provider_url"]``.
        operation: Short description of what was being attempted.
    """

    exit_code = EXIT_CONFIG_INCOMPLETE

    def __init__(self, missing: list[str], operation: str = "this operation"):
        self.missing = list(missing)
        super().__init__(
            f"Missing {', '.join(self.missing)} required for {operation}"
        )


class StateMismatchError(AuthgrantError):
    """Raised when the CSRF state is absent or does not match the stored value."""

    exit_code = EXIT_STATE_MISMATCH


class CallbackError(AuthgrantError):
    """Raised when the loopback redirect reports an error or carries no code."""

    exit_code = EXIT_STATE_MISMATCH


class MalformedResponseError(AuthgrantError):
    """Raised when the token endpoint body cannot be decoded into a JSON object."""

    exit_code = EXIT_MALFORMED_RESPONSE


class TransportError(AuthgrantError):
    """Raised on network-level failures while calling the token endpoint."""

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(AuthgrantError):
    """Raised for settings problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
