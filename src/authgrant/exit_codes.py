"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~authgrant.exceptions.AuthgrantError` subclass.
Shell scripts wrapping ``authgrant`` can inspect the exit code to tell a
CSRF failure from a network outage without parsing stderr.

Example::

    $ authgrant exchange abc123 --state stale
    $ echo $?
    3   # EXIT_STATE_MISMATCH -- the state was already consumed
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_INCOMPLETE = 2
"""Required client settings (provider URL, client id, secret) are missing."""

EXIT_STATE_MISMATCH = 3
"""The CSRF state check failed or the provider rejected the authorization."""

EXIT_MALFORMED_RESPONSE = 5
"""The token endpoint returned a body that is not a JSON object."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
