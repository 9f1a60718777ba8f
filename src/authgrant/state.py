"""CSRF state token generation.

The ``state`` parameter ties the provider redirect back to the session that
started the authorization request. Values come from :mod:`secrets` and only
use characters that need no percent-encoding in a query string.
"""

from __future__ import annotations

import base64
import secrets

DEFAULT_STATE_LENGTH = 40

_STRIP = str.maketrans("", "", "/+=")


def generate_state(length: int = DEFAULT_STATE_LENGTH) -> str:
    """Generate a random alphanumeric state token of exactly *length* characters.

    Random bytes are base64-encoded with ``/``, ``+`` and ``=`` removed. Since
    stripping can leave the result short, the loop keeps drawing until the
    target length is reached.

    Args:
        length: Number of characters to return. Must be at least 1.

    Returns:
        A string drawn from ``[A-Za-z0-9]``.

    Raises:
        ValueError: If *length* is less than 1.
    """
    if length < 1:
        raise ValueError(f"State length must be at least 1, got {length}")

    state = ""
    while len(state) < length:
        size = length - len(state)
        chunk = base64.b64encode(secrets.token_bytes(size)).decode("ascii")
        state += chunk.translate(_STRIP)[:size]
    return state
