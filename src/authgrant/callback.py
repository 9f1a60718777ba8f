"""One-shot loopback receiver for the provider redirect.

Used by ``authgrant login``: a single-request HTTP server listens on
``127.0.0.1`` while the user authorizes in the browser, then hands the
``code`` and ``state`` query values back to the caller. The state check
itself stays in :meth:`~authgrant.client.AuthorizationCodeClient.exchange_code`.
"""

from __future__ import annotations

import socket
import threading
import time
import webbrowser
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from authgrant.exceptions import CallbackError

CALLBACK_PATH = "/callback"
DEFAULT_CALLBACK_TIMEOUT = 120.0


@dataclass
class CallbackResult:
    code: str
    state: Optional[str]


def find_free_port() -> int:
    """Find a free TCP port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def loopback_redirect_uri(port: int) -> str:
    return f"http://127.0.0.1:{port}{CALLBACK_PATH}"


def wait_for_callback(
    port: int,
    auth_url: str,
    timeout: float = DEFAULT_CALLBACK_TIMEOUT,
    open_browser: bool = True,
) -> CallbackResult:
    """Start a local HTTP server, open the browser, and wait for the redirect.

    The browser is opened in a daemon thread so a slow launcher never
    delays the server. Requests to paths other than ``/callback`` get a 404
    and the server keeps waiting until the callback arrives or *timeout*
    expires.

    Args:
        port: TCP port for the local callback server.
        auth_url: The fully-formed authorization URL to open.
        timeout: Seconds to wait for the provider redirect.
        open_browser: When false, the caller is responsible for showing
            *auth_url* to the user.

    Returns:
        The ``code`` and ``state`` from the callback query string.

    Raises:
        CallbackError: If the provider returned an ``error`` parameter or no
            code arrived before the timeout.
    """
    result: dict[str, Optional[str]] = {"code": None, "state": None, "error": None}
    received = threading.Event()

    class CallbackHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            parsed = urlparse(self.path)
            if parsed.path != CALLBACK_PATH:
                self.send_error(404)
                return
            params = parse_qs(parsed.query)
            received.set()

            if "error" in params:
                result["error"] = params["error"][0]
                error_desc = params.get("error_description", [""])[0]
                body = f"Authorization failed: {result['error']}"
                if error_desc:
                    body += f" - {error_desc}"
            elif "code" in params:
                result["code"] = params["code"][0]
                result["state"] = params.get("state", [None])[0]
                body = (
                    "Authorization received. You can close this window "
                    "and return to the terminal."
                )
            else:
                result["error"] = "no_code"
                body = "No authorization code received."

            self.send_response(200)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.end_headers()
            self.wfile.write(f"<html><body><h2>{body}</h2></body></html>".encode("utf-8"))

        def log_message(self, format: str, *args: Any) -> None:
            pass

    server = HTTPServer(("127.0.0.1", port), CallbackHandler)
    deadline = time.monotonic() + timeout

    if open_browser:
        threading.Thread(target=webbrowser.open, args=(auth_url,), daemon=True).start()

    try:
        while not received.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            server.timeout = remaining
            server.handle_request()
    finally:
        server.server_close()

    if result["error"]:
        raise CallbackError(f"Authorization failed: {result['error']}")
    if not result["code"]:
        raise CallbackError("No authorization code received from callback")

    return CallbackResult(code=result["code"], state=result["state"])
