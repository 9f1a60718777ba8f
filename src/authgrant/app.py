"""Typer application and CLI entry point for authgrant.

Commands:

* ``configure`` -- persist provider URL, client id, secret source, redirect
  URI and scopes to the settings file.
* ``show`` -- print the effective settings (never the secret itself).
* ``authorize`` -- print the authorization URL; its state is kept in a
  file-backed session until ``exchange`` consumes it.
* ``exchange`` -- trade a code and the echoed state for a token.
* ``login`` -- run the whole flow through a loopback redirect.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~authgrant.exceptions.AuthgrantError` becomes a
clean exit with the error's ``exit_code``; anything else is written to a
crash log under the data directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
import webbrowser
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

import httpx
import typer

from authgrant import __version__
from authgrant.exceptions import AuthgrantError
from authgrant.exit_codes import EXIT_CONFIG_INCOMPLETE, EXIT_GENERIC_FAILURE
from authgrant.output import (
    error,
    format_response,
    info,
    print_data,
    success,
    suggest,
    warning,
)

app = typer.Typer(
    name="authgrant",
    help="OAuth2 authorization code grant helper.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"authgrant {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Install the global output manager and logging level from CLI flags."""
    from authgrant.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


@contextmanager
def _exit_on_error() -> Iterator[None]:
    """Report an :class:`AuthgrantError` on stderr and exit with its code."""
    try:
        yield
    except AuthgrantError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@app.command("configure")
def configure_command(
    provider_url: Optional[str] = typer.Option(
        None, "--provider-url", help="Base URL of the OAuth provider."
    ),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="OAuth client id."),
    client_secret_source: Optional[str] = typer.Option(
        None,
        "--client-secret-source",
        help="Secret source: env:VAR, file:/path, prompt, literal:VALUE.",
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Registered callback URI."
    ),
    scopes: Optional[str] = typer.Option(
        None, "--scopes", help="Space-separated scopes to request."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds."
    ),
) -> None:
    """Save client settings. Options not given keep their current value."""
    from authgrant.config import load_settings, save_settings, settings_path
    from authgrant.models import ClientSettings

    with _exit_on_error():
        current = load_settings()
        updates = {
            "provider_url": provider_url,
            "client_id": client_id,
            "client_secret_source": client_secret_source,
            "redirect_uri": redirect_uri,
            "scopes": scopes,
            "timeout": timeout,
        }
        merged = current.model_dump()
        merged.update({k: v for k, v in updates.items() if v is not None})
        try:
            settings = ClientSettings.model_validate(merged)
        except ValueError as exc:
            error(f"Invalid settings: {exc}")
            raise typer.Exit(code=EXIT_CONFIG_INCOMPLETE) from None
        save_settings(settings)

    success(f"Settings saved to {settings_path()}")
    suggest("Next: authgrant authorize")


@app.command("show")
def show_command() -> None:
    """Print the effective settings after environment overrides."""
    from authgrant.config import resolve_client_config

    with _exit_on_error():
        config, settings = resolve_client_config(resolve_secret=False)

    data: dict[str, Any] = config.model_dump(exclude={"client_secret"})
    data["client_secret_source"] = settings.client_secret_source
    data["timeout"] = settings.timeout
    format_response(data)


@app.command("authorize")
def authorize_command(
    session_name: str = typer.Option(
        "default", "--session", "-s", help="Name of the pending session."
    ),
    open_browser: bool = typer.Option(
        False, "--open", help="Open the URL in the default browser."
    ),
) -> None:
    """Print the provider authorization URL and remember its state."""
    from authgrant.client import AuthorizationCodeClient
    from authgrant.config import resolve_client_config
    from authgrant.session import FileSessionStore

    with _exit_on_error():
        config, settings = resolve_client_config(resolve_secret=False)
        with httpx.Client(timeout=settings.timeout) as http:
            client = AuthorizationCodeClient(http, config)
            url = client.build_authorization_url(FileSessionStore(session_name))

    print_data(url)
    if open_browser:
        webbrowser.open(url)
    suggest("After approving, run: authgrant exchange <code> --state <state>")


@app.command("exchange")
def exchange_command(
    code: str = typer.Argument(help="Authorization code from the redirect."),
    state: str = typer.Option(..., "--state", help="State value from the redirect."),
    session_name: str = typer.Option(
        "default", "--session", "-s", help="Name of the pending session."
    ),
) -> None:
    """Exchange an authorization code for a token."""
    from authgrant.client import AuthorizationCodeClient
    from authgrant.config import resolve_client_config
    from authgrant.session import FileSessionStore

    with _exit_on_error():
        config, settings = resolve_client_config()
        with httpx.Client(timeout=settings.timeout) as http:
            client = AuthorizationCodeClient(http, config)
            token = client.exchange_code(code, FileSessionStore(session_name), state)

    _report_token(token)


@app.command("login")
def login_command(
    port: int = typer.Option(
        0, "--port", help="Loopback port for the redirect (0 picks a free one)."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL instead of opening a browser."
    ),
    timeout: float = typer.Option(
        120.0, "--callback-timeout", help="Seconds to wait for the redirect."
    ),
) -> None:
    """Authorize in the browser and exchange the code via a loopback redirect."""
    from authgrant.callback import find_free_port, loopback_redirect_uri, wait_for_callback
    from authgrant.client import AuthorizationCodeClient
    from authgrant.config import resolve_client_config
    from authgrant.session import MemorySessionStore

    port = port or find_free_port()
    session = MemorySessionStore()

    with _exit_on_error():
        config, settings = resolve_client_config(redirect_uri=loopback_redirect_uri(port))
        with httpx.Client(timeout=settings.timeout) as http:
            client = AuthorizationCodeClient(http, config)
            url = client.build_authorization_url(session)
            if no_browser:
                info(f"Open this URL to authorize:\n{url}")
            else:
                info("Opening browser for authorization...")
            result = wait_for_callback(
                port, url, timeout=timeout, open_browser=not no_browser
            )
            token = client.exchange_code(result.code, session, result.state)

    if "error" not in token:
        success("Authorization complete.")
    _report_token(token)


def _report_token(token: dict[str, Any]) -> None:
    """Print the token body, warning first when it carries an OAuth error."""
    if "error" in token:
        detail = token.get("error_description")
        warning(
            f"Token endpoint returned error: {token['error']}"
            + (f" ({detail})" if detail else "")
        )
    format_response(token)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from authgrant.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``authgrant`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except AuthgrantError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
