"""Short-lived local HTTP listener that captures the OAuth authorization redirect.

:class:`CallbackListener` binds an :class:`http.server.ThreadingHTTPServer`
on the host and port of the configured redirect URI, serves it on a daemon
thread,
and completes a single :class:`concurrent.futures.Future` with an
:class:`~whooptui.models.AuthorizationResult` once a request arrives on the
redirect path:

* correct ``state`` and a non-empty ``code`` -- HTTP 200, result carries the code.
* missing or different ``state`` -- HTTP 400, :class:`StateMismatchError`.
* provider ``error`` parameter -- HTTP 400, :class:`AuthorizationDeniedError`.
* missing ``code`` -- HTTP 400, :class:`MissingCodeError`.

Requests to any other path get a 404 and leave the listener running, so
browser noise such as ``/favicon.ico`` is harmless. Each connection is
handled on its own thread with a read timeout, so an idle or preconnected
socket never holds up the redirect or the shutdown. Once the result is set
the listener answers 410 to anything else on the redirect path and is torn
down by the owner.

The listener is a context manager: the socket is closed on every exit path,
including validation failures and timeouts, so repeated login attempts
never leak a bound port.

:func:`await_callback` wraps the whole lifecycle and converts bind failures
and timeouts into failed results.
"""

from __future__ import annotations

import html
import logging
import secrets
import socketserver
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional
from urllib.parse import parse_qs, urlparse

from whooptui.exceptions import (
    AuthorizationDeniedError,
    CallbackTimeoutError,
    ListenerBindError,
    MissingCodeError,
    StateMismatchError,
)
from whooptui.models import AuthorizationResult

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_TIMEOUT = 120.0
"""Seconds to wait for the browser redirect before giving up."""

REQUEST_READ_TIMEOUT = 5.0
"""Seconds a connection may stay silent before the listener drops it."""

SUCCESS_MESSAGE = "WHOOP authentication complete. You can close this tab."

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head><meta charset="utf-8" /><title>{title}</title></head>
  <body style="font-family: system-ui, sans-serif; max-width: 640px; margin: 80px auto;">
    <h2>{title}</h2>
    <p>{message}</p>
  </body>
</html>
"""


def evaluate_callback(
    params: dict[str, list[str]], expected_state: str
) -> AuthorizationResult:
    """Validate the query parameters of a redirect on the callback path.

    ``state`` is checked first so that a forged redirect is always reported
    as a state mismatch, whatever else it carries.

    Args:
        params: Parsed query string, as returned by :func:`urllib.parse.parse_qs`.
        expected_state: The ``state`` sent with the authorization request.

    Returns:
        An :class:`~whooptui.models.AuthorizationResult` holding either the
        code or the protocol error.
    """
    returned_state = params.get("state", [""])[0]
    if not returned_state or not secrets.compare_digest(
        returned_state.encode("utf-8"), expected_state.encode("utf-8")
    ):
        return AuthorizationResult(error=StateMismatchError("OAuth state mismatch"))

    if "error" in params:
        return AuthorizationResult(
            error=AuthorizationDeniedError(
                params["error"][0], params.get("error_description", [""])[0]
            )
        )

    code = params.get("code", [""])[0]
    if not code:
        return AuthorizationResult(error=MissingCodeError("Missing auth code"))

    return AuthorizationResult(code=code)


class _CallbackServer(ThreadingHTTPServer):
    """Threading HTTP server carrying the validation context and the pending result.

    Only the first request on the redirect path may claim the result.
    """

    daemon_threads = True
    block_on_close = False

    def __init__(
        self,
        server_address: tuple[str, int],
        *,
        expected_path: str,
        expected_state: str,
        result: Future[AuthorizationResult],
    ) -> None:
        self.expected_path = expected_path
        self.expected_state = expected_state
        self.result = result
        self._claimed = False
        self._claim_lock = threading.Lock()
        super().__init__(server_address, _CallbackHandler, bind_and_activate=True)

    def server_bind(self) -> None:
        # Skip HTTPServer's reverse DNS lookup of the bind address.
        socketserver.TCPServer.server_bind(self)
        host, port = self.server_address[:2]
        self.server_name = str(host)
        self.server_port = int(port)

    def claim(self) -> bool:
        """Return True for the single request allowed to resolve the result."""
        with self._claim_lock:
            if self._claimed or self.result.done():
                return False
            self._claimed = True
            return True


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer
    timeout = REQUEST_READ_TIMEOUT

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        # Only the path is logged: the query carries the code and state.
        logger.debug("Callback listener: GET %s", parsed.path)

        if parsed.path != self.server.expected_path:
            self._send_page(404, "Not found", "Nothing to see here.")
            return

        if not self.server.claim():
            self._send_page(410, "Gone", "This login attempt has already completed.")
            return

        outcome = evaluate_callback(
            parse_qs(parsed.query, keep_blank_values=True),
            self.server.expected_state,
        )
        try:
            if outcome.ok:
                self._send_page(200, "Login successful", SUCCESS_MESSAGE)
            else:
                self._send_page(400, "Login failed", str(outcome.error))
        finally:
            # Released after the page is flushed; the waiter tears the listener down.
            self.server.result.set_result(outcome)

    def do_POST(self) -> None:
        self._reject_method()

    def do_PUT(self) -> None:
        self._reject_method()

    def do_DELETE(self) -> None:
        self._reject_method()

    def _reject_method(self) -> None:
        if urlparse(self.path).path == self.server.expected_path:
            self._send_page(405, "Method not allowed", "Use GET.")
        else:
            self._send_page(404, "Not found", "Nothing to see here.")

    def _send_page(self, status: int, title: str, message: str) -> None:
        body = _PAGE_TEMPLATE.format(
            title=html.escape(title), message=html.escape(message)
        ).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)
        self.wfile.flush()

    def log_message(self, format: str, *args: object) -> None:
        # Request lines include the authorization code; never echo them.
        pass


class CallbackListener:
    """Single-use listener for one login attempt.

    Two states: listening (between :meth:`start` and resolution) and
    terminated. The listener is bound in :meth:`start`, so the authorization
    URL must only be opened after entering the context manager.

    Args:
        redirect_uri: The configured redirect URI. Its host, port (default
            80), and path select what the listener binds and accepts.
        expected_state: The ``state`` value of this login attempt.

    Example::

        with CallbackListener(config.redirect_uri, pkce.state) as listener:
            webbrowser.open(auth_url)
            result = listener.wait(timeout=120)
        code = result.unwrap()
    """

    def __init__(self, redirect_uri: str, expected_state: str) -> None:
        parsed = urlparse(redirect_uri)
        self.host = parsed.hostname or "127.0.0.1"
        self.port = parsed.port if parsed.port is not None else 80
        self.path = parsed.path or "/"
        self._expected_state = expected_state
        self._result: Future[AuthorizationResult] = Future()
        self._server: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> CallbackListener:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def server_address(self) -> tuple[str, int]:
        """The bound ``(host, port)``; differs from the URI port only when it was 0."""
        if self._server is None:
            return (self.host, self.port)
        host, port = self._server.server_address[:2]
        return (str(host), int(port))

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        """Bind the socket and start serving on a daemon thread.

        Raises:
            ListenerBindError: If the host/port cannot be bound (e.g. the
                port is already in use). Nothing is left open in that case.
        """
        if self._server is not None:
            return
        try:
            server = _CallbackServer(
                (self.host, self.port),
                expected_path=self.path,
                expected_state=self._expected_state,
                result=self._result,
            )
        except OSError as exc:
            raise ListenerBindError(
                f"Cannot listen on {self.host}:{self.port} for the OAuth callback: {exc}"
            ) from exc

        self._server = server
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name="whooptui-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Callback listener bound on %s:%s%s", self.host, self.port, self.path)

    def stop(self) -> None:
        """Stop serving and close the socket. Safe to call more than once."""
        server, self._server = self._server, None
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.debug("Callback listener closed")

    def wait(self, timeout: Optional[float] = DEFAULT_CALLBACK_TIMEOUT) -> AuthorizationResult:
        """Block until a redirect resolves the listener or *timeout* elapses.

        Returns:
            The callback's :class:`~whooptui.models.AuthorizationResult`. On
            timeout the result carries a :class:`CallbackTimeoutError`.
        """
        try:
            return self._result.result(timeout=timeout)
        except FutureTimeoutError:
            return AuthorizationResult(
                error=CallbackTimeoutError(
                    f"Timed out waiting for authorization after {timeout:g}s"
                )
            )


def await_callback(
    redirect_uri: str,
    expected_state: str,
    timeout: Optional[float] = DEFAULT_CALLBACK_TIMEOUT,
    on_listening: Optional[Callable[[], None]] = None,
) -> AuthorizationResult:
    """Run one listener to completion and return its result.

    Args:
        redirect_uri: Redirect URI whose host, port, and path are served.
        expected_state: The ``state`` the redirect must echo back.
        timeout: Seconds to wait before failing with
            :class:`CallbackTimeoutError`; ``None`` waits forever.
        on_listening: Called once the socket is bound and serving -- the
            place to open the browser.

    Returns:
        The :class:`~whooptui.models.AuthorizationResult`. Bind failures
        and timeouts are returned as failed results rather than raised.
    """
    try:
        with CallbackListener(redirect_uri, expected_state) as listener:
            if on_listening is not None:
                on_listening()
            return listener.wait(timeout)
    except ListenerBindError as exc:
        return AuthorizationResult(error=exc)
