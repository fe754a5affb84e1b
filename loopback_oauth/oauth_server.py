import http.server
import logging
import socketserver
import threading
import urllib.parse
from concurrent.futures import CancelledError as FutureCancelledError
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional

from .constants import LOOPBACK_CALLBACK_PATH, LOOPBACK_HOST, REPLY_WAIT_TIMEOUT
from .page import RenderedPage
from .utils import ListenerError

logger = logging.getLogger(__name__)


class PendingRequest:
    """A redirect request captured by the listener, waiting for its reply.

    The listener thread that accepted the request blocks until the receiver
    hands it a page through respond(), writes it, then resolves the `sent`
    future so the receiver knows the page reached the socket.
    """

    def __init__(self, method: str, path: str, query_string: str):
        self.method = method
        self.path = path
        self.query_string = query_string
        self.reply = Future()
        self.sent = Future()

    def respond(self, page: RenderedPage) -> Future:
        """
        Hand the page to the listener thread.

        Args:
            page: The page to send back to the browser

        Returns:
            Future resolved once the page is written, or failed if the
            request was abandoned or the write failed
        """
        try:
            self.reply.set_result(page)
        except InvalidStateError:
            # Already abandoned, the listener thread fails `sent`.
            pass
        return self.sent

    def abandon(self):
        """Drop the request without replying to it."""
        self.reply.cancel()

    def __repr__(self):
        return f"PendingRequest({self.method} {self.path})"


class LoopbackRequestHandler(http.server.BaseHTTPRequestHandler):
    """Handler for redirect requests reaching the loopback listener."""

    def do_GET(self):
        """Handle GET request from the authorization server redirect."""
        parsed = urllib.parse.urlsplit(self.path)

        if not parsed.path.startswith(LOOPBACK_CALLBACK_PATH):
            # Handle other requests (like favicon.ico)
            if parsed.path == '/favicon.ico':
                self.send_response(204)  # No Content
            else:
                self.send_response(404)
            self.send_header('Content-Length', '0')
            self.end_headers()
            return

        pending = PendingRequest(self.command, self.path, parsed.query)
        listener = self.server.listener
        listener._publish(pending)
        try:
            self._reply(pending)
        finally:
            listener._release(pending)

    def _reply(self, pending: PendingRequest):
        try:
            page = pending.reply.result(timeout=REPLY_WAIT_TIMEOUT)
        except (FutureCancelledError, FutureTimeoutError):
            # Ignored or abandoned request, close without a response.
            self.close_connection = True
            if pending.sent.set_running_or_notify_cancel():
                pending.sent.set_exception(ListenerError("Request abandoned before a reply was sent"))
            return

        # Claim `sent` before writing: once running, the receiver can no
        # longer cancel it. A receiver that already gave up gets no report.
        claimed = pending.sent.set_running_or_notify_cancel()
        try:
            self._write_page(page)
        except OSError as e:
            if claimed:
                pending.sent.set_exception(e)
        else:
            if claimed:
                pending.sent.set_result(len(page.body))

    def _write_page(self, page: RenderedPage):
        self.send_response(200)
        for name, value in page.headers.items():
            self.send_header(name, value)
        self.send_header('Content-Length', str(len(page.body)))
        self.send_header('Connection', 'close')
        self.end_headers()
        try:
            self.wfile.write(page.body)
        finally:
            self.wfile.flush()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class _LoopbackServer(socketserver.ThreadingTCPServer):
    daemon_threads = True

    def __init__(self, server_address, listener):
        self.listener = listener
        super().__init__(server_address, LoopbackRequestHandler)


class LoopbackListener:
    """Local HTTP listener receiving the authorization redirect.

    The listener is single use: it binds one port, serves on a background
    thread, and publishes redirect requests to at most one subscriber. A
    request arriving before anyone subscribed waits in a one-request backlog.
    """

    def __init__(self, host: str = LOOPBACK_HOST, poll_interval: float = 0.1):
        """
        Initialize the loopback listener.

        Args:
            host: Interface to bind
            poll_interval: How often the serve loop checks for shutdown (seconds)
        """
        self.host = host
        self.port = None
        self.poll_interval = poll_interval
        self._server = None
        self._thread = None
        self._stopped = False
        self._lock = threading.Lock()
        self._subscriber = None
        self._backlog = None
        self._inflight = []

    @property
    def is_running(self) -> bool:
        return self._server is not None

    def start(self, port: int):
        """
        Bind the port and start serving.

        Starting an already running listener on the same port does nothing.

        Args:
            port: Port to bind on the loopback interface

        Raises:
            ListenerError: If the port can't be bound, or the listener was
                already stopped or bound to another port
        """
        with self._lock:
            if self._server is not None:
                if port == self.port:
                    return
                raise ListenerError(f"Listener already bound to port {self.port}")
            if self._stopped:
                raise ListenerError("Listener was stopped and cannot be restarted")

            try:
                server = _LoopbackServer((self.host, port), self)
            except OSError as e:
                raise ListenerError(f"Could not bind {self.host}:{port}: {str(e)}") from e

            self.port = port
            self._server = server

        # Start server in separate thread
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={'poll_interval': self.poll_interval},
            name=f"loopback-listener-{port}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Loopback listener started on %s:%d", self.host, port)

    def stop(self):
        """Stop the listener. Does nothing if it isn't running."""
        with self._lock:
            server = self._server
            if server is None:
                return
            self._server = None
            self._stopped = True
            self._subscriber = None
            dropped = list(self._inflight)
            if self._backlog is not None:
                dropped.append(self._backlog)
                self._backlog = None

        for pending in dropped:
            pending.abandon()

        server.shutdown()
        server.server_close()

        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=1)
        self._thread = None
        logger.debug("Loopback listener on port %s stopped", self.port)

    def subscribe(self, callback: Callable[[PendingRequest], None]) -> Callable[[], None]:
        """
        Register the function notified of each redirect request.

        The callback runs on a listener thread, or on the calling thread
        for a request that was waiting in the backlog.

        Args:
            callback: Function receiving each PendingRequest

        Returns:
            Function removing the subscription

        Raises:
            ListenerError: If another subscriber is registered
        """
        with self._lock:
            if self._subscriber is not None:
                raise ListenerError("Listener already has a subscriber")
            self._subscriber = callback
            backlog, self._backlog = self._backlog, None

        if backlog is not None:
            callback(backlog)

        def unsubscribe():
            with self._lock:
                if self._subscriber is callback:
                    self._subscriber = None

        return unsubscribe

    def _publish(self, pending: PendingRequest):
        callback: Optional[Callable[[PendingRequest], None]] = None
        with self._lock:
            accepted = self._server is not None
            if accepted:
                self._inflight.append(pending)
                callback = self._subscriber
                if callback is None:
                    if self._backlog is None:
                        self._backlog = pending
                    else:
                        accepted = False

        if not accepted:
            pending.abandon()
        elif callback is not None:
            callback(pending)

    def _release(self, pending: PendingRequest):
        with self._lock:
            if pending in self._inflight:
                self._inflight.remove(pending)
