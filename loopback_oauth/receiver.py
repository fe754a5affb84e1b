"""
OAuth 2.0 authorization code receiver running a local server.

The receiver stands in for a registered web redirect URI. It listens on a
free loopback port, opens the browser at the authorization URL, waits for
the browser to be redirected back with the authorization response, replies
with a page that closes itself and shuts the listener down.

Typical use:

    receiver = LocalServerCodeReceiver()
    url = build_authorization_url(redirect_uri=receiver.redirect_uri())
    response = await receiver.receive_code(url)
    exchange_code(response.code)
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .browser import BrowserLauncher, get_launcher
from .config import ReceiverConfig, loadConfig
from .constants import RESPONSE_SEND_TIMEOUT
from .oauth_server import LoopbackListener
from .page import render_close_page
from .ports import RedirectEndpoint, allocate_port, build_endpoint
from .query import decode_query
from .utils import ReceiverException, RedirectCancelledError, RedirectTimeoutError
from .waiter import RedirectWaiter

logger = logging.getLogger(__name__)


class ReceiverState(enum.Enum):
    IDLE = 'idle'
    PORT_ASSIGNED = 'port_assigned'
    LISTENING = 'listening'
    AWAITING_REDIRECT = 'awaiting_redirect'
    COMPLETED = 'completed'
    TIMED_OUT = 'timed_out'
    CANCELLED = 'cancelled'
    FAILED = 'failed'


@dataclass(frozen=True)
class AuthorizationResponse:
    """Authorization response parameters carried by the redirect.

    Attributes:
        parameters: Every query parameter of the redirect, None for a
            parameter sent without a value
    """

    parameters: Dict[str, Optional[str]] = field(default_factory=dict)

    @property
    def code(self) -> Optional[str]:
        return self.parameters.get('code')

    @property
    def state(self) -> Optional[str]:
        return self.parameters.get('state')

    @property
    def error(self) -> Optional[str]:
        return self.parameters.get('error')

    @property
    def error_description(self) -> Optional[str]:
        return self.parameters.get('error_description')

    @property
    def error_uri(self) -> Optional[str]:
        return self.parameters.get('error_uri')

    def is_success(self) -> bool:
        """Check if the redirect carries a code and no error."""
        return self.code is not None and self.error is None


class LocalServerCodeReceiver:
    """Receives the authorization code on a free loopback port.

    One receiver serves one authorization attempt: the port is allocated
    once and receive_code() can only run once. Create a new receiver to
    retry after a timeout or cancellation.
    """

    def __init__(self, timeout: Optional[float] = None, open_browser: Optional[bool] = None,
                 launcher: Optional[BrowserLauncher] = None, config: Optional[ReceiverConfig] = None):
        """
        Initialize the receiver.

        Args:
            timeout: Seconds to wait for the redirect, overrides the config
            open_browser: If False, log the URL instead of opening a browser
            launcher: Browser launcher, defaults to the current platform's
            config: Settings, loaded with loadConfig() when not provided
        """
        if config is None:
            config = loadConfig()
        self.timeout = timeout if timeout is not None else config.timeout
        self.open_browser = open_browser if open_browser is not None else config.open_browser
        self.launcher = launcher if launcher is not None else get_launcher()
        self.listener = LoopbackListener()
        self.state = ReceiverState.IDLE
        self._endpoint = None

    def allocate(self) -> RedirectEndpoint:
        """
        Allocate the redirect endpoint, once.

        Returns:
            The RedirectEndpoint, the same one on every call

        Raises:
            PortAllocationError: If no loopback port is available
        """
        if self._endpoint is None:
            self._endpoint = build_endpoint(allocate_port(self.listener.host))
            if self.state == ReceiverState.IDLE:
                self.state = ReceiverState.PORT_ASSIGNED
            logger.debug("Allocated redirect endpoint %s", self._endpoint.uri)
        return self._endpoint

    def endpoint(self) -> RedirectEndpoint:
        """
        Get the allocated redirect endpoint.

        Raises:
            ReceiverException: If allocate() was never called
        """
        if self._endpoint is None:
            raise ReceiverException("Redirect endpoint not allocated yet, call allocate() first")
        return self._endpoint

    def redirect_uri(self) -> str:
        """Get the redirect URI, allocating the port on first use."""
        return self.allocate().uri

    async def receive_code(self, authorization_url, cancel_event: Optional[asyncio.Event] = None) -> AuthorizationResponse:
        """
        Open the browser at the authorization URL and wait for the redirect.

        Args:
            authorization_url: URL string, or an object with a build() method
                returning it
            cancel_event: Event set by the caller to abort the wait

        Returns:
            AuthorizationResponse with the redirect query parameters

        Raises:
            RedirectTimeoutError: If the redirect didn't arrive in time
            RedirectCancelledError: If cancel_event was set first
            ListenerError: If the listener couldn't bind or the page wasn't sent
            ReceiverException: If this receiver was already used
        """
        if self.state not in (ReceiverState.IDLE, ReceiverState.PORT_ASSIGNED):
            raise ReceiverException(f"Receiver already used (state: {self.state.value}), create a new one")

        try:
            if hasattr(authorization_url, 'build'):
                authorization_url = authorization_url.build()
            authorization_url = str(authorization_url)

            endpoint = self.allocate()
            self.listener.start(endpoint.port)
            self.state = ReceiverState.LISTENING

            self._launch_browser(authorization_url)

            self.state = ReceiverState.AWAITING_REDIRECT
            pending = await RedirectWaiter(self.listener).wait(self.timeout, cancel_event)
            parameters = decode_query(pending.query_string)

            # Write a "close" response before tearing the listener down.
            sent = pending.respond(render_close_page())
            await asyncio.wait_for(asyncio.wrap_future(sent), timeout=RESPONSE_SEND_TIMEOUT)
        except RedirectTimeoutError:
            self.state = ReceiverState.TIMED_OUT
            raise
        except (RedirectCancelledError, asyncio.CancelledError):
            self.state = ReceiverState.CANCELLED
            logger.info("Authorization redirect wait cancelled")
            raise
        except Exception:
            self.state = ReceiverState.FAILED
            raise
        finally:
            self.listener.stop()

        self.state = ReceiverState.COMPLETED
        return AuthorizationResponse(parameters)

    def receive_code_sync(self, authorization_url) -> AuthorizationResponse:
        """Run receive_code() to completion on a new event loop."""
        return asyncio.run(self.receive_code(authorization_url))

    def _launch_browser(self, url: str) -> bool:
        if not self.open_browser:
            logger.info("Open the following URL in a browser to continue: %s", url)
            return False

        logger.debug('Open a browser with "%s" URL', url)
        try:
            opened = self.launcher.open(url)
        except Exception as e:
            logger.warning("Browser launcher failed: %s", e)
            opened = False
        if not opened:
            logger.warning("Could not open a browser. Please visit this URL: %s", url)
        return opened
