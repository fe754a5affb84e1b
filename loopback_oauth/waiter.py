"""
Waiting for the authorization redirect.

The wait races three things: the first request published by the listener,
the caller's cancellation event and a timeout. Whichever completes first
decides the outcome; if a request completes together with another source,
the request wins.
"""

import asyncio
import logging
from typing import Optional

from .constants import DEFAULT_REDIRECT_TIMEOUT
from .oauth_server import LoopbackListener, PendingRequest
from .utils import RedirectCancelledError, RedirectTimeoutError

logger = logging.getLogger(__name__)


class RedirectWaiter:
    """Suspends the calling coroutine until the listener sees the redirect."""

    def __init__(self, listener: LoopbackListener):
        self.listener = listener

    async def wait(self, timeout: Optional[float] = DEFAULT_REDIRECT_TIMEOUT,
                   cancel_event: Optional[asyncio.Event] = None) -> PendingRequest:
        """
        Wait for the first redirect request.

        Args:
            timeout: Seconds to wait, None to wait forever
            cancel_event: Event set by the caller to abort the wait

        Returns:
            The first PendingRequest published by the listener

        Raises:
            RedirectTimeoutError: If nothing arrived within the timeout
            RedirectCancelledError: If cancel_event was set first
        """
        loop = asyncio.get_running_loop()
        arrived = loop.create_future()

        def deliver(pending: PendingRequest):
            if arrived.done():
                # Only the first request is useful.
                logger.debug("Ignoring extra redirect request %r", pending)
                pending.abandon()
                return
            arrived.set_result(pending)

        def on_request(pending: PendingRequest):
            try:
                loop.call_soon_threadsafe(deliver, pending)
            except RuntimeError:
                # Event loop already closed.
                pending.abandon()

        unsubscribe = self.listener.subscribe(on_request)
        cancelled = None
        waiting = {arrived}
        if cancel_event is not None:
            cancelled = loop.create_task(cancel_event.wait())
            waiting.add(cancelled)

        try:
            done, _ = await asyncio.wait(waiting, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            unsubscribe()
            if cancelled is not None:
                cancelled.cancel()
            if not arrived.done():
                arrived.cancel()

        if arrived in done:
            return arrived.result()
        if cancelled is not None and cancelled in done:
            raise RedirectCancelledError("Cancelled while waiting for the authorization redirect")
        raise RedirectTimeoutError(f"No authorization redirect received within {timeout} seconds")
