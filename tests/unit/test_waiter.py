import asyncio

import pytest

from loopback_oauth.oauth_server import PendingRequest
from loopback_oauth.utils import RedirectCancelledError, RedirectTimeoutError
from loopback_oauth.waiter import RedirectWaiter


class FakeListener:
    """Listener double letting the test publish requests by hand."""

    def __init__(self, backlog=None):
        self.callback = None
        self.backlog = backlog
        self.unsubscribed = False

    def subscribe(self, callback):
        self.callback = callback
        if self.backlog is not None:
            callback(self.backlog)
        return self._unsubscribe

    def _unsubscribe(self):
        self.unsubscribed = True

    def publish(self, pending):
        self.callback(pending)


def _request(query):
    return PendingRequest("GET", "/authorize/?" + query, query)


class TestRedirectWaiter:
    """Tests for the race between redirect, timeout and cancellation."""

    def test_first_request_wins(self):
        listener = FakeListener()
        first = _request("code=1")
        second = _request("code=2")

        async def scenario():
            loop = asyncio.get_running_loop()
            loop.call_later(0.05, listener.publish, first)
            loop.call_later(0.05, listener.publish, second)
            result = await RedirectWaiter(listener).wait(timeout=5)
            await asyncio.sleep(0.01)
            return result

        assert asyncio.run(scenario()) is first
        assert second.reply.cancelled()
        assert not first.reply.done()
        assert listener.unsubscribed

    def test_timeout(self):
        listener = FakeListener()

        async def scenario():
            await RedirectWaiter(listener).wait(timeout=0.1)

        with pytest.raises(RedirectTimeoutError) as exc_info:
            asyncio.run(scenario())

        assert isinstance(exc_info.value, TimeoutError)
        assert listener.unsubscribed

    def test_request_after_timeout_is_ignored(self):
        listener = FakeListener()
        late = _request("code=late")

        async def scenario():
            with pytest.raises(RedirectTimeoutError):
                await RedirectWaiter(listener).wait(timeout=0.05)
            listener.publish(late)
            await asyncio.sleep(0.01)

        asyncio.run(scenario())
        assert late.reply.cancelled()

    def test_cancel_event(self):
        listener = FakeListener()

        async def scenario():
            cancel = asyncio.Event()
            asyncio.get_running_loop().call_later(0.05, cancel.set)
            await RedirectWaiter(listener).wait(timeout=5, cancel_event=cancel)

        with pytest.raises(RedirectCancelledError):
            asyncio.run(scenario())

        assert listener.unsubscribed

    def test_cancel_event_before_timeout(self):
        listener = FakeListener()

        async def scenario():
            cancel = asyncio.Event()
            cancel.set()
            await RedirectWaiter(listener).wait(timeout=0.01, cancel_event=cancel)

        with pytest.raises(RedirectCancelledError):
            asyncio.run(scenario())

    def test_request_wins_tie_with_cancellation(self):
        waiting = _request("code=ready")
        listener = FakeListener(backlog=waiting)

        async def scenario():
            cancel = asyncio.Event()
            cancel.set()
            return await RedirectWaiter(listener).wait(timeout=5, cancel_event=cancel)

        assert asyncio.run(scenario()) is waiting

    def test_task_cancellation_propagates(self):
        listener = FakeListener()

        async def scenario():
            task = asyncio.ensure_future(RedirectWaiter(listener).wait(timeout=5))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert listener.unsubscribed

    def test_wait_forever_without_timeout(self):
        listener = FakeListener()
        pending = _request("code=slow")

        async def scenario():
            asyncio.get_running_loop().call_later(0.1, listener.publish, pending)
            return await RedirectWaiter(listener).wait(timeout=None)

        assert asyncio.run(scenario()) is pending
