import os
import sys
import threading

import pytest

# Get the directory of the current conftest.py file
current_dir = os.path.dirname(os.path.abspath(__file__))

# Calculate the project root (adjust the number of ".." if needed)
project_root = os.path.abspath(os.path.join(current_dir, '../../'))

# Insert the project root at the beginning of sys.path
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import requests

from loopback_oauth import constants


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep the user's config file and environment out of the tests."""
    monkeypatch.setattr(constants, "CONFIG_FILE_PATH", str(tmp_path / "missing-config"))
    monkeypatch.delenv(constants.CONFIG_FILE_ENV_VAR, raising=False)
    monkeypatch.delenv(constants.TIMEOUT_ENV_VAR, raising=False)
    monkeypatch.delenv(constants.NO_BROWSER_ENV_VAR, raising=False)


class RecordingLauncher:
    """Launcher that records the URLs it is asked to open and does nothing."""

    def __init__(self, result=True):
        self.result = result
        self.opened = []

    def open(self, url):
        self.opened.append(url)
        return self.result


class RedirectingBrowser(RecordingLauncher):
    """
    Launcher standing in for the user's browser: once "opened", it follows
    the redirect back to the receiver's endpoint on a separate thread.
    """

    def __init__(self, receiver, query):
        super().__init__()
        self.receiver = receiver
        self.query = query
        self.responses = []
        self.errors = []
        self._threads = []

    def open(self, url):
        super().open(url)
        target = self.receiver.endpoint().uri
        if self.query is not None:
            target = "%s?%s" % (target, self.query)
        t = threading.Thread(target=self._follow, args=(target,), daemon=True)
        t.start()
        self._threads.append(t)
        return True

    def _follow(self, url):
        try:
            self.responses.append(requests.get(url, timeout=10))
        except requests.exceptions.RequestException as e:
            self.errors.append(e)

    def join(self):
        for t in self._threads:
            t.join(timeout=10)


@pytest.fixture
def recording_launcher():
    return RecordingLauncher()


@pytest.fixture
def redirecting_browser():
    """Factory of RedirectingBrowser: redirecting_browser(receiver, query)."""
    return RedirectingBrowser
