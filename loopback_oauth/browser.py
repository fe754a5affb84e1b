"""
Opening the authorization URL in the user's browser.

Each platform gets a launcher that shells out to the OS "open URL" command.
Opening the browser is a convenience: failures are logged and reported
through the return value, never raised, since the user can still paste the
URL by hand.
"""

import logging
import subprocess
import sys
from typing import List, Union

logger = logging.getLogger(__name__)


class BrowserLauncher:
    """Base launcher running a platform command for a URL."""

    name = 'generic'

    def command(self, url: str) -> Union[str, List[str]]:
        raise NotImplementedError()

    def open(self, url: str) -> bool:
        """
        Open a URL with the platform command.

        Args:
            url: URL to open

        Returns:
            True if the command was started, False otherwise
        """
        try:
            subprocess.Popen(
                self.command(url),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("Could not open a browser with %s: %s", self.name, e)
            return False
        return True


class WindowsLauncher(BrowserLauncher):
    name = 'windows'

    def command(self, url: str) -> str:
        # Passed as a single command line so cmd sees the quoted URL and
        # does not split it on '&'.
        return f'cmd /c start "" "{url}"'


class LinuxLauncher(BrowserLauncher):
    name = 'xdg-open'

    def command(self, url: str) -> List[str]:
        return ['xdg-open', url]


class MacLauncher(BrowserLauncher):
    name = 'open'

    def command(self, url: str) -> List[str]:
        return ['open', url]


class UnsupportedLauncher(BrowserLauncher):
    """Launcher for platforms with no known "open URL" command."""

    name = 'unsupported'

    def __init__(self, platform: str):
        self.platform = platform

    def open(self, url: str) -> bool:
        logger.warning("Don't know how to open a browser on platform '%s', open the URL manually", self.platform)
        return False


def get_launcher(platform: str = None) -> BrowserLauncher:
    """
    Pick the launcher for a platform.

    Args:
        platform: Value shaped like sys.platform, defaults to the current one

    Returns:
        The matching BrowserLauncher, UnsupportedLauncher if none matches
    """
    if platform is None:
        platform = sys.platform

    if platform in ('win32', 'cygwin'):
        return WindowsLauncher()
    if platform == 'darwin':
        return MacLauncher()
    if platform.startswith(('linux', 'freebsd', 'openbsd', 'netbsd')):
        return LinuxLauncher()
    return UnsupportedLauncher(platform)


def open_browser(url: str) -> bool:
    """Open a URL with the launcher of the current platform."""
    logger.debug('Open a browser with "%s" URL', url)
    return get_launcher().open(url)
