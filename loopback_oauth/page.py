"""
The page sent back to the browser once the redirect has been captured.
"""

from typing import Dict, NamedTuple

CONTENT_TYPE = 'text/html; charset=UTF-8'

# This doesn't close the window on every browser.
CLOSE_PAGE = """<html>
  <head><title>OAuth 2.0 Authentication Token Received</title></head>
  <body>
    Received verification code. You may now close this window.
    <script type='text/javascript'>
      window.setTimeout(function() {
          window.open('', '_self', '');
          window.close();
        }, 1000);
      if (window.opener) { window.opener.checkToken(); }
    </script>
  </body>
</html>
"""


class RenderedPage(NamedTuple):
    body: bytes
    headers: Dict[str, str]


def render_close_page() -> RenderedPage:
    """Render the static self-closing page, UTF-8 encoded."""
    return RenderedPage(CLOSE_PAGE.encode('utf-8'), {'content-type': CONTENT_TYPE})
