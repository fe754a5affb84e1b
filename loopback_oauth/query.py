"""
Decoding of the redirect query string.

Authorization servers send the response parameters (``code``, ``state``,
``error``...) in the query string of the redirect. Parsing is deliberately
forgiving: a malformed redirect must not crash the receiver.
"""

import logging
import urllib.parse
from typing import Dict, Optional

from .utils import MalformedRedirectError

logger = logging.getLogger(__name__)


def decode_query(query_string: str, strict: bool = False) -> Dict[str, Optional[str]]:
    """
    Decode a raw query string into a mapping.

    Keys are taken verbatim. Values are percent-decoded ('+' is kept as is),
    and a parameter without '=' maps to None. When a key repeats, the first
    occurrence wins. Only the first '=' separates key and value, so
    'a=b=c' decodes to {'a': 'b=c'} and base64 padding is kept.

    Args:
        query_string: Raw query string, with or without the leading '?'
        strict: Raise instead of dropping pairs with undecodable escapes

    Returns:
        Dictionary of parameter name to value (or None)

    Raises:
        MalformedRedirectError: In strict mode, if a value is not valid UTF-8
            once unescaped
    """
    params = {}
    if not query_string:
        return params

    if query_string.startswith('?'):
        query_string = query_string[1:]

    for pair in query_string.split('&'):
        if not pair:
            continue

        key, sep, raw_value = pair.partition('=')
        if key in params:
            continue

        if not sep:
            params[key] = None
            continue

        try:
            params[key] = urllib.parse.unquote(raw_value, errors='strict')
        except UnicodeDecodeError as e:
            if strict:
                raise MalformedRedirectError(f"Undecodable value for parameter '{key}'") from e
            logger.warning("Dropping undecodable redirect parameter '%s'", key)

    return params
