"""Local loopback redirect receiver for the OAuth 2.0 authorization code flow"""

__version__ = "1.0.0"
__author__ = "Maxime Lamothe-Brassard ( Refraction Point, Inc )"
__author_email__ = "maxime@refractionpoint.com"
__license__ = "Apache v2"
__copyright__ = "Copyright (c) 2020 Refraction Point, Inc"

import logging

# Library code only logs, applications decide where records go.
logging.getLogger( __name__ ).addHandler( logging.NullHandler() )

from .receiver import LocalServerCodeReceiver
from .receiver import AuthorizationResponse
from .receiver import ReceiverState
from .ports import RedirectEndpoint
from .config import ReceiverConfig, loadConfig
from .utils import ReceiverException
from .utils import PortAllocationError
from .utils import ListenerError
from .utils import RedirectTimeoutError
from .utils import RedirectCancelledError
from .utils import MalformedRedirectError
from .utils import ConfigError
