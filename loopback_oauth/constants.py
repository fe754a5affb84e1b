import os

# Path to the configuration file. Can be overriden for tests.
CONFIG_FILE_PATH = os.path.expanduser( '~/.loopback-oauth' )

# Environment variables consulted by config.loadConfig().
CONFIG_FILE_ENV_VAR = 'LOOPBACK_OAUTH_CONFIG'
TIMEOUT_ENV_VAR = 'LOOPBACK_OAUTH_TIMEOUT'
NO_BROWSER_ENV_VAR = 'LOOPBACK_OAUTH_NO_BROWSER'

# The listener only ever binds the IPv4 loopback interface.
LOOPBACK_HOST = '127.0.0.1'

# The call back format. Expects one port parameter.
LOOPBACK_CALLBACK_PATH = '/authorize/'
LOOPBACK_CALLBACK = 'http://localhost:{port}' + LOOPBACK_CALLBACK_PATH

# Redirect-related timeouts, in seconds.
DEFAULT_REDIRECT_TIMEOUT = 60  # 1 minute
RESPONSE_SEND_TIMEOUT = 10

# How long a listener thread waits for the receiver to hand it a page.
REPLY_WAIT_TIMEOUT = 30
