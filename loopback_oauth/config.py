import os
from typing import NamedTuple

import yaml

from . import constants
from .utils import ConfigError

_TRUE_VALUES = ( '1', 'true', 'yes', 'on' )
_FALSE_VALUES = ( '0', 'false', 'no', 'off', '' )


class ReceiverConfig( NamedTuple ):
    '''Settings of a LocalServerCodeReceiver.'''

    timeout: float = constants.DEFAULT_REDIRECT_TIMEOUT
    open_browser: bool = True


def _parseTimeout( value, source ):
    if isinstance( value, bool ):
        raise ConfigError( "Invalid timeout in %s: %r" % ( source, value ) )
    try:
        timeout = float( value )
    except ( TypeError, ValueError ):
        raise ConfigError( "Invalid timeout in %s: %r" % ( source, value ) )
    if timeout <= 0:
        raise ConfigError( "Timeout in %s must be positive, got %r" % ( source, value ) )
    return timeout


def _parseBool( value, source ):
    if isinstance( value, bool ):
        return value
    normalized = str( value ).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError( "Invalid boolean in %s: %r" % ( source, value ) )


def _loadConfigFile( path ):
    if not os.path.isfile( path ):
        return {}
    with open( path, 'rb' ) as f:
        try:
            data = yaml.safe_load( f.read() )
        except yaml.YAMLError as e:
            raise ConfigError( "Invalid YAML in config file %s: %s" % ( path, e ) )
    if data is None:
        return {}
    if not isinstance( data, dict ):
        raise ConfigError( "Config file %s must contain a mapping" % ( path, ) )
    return data


def loadConfig( path = None ):
    '''Load the receiver settings.

    Settings are acquired in the following order, later ones winning:
    1- Built-in defaults.
    2- YAML file at path, LOOPBACK_OAUTH_CONFIG, or "~/.loopback-oauth".
    3- LOOPBACK_OAUTH_TIMEOUT and LOOPBACK_OAUTH_NO_BROWSER environment variables.

    Args:
        path (str): optional path to the YAML config file.

    Returns:
        a ReceiverConfig.
    '''
    if path is None:
        path = os.environ.get( constants.CONFIG_FILE_ENV_VAR, None )
    if path is None:
        path = constants.CONFIG_FILE_PATH

    data = _loadConfigFile( path )

    timeout = constants.DEFAULT_REDIRECT_TIMEOUT
    openBrowser = True

    if data.get( 'timeout', None ) is not None:
        timeout = _parseTimeout( data[ 'timeout' ], path )
    if data.get( 'open_browser', None ) is not None:
        openBrowser = _parseBool( data[ 'open_browser' ], path )

    envTimeout = os.environ.get( constants.TIMEOUT_ENV_VAR, None )
    if envTimeout:
        timeout = _parseTimeout( envTimeout, constants.TIMEOUT_ENV_VAR )

    envNoBrowser = os.environ.get( constants.NO_BROWSER_ENV_VAR, None )
    if envNoBrowser is not None:
        openBrowser = not _parseBool( envNoBrowser, constants.NO_BROWSER_ENV_VAR )

    return ReceiverConfig( timeout = timeout, open_browser = openBrowser )
