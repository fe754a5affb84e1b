class ReceiverException( Exception ):
    '''Exception type used for various errors in the loopback receiver.'''

    def __init__( self, message, code = None ):
        """
        Initialize the exception with a message and an optional status code.

        Args:
            message (str): The error message.
            code (int, optional): An optional HTTP status code related to the failure. Defaults to None.
        """
        super().__init__( message )
        self.code = code


class PortAllocationError( ReceiverException ):
    '''The OS refused to hand out a free loopback port.'''
    pass


class ListenerError( ReceiverException ):
    '''The loopback listener could not bind or serve.'''
    pass


class RedirectTimeoutError( ReceiverException, TimeoutError ):
    '''No redirect reached the loopback listener in time.'''
    pass


class RedirectCancelledError( ReceiverException ):
    '''The caller cancelled the wait for the redirect.'''
    pass


class MalformedRedirectError( ReceiverException ):
    '''The redirect query string could not be decoded.'''
    pass


class ConfigError( ReceiverException ):
    '''Invalid value in the receiver configuration.'''
    pass
