import sys
import traceback

REDIRECT_URI_PLACEHOLDER = '{redirect_uri}'


def cli( args ):
    """
    Command line interface for the loopback receiver.

    Args:
        args (list): list of CLI arguments to parse.
    """
    import argparse
    import json
    import logging
    import urllib.parse

    from rich.console import Console
    from rich.logging import RichHandler

    from .receiver import LocalServerCodeReceiver
    from .utils import ReceiverException, RedirectTimeoutError

    parser = argparse.ArgumentParser( prog = 'loopback-oauth' )
    parser.add_argument( 'action',
                         type = str,
                         help = 'action, currently supported "version" (print the version), "receive" (open the authorization URL and print the redirect parameters)' )

    rootArgs = args[ 1: 2 ]

    # Everything after the command name and the action name that is passed
    # to the action argument parser.
    actionArgs = args[ 2: ]
    args = parser.parse_args( rootArgs )

    if args.action.lower() == 'version':
        from . import __version__
        print( "loopback-oauth Version %s" % ( __version__, ) )
    elif args.action.lower() == 'receive':
        parser = argparse.ArgumentParser( prog = 'loopback-oauth receive' )
        parser.add_argument( 'url_template',
                             type = str,
                             help = 'authorization URL, where "%s" is replaced by the URL-encoded redirect URI' % ( REDIRECT_URI_PLACEHOLDER, ) )
        parser.add_argument( '--timeout',
                             type = float,
                             default = None,
                             help = 'seconds to wait for the redirect (default: from config, 60)' )
        parser.add_argument( '--no-browser',
                             action = 'store_true',
                             help = 'print URL instead of opening browser' )
        parser.add_argument( '--debug',
                             action = 'store_true',
                             help = 'log the receiver activity' )
        receiveArgs = parser.parse_args( actionArgs )

        if REDIRECT_URI_PLACEHOLDER not in receiveArgs.url_template:
            raise ReceiverException( 'the authorization URL must contain %s' % ( REDIRECT_URI_PLACEHOLDER, ) )

        console = Console()
        if receiveArgs.debug:
            logging.basicConfig( level = logging.DEBUG,
                                 format = '%(message)s',
                                 handlers = [ RichHandler( console = Console( stderr = True ) ) ] )

        receiver = LocalServerCodeReceiver( timeout = receiveArgs.timeout,
                                            open_browser = False if receiveArgs.no_browser else None )
        redirectUri = receiver.redirect_uri()
        authUrl = receiveArgs.url_template.replace( REDIRECT_URI_PLACEHOLDER, urllib.parse.quote( redirectUri, safe = '' ) )

        console.print( "Redirect URI: [bold]%s[/bold]" % ( redirectUri, ) )
        if not receiver.open_browser:
            console.print( "\nPlease visit this URL to authenticate:\n%s\n" % ( authUrl, ), markup = False, soft_wrap = True )
        console.print( "Waiting for the authorization redirect..." )

        try:
            response = receiver.receive_code_sync( authUrl )
        except RedirectTimeoutError as e:
            console.print( "[bold red]Timed out:[/bold red] %s" % ( e, ) )
            sys.exit( 1 )
        except KeyboardInterrupt:
            console.print( "\n[bold red]Cancelled by user.[/bold red]" )
            sys.exit( 1 )

        console.print_json( json.dumps( response.parameters ) )
        if not response.is_success():
            sys.exit( 1 )
    else:
        raise Exception( 'invalid action: %s' % ( args.action.lower(), ) )

def main():
    args = sys.argv

    debug_mode = "--debug" in args

    try:
        cli(args)
    except Exception as e:
        print("Error:", e, file=sys.stderr)

        if debug_mode:
            print(traceback.format_exc(), file=sys.stderr)

        return 1

if __name__ == "__main__":
    sys.exit(main())
