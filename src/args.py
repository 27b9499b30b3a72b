"""Argument parsing functionality for the release redirect server."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="release-redirect",
        description=(
            "Redirect stable file keys to the latest GitHub release asset"
        ),
        add_help=True,
    )

    parser.add_argument("--addr",
                        dest="LISTEN_ADDR",
                        help="Address for the HTTP server to listen on (or unix:/path/to/socket.sock)",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_LISTEN_ADDR)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Configuration file to read (JSON, or YAML by extension)",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_CONFIG_FILE)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Upstream request timeout in seconds",
                        action="store",
                        type=float,
                        default=Constants.REQUEST_TIMEOUT)
    parser.add_argument("--upstream-url",
                        dest="UPSTREAM_URL",
                        help="Release API base URL",
                        action="store",
                        type=str,
                        default=Constants.GITHUB_API_BASE)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=Constants.LOG_LEVELS,
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
