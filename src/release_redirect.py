"""Release redirect - stable links to the latest GitHub release asset.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from cli_serve import run_redirect_server
from constants import ExitCodes


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    run_redirect_server(args)
    logging.getLogger(__name__).info("Exiting.")
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
