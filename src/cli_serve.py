"""CLI entry point for the release redirect server.

Sets up logging, loads the file mapping, and starts the server. Configuration
problems abort the process before any traffic is served.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict

from common.logging_utils import configure_logging
from constants import Constants, ExitCodes
from redirector.config import ConfigError, load_file_map
from redirector.server import ServerConfig, parse_listen_address, run_server_sync

logger = logging.getLogger(__name__)


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments.

    Args:
        args: Parsed CLI arguments.
    """
    # Honor CLI --loglevel
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()

    configure_logging()

    # Add file handler if --logfile specified
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _load_file_map_or_exit(config_path: str) -> Dict[str, str]:
    """Load the file mapping, exiting the process on any config error."""
    try:
        file_map = load_file_map(config_path)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    if not file_map:
        logger.warning("No file keys configured - every request will return 404")
    return file_map


def _validate_server_config(config: ServerConfig) -> None:
    """Reject unusable listen addresses and timeouts before starting."""
    try:
        parse_listen_address(config.listen_addr)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    if config.timeout <= 0:
        logger.error("Timeout must be a positive number of seconds, got %s", config.timeout)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run_redirect_server(args: Any) -> None:
    """Entry point for the redirect server command.

    Args:
        args: Parsed CLI arguments namespace.
    """
    _setup_logging(args)

    config_path = getattr(args, "CONFIG", None) or Constants.DEFAULT_CONFIG_FILE
    file_map = _load_file_map_or_exit(config_path)

    config = ServerConfig.from_args(args)
    _validate_server_config(config)

    try:
        run_server_sync(config, file_map)
    except OSError as e:
        logger.error("Failed to listen on %s: %s", config.listen_addr, e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
