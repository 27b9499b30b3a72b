"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    USER_AGENT = "GitHub-Redirector/0.1"
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_ACCEPT = "application/vnd.github.v3+json"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    ENV_LOG_LEVEL = "RELEASE_REDIRECT_LOG_LEVEL"

    DEFAULT_LISTEN_ADDR = ":8947"
    DEFAULT_CONFIG_FILE = "config.json"
    UNIX_SOCKET_PREFIX = "unix:"
    UNIX_SOCKET_MODE = 0o777
    HEALTH_PATH = "/_redirect/health"

    REQUEST_TIMEOUT = 10  # Timeout in seconds for upstream HTTP requests
    MAX_RESPONSE_BYTES = 5 * 1024 * 1024
    RESOLUTION_TTL_SEC = 300

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
