import logging
import os
SCRIPT_PATH = os.path.dirname(os.path.realpath(__file__))


def get_from_env_var_file(name, default=None):
    if not name:
        return False
    with open(f"{SCRIPT_PATH}/env_var", "r", encoding="utf-8") as fh:
        for line in fh.readlines():
            if line.startswith(name):
                return line.split("=", 1)[1].strip()
    return default


COMMAND_NAME = get_from_env_var_file("VOLUMECTL_COMMAND_NAME", "volumectl")
VERSION = get_from_env_var_file("VOLUMECTL_VERSION", "0")

SERVICE_NAME = "volumed"

LOG_LEVEL = logging.INFO
CLI_LOG_LEVEL = logging.WARNING

# endpoint discovery, each match is a directory holding SOCKET_FILENAME
SOCKET_SEARCH_PATTERNS = ["/run/volumed*"]
SOCKET_FILENAME = "volumed.sock"
PROBE_PATH = "/"
PROBE_TIMEOUT_SEC = 5

DEFAULT_API_PROTO = "http"
DEFAULT_API_HOST = "localhost"
DEFAULT_API_PORT = 27001

ACCEPTED_STATUS_CODES = frozenset(list(range(200, 205)) + [304])

SECRET_FIELDS = ("access_token", "otp")

RESOURCE_VOLUME = "volume"
RESOURCE_PROFILE = "profile"
RESOURCE_BACKUP = "backup"

ENV_DEBUG = "VOLUMECTL_DEBUG"
ENV_VERBOSE = "VOLUMECTL_VERBOSE"
ENV_VERSION = "VOLUMECTL_VERSION"
ENV_LOG_LEVEL = "VOLUMECTL_LOG_LEVEL"
ENV_SOCKET_PATTERNS = "VOLUMECTL_SOCKET_PATTERNS"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
