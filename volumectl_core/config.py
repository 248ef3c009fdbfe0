from dataclasses import dataclass
from typing import Optional

from volumectl_core import constants, utils
from volumectl_core.exceptions import UsageError

ENDPOINT_OPTIONS = ("api_proto", "api_host", "api_port")


@dataclass(frozen=True)
class GlobalConfig:
    """Resolved values of the options every command inherits."""

    verbose: bool = False
    debug: bool = False
    raw: bool = False
    machine: bool = False
    yaml: bool = False
    api_proto: str = constants.DEFAULT_API_PROTO
    api_host: str = constants.DEFAULT_API_HOST
    api_port: int = constants.DEFAULT_API_PORT
    api_url: Optional[str] = None
    api_token: Optional[str] = None
    basic_auth: Optional[tuple] = None
    insecure: bool = False
    use_socket: bool = True

    @property
    def endpoint(self):
        """Base URL for TCP endpoints, None when the socket is discovered."""
        if self.use_socket:
            return None
        if self.api_url:
            return self.api_url.rstrip('/')
        return f"{self.api_proto}://{self.api_host}:{self.api_port}"

    @property
    def auth_mode(self):
        if self.api_token:
            return "bearer"
        if self.basic_auth:
            return "basic"
        return None

    @classmethod
    def from_args(cls, args):
        """Build the config from a parsed namespace.

        Global options are parsed with suppressed defaults, so an attribute is
        only present on ``args`` when it was given on the command line.
        """
        given = vars(args)

        api_url = given.get('api_url')
        endpoint_given = [name for name in ENDPOINT_OPTIONS if name in given]
        if api_url and endpoint_given:
            raise UsageError(
                "--api-url cannot be combined with %s" %
                ", ".join("--" + name.replace('_', '-') for name in endpoint_given))

        api_token = given.get('api_token')
        basic_auth = given.get('basic_auth')
        if api_token and basic_auth:
            raise UsageError("--api-token and -u are mutually exclusive")

        return cls(
            verbose=bool(given.get('verbose')) or utils.get_env_flag(constants.ENV_VERBOSE),
            debug=bool(given.get('debug')) or utils.get_env_flag(constants.ENV_DEBUG),
            raw=bool(given.get('raw')),
            machine=bool(given.get('machine')),
            yaml=bool(given.get('yaml')),
            api_proto=given.get('api_proto', constants.DEFAULT_API_PROTO),
            api_host=given.get('api_host', constants.DEFAULT_API_HOST),
            api_port=given.get('api_port', constants.DEFAULT_API_PORT),
            api_url=api_url,
            api_token=api_token,
            basic_auth=basic_auth,
            insecure=bool(given.get('insecure')),
            use_socket=not (api_url or endpoint_given),
        )
