import glob
import json
import logging
import os
import socket
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlencode

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.connection import HTTPConnection
from urllib3.connectionpool import HTTPConnectionPool

from volumectl_core import constants, utils
from volumectl_core.exceptions import DecodeFailure, DiscoveryFailure, TransportFailure

logger = logging.getLogger(__name__)

SOCKET_BASE_URL = "http+unix://localhost"


class UnixHTTPConnection(HTTPConnection):

    def __init__(self, socket_path, timeout=None):
        super().__init__('localhost', timeout=timeout)
        self.socket_path = socket_path
        self.timeout = timeout

    def connect(self):
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock.connect(self.socket_path)
        except OSError:
            sock.close()
            raise
        self.sock = sock


class UnixHTTPConnectionPool(HTTPConnectionPool):

    def __init__(self, socket_path, timeout=None):
        super().__init__('localhost', timeout=timeout, maxsize=1)
        self.socket_path = socket_path
        self.timeout = timeout

    def _new_conn(self):
        return UnixHTTPConnection(self.socket_path, self.timeout)


class UnixHTTPAdapter(HTTPAdapter):
    """Send every request of the session to one Unix domain socket."""

    def __init__(self, socket_path, timeout=None):
        self.socket_path = socket_path
        self.timeout = timeout
        self._pool = None
        super().__init__(max_retries=0)

    def get_connection_with_tls_context(self, request, verify, proxies=None, cert=None):
        return self.get_connection(request.url, proxies)

    def get_connection(self, url, proxies=None):
        if self._pool is None:
            self._pool = UnixHTTPConnectionPool(self.socket_path, self.timeout)
        return self._pool

    def request_url(self, request, proxies):
        return request.path_url

    def close(self):
        if self._pool is not None:
            self._pool.close()
            self._pool = None
        super().close()


@dataclass(frozen=True)
class RemoteRequest:
    method: str
    path: str
    body: Optional[dict] = None
    query: Optional[dict] = None
    accept: frozenset = field(default=constants.ACCEPTED_STATUS_CODES)

    def encoded_body(self):
        if self.body is None:
            return None
        return json.dumps(utils.compact_params(self.body))

    def target(self):
        query = utils.compact_params(self.query or {})
        if query:
            return f"{self.path}?{urlencode(query, doseq=True)}"
        return self.path


@dataclass(frozen=True)
class RemoteResponse:
    status: int
    body: bytes = b""

    def json(self):
        if not self.body or not self.body.strip():
            return None
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise DecodeFailure(f"Invalid JSON in response: {e}", status=self.status, body=self.body)


def search_patterns(patterns=None):
    if patterns:
        return list(patterns)
    env_patterns = utils.get_env_var(constants.ENV_SOCKET_PATTERNS)
    if env_patterns:
        return [p for p in env_patterns.split(os.pathsep) if p]
    return list(constants.SOCKET_SEARCH_PATTERNS)


def socket_candidates(patterns=None):
    for pattern in search_patterns(patterns):
        for match in sorted(glob.glob(pattern)):
            yield os.path.join(match, constants.SOCKET_FILENAME)


class APIConnection:
    """The single connection a command invocation talks through."""

    def __init__(self, config, patterns=None):
        self.config = config
        self.patterns = patterns
        self.socket_path = None
        self.base_url = None
        self.session = None

    @property
    def connected(self):
        return self.session is not None

    def _new_session(self):
        session = requests.session()
        session.headers['Content-Type'] = "application/json"
        session.headers['Accept'] = "application/json"
        if self.config.api_token:
            session.headers['Authorization'] = f"Bearer {self.config.api_token}"
        elif self.config.basic_auth:
            session.auth = HTTPBasicAuth(*self.config.basic_auth)
        session.verify = not self.config.insecure
        if self.config.insecure:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        session.mount("http://", HTTPAdapter(max_retries=0))
        session.mount("https://", HTTPAdapter(max_retries=0))
        return session

    def _probe(self, socket_path):
        session = self._new_session()
        session.mount("http+unix://", UnixHTTPAdapter(socket_path, constants.PROBE_TIMEOUT_SEC))
        try:
            response = session.get(SOCKET_BASE_URL + constants.PROBE_PATH, timeout=constants.PROBE_TIMEOUT_SEC)
        except requests.exceptions.RequestException as e:
            logger.debug("No answer on %s: %s", socket_path, e)
            session.close()
            return None
        logger.debug("Probe of %s answered with status %s", socket_path, response.status_code)
        return session

    def connect(self):
        if self.connected:
            return self

        if not self.config.use_socket:
            self.base_url = self.config.endpoint
            self.session = self._new_session()
            logger.debug("Using API endpoint %s", self.base_url)
            return self

        for socket_path in socket_candidates(self.patterns):
            logger.debug("Probing API socket %s", socket_path)
            session = self._probe(socket_path)
            if session is not None:
                self.socket_path = socket_path
                self.base_url = SOCKET_BASE_URL
                self.session = session
                return self

        raise DiscoveryFailure(
            f"{constants.SERVICE_NAME} is not running "
            f"(no API socket found under {', '.join(search_patterns(self.patterns))})")

    def close(self):
        if self.session is not None:
            self.session.close()
            self.session = None

    def send(self, request):
        if not self.connected:
            self.connect()

        body = request.encoded_body()
        logger.debug("Requesting %s %s, params: %s", request.method, request.path,
                     utils.mask_secrets(request.body or request.query))
        prepared = self.session.prepare_request(
            requests.Request(request.method, self.base_url + request.path, data=body))
        # requests re-quotes the url, which would undo the escaped dots
        prepared.url = self.base_url + request.target()
        try:
            response = self.session.send(prepared)
        except requests.exceptions.RequestException as e:
            raise TransportFailure(f"Request failed: {e}")

        logger.debug("Response: status_code: %s, content: %s",
                     response.status_code, response.content)

        result = RemoteResponse(response.status_code, response.content or b"")
        if result.status not in request.accept:
            raise TransportFailure(
                f"Invalid http status: {result.status}", status=result.status, body=result.body)
        return result


class ResourceClient:
    """Remote operations on one resource type, scoped by its path prefix."""

    def __init__(self, connection, prefix):
        self.connection = connection
        self.prefix = prefix

    def _path(self, name=None, subresource=None):
        path = f"/{self.prefix}"
        if name is not None:
            path += f"/{utils.quote_name(name)}"
        if subresource:
            path += f"/{subresource}"
        return path

    @staticmethod
    def _split_name(params):
        params = dict(params or {})
        return params.pop('name'), params

    def _call(self, request):
        return self.connection.send(request).json()

    def create(self, params):
        return self._call(RemoteRequest("POST", self._path(), body=utils.compact_params(params)))

    def list(self, params=None):
        return self._call(RemoteRequest("GET", self._path(), query=params))

    def inspect(self, params):
        name, query = self._split_name(params)
        return self._call(RemoteRequest("GET", self._path(name), query=query))

    def delete(self, params):
        name, query = self._split_name(params)
        return self.connection.send(RemoteRequest("DELETE", self._path(name), query=query))

    def backup(self, params):
        name, body = self._split_name(params)
        return self._call(RemoteRequest("PUT", self._path(name, "backup"), body=utils.compact_params(body)))

    def info(self, params=None):
        return self._call(RemoteRequest("GET", self._path(subresource="info"), query=params))


class ResourceClients:
    """The volume, profile and backup clients sharing one connection."""

    def __init__(self, connection):
        self.connection = connection
        self.volume = ResourceClient(connection, constants.RESOURCE_VOLUME)
        self.profile = ResourceClient(connection, constants.RESOURCE_PROFILE)
        self.backup = ResourceClient(connection, constants.RESOURCE_BACKUP)

    def get(self, resource):
        return getattr(self, resource)
