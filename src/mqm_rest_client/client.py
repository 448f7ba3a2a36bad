"""MQM REST API client.

Wires configuration, the shared HTTP connection pool, the session manager,
the request executor and the response translator into the operations every
MQM API call rides on: login, configuration validation, and paged entity
retrieval and deletion.
"""

import http.cookiejar
from typing import Any, TypeVar

import httpx
import structlog

from .config import (
    ConnectionConfig,
    NoProxyCredentials,
    UsernamePasswordProxyCredentials,
)
from .exceptions import (
    AuthorizationError,
    IllegalArgumentError,
    RequestError,
    SharedSpaceNotFoundError,
)
from .executor import RequestExecutor
from .session import URI_AUTHENTICATION, SessionManager
from .translator import EntityFactory, to_paged_list, translate_error
from .types import PagedList
from .uri import UriBuilder

logger = structlog.get_logger(__name__)

E = TypeVar("E")

CONNECTIVITY_API_URI = "analytics/ci/servers/connectivity/status"

MAX_CONNECTIONS = 20


def proxy_for(config: ConnectionConfig) -> httpx.Proxy | None:
    """Translate the configured proxy into an httpx proxy, if any.

    Raises:
        IllegalArgumentError: For an unsupported proxy credentials type.
    """
    if not config.proxy_host:
        return None
    url = f"http://{config.proxy_host}:{config.proxy_port}"
    credentials = config.proxy_credentials
    if isinstance(credentials, NoProxyCredentials):
        return httpx.Proxy(url)
    if isinstance(credentials, UsernamePasswordProxyCredentials):
        return httpx.Proxy(url, auth=(credentials.username, credentials.password))
    msg = f"Unsupported proxy credentials type {type(credentials).__name__}"
    raise IllegalArgumentError(msg)


def _rejecting_cookie_jar() -> http.cookiejar.CookieJar:
    """Cookie jar that stores nothing; the session cookie is set explicitly."""
    policy = http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
    return http.cookiejar.CookieJar(policy=policy)


class MqmRestClient:
    """Client for the MQM REST API.

    One instance holds one connection pool and one authenticated session
    and may be shared between threads. Can be used as a context manager for
    automatic cleanup.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        No network activity happens until the first request or login.

        Args:
            config: Validated connection configuration.
            transport: Optional httpx transport (used by tests).

        Raises:
            IllegalArgumentError: If the proxy configuration is unsupported.
        """
        self.config = config
        self.uris = UriBuilder(config.location, config.shared_space)

        timeout = httpx.Timeout(
            config.effective_socket_timeout,
            connect=config.effective_connect_timeout,
            pool=None,
        )
        self._http = httpx.Client(
            headers={"Accept": "application/json"},
            cookies=_rejecting_cookie_jar(),
            timeout=timeout,
            limits=httpx.Limits(
                max_connections=MAX_CONNECTIONS,
                max_keepalive_connections=MAX_CONNECTIONS,
            ),
            proxy=proxy_for(config),
            transport=transport,
        )

        self._session = SessionManager(
            http=self._http,
            login_url=self.uris.base_uri(URI_AUTHENTICATION),
            client_type=config.client_type,
            username=config.username,
            password=config.password,
        )
        self._executor = RequestExecutor(
            http=self._http,
            session=self._session,
            client_type=config.client_type,
        )

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Release the connection pool."""
        if not self._http.is_closed:
            self._http.close()

    def login(self) -> None:
        """Log in to MQM and establish a session.

        Raises:
            AuthenticationError: If the credentials are rejected.
            LoginTransportError: If the server cannot be reached.
        """
        self._session.login()

    def validate_configuration(self) -> None:
        """Log in and verify access to the configured shared space."""
        self.login()
        self.check_authorization()

    def validate_configuration_without_login(self) -> None:
        """Verify access to the shared space, reusing any existing session."""
        self.check_authorization()

    def check_authorization(self) -> None:
        """Query the connectivity status endpoint of the shared space.

        Raises:
            SharedSpaceNotFoundError: On 404.
            AuthorizationError: On 403 or any other non-200 status.
            RequestError: If the request cannot be sent.
        """
        request = self.build_request(
            "GET",
            self.uris.shared_space_internal_api_uri(CONNECTIVITY_API_URI),
        )
        try:
            response = self._executor.execute(request)
        except httpx.RequestError as exc:
            msg = "Shared space check failed"
            raise RequestError(msg) from exc

        status_code = response.status_code
        if status_code == httpx.codes.NOT_FOUND:
            msg = "Cannot connect to given shared space."
            raise SharedSpaceNotFoundError(
                msg,
                status_code=status_code,
                reason=response.reason_phrase,
            )
        if status_code == httpx.codes.FORBIDDEN:
            msg = "Provided credentials are not sufficient for requested resource"
            raise AuthorizationError(
                msg,
                status_code=status_code,
                reason=response.reason_phrase,
            )
        if status_code != httpx.codes.OK:
            msg = f"Authorization failed with unexpected response {status_code}"
            raise AuthorizationError(
                msg,
                status_code=status_code,
                reason=response.reason_phrase,
            )
        logger.info(
            "Shared space authorization verified",
            shared_space=self.config.shared_space,
        )

    def build_request(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        """Prepare a request with the client's default headers and timeouts."""
        return self._http.build_request(method, url, **kwargs)

    def execute(self, request: httpx.Request) -> httpx.Response:
        """Send a prepared request through the authenticated session.

        Logs in if necessary and re-authenticates once on a 401 response.

        Raises:
            IllegalArgumentError: If the request body is not repeatable.
        """
        return self._executor.execute(request)

    def get_entities(
        self,
        uri: str,
        offset: int,
        factory: EntityFactory[E],
    ) -> PagedList[E]:
        """Retrieve one page of a collection.

        Args:
            uri: Collection URI, typically from :meth:`UriBuilder.entity_uri`.
            offset: Offset the URI was built with.
            factory: Turns one entity's JSON text into an entity object.

        Returns:
            Decoded page of entities.

        Raises:
            AuthorizationError: On 401/403.
            RequestError: On any other failure.
        """
        request = self.build_request("GET", uri)
        try:
            response = self._executor.execute(request)
        except httpx.RequestError as exc:
            msg = "Cannot retrieve entities from MQM."
            raise RequestError(msg) from exc

        if response.status_code != httpx.codes.OK:
            raise translate_error("Entity retrieval failed", response)
        return to_paged_list(response, offset, factory)

    def delete_entities(self, uri: str, factory: EntityFactory[E]) -> PagedList[E]:
        """Delete the entities addressed by a collection URI.

        Returns:
            The deleted entities as reported by the server.

        Raises:
            AuthorizationError: On 401/403.
            RequestError: On any other failure.
        """
        request = self.build_request("DELETE", uri)
        try:
            response = self._executor.execute(request)
        except httpx.RequestError as exc:
            msg = "Cannot delete entities from MQM."
            raise RequestError(msg) from exc

        if response.status_code != httpx.codes.OK:
            raise translate_error("Entity delete failed", response)
        return to_paged_list(response, 0, factory)
