"""Session-authenticated request execution with a single 401 retry."""

import time

import httpx
import structlog

from .exceptions import IllegalArgumentError
from .session import HEADER_CLIENT_TYPE, SessionManager

logger = structlog.get_logger(__name__)


class RequestExecutor:
    """Sends prepared requests through an authenticated session.

    A 401 response triggers exactly one re-authentication and one resend of
    the same request. Whatever the second attempt returns is handed back to
    the caller, including another 401.
    """

    def __init__(self, http: httpx.Client, session: SessionManager, client_type: str):
        self._http = http
        self._session = session
        self._client_type = client_type

    def _prepare(self, request: httpx.Request) -> None:
        request.headers[HEADER_CLIENT_TYPE] = self._client_type

    def _send(self, request: httpx.Request) -> httpx.Response:
        start_time = time.time()
        logger.debug("Making API request", method=request.method, url=str(request.url))
        response = self._http.send(request)
        logger.debug(
            "API request completed",
            method=request.method,
            status_code=response.status_code,
            duration_seconds=round(time.time() - start_time, 3),
        )
        return response

    def execute(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, logging in first and re-authenticating once on 401.

        Args:
            request: Prepared request whose body can be sent more than once.

        Returns:
            Response of the last attempt.

        Raises:
            IllegalArgumentError: If the request body is a one-shot stream.
            AuthenticationError: If (re-)login is rejected.
            LoginTransportError: If the login endpoint cannot be reached.
            httpx.RequestError: If sending the request itself fails.
        """
        if not isinstance(request.stream, httpx.ByteStream):
            msg = "Requests with a non-repeatable body are not supported"
            raise IllegalArgumentError(msg)

        self._session.ensure_session()
        self._prepare(request)
        self._session.attach(request)
        response = self._send(request)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            response.close()
            logger.info("Session rejected, re-authenticating", url=str(request.url))
            self._session.renew(request)
            self._prepare(request)
            response = self._send(request)

        return response
