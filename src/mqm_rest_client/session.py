"""Session management for the MQM REST API.

The server issues an ``LWSSO_COOKIE_KEY`` cookie on a successful sign-in.
:class:`SessionManager` is the only owner of that cookie: it performs the
login round-trip, keeps the token private, and writes it onto outgoing
requests.
"""

import threading
import time
from dataclasses import dataclass

import httpx
import structlog

from .exceptions import AuthenticationError, LoginTransportError

logger = structlog.get_logger(__name__)

URI_AUTHENTICATION = "authentication/sign_in"
HEADER_CLIENT_TYPE = "HPECLIENTTYPE"
LWSSO_COOKIE_NAME = "LWSSO_COOKIE_KEY"


@dataclass(frozen=True)
class _SessionToken:
    name: str
    value: str
    domain: str = ""
    path: str = "/"

    @property
    def header_value(self) -> str:
        return f"{self.name}={self.value}"


class SessionManager:
    """Owns the authentication cookie and the login state machine.

    Only one login round-trip is in flight at a time. Callers that were
    blocked while another caller's login attempt ran observe that attempt's
    outcome (the new token, or the same exception) instead of logging in
    again.
    """

    def __init__(
        self,
        http: httpx.Client,
        login_url: str,
        client_type: str,
        username: str | None = None,
        password: str | None = None,
    ):
        self._http = http
        self._login_url = login_url
        self._client_type = client_type
        self._username = username
        self._password = password

        self._lock = threading.Lock()
        self._token: _SessionToken | None = None
        # Number of finished login attempts and the error of the latest one
        self._attempts = 0
        self._last_error: Exception | None = None

    @property
    def is_authenticated(self) -> bool:
        """True while a session token is held."""
        return self._token is not None

    def ensure_session(self) -> None:
        """Log in unless a session token is already held.

        Raises:
            AuthenticationError: If the server rejects the credentials.
            LoginTransportError: If the server cannot be reached.
        """
        attempts_seen = self._attempts
        if self._token is not None:
            return
        with self._lock:
            if self._token is not None:
                return
            if self._attempts != attempts_seen and self._last_error is not None:
                # A login attempt finished while we waited; share its failure
                raise self._last_error
            self._login()

    def login(self) -> None:
        """Perform a fresh login, replacing any held token."""
        with self._lock:
            self._login()

    def invalidate(self) -> None:
        """Drop the held token; the next request logs in again."""
        with self._lock:
            self._token = None
        logger.debug("Session invalidated")

    def attach(self, request: httpx.Request) -> None:
        """Write the session cookie onto a prepared request.

        Establishes a session first when none is held.
        """
        while (token := self._token) is None:
            self.ensure_session()
        request.headers["Cookie"] = token.header_value

    def renew(self, request: httpx.Request) -> None:
        """Re-authenticate after ``request`` was rejected with 401.

        If a concurrent caller already replaced the token the request was
        sent with, that newer token is reused instead of logging in again.
        The current token is attached to ``request`` either way.
        """
        sent_with = request.headers.get("Cookie")
        attempts_seen = self._attempts
        with self._lock:
            token = self._token
            if token is None:
                if self._attempts != attempts_seen and self._last_error is not None:
                    # The re-login we waited on failed; share its failure
                    raise self._last_error
                token = self._login()
            elif token.header_value == sent_with:
                token = self._login()
            else:
                logger.debug("Session already renewed by another caller")
            request.headers["Cookie"] = token.header_value

    def _login(self) -> _SessionToken:
        """Sign in and store the session cookie. Caller must hold the lock."""
        start_time = time.time()
        logger.debug("Logging in", url=self._login_url, client_type=self._client_type)
        try:
            self._token = None
            token = self._authenticate()
            self._token = token
            self._last_error = None
            logger.info(
                "Login succeeded",
                duration_seconds=round(time.time() - start_time, 3),
            )
            return token
        except (AuthenticationError, LoginTransportError) as exc:
            self._token = None
            self._last_error = exc
            logger.warning("Login failed", error=str(exc))
            raise
        finally:
            self._attempts += 1

    def _authenticate(self) -> _SessionToken:
        credentials = {
            "user": self._username or "",
            "password": self._password or "",
        }
        try:
            response = self._http.post(
                self._login_url,
                json=credentials,
                headers={HEADER_CLIENT_TYPE: self._client_type},
            )
        except httpx.RequestError as exc:
            msg = "Error occurred during authentication"
            raise LoginTransportError(msg) from exc

        if response.status_code != httpx.codes.OK:
            msg = (
                f"Authentication failed: code={response.status_code}; "
                f"reason={response.reason_phrase}"
            )
            raise AuthenticationError(
                msg,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )

        for cookie in response.cookies.jar:
            if cookie.name == LWSSO_COOKIE_NAME and cookie.value is not None:
                return _SessionToken(
                    name=cookie.name,
                    value=cookie.value,
                    domain=cookie.domain,
                    path=cookie.path,
                )

        msg = "Authentication failed: status code was OK, but no security token found"
        raise AuthenticationError(
            msg,
            status_code=response.status_code,
            reason=response.reason_phrase,
        )
