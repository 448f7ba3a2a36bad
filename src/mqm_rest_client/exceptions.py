"""Exception hierarchy for the MQM REST client.

Every public operation either returns a fully decoded result or raises
exactly one of the errors defined here.
"""


class MqmError(Exception):
    """Base exception for all MQM client errors."""


class IllegalArgumentError(MqmError, ValueError):
    """Caller-side contract violation, e.g. a non-repeatable request body.

    Invalid :class:`~mqm_rest_client.config.ConnectionConfig` values raise
    ``pydantic.ValidationError`` instead; both are ``ValueError`` subclasses.
    """


class RequestException(MqmError):
    """Classified error of a request to the MQM server.

    Attributes:
        description: Server-supplied error description, if any.
        error_code: Server-supplied error code, if any.
        status_code: HTTP status code, if a response was received.
        reason: HTTP reason phrase, if a response was received.
        cause: Reconstructed server-side exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        description: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.description = description
        self.error_code = error_code
        self.status_code = status_code
        self.reason = reason
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class AuthenticationError(RequestException):
    """Login was rejected or returned no session token."""


class LoginTransportError(RequestException):
    """Network or I/O failure during login (server unreachable, timeout)."""


class AuthorizationError(RequestException):
    """Credentials are valid but insufficient for the requested resource."""


class SharedSpaceNotFoundError(RequestException):
    """The configured shared space does not exist on the server."""


class RequestError(RequestException):
    """Generic failure of a data operation."""


class ServerSideError(RequestException):
    """Wraps an exception chain reconstructed from a server stack trace."""
