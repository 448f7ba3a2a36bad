"""MQM REST client.

Client library for the MQM (ALM Octane) REST API: session-cookie login with
transparent re-authentication, URI templating, paged entity retrieval, and
translation of error responses into a typed exception hierarchy.
"""

from . import types
from .client import MqmRestClient
from .config import (
    ConnectionConfig,
    NoProxyCredentials,
    UsernamePasswordProxyCredentials,
    configure_logging,
    load_config,
)
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    IllegalArgumentError,
    LoginTransportError,
    MqmError,
    RequestError,
    RequestException,
    ServerSideError,
    SharedSpaceNotFoundError,
)
from .query import QueryCondition, condition, condition_ref
from .types import PagedList

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConnectionConfig",
    "IllegalArgumentError",
    "LoginTransportError",
    "MqmError",
    "MqmRestClient",
    "NoProxyCredentials",
    "PagedList",
    "QueryCondition",
    "RequestError",
    "RequestException",
    "ServerSideError",
    "SharedSpaceNotFoundError",
    "UsernamePasswordProxyCredentials",
    "condition",
    "condition_ref",
    "configure_logging",
    "load_config",
    "types",
]
