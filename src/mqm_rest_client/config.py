"""Connection configuration and logging setup for the MQM REST client."""

import logging
import os
import pathlib
from typing import Annotated, Literal, TextIO

import pydantic
import structlog

CONFIG_ENV_VAR = "MQM_CLIENT_CONFIG_PATH"

DEFAULT_CONNECT_TIMEOUT = 20.0
DEFAULT_SOCKET_TIMEOUT = 120.0

REDACTED_LOG_KEYS = frozenset({"password", "cookie", "token", "proxy_password"})


class NoProxyCredentials(pydantic.BaseModel):
    """Proxy without authentication."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


class UsernamePasswordProxyCredentials(pydantic.BaseModel):
    """Proxy basic-auth credentials."""

    model_config = pydantic.ConfigDict(frozen=True)

    kind: Literal["username_password"] = "username_password"
    username: str
    password: str = pydantic.Field(repr=False)


ProxyCredentials = Annotated[
    NoProxyCredentials | UsernamePasswordProxyCredentials,
    pydantic.Field(discriminator="kind"),
]


class ConnectionConfig(pydantic.BaseModel):
    """Immutable connection settings for one MQM client instance."""

    model_config = pydantic.ConfigDict(frozen=True)

    location: str = pydantic.Field(
        min_length=1,
        description="Base URL of the MQM server",
    )
    shared_space: str = pydantic.Field(
        min_length=1,
        description="Shared space identifier",
    )
    client_type: str = pydantic.Field(
        min_length=1,
        description="Value of the HPECLIENTTYPE header",
    )
    username: str | None = pydantic.Field(None, description="Login user")
    password: str | None = pydantic.Field(
        None,
        description="Login password",
        repr=False,
    )
    proxy_host: str | None = pydantic.Field(None, description="HTTP proxy host")
    proxy_port: int | None = pydantic.Field(
        None,
        description="HTTP proxy port",
        gt=0,
        lt=65536,
    )
    proxy_credentials: ProxyCredentials = pydantic.Field(
        default_factory=NoProxyCredentials,
        description="Proxy authentication",
    )
    connect_timeout: float | None = pydantic.Field(
        None,
        description="Connect timeout in seconds",
        gt=0,
    )
    socket_timeout: float | None = pydantic.Field(
        None,
        description="Read/write timeout in seconds",
        gt=0,
    )

    @pydantic.field_validator("location")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.rstrip("/")
        if not stripped:
            msg = "location must not be empty"
            raise ValueError(msg)
        return stripped

    @pydantic.model_validator(mode="after")
    def _check_proxy(self) -> "ConnectionConfig":
        if self.proxy_host and self.proxy_port is None:
            msg = "proxy_port is required when proxy_host is set"
            raise ValueError(msg)
        return self

    @property
    def effective_connect_timeout(self) -> float:
        if self.connect_timeout is None:
            return DEFAULT_CONNECT_TIMEOUT
        return self.connect_timeout

    @property
    def effective_socket_timeout(self) -> float:
        if self.socket_timeout is None:
            return DEFAULT_SOCKET_TIMEOUT
        return self.socket_timeout


def load_config(config_path: str | pathlib.Path) -> ConnectionConfig:
    """Load connection configuration from a JSON file.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        pydantic.ValidationError: If the file content is not a valid
            configuration.
    """
    path = pathlib.Path(config_path)
    if not path.is_file():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)
    return ConnectionConfig.model_validate_json(path.read_bytes())


def config_from_env() -> ConnectionConfig:
    """Load configuration from the file named by ``MQM_CLIENT_CONFIG_PATH``."""
    config_path = os.environ.get(CONFIG_ENV_VAR)
    if not config_path:
        msg = f"Environment variable {CONFIG_ENV_VAR} is not set"
        raise FileNotFoundError(msg)
    return load_config(config_path)


def _redact_secrets(_logger, _method_name, event_dict: dict) -> dict:
    for key in event_dict.keys() & REDACTED_LOG_KEYS:
        event_dict[key] = "***"
    return event_dict


def configure_logging(log_level_name: str, stream: TextIO | None = None) -> None:
    """Route the client's structlog output to ``stream`` as logfmt lines.

    Values of credential-bearing keys (see ``REDACTED_LOG_KEYS``) are masked
    before rendering. Loggers are not cached, so calling this again
    reconfigures the module-level loggers of the client.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _redact_secrets,
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
