"""Shared fixtures for the MQM client tests."""

import io

import httpx
import pytest
import structlog
from fake_server import CLIENT_TYPE, LOCATION, SHARED_SPACE, FakeMqmServer

from mqm_rest_client import client, config


@pytest.fixture
def server() -> FakeMqmServer:
    return FakeMqmServer()


@pytest.fixture
def connection_config() -> config.ConnectionConfig:
    return config.ConnectionConfig(
        location=LOCATION,
        shared_space=SHARED_SPACE,
        client_type=CLIENT_TYPE,
        username="alice",
        password="secret",
    )


@pytest.fixture
def mqm_client(connection_config, server):
    """MqmRestClient talking to the fake server."""
    with client.MqmRestClient(
        connection_config,
        transport=httpx.MockTransport(server),
    ) as c:
        yield c


@pytest.fixture
def log_output():
    """logfmt output of the client's loggers at debug level."""
    stream = io.StringIO()
    config.configure_logging("debug", stream=stream)
    yield stream
    structlog.reset_defaults()
