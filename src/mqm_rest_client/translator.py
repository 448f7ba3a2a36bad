"""Translation of MQM HTTP responses into results or typed errors."""

import json
from collections.abc import Callable
from typing import TypeVar

import httpx
import structlog

from .exceptions import (
    AuthorizationError,
    RequestError,
    RequestException,
    ServerSideError,
)
from .stacktrace import parse_server_stack_trace
from .types import PagedList

logger = structlog.get_logger(__name__)

E = TypeVar("E")

EntityFactory = Callable[[str], E]


def to_paged_list(
    response: httpx.Response,
    offset: int,
    factory: EntityFactory[E],
) -> PagedList[E]:
    """Decode a ``{"data": [...], "total_count": N}`` body into a PagedList.

    Each element of ``data`` is handed to ``factory`` as JSON text, in
    array order.

    Raises:
        RequestError: If the body is not a valid collection response.
    """
    try:
        body = response.json()
        items = [factory(json.dumps(entity)) for entity in body["data"]]
        total_count = int(body["total_count"])
    except (ValueError, KeyError, TypeError) as exc:
        msg = f"Cannot decode entities from response: {exc}"
        raise RequestError(
            msg,
            status_code=response.status_code,
            reason=response.reason_phrase,
        ) from exc
    return PagedList(items=items, offset=offset, total_count=total_count)


def create_request_exception(
    message: str,
    response: httpx.Response,
    error_class: type[RequestException] = RequestError,
) -> RequestException:
    """Build a typed error from a failed response.

    Uses the server's ``error_code``/``description`` body when present and
    attaches a :class:`ServerSideError` cause when the body carries a
    parseable ``stack_trace``. Falls back to status code and reason phrase
    for bodies that are absent or not JSON.
    """
    description: str | None = None
    error_code: str | None = None
    stack_trace: str | None = None
    try:
        body = response.json()
        if isinstance(body, dict) and "error_code" in body and "description" in body:
            error_code = str(body["error_code"])
            description = str(body["description"])
            # stack trace may not be present in production
            stack_trace = body.get("stack_trace") or None
    except ValueError:
        logger.exception(
            "Unable to determine failure message",
            status_code=response.status_code,
        )

    cause: ServerSideError | None = None
    remote = parse_server_stack_trace(stack_trace)
    if remote is not None:
        cause = ServerSideError("Exception thrown on server, see cause", cause=remote)

    status_code = response.status_code
    reason = response.reason_phrase
    if error_code:
        full_message = (
            f"{message}; error code: {error_code}; description: {description}"
        )
    else:
        full_message = f"{message}; status code {status_code}; reason {reason}"
    return error_class(
        full_message,
        description=description,
        error_code=error_code,
        status_code=status_code,
        reason=reason,
        cause=cause,
    )


def translate_error(message: str, response: httpx.Response) -> RequestException:
    """Classify a non-200 data-operation response.

    401 (after the executor's retry) and 403 become
    :class:`AuthorizationError`; anything else is a :class:`RequestError`.
    """
    if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
        return create_request_exception(message, response, AuthorizationError)
    return create_request_exception(message, response)
