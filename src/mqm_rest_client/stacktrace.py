"""Best-effort parser for server-side stack traces.

The MQM server may attach a JVM-style stack trace to error responses.
This module turns that text into a chain of :class:`RemoteException`
objects linked through ``__cause__``. Parsing never raises past
:func:`parse_server_stack_trace`; any failure yields ``None``.
"""

import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)

_CAUSED_BY = "Caused by:"
_HEADER_RE = re.compile(r"^(?P<class_name>[\w$.]+)(?::\s?(?P<message>.*))?$")
_FRAME_RE = re.compile(
    r"^at\s+(?P<class_name>[\w$.<>/]+)\.(?P<method>[\w$<>]+)\((?P<location>[^)]*)\)$",
)
_ELIDED_RE = re.compile(r"^\.\.\.\s+\d+\s+(?:more|common frames omitted)$")


@dataclass(frozen=True)
class StackFrame:
    """Single ``at ...`` line of a remote stack trace."""

    class_name: str
    method: str
    location: str = ""

    def __str__(self) -> str:
        return f"{self.class_name}.{self.method}({self.location})"


class RemoteException(Exception):
    """Exception reconstructed from a server stack trace."""

    def __init__(
        self,
        class_name: str,
        message: str | None = None,
        frames: list[StackFrame] | None = None,
    ) -> None:
        super().__init__(f"{class_name}: {message}" if message else class_name)
        self.class_name = class_name
        self.remote_message = message
        self.frames = frames or []


@dataclass
class _Section:
    class_name: str
    message_lines: list[str]
    frames: list[StackFrame]

    def build(self) -> RemoteException:
        message = "\n".join(self.message_lines) or None
        return RemoteException(self.class_name, message, self.frames)


def _parse_header(line: str) -> _Section:
    match = _HEADER_RE.match(line)
    if match is None:
        msg = f"Not an exception header: {line!r}"
        raise ValueError(msg)
    message = match.group("message")
    return _Section(
        class_name=match.group("class_name"),
        message_lines=[message] if message else [],
        frames=[],
    )


def _parse(text: str) -> RemoteException:
    lines = [line.strip() for line in text.strip().splitlines()]
    if not lines or not lines[0]:
        msg = "Empty stack trace"
        raise ValueError(msg)

    sections = [_parse_header(lines[0])]
    for line in lines[1:]:
        if not line or _ELIDED_RE.match(line):
            continue
        if line.startswith(_CAUSED_BY):
            sections.append(_parse_header(line[len(_CAUSED_BY) :].strip()))
            continue
        current = sections[-1]
        if frame := _FRAME_RE.match(line):
            current.frames.append(
                StackFrame(
                    class_name=frame.group("class_name"),
                    method=frame.group("method"),
                    location=frame.group("location"),
                ),
            )
        elif not current.frames:
            # multi-line exception message
            current.message_lines.append(line)

    chain = [section.build() for section in sections]
    for exc, cause in zip(chain, chain[1:]):
        exc.__cause__ = cause
    return chain[0]


def parse_server_stack_trace(text: str | None) -> RemoteException | None:
    """Reconstruct the exception chain described by a server stack trace.

    Args:
        text: Raw stack trace text from an error response body.

    Returns:
        The outermost reconstructed exception, or None if the text is empty
        or cannot be parsed.
    """
    if not text:
        return None
    try:
        return _parse(text)
    except Exception:
        logger.exception("Unable to parse server stack trace")
        return None
