"""Filter expression fragments for MQM collection queries.

Conditions render into the server's query syntax, e.g. ``name='foo'`` or
``release={id=1001}``. Multiple conditions are joined with ``;`` which the
server treats as AND. Formatting is permissive: malformed input produces
malformed output rather than an error.
"""

from collections.abc import Iterable
from dataclasses import dataclass


def escape_query_value(value: str) -> str:
    """Double backslashes, then backslash-escape single and double quotes."""
    escaped = value.replace("\\", "\\\\")
    return escaped.replace("'", "\\'").replace('"', '\\"')


def _render_value(value: str | int) -> str:
    if isinstance(value, str):
        return f"'{escape_query_value(value)}'"
    return str(value)


@dataclass(frozen=True)
class QueryCondition:
    """Name/operator/value triple of a filter expression."""

    name: str
    value: str | int
    operator: str = "="

    def __str__(self) -> str:
        return f"{self.name}{self.operator}{_render_value(self.value)}"


def condition(name: str, value: str | int) -> str:
    """Render ``name='value'`` for strings or ``name=value`` for numbers."""
    return str(QueryCondition(name, value))


def condition_ref(name: str, value: str | int, ref_field: str = "id") -> str:
    """Render a reference condition such as ``release={id=1001}``."""
    return f"{name}={{{condition(ref_field, value)}}}"


def join_conditions(conditions: Iterable[str | QueryCondition]) -> str:
    """Combine conditions with an implicit AND."""
    return ";".join(str(c) for c in conditions)
