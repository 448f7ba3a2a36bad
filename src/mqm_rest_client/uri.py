"""URI construction for the MQM REST API.

Templates are relative paths containing ``{name}`` or ``{index}``
placeholders, e.g. ``"test/{0}?id={1}"``. Special characters that need
encoding must already be encoded in the template; parameters are encoded
when substituted.
"""

import re
import urllib.parse
from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import IllegalArgumentError
from .query import QueryCondition, join_conditions

SHARED_SPACE_API_URI = "api/shared_spaces/{0}"
SHARED_SPACE_INTERNAL_API_URI = "internal-api/shared_spaces/{0}"
WORKSPACE_API_URI = SHARED_SPACE_API_URI + "/workspaces/{1}"
WORKSPACE_INTERNAL_API_URI = SHARED_SPACE_INTERNAL_API_URI + "/workspaces/{1}"

FILTERING_FRAGMENT = "query={query}"
FIELDS_FRAGMENT = "fields={fields}"
PAGING_FRAGMENT = "offset={offset}&limit={limit}"
ORDER_BY_FRAGMENT = "order_by={order}"

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")


def encode_param(value: Any) -> str:
    """URL-encode a template parameter (space becomes %20, braces are escaped)."""
    return urllib.parse.quote("" if value is None else str(value), safe="")


def resolve_template(template: str, params: Mapping[str, Any]) -> str:
    """Replace every placeholder in ``template`` with its encoded parameter.

    Substitution is single-pass, so encoded values are never re-scanned.

    Raises:
        IllegalArgumentError: If a placeholder has no matching parameter.
    """

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in params:
            msg = f"Unresolved placeholder '{{{key}}}' in URI template '{template}'"
            raise IllegalArgumentError(msg)
        return encode_param(params[key])

    return _PLACEHOLDER_RE.sub(substitute, template)


def _as_params(args: tuple[Any, ...], named: Mapping[str, Any]) -> dict[str, Any]:
    params = {str(i): value for i, value in enumerate(args)}
    params.update(named)
    return params


class UriBuilder:
    """Builds absolute MQM URIs for one server location and shared space."""

    def __init__(self, location: str, shared_space: str):
        self.location = location.rstrip("/")
        self.shared_space = shared_space

    def base_uri(self, template: str, *args: Any, **named: Any) -> str:
        """Absolute URI relative to the server location."""
        path = resolve_template(template, _as_params(args, named))
        return f"{self.location}/{path}"

    def _scoped(
        self,
        prefix: str,
        prefix_args: tuple[Any, ...],
        template: str,
        params: Mapping[str, Any],
    ) -> str:
        base = self.base_uri(prefix, *prefix_args)
        return f"{base}/{resolve_template(template, params)}"

    def shared_space_api_uri(self, template: str, *args: Any, **named: Any) -> str:
        """URI under ``api/shared_spaces/{shared_space}``."""
        return self._scoped(
            SHARED_SPACE_API_URI,
            (self.shared_space,),
            template,
            _as_params(args, named),
        )

    def shared_space_internal_api_uri(
        self,
        template: str,
        *args: Any,
        **named: Any,
    ) -> str:
        """URI under ``internal-api/shared_spaces/{shared_space}``."""
        return self._scoped(
            SHARED_SPACE_INTERNAL_API_URI,
            (self.shared_space,),
            template,
            _as_params(args, named),
        )

    def workspace_api_uri(
        self,
        template: str,
        workspace_id: int,
        *args: Any,
        **named: Any,
    ) -> str:
        """URI under ``api/shared_spaces/{shared_space}/workspaces/{workspace_id}``."""
        return self._scoped(
            WORKSPACE_API_URI,
            (self.shared_space, workspace_id),
            template,
            _as_params(args, named),
        )

    def workspace_internal_api_uri(
        self,
        template: str,
        workspace_id: int,
        *args: Any,
        **named: Any,
    ) -> str:
        """URI under ``internal-api/.../workspaces/{workspace_id}``."""
        return self._scoped(
            WORKSPACE_INTERNAL_API_URI,
            (self.shared_space, workspace_id),
            template,
            _as_params(args, named),
        )

    def entity_uri(
        self,
        collection: str,
        conditions: Iterable[str | QueryCondition] | None = None,
        fields: Iterable[str] | None = None,
        workspace_id: int | None = None,
        offset: int | None = None,
        limit: int | None = None,
        order_by: str | None = None,
    ) -> str:
        """Collection URI with optional query, fields, paging and ordering.

        Fragments are appended only when their input is present, always in
        the order query, fields, paging, order_by. Paging requires both
        ``offset`` and ``limit``.

        Args:
            collection: Collection path, e.g. ``"taxonomy_nodes"``.
            conditions: Filter conditions, combined with AND.
            fields: Field names to return.
            workspace_id: Scope to this workspace; shared space otherwise.
            offset: Index of the first item.
            limit: Maximum number of items.
            order_by: Field to sort by.

        Returns:
            Absolute, encoded collection URI.
        """
        params: dict[str, Any] = {}
        fragments: list[str] = []

        expression = join_conditions(conditions or [])
        if expression:
            params["query"] = f'"{expression}"'
            fragments.append(FILTERING_FRAGMENT)

        field_list = list(fields or [])
        if field_list:
            params["fields"] = ",".join(field_list)
            fragments.append(FIELDS_FRAGMENT)

        if offset is not None and limit is not None:
            params["offset"] = offset
            params["limit"] = limit
            fragments.append(PAGING_FRAGMENT)

        if order_by:
            params["order"] = order_by
            fragments.append(ORDER_BY_FRAGMENT)

        template = collection
        if fragments:
            template = f"{collection}?{'&'.join(fragments)}"

        if workspace_id is not None:
            return self._scoped(
                WORKSPACE_API_URI,
                (self.shared_space, workspace_id),
                template,
                params,
            )
        return self._scoped(
            SHARED_SPACE_API_URI,
            (self.shared_space,),
            template,
            params,
        )
