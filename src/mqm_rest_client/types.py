"""Result containers and entity models for the MQM REST API.

Entity models are Pydantic models; ``Model.model_validate_json`` serves as
the entity factory for paged retrieval.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

E = TypeVar("E")


@dataclass
class PagedList(Generic[E]):
    """One page of a server collection.

    ``offset + len(items) <= total_count`` is expected from the server but
    not enforced.
    """

    items: list[E] = field(default_factory=list)
    offset: int = 0
    total_count: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


class TaxonomyType(BaseModel):
    """Taxonomy type (category of taxonomy nodes)."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class AbridgedTaskPluginInfo(BaseModel):
    """CI plugin self-description sent along with task polling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    self_identity: str | None = None
    self_type: str | None = None
    self_location: str | None = None
    api_version: int | None = None
    sdk_version: str | None = None
    plugin_version: str | None = None
    ci_server_user: str | None = None
    octane_user: str | None = None
