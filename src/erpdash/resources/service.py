"""Generic REST service for one ERP resource."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from erpdash.resources.envelope import unwrap_entity
from erpdash.resources.query import QueryState, build_query_params, is_unset
from erpdash.transport.client import ApiClient
from erpdash.utils.logging import get_logger

logger = get_logger(__name__)

ResourceId = Union[int, str]

COMPANY_FILTER = "company_id"


@dataclass(frozen=True)
class ResourceSpec:
    """Per-entity configuration: endpoint, filters and list behavior."""

    name: str
    path: str
    label: str  # plural, for messages ("warehouses")
    singular: str  # ("warehouse")
    filters: Mapping[str, str] = field(default_factory=dict)  # python key -> wire name
    sync_path: Optional[str] = None
    drop_false_flags: bool = False
    prune_on_delete: bool = False
    requires_company: bool = False
    label_field: str = "name"
    code_field: Optional[str] = "code"
    columns: Tuple[str, ...] = ()

    def fallback_message(self, action: str) -> str:
        """Message used when a failed call carries no server message."""
        noun = self.label if action in ("load", "sync") else self.singular
        return f"Failed to {action} {noun}"

    def table_columns(self) -> Tuple[str, ...]:
        if self.columns:
            return self.columns
        columns = ["id", self.label_field]
        if self.code_field and self.code_field != self.label_field:
            columns.append(self.code_field)
        return tuple(columns)


class ResourceService:
    """Turns Query State into list requests and wraps the CRUD verbs of one resource."""

    def __init__(self, client: ApiClient, spec: ResourceSpec):
        self.client = client
        self.spec = spec

    def __repr__(self) -> str:
        return f"ResourceService({self.spec.name!r}, path={self.spec.path!r})"

    def _item_path(self, resource_id: ResourceId) -> str:
        return f"{self.spec.path}/{resource_id}"

    def company_filter(self) -> Dict[str, Any]:
        """Selected company from the session, when the resource filters by company."""
        if COMPANY_FILTER in self.spec.filters and self.client.session.company_id is not None:
            return {COMPANY_FILTER: self.client.session.company_id}
        return {}

    def query_params(
        self,
        query: QueryState,
        extra_filters: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, str]:
        """Query parameters for ``query`` with session defaults applied."""
        filters = dict(query.filters)
        if extra_filters:
            filters.update({k: v for k, v in extra_filters.items() if v is not None})
        for key, value in self.company_filter().items():
            if is_unset(filters.get(key)):
                filters[key] = value
        return build_query_params(
            query.model_copy(update={"filters": filters}),
            self.spec.filters,
            drop_false=self.spec.drop_false_flags,
        )

    def list(
        self,
        query: QueryState,
        extra_filters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """GET the list endpoint. Returns the raw body (envelope parsing is the caller's)."""
        params = self.query_params(query, extra_filters)
        return self.client.get(self.spec.path, params=params)

    def get(self, resource_id: ResourceId) -> Any:
        return unwrap_entity(self.client.get(self._item_path(resource_id)))

    def create(self, payload: Mapping[str, Any]) -> Any:
        logger.info(f"Creating {self.spec.singular}")
        return unwrap_entity(self.client.post(self.spec.path, json_body=dict(payload)))

    def update(self, resource_id: ResourceId, payload: Mapping[str, Any]) -> Any:
        logger.info(f"Updating {self.spec.singular} {resource_id}")
        return unwrap_entity(self.client.patch(self._item_path(resource_id), json_body=dict(payload)))

    def delete(self, resource_id: ResourceId) -> Any:
        logger.info(f"Deleting {self.spec.singular} {resource_id}")
        return self.client.delete(self._item_path(resource_id))

    def sync(self, payload: Mapping[str, Any]) -> Any:
        """
        POST an ERP bulk sync.

        Raises:
            ValueError: If the resource has no sync endpoint
        """
        if not self.spec.sync_path:
            raise ValueError(f"Resource '{self.spec.name}' has no sync endpoint")
        logger.info(f"Syncing {self.spec.label}")
        return unwrap_entity(self.client.post(self.spec.sync_path, json_body=dict(payload)))
