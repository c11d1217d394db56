"""Paginated resource: one page of a remote list kept in sync with its query.

A ``PaginatedResource`` owns the Query State (search, page, page size, order,
filters), the current Result Set, the ``loading`` / ``saving`` / ``error``
flags and the Modified Signal. Any change to the query, and every successful
mutation, re-runs ``load`` when ``auto_refresh`` is on.

State machine per fetch: Idle -> Loading -> (Success | Error) -> Idle.

Fetches are sequenced: only the most recently issued fetch may write the
Result Set or the error, so a slow earlier response never overwrites a newer
one.
"""

import math
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from erpdash.resources.catalog import get_resource_spec
from erpdash.resources.envelope import ResultSet, parse_list_envelope
from erpdash.resources.query import QueryState, is_unset
from erpdash.resources.service import COMPANY_FILTER, ResourceId, ResourceService, ResourceSpec
from erpdash.transport.client import ApiClient
from erpdash.transport.errors import ApiError, EnvelopeError
from erpdash.utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[["PaginatedResource"], None]


class PaginatedResource:
    """Keeps one page of a resource list synchronized with the API."""

    def __init__(
        self,
        service: ResourceService,
        query: Optional[QueryState] = None,
        *,
        auto_refresh: bool = True,
    ):
        """
        Initialize resource.

        Args:
            service: REST service of the resource
            query: Initial Query State (defaults: page 1, 10 per page)
            auto_refresh: Re-run ``load`` on query changes and after mutations
        """
        self.service = service
        self.query = query or QueryState()
        self.auto_refresh = auto_refresh

        self.result = ResultSet()
        self.loading = False
        self.saving = False
        self.error: Optional[str] = None
        self.modified = False

        self._lock = threading.Lock()
        self._issued = 0
        self._in_flight = 0
        self._listeners: List[Listener] = []

    @classmethod
    def for_resource(
        cls,
        client: ApiClient,
        name: str,
        query: Optional[QueryState] = None,
        *,
        auto_refresh: bool = True,
    ) -> "PaginatedResource":
        """Build a PaginatedResource for a catalog resource name."""
        service = ResourceService(client, get_resource_spec(name))
        return cls(service, query, auto_refresh=auto_refresh)

    def __repr__(self) -> str:
        return (
            f"PaginatedResource({self.spec.name!r}, page={self.query.page}, "
            f"items={len(self.items)}, total={self.total}, loading={self.loading})"
        )

    @property
    def spec(self) -> ResourceSpec:
        return self.service.spec

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.result.items

    @property
    def total(self) -> int:
        return self.result.total

    @property
    def total_pages(self) -> int:
        return self.result.total_pages

    # ------------------------------------------------------------------
    # Listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a state-change listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------------
    # Query setters

    def _check_filter_keys(self, keys) -> None:
        unknown = sorted(set(keys) - set(self.spec.filters))
        if unknown:
            raise ValueError(
                f"Unknown filter(s) for {self.spec.name}: {', '.join(unknown)}"
            )

    def _update_query(self, **changes: Any) -> bool:
        new_query = QueryState.model_validate({**self.query.model_dump(), **changes})
        if new_query == self.query:
            return False
        self.query = new_query
        self._notify()
        if self.auto_refresh:
            self.load()
        return True

    def set_search(self, search: str) -> bool:
        return self._update_query(search=search or "")

    def set_page(self, page: int) -> bool:
        return self._update_query(page=page)

    def set_items_per_page(self, items_per_page: int) -> bool:
        return self._update_query(items_per_page=items_per_page)

    def set_order(self, order: Optional[str]) -> bool:
        return self._update_query(order=order)

    def set_filter(self, key: str, value: Any) -> bool:
        """Set one filter. ``None`` removes it."""
        self._check_filter_keys([key])
        filters = dict(self.query.filters)
        if value is None:
            filters.pop(key, None)
        else:
            filters[key] = value
        return self._update_query(filters=filters)

    def set_filters(self, filters: Mapping[str, Any]) -> bool:
        """Replace all filters."""
        self._check_filter_keys(filters)
        cleaned = {k: v for k, v in filters.items() if v is not None}
        return self._update_query(filters=cleaned)

    # ------------------------------------------------------------------
    # Fetch

    def _missing_company(self, filters: Optional[Mapping[str, Any]]) -> bool:
        if not self.spec.requires_company:
            return False
        for source in (filters or {}, self.query.filters):
            if not is_unset(source.get(COMPANY_FILTER)):
                return False
        return not self.service.company_filter()

    def load(self, filters: Optional[Mapping[str, Any]] = None) -> ResultSet:
        """
        Fetch the current page.

        Args:
            filters: Extra filters for this fetch only, merged over the query filters

        Returns:
            The Result Set held after the fetch settles
        """
        if self._missing_company(filters):
            logger.debug(f"No company selected, {self.spec.label} list is empty")
            with self._lock:
                self._issued += 1
                self.result = ResultSet()
                self.error = None
            self._notify()
            return self.result

        with self._lock:
            self._issued += 1
            sequence = self._issued
            self._in_flight += 1
            self.loading = True
            self.error = None
            query = self.query
        self._notify()

        outcome: Optional[Tuple[ResultSet, Optional[str]]] = None
        try:
            body = self.service.list(query, filters)
            outcome = (parse_list_envelope(body, query.items_per_page), None)
        except EnvelopeError as e:
            logger.warning(f"Unexpected {self.spec.label} response, treating as empty page: {e}")
            outcome = (ResultSet(), None)
        except ApiError as e:
            logger.error(f"Failed to load {self.spec.label}: {e}")
            outcome = (ResultSet(), e.user_message(self.spec.fallback_message("load")))
        finally:
            with self._lock:
                self._in_flight -= 1
                self.loading = self._in_flight > 0
                if outcome is not None:
                    if sequence == self._issued:
                        self.result, self.error = outcome
                    else:
                        logger.debug(
                            f"Discarding stale {self.spec.label} response "
                            f"(request {sequence}, latest {self._issued})"
                        )
            self._notify()

        return self.result

    def refresh(self) -> ResultSet:
        return self.load()

    def fetch_one(self, resource_id: ResourceId) -> Optional[Dict[str, Any]]:
        """Fetch one record. Returns None and sets ``error`` on failure."""
        self.error = None
        try:
            return self.service.get(resource_id)
        except ApiError as e:
            logger.error(f"Failed to fetch {self.spec.singular} {resource_id}: {e}")
            self.error = e.user_message(self.spec.fallback_message("fetch"))
            self._notify()
            return None

    # ------------------------------------------------------------------
    # Mutations

    def _mutate(self, action: str, call: Callable[[], Any]) -> Tuple[bool, Any]:
        with self._lock:
            self.saving = True
            self.error = None
        self._notify()
        try:
            outcome = call()
        except ApiError as e:
            logger.error(f"Failed to {action} {self.spec.singular}: {e}")
            with self._lock:
                self.error = e.user_message(self.spec.fallback_message(action))
            return False, None
        finally:
            with self._lock:
                self.saving = False
            self._notify()
        return True, outcome

    def _signal_modified(self) -> None:
        with self._lock:
            self.modified = not self.modified
        self._notify()
        if self.auto_refresh:
            self.load()

    def _prune(self, resource_id: ResourceId) -> None:
        with self._lock:
            kept = [item for item in self.result.items if str(item.get("id")) != str(resource_id)]
            removed = len(self.result.items) - len(kept)
            total = max(self.result.total - removed, 0)
            self.result = ResultSet(
                items=kept,
                total=total,
                total_pages=math.ceil(total / self.query.items_per_page),
            )
        self._notify()

    def create(self, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Create a record. Returns it, or None on failure."""
        ok, record = self._mutate("create", lambda: self.service.create(payload))
        if not ok:
            return None
        self._signal_modified()
        return record

    def update(self, resource_id: ResourceId, payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a record. Returns it, or None on failure."""
        ok, record = self._mutate("update", lambda: self.service.update(resource_id, payload))
        if not ok:
            return None
        self._signal_modified()
        return record

    def delete(self, resource_id: ResourceId) -> bool:
        """Delete a record. Prune-on-delete resources drop it locally instead of refetching."""
        ok, _ = self._mutate("delete", lambda: self.service.delete(resource_id))
        if not ok:
            return False
        if self.spec.prune_on_delete:
            self._prune(resource_id)
        else:
            self._signal_modified()
        return True

    def sync(self, payload: Mapping[str, Any]) -> Optional[Any]:
        """Run the ERP bulk sync. Returns the sync result, or None on failure."""
        ok, data = self._mutate("sync", lambda: self.service.sync(payload))
        if not ok:
            return None
        self._signal_modified()
        return data
