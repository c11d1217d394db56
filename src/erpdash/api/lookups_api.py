"""Lookup helpers: full listings, select options and existence checks."""

from typing import Any, Dict, Iterator, List, Optional

from ..resources.envelope import parse_list_envelope
from ..resources.query import QueryState
from ..resources.service import ResourceService
from ..transport.errors import ApiError
from ..utils.logging import get_logger
from .models import SelectOption

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100


def iter_all(
    service: ResourceService,
    query: Optional[QueryState] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Iterator[Dict[str, Any]]:
    """
    Yield every record of a list endpoint, page by page.

    Stops after the last page reported (or implied by ``total``) by the
    server. When the server reports neither, keeps going while pages come
    back full and stops at the first short or empty page.

    Args:
        service: Resource service to list from
        query: Search/filters to apply (page and page size are overridden)
        page_size: Records requested per page

    Yields:
        Records in server order
    """
    base = query or QueryState()
    page = 1
    while True:
        page_query = base.model_copy(update={"page": page, "items_per_page": page_size})
        body = service.list(page_query)
        result = parse_list_envelope(body, page_size)
        if not result.items:
            return
        yield from result.items
        if "totalPages" in body["data"] or "total" in body["data"]:
            if page >= result.total_pages:
                return
        elif len(result.items) < page_size:
            return
        page += 1


def select_options(
    service: ResourceService,
    query: Optional[QueryState] = None,
) -> List[SelectOption]:
    """
    Options for a select input, built from the resource label/code fields.

    Records without an id are skipped.
    """
    spec = service.spec
    options = []
    for item in iter_all(service, query):
        if item.get("id") is None:
            continue
        code = item.get(spec.code_field) if spec.code_field else None
        options.append(
            SelectOption(
                value=item["id"],
                label=str(item.get(spec.label_field) or item["id"]),
                code=str(code) if code is not None else None,
            )
        )
    return options


def _field_matches(
    service: ResourceService,
    field: Optional[str],
    value: str,
    filters: Dict[str, Any],
) -> bool:
    if not field or not value:
        return False
    query = QueryState(search=value, filters=filters)
    needle = value.strip().lower()
    try:
        for item in iter_all(service, query):
            candidate = item.get(field)
            if candidate is not None and str(candidate).strip().lower() == needle:
                return True
    except ApiError as e:
        logger.error(f"Error checking {service.spec.singular} {field} existence: {e}")
    return False


def code_exists(service: ResourceService, code: str, **filters: Any) -> bool:
    """True when a record with this code exists (case-insensitive). False on API errors."""
    return _field_matches(service, service.spec.code_field, code, filters)


def name_exists(service: ResourceService, name: str, **filters: Any) -> bool:
    """True when a record with this label exists (case-insensitive). False on API errors."""
    return _field_matches(service, service.spec.label_field, name, filters)


def group_by(items: List[Dict[str, Any]], field: str) -> Dict[Any, List[Dict[str, Any]]]:
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for item in items:
        groups.setdefault(item.get(field), []).append(item)
    return groups
