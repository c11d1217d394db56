"""Query State and query-string building for list endpoints."""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

VALID_ORDERS = ("ASC", "DESC")

# Filter values treated as "not set"
_UNSET_VALUES = ("", "all")


class QueryState(BaseModel):
    """Search text, pagination and filters of one paginated list."""

    search: str = ""
    page: int = Field(default=1, ge=1)
    items_per_page: int = Field(default=10, gt=0)
    order: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("order")
    @classmethod
    def _check_order(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.upper()
        if value not in VALID_ORDERS:
            raise ValueError(f"order must be one of {', '.join(VALID_ORDERS)}")
        return value


def is_unset(value: Any, drop_false: bool = False) -> bool:
    """True when a filter value must not be sent."""
    if value is None:
        return True
    if isinstance(value, str) and value in _UNSET_VALUES:
        return True
    if drop_false and value is False:
        return True
    return False


def format_param(value: Any) -> str:
    """Render a filter value the way the API expects it on the query string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_params(
    query: QueryState,
    filter_params: Optional[Mapping[str, str]] = None,
    *,
    drop_false: bool = False,
    extra_filters: Optional[Mapping[str, Any]] = None,
) -> Dict[str, str]:
    """
    Build the ordered query parameters for a list request.

    Order is: search (only when non-empty), page, itemsPerPage, order (only
    when set), then declared filters in declaration order.

    Args:
        query: Current Query State
        filter_params: Declared filters, python key -> wire parameter name.
            None accepts any filter key and sends it under its own name.
        drop_false: Omit boolean filters that are False
        extra_filters: Per-call filters merged over ``query.filters``

    Returns:
        Dict of parameter name -> string value

    Raises:
        ValueError: If a filter key is not declared
    """
    filters = dict(query.filters)
    if extra_filters:
        filters.update(extra_filters)

    params: Dict[str, str] = {}
    if query.search:
        params["search"] = query.search
    params["page"] = str(query.page)
    params["itemsPerPage"] = str(query.items_per_page)
    if query.order:
        params["order"] = query.order

    if filter_params is None:
        for key, value in filters.items():
            if not is_unset(value, drop_false):
                params[key] = format_param(value)
        return params

    unknown = sorted(set(filters) - set(filter_params))
    if unknown:
        raise ValueError(
            f"Unknown filter(s): {', '.join(unknown)}. "
            f"Allowed: {', '.join(filter_params) or 'none'}"
        )

    for key, wire_name in filter_params.items():
        value = filters.get(key)
        if not is_unset(value, drop_false):
            params[wire_name] = format_param(value)
    return params
