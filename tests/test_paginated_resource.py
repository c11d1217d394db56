"""Tests for PaginatedResource: query state, fetch lifecycle and mutations."""

import logging

import pytest
import requests

from erpdash.resources.catalog import get_resource_spec
from erpdash.resources.paginated import PaginatedResource
from erpdash.resources.query import QueryState
from erpdash.resources.service import ResourceService, ResourceSpec
from fakes import FakeResponse, entity_body, ok, page_body

ZONES = [{"id": 1, "zone_name": "North"}, {"id": 2, "zone_name": "South"}]


def _resource(client, name="zones", **kwargs):
    return PaginatedResource.for_resource(client, name, **kwargs)


def _record_flags(resource):
    seen = []
    resource.subscribe(lambda r: seen.append((r.loading, r.saving)))
    return seen


def test_load_sets_server_page(client, http):
    http.queue(ok(page_body(ZONES, total=12, total_pages=2)))
    resource = _resource(client)

    resource.load()

    assert resource.items == ZONES
    assert resource.total == 12
    assert resource.total_pages == 2
    assert resource.error is None
    assert resource.loading is False


def test_search_scenario_with_empty_result(client, http):
    http.queue(ok(page_body([])))
    resource = _resource(client)

    resource.set_search("acme")

    assert http.last.params == {"search": "acme", "page": "1", "itemsPerPage": "10"}
    assert resource.items == []
    assert resource.total == 0
    assert resource.total_pages == 0
    assert resource.error is None


def test_one_loading_cycle_per_filter_change(client, http):
    http.queue(ok(page_body(ZONES)), ok(page_body(ZONES[:1])))
    resource = _resource(client)
    seen = _record_flags(resource)

    resource.set_filter("zone_name", "North")
    resource.set_filter("zip_code", "1000")

    loading = [flag for flag, _ in seen]
    starts = sum(1 for a, b in zip(loading, loading[1:]) if not a and b)
    ends = sum(1 for a, b in zip(loading, loading[1:]) if a and not b)
    assert starts == 2
    assert ends == 2
    assert loading[-1] is False
    assert len(http.calls) == 2


def test_unchanged_value_does_not_refetch(client, http):
    http.queue(ok(page_body(ZONES)))
    resource = _resource(client)

    assert resource.set_page(2) is True
    assert resource.set_page(2) is False
    assert len(http.calls) == 1


def test_setters_validate_values(client):
    resource = _resource(client, auto_refresh=False)

    with pytest.raises(ValueError):
        resource.set_page(0)
    with pytest.raises(ValueError):
        resource.set_order("sideways")
    with pytest.raises(ValueError, match="Unknown filter"):
        resource.set_filter("colour", "red")


def test_setters_without_auto_refresh(client, http):
    resource = _resource(client, auto_refresh=False)

    resource.set_search("north")
    resource.set_items_per_page(25)
    resource.set_order("desc")
    resource.set_filters({"zone_name": "N", "zip_code": None})

    assert http.calls == []
    assert resource.query == QueryState(
        search="north", items_per_page=25, order="DESC", filters={"zone_name": "N"}
    )


def test_set_filter_none_removes_it(client, http):
    http.queue(ok(page_body(ZONES)), ok(page_body(ZONES)))
    resource = _resource(client)

    resource.set_filter("zone_name", "North")
    resource.set_filter("zone_name", None)

    assert "zone_name" not in http.last.params
    assert resource.query.filters == {}


def test_load_with_one_off_filters(client, http):
    http.queue(ok(page_body(ZONES)))
    resource = _resource(client, auto_refresh=False)

    resource.load({"zip_code": "2000"})

    assert http.last.params["zip_code"] == "2000"
    assert resource.query.filters == {}


def test_malformed_envelope_yields_empty_page(client, http, caplog):
    http.queue(ok({"success": True, "data": {"data": {"not": "a list"}}}))
    resource = _resource(client)

    with caplog.at_level(logging.WARNING):
        resource.load()

    assert resource.items == []
    assert resource.total == 0
    assert resource.total_pages == 0
    assert resource.error is None
    assert "Unexpected zones response" in caplog.text


def test_server_error_uses_fallback_message(client, http):
    http.queue(FakeResponse(500, text="<html>oops</html>"))
    resource = _resource(client)

    resource.load()

    assert resource.error == "Failed to load zones"
    assert resource.loading is False
    assert resource.items == []


def test_server_error_prefers_server_message(client, http):
    http.queue(FakeResponse(400, {"success": False, "message": ["page must be positive"]}))
    resource = _resource(client)

    resource.load()

    assert resource.error == "page must be positive"


def test_load_clears_previous_error(client, http):
    http.queue(FakeResponse(500), ok(page_body(ZONES)))
    resource = _resource(client)

    resource.load()
    resource.refresh()

    assert resource.error is None
    assert resource.items == ZONES


def test_create_flips_modified_once_without_touching_items(client, http):
    http.queue(ok(entity_body({"id": 3, "zone_name": "East"})))
    resource = _resource(client, auto_refresh=False)
    resource.result = resource.result.model_copy(update={"items": list(ZONES), "total": 2})

    record = resource.create({"zone_name": "East"})

    assert record == {"id": 3, "zone_name": "East"}
    assert resource.modified is True
    assert resource.items == ZONES
    assert resource.saving is False


def test_create_refetches_with_auto_refresh(client, http):
    http.queue(ok(entity_body({"id": 3})), ok(page_body(ZONES + [{"id": 3}])))
    resource = _resource(client)

    resource.create({"zone_name": "East"})

    assert [c.method for c in http.calls] == ["POST", "GET"]
    assert len(resource.items) == 3


def test_failed_mutation_keeps_items_and_sets_error(client, http):
    http.queue(FakeResponse(500))
    resource = _resource(client)
    resource.result = resource.result.model_copy(update={"items": list(ZONES), "total": 2})
    seen = _record_flags(resource)

    assert resource.create({"zone_name": "East"}) is None

    assert resource.error == "Failed to create zone"
    assert resource.modified is False
    assert resource.items == ZONES
    assert (False, True) in seen
    assert seen[-1] == (False, False)
    assert len(http.calls) == 1


def test_update_uses_patch_and_refetches(client, http):
    http.queue(ok(entity_body({"id": 1, "zone_name": "Far North"})), ok(page_body(ZONES)))
    resource = _resource(client)

    record = resource.update(1, {"zone_name": "Far North"})

    assert record["zone_name"] == "Far North"
    assert http.calls[0].method == "PATCH"
    assert http.calls[0].url.endswith("/zones/1")


def test_delete_refetches_for_regular_resources(client, http):
    http.queue(ok({"success": True, "data": None}), ok(page_body(ZONES[1:])))
    resource = _resource(client)

    assert resource.delete(1) is True

    assert [c.method for c in http.calls] == ["DELETE", "GET"]
    assert resource.items == ZONES[1:]


def test_delete_prunes_warehouses_locally(client, http, api_session):
    api_session.company_id = 5
    warehouses = [{"id": 10, "name": "A"}, {"id": 11, "name": "B"}, {"id": 12, "name": "C"}]
    http.queue(ok(page_body(warehouses)), ok({"success": True, "data": None}))
    resource = _resource(client, "warehouses")
    resource.load()
    modified_before = resource.modified

    assert resource.delete(11) is True

    assert [item["id"] for item in resource.items] == [10, 12]
    assert resource.total == 2
    assert resource.modified is modified_before
    assert [c.method for c in http.calls] == ["GET", "DELETE"]


def test_failed_delete_returns_false(client, http):
    http.queue(FakeResponse(404, {"success": False, "message": "Zone not found"}))
    resource = _resource(client)

    assert resource.delete(99) is False
    assert resource.error == "Zone not found"


def test_sync_returns_result_and_refetches(client, http):
    http.queue(
        ok({"success": True, "data": {"message": "2 tax types synced"}}),
        ok(page_body([])),
    )
    resource = _resource(client, "tax-types")

    assert resource.sync({"data": []}) == {"message": "2 tax types synced"}
    assert http.calls[0].url.endswith("/tax-types/sync")


def test_fetch_one(client, http):
    http.queue(ok(entity_body(ZONES[0])), FakeResponse(500))
    resource = _resource(client)

    assert resource.fetch_one(1) == ZONES[0]
    assert resource.fetch_one(2) is None
    assert resource.error == "Failed to fetch zone"


def test_company_scoped_list_is_empty_without_company(client, http):
    resource = _resource(client, "warehouses")

    resource.load()

    assert http.calls == []
    assert resource.items == []
    assert resource.error is None
    assert resource.loading is False


def test_company_scoped_list_uses_explicit_filter(client, http):
    http.queue(ok(page_body([{"id": 1, "name": "A"}])))
    resource = _resource(client, "warehouses")

    resource.set_filter("company_id", 7)

    assert http.last.params["companyId"] == "7"
    assert len(resource.items) == 1


def test_unsubscribe_stops_notifications(client, http):
    http.queue(ok(page_body([])))
    resource = _resource(client)
    seen = []
    unsubscribe = resource.subscribe(lambda r: seen.append(r.loading))
    unsubscribe()

    resource.load()

    assert seen == []


class ReentrantService(ResourceService):
    """Issues a newer query while the first list call is still in flight."""

    def __init__(self, client, spec, resource_holder):
        super().__init__(client, spec)
        self.holder = resource_holder
        self.searches = []

    def list(self, query, extra_filters=None):
        self.searches.append(query.search)
        if query.search == "a":
            self.holder["resource"].set_search("ab")
            return page_body([{"id": 1, "name": "stale"}])
        return page_body([{"id": 2, "name": "fresh"}])


def test_stale_response_is_discarded(client):
    spec = ResourceSpec(name="things", path="/things", label="things", singular="thing")
    holder = {}
    service = ReentrantService(client, spec, holder)
    resource = PaginatedResource(service)
    holder["resource"] = resource

    resource.set_search("a")

    assert service.searches == ["a", "ab"]
    assert resource.items == [{"id": 2, "name": "fresh"}]
    assert resource.loading is False


@pytest.mark.parametrize("unset", ["", "all"])
def test_unset_company_filter_falls_back_to_session_company(client, http, api_session, unset):
    api_session.company_id = 5
    http.queue(ok(page_body([{"id": 1, "name": "A"}])))
    resource = _resource(client, "warehouses")

    resource.set_filter("company_id", unset)

    assert http.last.params["companyId"] == "5"


@pytest.mark.parametrize("unset", ["", "all"])
def test_unset_company_filter_without_session_company_sends_nothing(client, http, unset):
    resource = _resource(client, "warehouses")

    resource.set_filter("company_id", unset)
    resource.load({"company_id": unset})

    assert http.calls == []
    assert resource.items == []
    assert resource.error is None


def test_transport_failure_sets_fallback_error(client, http):
    http.queue(requests.ConnectionError("connection refused"))
    resource = _resource(client)

    resource.load()

    assert resource.error == "Failed to load zones"
    assert resource.loading is False
    assert resource.items == []


def test_prune_recomputes_total_pages(client, http, api_session):
    api_session.company_id = 5
    warehouses = [{"id": 10, "name": "A"}, {"id": 11, "name": "B"}]
    http.queue(ok(page_body(warehouses, total=11, total_pages=2)), ok({"success": True, "data": None}))
    resource = _resource(client, "warehouses")
    resource.load()

    resource.delete(10)

    assert resource.total == 10
    assert resource.total_pages == 1
