from swagger_adapter.models import Endpoint
from swagger_adapter.search import DISPLAY_LIMIT, search_endpoints


def _endpoint(path, summary=None, description=None, operation_id=None, api_name="demo"):
    return Endpoint(
        api_name=api_name,
        api_title=f"{api_name.title()} API",
        method="GET",
        path=path,
        operation_id=operation_id,
        summary=summary,
        description=description,
        parameters=(),
        operation={},
    )


ENDPOINTS = (
    _endpoint("/items/{id}", summary="Get one item"),
    _endpoint("/orders", summary="List orders", description="Orders containing an ITEM"),
    _endpoint("/users", summary="List users", operation_id="listUsers"),
    _endpoint("/status", api_name="monitor"),
)


def test_matches_path_summary_and_description_case_insensitively():
    result = search_endpoints(ENDPOINTS, "Item")

    assert [e.path for e in result.matches] == ["/items/{id}", "/orders"]
    assert result.found
    assert result.total == 2


def test_matches_operation_id_and_api_identity():
    assert [e.path for e in search_endpoints(ENDPOINTS, "listusers").matches] == ["/users"]
    assert [e.path for e in search_endpoints(ENDPOINTS, "monitor").matches] == ["/status"]


def test_no_match_is_distinct():
    result = search_endpoints(ENDPOINTS, "widget")

    assert not result.found
    assert result.total == 0


def test_display_is_truncated_with_total():
    endpoints = [_endpoint(f"/item/{index}") for index in range(DISPLAY_LIMIT + 5)]

    result = search_endpoints(endpoints, "item")

    assert result.total == DISPLAY_LIMIT + 5
    assert result.truncated
    assert [e.path for e in result.shown()] == [f"/item/{i}" for i in range(DISPLAY_LIMIT)]
