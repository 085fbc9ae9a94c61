import pytest
import requests

from conftest import FakeResponse, FakeSession
from met_api import (
    WILDCARD_TERM,
    ArtworkNotFound,
    MetCatalog,
    PermanentProviderError,
    TransientProviderError,
    build_search_params,
    get_best_image_url,
    has_image,
)
from search_params import SearchFilters, SearchValidationError


def _catalog(responses, sleeps=None):
    session = FakeSession(responses)
    sleeps = sleeps if sleeps is not None else []
    catalog = MetCatalog(session=session, base_url="https://met.test/v1", timeout=5, sleep=sleeps.append)
    return catalog, session


def test_build_search_params_order_and_format():
    flt = SearchFilters(department_id=11, has_images=True, is_on_view=False, date_begin=1800, date_end=1900)
    params = build_search_params("monet", flt)
    assert params[0] == ("q", "monet")
    assert ("departmentId", "11") in params
    assert ("hasImages", "true") in params
    assert ("isOnView", "false") in params
    assert ("dateBegin", "1800") in params and ("dateEnd", "1900") in params


def test_build_search_params_uses_wildcard_for_filter_only_search():
    params = build_search_params("", SearchFilters(is_highlight=True))
    assert params[0] == ("q", WILDCARD_TERM)


def test_build_search_params_rejects_empty_request():
    with pytest.raises(SearchValidationError):
        build_search_params("  ", SearchFilters(has_images=False))


def test_search_preserves_order_and_normalizes_null():
    catalog, session = _catalog([
        FakeResponse(200, {"total": 3, "objectIDs": [30, 10, 20]}),
        FakeResponse(200, {"total": 0, "objectIDs": None}),
    ])
    assert catalog.search("cats") == [30, 10, 20]
    assert catalog.search("nothing") == []
    assert session.calls[0]["url"] == "https://met.test/v1/search"
    assert session.calls[0]["timeout"] == 5


def test_empty_request_never_reaches_network():
    catalog, session = _catalog([])
    with pytest.raises(SearchValidationError):
        catalog.search("")
    assert session.calls == []


def test_transient_errors_are_retried_with_increasing_delay():
    sleeps = []
    catalog, session = _catalog(
        [
            requests.ConnectionError("boom"),
            FakeResponse(503, text="unavailable"),
            FakeResponse(200, {"objectID": 7, "title": "Irises"}),
        ],
        sleeps,
    )
    assert catalog.fetch_by_id(7)["title"] == "Irises"
    assert len(session.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_transient_error_surfaces_after_last_attempt():
    catalog, _ = _catalog([requests.Timeout("slow")] * 3)
    with pytest.raises(TransientProviderError) as info:
        catalog.fetch_by_id(7)
    assert isinstance(info.value.__cause__, requests.Timeout)


def test_throttling_is_transient():
    catalog, session = _catalog([FakeResponse(429), FakeResponse(200, {"departments": []})])
    assert catalog.list_departments() == []
    assert len(session.calls) == 2


def test_client_errors_are_not_retried():
    catalog, session = _catalog([FakeResponse(400, text="bad")])
    with pytest.raises(PermanentProviderError) as info:
        catalog.search("x")
    assert info.value.status == 400
    assert len(session.calls) == 1


def test_fetch_by_id_not_found_is_not_retried():
    sleeps = []
    catalog, session = _catalog([FakeResponse(404, {"message": "Not a valid object"})], sleeps)
    with pytest.raises(ArtworkNotFound):
        catalog.fetch_by_id(123)
    assert len(session.calls) == 1
    assert sleeps == []


def test_retry_attempts_and_delay_are_configurable():
    sleeps = []
    session = FakeSession([FakeResponse(502)] * 4 + [FakeResponse(200, {"departments": []})])
    catalog = MetCatalog(session=session, retry_attempts=5, retry_delay=0.5, sleep=sleeps.append)
    assert catalog.list_departments() == []
    assert sleeps == [0.5, 1.0, 1.5, 2.0]


def test_single_attempt_does_not_sleep():
    sleeps = []
    session = FakeSession([FakeResponse(503)])
    catalog = MetCatalog(session=session, retry_attempts=1, sleep=sleeps.append)
    with pytest.raises(TransientProviderError) as info:
        catalog.list_departments()
    assert info.value.status == 503
    assert sleeps == []


def test_fetch_by_id_rejects_invalid_ids_without_request():
    catalog, session = _catalog([])
    for bad in (0, -1, True):
        with pytest.raises(SearchValidationError):
            catalog.fetch_by_id(bad)
    assert session.calls == []


def test_list_departments_skips_malformed_entries():
    catalog, _ = _catalog([FakeResponse(200, {"departments": [
        {"departmentId": 1, "displayName": "American Decorative Arts"},
        {"departmentId": "x", "displayName": "Broken"},
        {"displayName": "No id"},
    ]})])
    assert catalog.list_departments() == [{"departmentId": 1, "displayName": "American Decorative Arts"}]


def test_image_helpers():
    assert has_image({"primaryImage": "https://a/b.jpg", "primaryImageSmall": ""})
    assert get_best_image_url({"primaryImage": "big", "primaryImageSmall": "small"}) == "small"
    assert not has_image({"primaryImage": "", "primaryImageSmall": "  "})
