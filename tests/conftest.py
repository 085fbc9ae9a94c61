import threading
import time
from typing import Any, Dict, Iterable, List, Optional

import pytest

from met_api import ArtworkNotFound, TransientProviderError


def make_record(object_id: int, **fields: Any) -> Dict[str, Any]:
    rec = {
        "objectID": object_id,
        "title": f"Artwork {object_id}",
        "primaryImage": f"https://images.example/{object_id}.jpg",
        "primaryImageSmall": f"https://images.example/{object_id}-small.jpg",
        "department": "European Paintings",
        "artistDisplayName": "",
        "culture": "",
        "classification": "",
        "tags": None,
    }
    rec.update(fields)
    return rec


class FakeCatalog:
    """
    In-memory catalog.

    - records: id -> record
    - search_results: term -> ids (or an Exception instance to raise)
    - failing_ids: ids that always fail
    - flaky_ids: id -> number of failures before success
    - delays: id -> seconds to sleep inside fetch_by_id
    """

    def __init__(
        self,
        records: Iterable[Dict[str, Any]] = (),
        search_results: Optional[Dict[str, Any]] = None,
        departments: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.records = {r["objectID"]: r for r in records}
        self.search_results = dict(search_results or {})
        self.departments = departments if departments is not None else [
            {"departmentId": 11, "displayName": "European Paintings"},
            {"departmentId": 6, "displayName": "Asian Art"},
        ]
        self.failing_ids: set = set()
        self.flaky_ids: Dict[int, int] = {}
        self.delays: Dict[int, float] = {}
        self.department_error: Optional[Exception] = None

        self.search_calls: List[tuple] = []
        self.fetch_calls: List[int] = []
        self.department_calls = 0
        self._lock = threading.Lock()

    def search(self, term, filters=None):
        self.search_calls.append((term, filters))
        result = self.search_results.get(term, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def fetch_by_id(self, object_id):
        with self._lock:
            self.fetch_calls.append(object_id)
            remaining = self.flaky_ids.get(object_id, 0)
            if remaining:
                self.flaky_ids[object_id] = remaining - 1
        delay = self.delays.get(object_id)
        if delay:
            time.sleep(delay)
        if remaining:
            raise TransientProviderError(f"flaky {object_id}", 503)
        if object_id in self.failing_ids or object_id not in self.records:
            raise ArtworkNotFound(f"missing {object_id}", 404)
        return self.records[object_id]

    def list_departments(self):
        self.department_calls += 1
        if self.department_error is not None:
            raise self.department_error
        return list(self.departments)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else str(payload))

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, responses: Iterable[Any] = ()) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if not self.responses:
            raise AssertionError(f"Unexpected request to {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def records():
    return [make_record(i) for i in (5, 9, 2, 7, 1, 3)]


@pytest.fixture
def catalog(records):
    return FakeCatalog(records=records, search_results={"sunflowers": [5, 9, 2, 7, 1, 3]})
