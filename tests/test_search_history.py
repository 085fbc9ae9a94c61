import json

from search_history import STORAGE_NAME, SearchHistory


def test_most_recent_first_and_case_insensitive_dedup():
    history = SearchHistory()
    history.add("monet")
    history.add("degas")
    history.add("Monet")
    assert history.queries() == ["Monet", "degas"]


def test_capacity_drops_oldest():
    history = SearchHistory(limit=3)
    for q in ("a", "b", "c", "d"):
        history.add(q)
    assert history.queries() == ["d", "c", "b"]


def test_blank_queries_are_ignored():
    history = SearchHistory()
    assert history.add("   ") is False
    assert len(history) == 0


def test_remove_and_clear():
    history = SearchHistory()
    history.add("vermeer")
    history.add("hals")
    assert history.remove("VERMEER") is True
    assert history.remove("nobody") is False
    assert history.queries() == ["hals"]
    history.clear()
    assert history.queries() == []


def test_persists_across_instances(tmp_path):
    path = tmp_path / "data" / "history.json"
    first = SearchHistory(path, clock=lambda: 123.0)
    first.add("sargent")
    first.add("cassatt")

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored[STORAGE_NAME]["history"][0] == {"query": "cassatt", "timestamp": 123.0}

    second = SearchHistory(path)
    assert second.queries() == ["cassatt", "sargent"]


def test_other_storage_names_are_preserved(tmp_path):
    path = tmp_path / "history.json"
    path.write_text(json.dumps({"other": {"keep": True}}), encoding="utf-8")
    SearchHistory(path).add("klimt")
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["other"] == {"keep": True}


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")
    history = SearchHistory(path)
    assert history.queries() == []
    history.add("turner")
    assert SearchHistory(path).queries() == ["turner"]


def test_entries_are_copies_with_timestamps():
    history = SearchHistory(clock=lambda: 42.0)
    history.add("bruegel")
    entries = history.entries()
    assert entries == [{"query": "bruegel", "timestamp": 42.0}]
    entries.clear()
    assert len(history) == 1
