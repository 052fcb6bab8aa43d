import json

from storage import JsonFileStore, MemoryStore


def test_json_file_store_round_trips_across_instances(tmp_path):
    path = tmp_path / "nested" / "state.json"
    store = JsonFileStore(path)

    assert store.get("lastAdzan") is None
    store.set("lastAdzan", '{"prayer": "isya"}')
    store.set("selectedCity", '{"id": "1301", "lokasi": "KOTA JAKARTA"}')

    reopened = JsonFileStore(path)
    assert reopened.get("lastAdzan") == '{"prayer": "isya"}'
    assert json.loads(path.read_text(encoding="utf-8"))["selectedCity"].startswith("{")


def test_json_file_store_delete(tmp_path):
    store = JsonFileStore(tmp_path / "state.json")
    store.set("lastAdzan", "value")

    store.delete("lastAdzan")
    store.delete("missing")

    assert store.get("lastAdzan") is None


def test_json_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{broken", encoding="utf-8")
    store = JsonFileStore(path)

    assert store.get("lastAdzan") is None

    store.set("lastAdzan", "value")
    assert store.get("lastAdzan") == "value"


def test_json_file_store_ignores_non_object_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    assert JsonFileStore(path).get("lastAdzan") is None


def test_memory_store():
    store = MemoryStore({"a": "1"})

    store.set("b", "2")
    store.delete("a")
    store.delete("a")

    assert store.get("a") is None
    assert store.get("b") == "2"
