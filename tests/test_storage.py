import json

import pytest

from servicedesk.storage import InMemoryStorage, JsonFileStorage, RecordStore


def test_missing_file_loads_as_none(tmp_path):
    assert JsonFileStorage(tmp_path / "absent.json").load() is None


def test_blank_file_loads_as_empty_list(tmp_path):
    path = tmp_path / "blank.json"
    path.write_text("  \n", encoding="utf-8")
    assert JsonFileStorage(path).load() == []


def test_non_array_file_is_rejected(tmp_path):
    path = tmp_path / "object.json"
    path.write_text('{"id": "1"}', encoding="utf-8")
    with pytest.raises(ValueError):
        JsonFileStorage(path).load()


def test_save_writes_pretty_utf8_array(tmp_path):
    path = tmp_path / "nested" / "groups.json"
    JsonFileStorage(path).save([{"id": "1", "name": "Manutenção"}])

    raw = path.read_text(encoding="utf-8")
    assert "Manutenção" in raw
    assert raw.startswith("[\n  {")
    assert json.loads(raw) == [{"id": "1", "name": "Manutenção"}]
    assert [item.name for item in path.parent.iterdir()] == ["groups.json"]


def test_store_seeds_and_persists_on_first_read(tmp_path):
    path = tmp_path / "users.json"
    store = RecordStore("users", JsonFileStorage(path), seed=lambda: [{"id": "1"}])

    assert store.read() == [{"id": "1"}]
    assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "1"}]


def test_store_without_seed_starts_empty():
    backend = InMemoryStorage()
    store = RecordStore("tickets", backend)
    assert store.read() == []
    assert backend.load() == []


@pytest.mark.asyncio
async def test_transaction_saves_on_success():
    backend = InMemoryStorage([])
    store = RecordStore("clients", backend)

    async with store.transaction() as records:
        records.append({"id": "1"})

    assert backend.load() == [{"id": "1"}]


@pytest.mark.asyncio
async def test_transaction_discards_changes_on_error():
    backend = InMemoryStorage([{"id": "1"}])
    store = RecordStore("clients", backend)

    with pytest.raises(RuntimeError):
        async with store.transaction() as records:
            records.clear()
            raise RuntimeError("boom")

    assert backend.load() == [{"id": "1"}]


def test_in_memory_storage_copies_records():
    backend = InMemoryStorage([{"id": "1", "tags": []}])
    loaded = backend.load()
    loaded[0]["tags"].append("x")
    assert backend.load() == [{"id": "1", "tags": []}]
