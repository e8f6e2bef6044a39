"""Tests for the JSON service store."""
import json
from datetime import datetime, timezone

from uptime_monitor.models import ServiceKind, ServiceRecord
from uptime_monitor.services.store import ServiceStore


def sample_records():
    return [
        ServiceRecord(
            id="17000000001234", name="Hub", kind=ServiceKind.HOME_HUB,
            host="hub.local", port=8123,
        ),
        ServiceRecord(
            id="17000000005678", name="API", kind=ServiceKind.HTTP_GET,
            host="10.0.0.2", port=8080, path="/ready", expected_response="ok",
            check_interval=30,
        ),
        ServiceRecord(
            id="17000000009999", name="NAS", kind=ServiceKind.PING, host="nas",
        ),
    ]


class TestServiceStore:
    def test_missing_store_is_empty(self, store):
        assert store.load() == []

    def test_round_trip_restores_durable_fields(self, store):
        records = sample_records()
        records[0].is_up = True
        records[0].last_checked_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        records[0].last_up_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        records[1].last_error = "Response mismatch"

        assert store.save(records)
        loaded = store.load()

        assert [r.to_durable_dict() for r in loaded] == [r.to_durable_dict() for r in records]
        for record in loaded:
            assert record.is_up is False
            assert record.last_checked_at is None
            assert record.last_up_at is None
            assert record.last_error == ""

    def test_save_load_is_idempotent(self, store, store_path):
        store.save(sample_records())
        store.save(store.load())
        first = store_path.read_bytes()
        store.save(store.load())
        assert store_path.read_bytes() == first

    def test_volatile_fields_not_written(self, store, store_path):
        records = sample_records()
        records[0].is_up = True
        records[0].last_error = "x"
        store.save(records)

        document = json.loads(store_path.read_text())
        assert list(document) == ["services"]
        assert list(document["services"][0]) == [
            "id", "name", "type", "host", "port", "path", "expectedResponse", "checkInterval",
        ]
        assert document["services"][0]["type"] == "home_assistant"
        assert [s["id"] for s in document["services"]] == [r.id for r in records]

    def test_corrupt_json_is_empty(self, store, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text('{"services": [{"id": "1", ')
        assert store.load() == []

    def test_missing_services_array_is_empty(self, store, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text('{"items": []}')
        assert store.load() == []

    def test_one_bad_entry_rejects_whole_store(self, store, store_path):
        store.save(sample_records())
        document = json.loads(store_path.read_text())
        document["services"][2]["type"] = "smtp"
        store_path.write_text(json.dumps(document))

        assert store.load() == []

    def test_duplicate_ids_reject_whole_store(self, store, store_path):
        records = sample_records()
        records[1].id = records[0].id
        store.save(records)
        assert store.load() == []

    def test_legacy_integer_types(self, store, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps({"services": [
            {"id": "1", "name": "HA", "type": 0, "host": "ha", "port": 8123,
             "path": "/", "expectedResponse": "*", "checkInterval": 60},
            {"id": "2", "name": "Jelly", "type": 1, "host": "jf", "port": 8096,
             "path": "/", "expectedResponse": "*", "checkInterval": 60},
            {"id": "3", "name": "Web", "type": 2, "host": "web", "port": 80,
             "path": "/", "expectedResponse": "*", "checkInterval": 60},
            {"id": "4", "name": "Router", "type": 3, "host": "gw", "port": 0,
             "path": "/", "expectedResponse": "*", "checkInterval": 60},
        ]}))

        kinds = [r.kind for r in store.load()]
        assert kinds == [
            ServiceKind.HOME_HUB, ServiceKind.MEDIA_SERVER, ServiceKind.HTTP_GET, ServiceKind.PING,
        ]

    def test_unwritable_store_reports_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = ServiceStore(blocker / "services.json")

        assert store.save(sample_records()) is False

    def test_save_replaces_previous_content(self, store):
        records = sample_records()
        store.save(records)
        store.save(records[:1])
        assert [r.id for r in store.load()] == [records[0].id]

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        # A directory in the way makes the final swap fail
        target = tmp_path / "services.json"
        target.mkdir()
        store = ServiceStore(target)

        assert store.save(sample_records()) is False
        assert not (tmp_path / ".services.json.tmp").exists()
