"""Tests for the record store and its persistence behaviour."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from conftest import fixed_clock, make_draft, sequential_ids
from prakan_app.core.errors import MalformedRecordError, PersistenceError, RecordNotFoundError
from prakan_app.repositories.blob_gateway import MemoryBlobGateway
from prakan_app.services.record_store import RecordStore


class FailingGateway:
    def __init__(self, fail_load: bool = False):
        self.fail_load = fail_load
        self.save_calls = 0

    def load(self):
        if self.fail_load:
            raise PersistenceError("disk unreadable")
        return []

    def save(self, records):
        self.save_calls += 1
        raise PersistenceError("disk full")


def test_create_assigns_identity_and_captures_total(store: RecordStore) -> None:
    record = store.create(make_draft())

    assert record.id == "id-1"
    assert record.created_at == fixed_clock()
    assert record.total_amount == Decimal("5400.00")
    assert store.get("id-1") is record


def test_mutations_keep_unique_ids_and_insertion_order(store: RecordStore) -> None:
    first = store.create(make_draft(cust_name="ลูกค้า 1"))
    second = store.create(make_draft(cust_name="ลูกค้า 2"))
    third = store.create(make_draft(cust_name="ลูกค้า 3"))

    updated = store.update(second.id, make_draft(cust_name="ลูกค้า 2 แก้ไข", premium_vol=Decimal("0")))
    store.delete(first.id)
    fourth = store.create(make_draft(cust_name="ลูกค้า 4"))

    records = store.all()
    assert [record.id for record in records] == [second.id, third.id, fourth.id]
    assert len({record.id for record in records}) == 3
    assert records[0] == updated
    assert updated.created_at == second.created_at
    assert updated.total_amount == Decimal("400.00")


def test_id_collisions_are_retried(gateway) -> None:
    ids = iter(["same", "same", "other"])
    store = RecordStore(gateway, id_factory=lambda: next(ids), clock=fixed_clock)

    assert store.create(make_draft()).id == "same"
    assert store.create(make_draft()).id == "other"


def test_delete_missing_id_leaves_collection_unchanged(store: RecordStore) -> None:
    record = store.create(make_draft())
    store.delete(record.id)
    store.create(make_draft(cust_name="อีกคน"))
    before = store.all()

    with pytest.raises(RecordNotFoundError):
        store.delete(record.id)

    assert store.all() == before


def test_update_missing_id_fails(store: RecordStore) -> None:
    with pytest.raises(RecordNotFoundError):
        store.update("nope", make_draft())
    assert len(store) == 0


def test_malformed_draft_is_rejected(store: RecordStore) -> None:
    draft = make_draft()
    draft.phone = None
    draft.premium_prb = "1000"

    with pytest.raises(MalformedRecordError) as excinfo:
        store.create(draft)

    assert excinfo.value.missing == ["phone", "premium_prb"]
    assert len(store) == 0


def test_empty_required_text_is_not_malformed(store: RecordStore) -> None:
    record = store.create(make_draft(model=""))
    assert record.model == ""


def test_bulk_insert_skips_malformed_rows_and_saves_once(store: RecordStore, gateway) -> None:
    bad = make_draft()
    bad.cust_name = None
    snapshots = []
    store.subscribe(snapshots.append)

    result = store.bulk_insert([make_draft(), bad, make_draft()], row_numbers=[2, 3, 4])

    assert len(result.created) == 2
    assert [(entry.row_number, str(entry)) for entry in result.skipped] == [
        (3, "แถวที่ 3: ข้อมูลไม่ครบหรือไม่ถูกต้อง: cust_name")
    ]
    assert len(snapshots) == 1
    assert len(json.loads(gateway.blobs["insuranceData"])) == 2


def test_listeners_receive_snapshots(store: RecordStore) -> None:
    snapshots = []
    store.subscribe(snapshots.append)
    store.create(make_draft())
    store.unsubscribe(snapshots.append)
    store.create(make_draft())

    assert len(snapshots) == 1
    assert len(snapshots[0]) == 1


def test_state_survives_reload(gateway) -> None:
    store = RecordStore(gateway, id_factory=sequential_ids(), clock=fixed_clock)
    store.create(make_draft(cust_name="ลูกค้า A"))
    store.create(make_draft(cust_name="ลูกค้า B"))

    reloaded = RecordStore(gateway)
    assert reloaded.load() == []
    assert reloaded.all() == store.all()


def test_save_failure_keeps_memory_and_queues_warning() -> None:
    gateway = FailingGateway()
    store = RecordStore(gateway)
    store.load()

    record = store.create(make_draft())

    assert store.get(record.id) == record
    warnings = store.drain_warnings()
    assert len(warnings) == 1
    assert warnings[0].operation == "save"
    assert store.drain_warnings() == []


def test_unreadable_storage_loads_empty_with_warning() -> None:
    store = RecordStore(FailingGateway(fail_load=True))

    warnings = store.load()

    assert len(store) == 0
    assert warnings[0].operation == "load"
    assert "disk unreadable" in str(warnings[0])


def test_corrupt_blob_loads_empty_and_bad_entries_are_dropped() -> None:
    gateway = MemoryBlobGateway()
    gateway.blobs["insuranceData"] = "{not json"
    store = RecordStore(gateway)
    assert len(store.load()) == 1
    assert len(store) == 0

    good = RecordStore(MemoryBlobGateway(), id_factory=sequential_ids(), clock=fixed_clock)
    good.create(make_draft())
    entries = [good.all()[0].to_dict(), {"cust_name": "ไม่มี id"}, "garbage"]
    gateway.blobs["insuranceData"] = json.dumps(entries, ensure_ascii=False)

    assert store.load() == []
    assert [record.id for record in store.all()] == ["id-1"]


def test_clear_all_and_summary(store: RecordStore) -> None:
    store.create(make_draft())
    store.create(make_draft(premium_vol=Decimal("0"), discount_vol=Decimal("0")))

    summary = store.summary()
    assert summary.record_count == 2
    assert summary.total_amount == Decimal("6300.00")

    assert store.clear_all() == 2
    assert store.summary().record_count == 0


def test_out_of_range_amount_is_malformed(store: RecordStore) -> None:
    with pytest.raises(MalformedRecordError) as excinfo:
        store.create(make_draft(premium_prb=Decimal("1e30")))
    with pytest.raises(MalformedRecordError):
        store.create(make_draft(discount_vol=1e30))

    assert excinfo.value.missing == ["premium_prb"]
    assert len(store) == 0


def test_bulk_insert_skips_out_of_range_row_and_saves_the_rest(store: RecordStore, gateway) -> None:
    result = store.bulk_insert([make_draft(), make_draft(premium_prb=Decimal("1e30"))])

    assert len(result.created) == 1
    assert [entry.row_number for entry in result.skipped] == [2]
    assert len(json.loads(gateway.blobs["insuranceData"])) == 1


def test_bulk_insert_commits_created_rows_when_the_source_fails(store: RecordStore, gateway) -> None:
    snapshots = []
    store.subscribe(snapshots.append)

    def drafts():
        yield make_draft()
        raise RuntimeError("reader broke")

    with pytest.raises(RuntimeError):
        store.bulk_insert(drafts())

    assert len(store) == 1
    assert len(snapshots) == 1
    assert len(json.loads(gateway.blobs["insuranceData"])) == 1
