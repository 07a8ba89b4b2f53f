from datetime import date

import pytest

from asn_monitor.core.errors import NotFoundError, ValidationError
from asn_monitor.deps import build_store
from asn_monitor.schemas import AsnImportRow, AsnIn, AsnPatch


def new(**fields):
    fields.setdefault("nama", "Budi Santoso")
    fields.setdefault("nip", "198001012005011001")
    return AsnIn(**fields)


def test_create_derives_schedule(store):
    r = store.create(new(riwayat_tmt_kgb="2023-08-01", riwayat_tmt_pangkat="2022-01-10"))
    assert r.id >= 1
    assert r.jadwal_kgb_berikutnya == date(2025, 8, 1)
    assert r.jadwal_pangkat_berikutnya == date(2026, 1, 10)
    assert r.created_at is not None


def test_create_without_history_has_no_schedule(store):
    r = store.create(new())
    assert r.jadwal_kgb_berikutnya is None
    assert r.jadwal_pangkat_berikutnya is None


def test_create_ignores_caller_schedule(store):
    fields = AsnIn.model_validate({
        "nama": "Siti", "nip": "1", "riwayat_tmt_kgb": "2023-08-01",
        "jadwal_kgb_berikutnya": "2099-01-01",
    })
    assert store.create(fields).jadwal_kgb_berikutnya == date(2025, 8, 1)


@pytest.mark.parametrize("missing", [{"nama": ""}, {"nip": ""}, {"nama": None}])
def test_create_requires_nama_and_nip(store, missing):
    before = len(store.list())
    with pytest.raises(ValidationError):
        store.create(new(**missing))
    assert len(store.list()) == before


def test_list_newest_first(store):
    a = store.create(new(nama="A"))
    b = store.create(new(nama="B"))
    ids = [r.id for r in store.list()]
    assert ids == [b.id, a.id]
    assert a.id != b.id


def test_get_and_delete(store):
    r = store.create(new())
    assert store.get(r.id) == r
    store.delete(r.id)
    with pytest.raises(NotFoundError):
        store.get(r.id)
    # idempotente
    store.delete(r.id)
    store.delete(9999)


def test_update_name_keeps_schedule(store):
    r = store.create(new(riwayat_tmt_kgb="2023-08-01", riwayat_tmt_pangkat="2022-01-10"))
    u = store.update(r.id, AsnPatch(nama="Budi S."))
    assert u.nama == "Budi S."
    assert u.nip == r.nip
    assert u.riwayat_tmt_kgb == r.riwayat_tmt_kgb
    assert u.jadwal_kgb_berikutnya == r.jadwal_kgb_berikutnya
    assert u.jadwal_pangkat_berikutnya == r.jadwal_pangkat_berikutnya
    assert u.created_at == r.created_at


def test_update_kgb_recomputes_only_kgb(store):
    r = store.create(new(riwayat_tmt_kgb="2023-08-01", riwayat_tmt_pangkat="2022-01-10"))
    patch = AsnPatch.model_validate({"riwayatTmtKgb": "2024-04-01", "jadwal_kgb_berikutnya": "2030-01-01"})
    u = store.update(r.id, patch)
    assert u.jadwal_kgb_berikutnya == date(2026, 4, 1)
    assert u.jadwal_pangkat_berikutnya == date(2026, 1, 10)
    assert store.get(r.id).jadwal_kgb_berikutnya == date(2026, 4, 1)


def test_update_null_clears_history_and_schedule(store):
    r = store.create(new(riwayat_tmt_pangkat="2022-01-10"))
    u = store.update(r.id, AsnPatch(riwayat_tmt_pangkat=None))
    assert u.riwayat_tmt_pangkat is None
    assert u.jadwal_pangkat_berikutnya is None


def test_update_rejects_blank_name(store):
    r = store.create(new())
    with pytest.raises(ValidationError):
        store.update(r.id, AsnPatch(nama=""))
    assert store.get(r.id).nama == r.nama


def test_update_missing_record(store):
    with pytest.raises(NotFoundError):
        store.update(12345, AsnPatch(nama="X"))


def test_put_creates_with_id_then_replaces(store):
    rec, created = store.put(AsnImportRow(id=50, nama="Andi", nip="7", riwayat_tmt_kgb="2024-01-01"))
    assert created and rec.id == 50
    assert rec.jadwal_kgb_berikutnya == date(2026, 1, 1)

    rec2, created2 = store.put(AsnImportRow(id=50, nama="Andi W", nip="7"))
    assert not created2
    assert rec2.nama == "Andi W"
    assert rec2.riwayat_tmt_kgb is None
    assert rec2.jadwal_kgb_berikutnya is None

    # los ids nuevos siguen después del importado
    assert store.create(new()).id > 50


def test_put_without_id_creates(store):
    rec, created = store.put(AsnImportRow(nama="Tanpa Id", nip="8"))
    assert created
    assert store.get(rec.id).nama == "Tanpa Id"


def test_ping(store):
    assert store.ping() is not None


def test_records_survive_reopen(settings):
    s = build_store(settings)
    s.open()
    r = s.create(new(riwayat_tmt_kgb="2023-08-01"))
    s.close()

    s = build_store(settings)
    s.open()
    try:
        again = s.get(r.id)
        assert again.nama == r.nama
        assert again.jadwal_kgb_berikutnya == date(2025, 8, 1)
    finally:
        s.close()


def test_local_store_skips_unreadable_dates(tmp_path):
    from asn_monitor.stores.local import LocalRecordStore

    path = tmp_path / "asn.json"
    path.write_text(
        '{"next_id": 3, "records": ['
        '{"id": 1, "nama": "A", "nip": "1", "riwayat_tmt_kgb": "rusak", "created_at": "2025-01-01T00:00:00"},'
        '{"id": 2, "nama": "B", "nip": "2", "riwayat_tmt_kgb": "2023-08-01", "created_at": "2025-01-02T00:00:00"}'
        "]}",
        encoding="utf-8",
    )
    s = LocalRecordStore(path)
    s.open()
    assert s.get(1).riwayat_tmt_kgb is None
    assert s.get(2).jadwal_kgb_berikutnya == date(2025, 8, 1)
    assert s.create(new()).id == 3
    s.close()


def test_create_with_schedule_past_year_9999_is_rejected(store):
    before = len(store.list())
    with pytest.raises(ValidationError):
        store.create(new(riwayat_tmt_kgb="9998-06-01"))
    assert len(store.list()) == before


def test_update_with_unreadable_date_keeps_stored_value(store):
    r = store.create(new(riwayat_tmt_kgb="2023-08-01"))
    u = store.update(r.id, AsnPatch.model_validate({"riwayat_tmt_kgb": "typo-date"}))
    assert u.riwayat_tmt_kgb == date(2023, 8, 1)
    assert u.jadwal_kgb_berikutnya == date(2025, 8, 1)
    u = store.update(r.id, AsnPatch.model_validate({"riwayatTmtKgb": "typo-date", "nama": "Baru"}))
    assert u.nama == "Baru"
    assert store.get(r.id).jadwal_kgb_berikutnya == date(2025, 8, 1)


def test_patch_drops_unreadable_dates_but_keeps_nulls():
    patch = AsnPatch.model_validate({"riwayat_tmt_kgb": "typo-date", "riwayat_tmt_pangkat": None})
    assert patch.changes() == {"riwayat_tmt_pangkat": None}


def test_local_store_keeps_unreadable_rows_on_disk(tmp_path):
    import json

    from asn_monitor.stores.local import LocalRecordStore

    path = tmp_path / "asn.json"
    path.write_text(json.dumps({"records": [
        {"id": 1, "nama": "Tanpa created_at", "nip": "1"},
        {"id": 2, "nama": "B", "nip": "2", "created_at": "2025-01-02T00:00:00"},
    ]}), encoding="utf-8")
    s = LocalRecordStore(path)
    s.open()
    assert [r.id for r in s.list()] == [2]
    assert s.create(new()).id == 3
    s.close()

    on_disk = json.loads(path.read_text(encoding="utf-8"))["records"]
    assert sorted(row["id"] for row in on_disk) == [1, 2, 3]
    assert {"id": 1, "nama": "Tanpa created_at", "nip": "1"} in on_disk

    # un put con ese id reemplaza la fila ilegible
    s.open()
    s.put(AsnImportRow(id=1, nama="Diperbaiki", nip="1"))
    s.close()
    on_disk = json.loads(path.read_text(encoding="utf-8"))["records"]
    assert [row["nama"] for row in on_disk if row["id"] == 1] == ["Diperbaiki"]


def test_local_store_returns_copies(tmp_path):
    from asn_monitor.stores.local import LocalRecordStore

    s = LocalRecordStore(tmp_path / "asn.json")
    s.open()
    r = s.create(new(nama="Asli"))
    s.list()[0].nama = "Diubah"
    s.get(r.id).nama = "Diubah"
    r.nama = "Diubah"
    assert s.get(r.id).nama == "Asli"
    s.close()
