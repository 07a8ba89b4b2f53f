from datetime import date, datetime, timedelta

from asn_monitor.notifications import (
    annotate_record,
    build_notifications,
    filter_kind,
    notification_feed,
    summarize,
)
from asn_monitor.schedule import MilestoneKind, MilestoneStatus
from asn_monitor.schemas import AsnRecord

NOW = datetime(2025, 6, 1, 9, 0)
TODAY = NOW.date()


def rec(id, kgb=None, pangkat=None, nama=None):
    return AsnRecord(
        id=id,
        nama=nama or f"Pegawai {id}",
        nip=f"19800101200501100{id}",
        jadwal_kgb_berikutnya=kgb,
        jadwal_pangkat_berikutnya=pangkat,
        created_at=datetime(2025, 1, 1),
    )


def test_empty_input():
    result = build_notifications([], NOW)
    assert result.soon == []
    assert result.overdue == []


def test_promotion_in_45_days_is_soon():
    result = build_notifications([rec(1, pangkat=TODAY + timedelta(days=45))], NOW)
    assert [it.employee_id for it in result.soon] == [1]
    assert result.soon[0].milestone_kind is MilestoneKind.promotion
    assert result.soon[0].status is MilestoneStatus.due_soon
    assert result.soon[0].days == 45
    assert result.soon[0].label == "Kenaikan Pangkat Berikutnya"
    assert result.overdue == []


def test_kgb_ten_days_ago_is_overdue():
    result = build_notifications([rec(1, kgb=TODAY - timedelta(days=10))], NOW)
    assert result.soon == []
    assert len(result.overdue) == 1
    item = result.overdue[0]
    assert item.status is MilestoneStatus.overdue
    assert item.milestone_kind is MilestoneKind.salary_step
    assert item.days == -10


def test_far_dates_and_missing_dates_are_excluded():
    records = [rec(1, kgb=TODAY + timedelta(days=200)), rec(2)]
    result = build_notifications(records, NOW)
    assert result.soon == [] and result.overdue == []


def test_one_record_can_yield_both_kinds():
    result = build_notifications(
        [rec(1, kgb=TODAY + timedelta(days=5), pangkat=TODAY - timedelta(days=3))], NOW
    )
    assert [it.milestone_kind for it in result.soon] == [MilestoneKind.salary_step]
    assert [it.milestone_kind for it in result.overdue] == [MilestoneKind.promotion]


def test_sorted_by_date_with_stable_ties():
    same = TODAY + timedelta(days=20)
    records = [
        rec(1, kgb=TODAY + timedelta(days=60)),
        rec(2, kgb=same),
        rec(3, pangkat=same),
        rec(4, kgb=TODAY + timedelta(days=1)),
    ]
    result = build_notifications(records, NOW)
    assert [it.employee_id for it in result.soon] == [4, 2, 3, 1]
    again = build_notifications(records, NOW)
    assert again == result


def test_malformed_dates_do_not_stop_the_scan():
    records = [
        {"id": 1, "nama": "Rusak", "nip": "1", "jadwal_kgb_berikutnya": "bukan tanggal"},
        {"id": 2, "nama": "Baik", "nip": "2", "jadwal_kgb_berikutnya": (TODAY + timedelta(days=3)).isoformat()},
    ]
    result = build_notifications(records, NOW)
    assert [it.employee_id for it in result.soon] == [2]


def test_feed_merges_and_caps():
    records = [
        rec(1, kgb=TODAY + timedelta(days=30)),
        rec(2, kgb=TODAY - timedelta(days=40)),
        rec(3, pangkat=TODAY - timedelta(days=2)),
    ]
    feed = notification_feed(records, NOW)
    assert [it.employee_id for it in feed] == [2, 3, 1]
    assert len(notification_feed(records, NOW, limit=2)) == 2


def test_filter_kind():
    result = build_notifications(
        [rec(1, kgb=TODAY + timedelta(days=5), pangkat=TODAY + timedelta(days=6))], NOW
    )
    assert len(filter_kind(result.soon, MilestoneKind.promotion)) == 1
    assert len(filter_kind(result.soon, None)) == 2


def test_annotate_uses_nearest_milestone():
    item = annotate_record(rec(1, kgb=TODAY + timedelta(days=200), pangkat=TODAY - timedelta(days=1)), NOW)
    assert item.status is MilestoneStatus.overdue
    assert item.days_until_kgb == 200
    assert item.days_until_pangkat == -1

    assert annotate_record(rec(2), NOW).status is MilestoneStatus.ok
    assert annotate_record(rec(3, kgb=TODAY + timedelta(days=90)), NOW).status is MilestoneStatus.due_soon


def test_summarize_counts():
    records = [
        rec(1, kgb=TODAY + timedelta(days=10), pangkat=TODAY - timedelta(days=10)),
        rec(2, kgb=TODAY - timedelta(days=1)),
        rec(3),
    ]
    summary = summarize(records, NOW)
    assert summary.total == 3
    assert summary.due_soon == 1
    assert summary.overdue == 2
    assert summary.by_kind[MilestoneKind.salary_step].due_soon == 1
    assert summary.by_kind[MilestoneKind.salary_step].overdue == 1
    assert summary.by_kind[MilestoneKind.promotion].overdue == 1
